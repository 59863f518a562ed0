"""
Reconciliation module data models.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class ScheduledJob(str, Enum):
    """Background jobs run by the reconciliation scheduler."""

    FULL_SCAN = "full_scan"        # Daily divergence scan over every profile
    EXPIRY_SWEEP = "expiry_sweep"  # Hourly deletion of expired suspensions
    LOG_PURGE = "log_purge"        # Monthly purge of old resolved log entries


class JobSummary(BaseModel):
    """Base for job results."""

    def counters(self) -> dict[str, int]:
        """Integer fields, as stored on the job run record."""
        return {k: v for k, v in self.model_dump().items() if isinstance(v, int)}


class ScanSummary(JobSummary):
    users_checked: int = Field(default=0, description="Profiles visited, including failures")
    issues_found: int = Field(default=0, description="Profiles suspended by this scan")
    already_suspended: int = Field(default=0)
    failures: int = Field(default=0, description="Profiles whose check raised")


class SweepSummary(JobSummary):
    candidates: int = Field(default=0, description="Expired suspensions found")
    deleted: int = Field(default=0, description="Accounts deleted by this sweep")
    failures: int = Field(default=0)


class PurgeSummary(JobSummary):
    cutoff: datetime
    purged: int = Field(default=0)
