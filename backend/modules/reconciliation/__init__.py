"""
Reconciliation module.

Scheduled batch jobs that keep identity and profile records consistent
when no request arrives to trigger the inline check.

Public API:
- ReconciliationService: Full scan, expiry sweep and log purge
- ReconciliationScheduler, SchedulerState, JobRunLock: Job scheduling
- DailyTrigger, HourlyTrigger, MonthlyTrigger: Wall-clock triggers
- ScheduledJob, ScanSummary, SweepSummary, PurgeSummary: Models
- JobAlreadyRunningError
"""

from .models import ScheduledJob, JobSummary, ScanSummary, SweepSummary, PurgeSummary
from .triggers import Trigger, DailyTrigger, HourlyTrigger, MonthlyTrigger
from .service import ReconciliationService
from .scheduler import (
    ReconciliationScheduler,
    SchedulerState,
    JobRunLock,
    default_schedule,
)
from .exceptions import JobAlreadyRunningError

__all__ = [
    # Models
    "ScheduledJob",
    "JobSummary",
    "ScanSummary",
    "SweepSummary",
    "PurgeSummary",
    # Triggers
    "Trigger",
    "DailyTrigger",
    "HourlyTrigger",
    "MonthlyTrigger",
    # Service
    "ReconciliationService",
    # Scheduler
    "ReconciliationScheduler",
    "SchedulerState",
    "JobRunLock",
    "default_schedule",
    # Exceptions
    "JobAlreadyRunningError",
]
