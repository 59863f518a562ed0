"""
Audit module interfaces.

The log repository deliberately offers no general update: entries are
appended once and only their resolution fields may change afterwards.
"""

from datetime import datetime
from typing import Optional, Protocol, runtime_checkable

from .models import (
    DeletedAccountRecord,
    InconsistencyLogEntry,
    InconsistencyType,
    JobRunRecord,
)


@runtime_checkable
class IInconsistencyLogRepository(Protocol):
    """Storage for inconsistency log entries."""

    def append(self, entry: InconsistencyLogEntry) -> None:
        """Store a new entry."""
        ...

    def insert_if_absent(self, entry: InconsistencyLogEntry) -> bool:
        """Store an entry with a caller-chosen ID unless it already exists."""
        ...

    def get(self, log_id: str) -> Optional[InconsistencyLogEntry]:
        ...

    def query(
        self,
        resolved: Optional[bool] = None,
        entry_type: Optional[InconsistencyType] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[InconsistencyLogEntry], int]:
        """
        Filtered entries, newest first.

        Returns:
            Tuple of (page of entries, total matching entries)
        """
        ...

    def list_for_user(self, user_id: str) -> list[InconsistencyLogEntry]:
        """Every entry for one user, newest first."""
        ...

    def mark_resolved(
        self,
        log_id: str,
        resolved_by: str,
        resolved_at: datetime,
        notes: str,
    ) -> Optional[InconsistencyLogEntry]:
        """Set the resolution fields. Returns None if the entry is unknown."""
        ...

    def count(self, resolved: Optional[bool] = None) -> int:
        ...

    def type_breakdown(self) -> dict[str, int]:
        """Entry count per type."""
        ...

    def delete_resolved_before(self, cutoff: datetime) -> int:
        """Delete resolved entries older than ``cutoff``. Returns the count."""
        ...


@runtime_checkable
class IDeletedAccountRepository(Protocol):
    """Storage for deleted-account snapshots."""

    def insert_if_absent(self, record: DeletedAccountRecord) -> bool:
        ...

    def list_recent(self, limit: int = 100) -> list[DeletedAccountRecord]:
        ...


@runtime_checkable
class IJobRunRepository(Protocol):
    """Storage for reconciliation job summaries."""

    def record(self, run: JobRunRecord) -> None:
        ...

    def list_recent(self, job: Optional[str] = None, limit: int = 20) -> list[JobRunRecord]:
        ...
