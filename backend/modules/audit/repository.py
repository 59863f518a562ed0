"""
Audit repository implementations.

Encapsulates all access to the audit tables:
- inconsistency_logs
- deleted_accounts
- reconciliation_runs
"""

from collections import Counter
from datetime import datetime
from typing import Optional

from supabase import Client

from shared.repository import BaseRepository
from .models import (
    DeletedAccountRecord,
    InconsistencyLogEntry,
    InconsistencyType,
    JobRunRecord,
)


# -----------------------------------------------------------------------------
# In-memory implementations
# -----------------------------------------------------------------------------


class InMemoryInconsistencyLogRepository:
    """Inconsistency log with in-memory storage."""

    def __init__(self) -> None:
        self._entries: dict[str, InconsistencyLogEntry] = {}

    def append(self, entry: InconsistencyLogEntry) -> None:
        self._entries[entry.id] = entry.model_copy(deep=True)

    def insert_if_absent(self, entry: InconsistencyLogEntry) -> bool:
        if entry.id in self._entries:
            return False
        self.append(entry)
        return True

    def get(self, log_id: str) -> Optional[InconsistencyLogEntry]:
        entry = self._entries.get(log_id)
        return entry.model_copy(deep=True) if entry else None

    def query(
        self,
        resolved: Optional[bool] = None,
        entry_type: Optional[InconsistencyType] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[InconsistencyLogEntry], int]:
        matching = [
            e for e in self._newest_first()
            if (resolved is None or e.resolved == resolved)
            and (entry_type is None or e.type == entry_type)
        ]
        return matching[offset : offset + limit], len(matching)

    def list_for_user(self, user_id: str) -> list[InconsistencyLogEntry]:
        return [e for e in self._newest_first() if e.user_id == user_id]

    def mark_resolved(
        self,
        log_id: str,
        resolved_by: str,
        resolved_at: datetime,
        notes: str,
    ) -> Optional[InconsistencyLogEntry]:
        entry = self._entries.get(log_id)
        if entry is None:
            return None
        updated = entry.model_copy(update={
            "resolved": True,
            "resolved_by": resolved_by,
            "resolved_at": resolved_at,
            "resolution_notes": notes,
        })
        self._entries[log_id] = updated
        return updated.model_copy(deep=True)

    def count(self, resolved: Optional[bool] = None) -> int:
        return sum(
            1 for e in self._entries.values()
            if resolved is None or e.resolved == resolved
        )

    def type_breakdown(self) -> dict[str, int]:
        return dict(Counter(e.type.value for e in self._entries.values()))

    def delete_resolved_before(self, cutoff: datetime) -> int:
        doomed = [
            log_id for log_id, e in self._entries.items()
            if e.resolved and e.timestamp < cutoff
        ]
        for log_id in doomed:
            del self._entries[log_id]
        return len(doomed)

    def _newest_first(self) -> list[InconsistencyLogEntry]:
        return [
            e.model_copy(deep=True)
            for e in sorted(self._entries.values(), key=lambda e: e.timestamp, reverse=True)
        ]


class InMemoryDeletedAccountRepository:
    """Deleted-account snapshots with in-memory storage."""

    def __init__(self) -> None:
        self._records: dict[str, DeletedAccountRecord] = {}

    def insert_if_absent(self, record: DeletedAccountRecord) -> bool:
        if record.id in self._records:
            return False
        self._records[record.id] = record
        return True

    def list_recent(self, limit: int = 100) -> list[DeletedAccountRecord]:
        ordered = sorted(self._records.values(), key=lambda r: r.deleted_at, reverse=True)
        return ordered[:limit]


class InMemoryJobRunRepository:
    """Job run summaries with in-memory storage."""

    def __init__(self) -> None:
        self._runs: list[JobRunRecord] = []

    def record(self, run: JobRunRecord) -> None:
        self._runs.append(run)

    def list_recent(self, job: Optional[str] = None, limit: int = 20) -> list[JobRunRecord]:
        runs = [r for r in self._runs if job is None or r.job == job]
        runs.sort(key=lambda r: r.started_at, reverse=True)
        return runs[:limit]


# -----------------------------------------------------------------------------
# Supabase implementations
# -----------------------------------------------------------------------------


class InconsistencyLogRepository(BaseRepository[InconsistencyLogEntry]):
    """Repository for the ``inconsistency_logs`` table."""

    def __init__(self, db: Client, table: str = "inconsistency_logs") -> None:
        super().__init__(db, table)

    def append(self, entry: InconsistencyLogEntry) -> None:
        self._db.table(self._table).insert(entry.to_row()).execute()

    def insert_if_absent(self, entry: InconsistencyLogEntry) -> bool:
        return self._insert_if_absent(entry.to_row())

    def get(self, log_id: str) -> Optional[InconsistencyLogEntry]:
        row = self._first(self._query().eq("id", log_id).execute())
        return InconsistencyLogEntry.model_validate(row) if row else None

    def query(
        self,
        resolved: Optional[bool] = None,
        entry_type: Optional[InconsistencyType] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[InconsistencyLogEntry], int]:
        query = self._query("*", count="exact")
        if resolved is not None:
            query = query.eq("resolved", resolved)
        if entry_type is not None:
            query = query.eq("type", entry_type.value)

        result = query.order("timestamp", desc=True).range(offset, offset + limit - 1).execute()
        entries = [InconsistencyLogEntry.model_validate(row) for row in result.data or []]
        return entries, result.count or 0

    def list_for_user(self, user_id: str) -> list[InconsistencyLogEntry]:
        result = self._query().eq("user_id", user_id).order("timestamp", desc=True).execute()
        return [InconsistencyLogEntry.model_validate(row) for row in result.data or []]

    def mark_resolved(
        self,
        log_id: str,
        resolved_by: str,
        resolved_at: datetime,
        notes: str,
    ) -> Optional[InconsistencyLogEntry]:
        result = self._db.table(self._table).update({
            "resolved": True,
            "resolved_by": resolved_by,
            "resolved_at": resolved_at.isoformat(),
            "resolution_notes": notes,
        }).eq("id", log_id).execute()
        row = self._first(result)
        return InconsistencyLogEntry.model_validate(row) if row else None

    def count(self, resolved: Optional[bool] = None) -> int:
        query = self._query("id", count="exact")
        if resolved is not None:
            query = query.eq("resolved", resolved)
        return query.execute().count or 0

    def type_breakdown(self) -> dict[str, int]:
        # Full scan; fine at current volumes, replace with counters if it grows.
        result = self._query("type").execute()
        return dict(Counter(row["type"] for row in result.data or []))

    def delete_resolved_before(self, cutoff: datetime) -> int:
        result = (
            self._db.table(self._table)
            .delete()
            .eq("resolved", True)
            .lt("timestamp", cutoff.isoformat())
            .execute()
        )
        return len(result.data or [])


class DeletedAccountRepository(BaseRepository[DeletedAccountRecord]):
    """Repository for the ``deleted_accounts`` table."""

    def __init__(self, db: Client, table: str = "deleted_accounts") -> None:
        super().__init__(db, table)

    def insert_if_absent(self, record: DeletedAccountRecord) -> bool:
        return self._insert_if_absent(record.to_row())

    def list_recent(self, limit: int = 100) -> list[DeletedAccountRecord]:
        result = self._query().order("deleted_at", desc=True).limit(limit).execute()
        return [DeletedAccountRecord.model_validate(row) for row in result.data or []]


class JobRunRepository(BaseRepository[JobRunRecord]):
    """Repository for the ``reconciliation_runs`` table."""

    def __init__(self, db: Client, table: str = "reconciliation_runs") -> None:
        super().__init__(db, table)

    def record(self, run: JobRunRecord) -> None:
        self._db.table(self._table).insert(run.to_row()).execute()

    def list_recent(self, job: Optional[str] = None, limit: int = 20) -> list[JobRunRecord]:
        query = self._query()
        if job is not None:
            query = query.eq("job", job)
        result = query.order("started_at", desc=True).limit(limit).execute()
        return [JobRunRecord.model_validate(row) for row in result.data or []]
