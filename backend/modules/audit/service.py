"""
Inconsistency log service.

Writes audit entries for the consistency subsystem and serves the
administrator's read-side queries over them.
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Optional

from shared.clock import Clock, SystemClock
from modules.profiles.interfaces import IProfileRepository
from .exceptions import LogEntryNotFoundError
from .interfaces import IDeletedAccountRepository, IInconsistencyLogRepository
from .models import (
    ANOMALY_TYPES,
    DeletedAccountRecord,
    InconsistencyLogEntry,
    InconsistencyLogList,
    InconsistencyStats,
    InconsistencyType,
    LogDetails,
    LogEntryView,
    LogStatusFilter,
    UserSnapshot,
)

logger = logging.getLogger(__name__)


class InconsistencyLogService:
    """
    Append-only audit trail of anomalies and suspension exits.

    Anomaly entries are written unresolved. Exit entries (profile
    completion, manual restoration, deletion) are written resolved, since
    they record the resolution itself.
    """

    def __init__(
        self,
        logs: IInconsistencyLogRepository,
        deleted_accounts: IDeletedAccountRepository,
        profiles: IProfileRepository,
        clock: Optional[Clock] = None,
        retention_days: int = 90,
    ):
        self._logs = logs
        self._deleted_accounts = deleted_accounts
        self._profiles = profiles
        self._clock = clock or SystemClock()
        self._retention = timedelta(days=retention_days)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def record(
        self,
        user_id: str,
        details: LogDetails,
        resolved_by: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> InconsistencyLogEntry:
        """Append one entry for ``user_id``."""
        entry = self._build(str(uuid.uuid4()), user_id, details, resolved_by, notes)
        self._logs.append(entry)
        self._log_written(entry)
        return entry

    def record_once(
        self,
        entry_id: str,
        user_id: str,
        details: LogDetails,
        resolved_by: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Optional[InconsistencyLogEntry]:
        """
        Append an entry under a caller-chosen ID unless it already exists.

        Returns:
            The entry if this call wrote it, None if it was already there
        """
        entry = self._build(entry_id, user_id, details, resolved_by, notes)
        if not self._logs.insert_if_absent(entry):
            logger.debug(f"Log entry {entry_id} already written, skipping")
            return None
        self._log_written(entry)
        return entry

    def mark_resolved(self, log_id: str, admin_id: str, notes: str) -> InconsistencyLogEntry:
        """
        Mark one entry resolved. The subject's profile is not touched.

        Raises:
            LogEntryNotFoundError: If no entry has this ID
        """
        entry = self._logs.mark_resolved(log_id, admin_id, self._clock.now(), notes)
        if entry is None:
            raise LogEntryNotFoundError(log_id)
        logger.info(f"Log entry {log_id} resolved by {admin_id}")
        return entry

    def purge_resolved(self) -> tuple[datetime, int]:
        """
        Delete resolved entries older than the retention period.

        Unresolved entries are kept regardless of age.

        Returns:
            Tuple of (cutoff, number of entries deleted)
        """
        cutoff = self._clock.now() - self._retention
        purged = self._logs.delete_resolved_before(cutoff)
        logger.info(f"Purged {purged} resolved log entries older than {cutoff.isoformat()}")
        return cutoff, purged

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def query(
        self,
        status: LogStatusFilter = LogStatusFilter.ALL,
        entry_type: Optional[InconsistencyType] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> InconsistencyLogList:
        """List entries newest first, each with the subject's live profile."""
        entries, total = self._logs.query(
            resolved=status.as_resolved_flag(),
            entry_type=entry_type,
            limit=limit,
            offset=offset,
        )
        snapshots: dict[str, Optional[UserSnapshot]] = {}
        views = []
        for entry in entries:
            if entry.user_id not in snapshots:
                snapshots[entry.user_id] = self._snapshot(entry.user_id)
            views.append(LogEntryView.model_validate(
                {**entry.model_dump(), "user": snapshots[entry.user_id]}
            ))

        return InconsistencyLogList(
            logs=views,
            total=total,
            limit=limit,
            offset=offset,
            has_more=offset + len(views) < total,
        )

    def for_user(self, user_id: str) -> list[InconsistencyLogEntry]:
        return self._logs.list_for_user(user_id)

    def get(self, log_id: str) -> InconsistencyLogEntry:
        entry = self._logs.get(log_id)
        if entry is None:
            raise LogEntryNotFoundError(log_id)
        return entry

    def deleted_accounts(self, limit: int = 100) -> list[DeletedAccountRecord]:
        return self._deleted_accounts.list_recent(limit)

    def stats(self) -> InconsistencyStats:
        unresolved = self._logs.count(resolved=False)
        resolved = self._logs.count(resolved=True)
        return InconsistencyStats(
            total_inconsistencies=resolved + unresolved,
            unresolved_inconsistencies=unresolved,
            resolved_inconsistencies=resolved,
            suspended_users=self._profiles.count_suspended(),
            type_breakdown=self._logs.type_breakdown(),
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _build(
        self,
        entry_id: str,
        user_id: str,
        details: LogDetails,
        resolved_by: Optional[str],
        notes: Optional[str],
    ) -> InconsistencyLogEntry:
        entry_type = InconsistencyType(details.type)
        now = self._clock.now()
        is_exit = entry_type not in ANOMALY_TYPES
        return InconsistencyLogEntry(
            id=entry_id,
            user_id=user_id,
            type=entry_type,
            details=details,
            resolved=is_exit,
            resolved_by=resolved_by if is_exit else None,
            resolved_at=now if is_exit else None,
            resolution_notes=notes if is_exit else None,
            timestamp=now,
        )

    def _snapshot(self, user_id: str) -> Optional[UserSnapshot]:
        profile = self._profiles.get(user_id)
        if profile is None:
            return None
        return UserSnapshot(
            email=profile.email,
            name=profile.name,
            role=profile.role,
            is_temporarily_suspended=profile.is_temporarily_suspended,
        )

    @staticmethod
    def _log_written(entry: InconsistencyLogEntry) -> None:
        if entry.type in ANOMALY_TYPES:
            logger.warning(f"Inconsistency {entry.type.value} recorded for user {entry.user_id}")
        else:
            logger.info(f"Suspension exit {entry.type.value} recorded for user {entry.user_id}")
