"""
Audit module.

The inconsistency log, deleted-account snapshots and reconciliation job
run records.

Public API:
- InconsistencyLogService: Writes and queries the inconsistency log
- IInconsistencyLogRepository, IDeletedAccountRepository, IJobRunRepository
- InconsistencyLogEntry, DeletedAccountRecord, JobRunRecord: Stored records
- Entry payload models (one per InconsistencyType)
- LogEntryNotFoundError
"""

from .interfaces import (
    IInconsistencyLogRepository,
    IDeletedAccountRepository,
    IJobRunRepository,
)
from .models import (
    ANOMALY_TYPES,
    AccountDeletedDetails,
    DataMismatchDetails,
    DeletedAccountRecord,
    DetectionSource,
    InconsistencyLogEntry,
    InconsistencyLogList,
    InconsistencyStats,
    InconsistencyType,
    JobRunRecord,
    LogDetails,
    LogEntryView,
    LogStatusFilter,
    ManualRestorationDetails,
    MissingIdentityRecordDetails,
    MissingProfileRecordDetails,
    ProfileCompletedDetails,
    SuspensionSnapshot,
    UserSnapshot,
)
from .repository import (
    InMemoryInconsistencyLogRepository,
    InMemoryDeletedAccountRepository,
    InMemoryJobRunRepository,
    InconsistencyLogRepository,
    DeletedAccountRepository,
    JobRunRepository,
)
from .service import InconsistencyLogService
from .exceptions import LogEntryNotFoundError

__all__ = [
    # Interfaces
    "IInconsistencyLogRepository",
    "IDeletedAccountRepository",
    "IJobRunRepository",
    # Models
    "ANOMALY_TYPES",
    "AccountDeletedDetails",
    "DataMismatchDetails",
    "DeletedAccountRecord",
    "DetectionSource",
    "InconsistencyLogEntry",
    "InconsistencyLogList",
    "InconsistencyStats",
    "InconsistencyType",
    "JobRunRecord",
    "LogDetails",
    "LogEntryView",
    "LogStatusFilter",
    "ManualRestorationDetails",
    "MissingIdentityRecordDetails",
    "MissingProfileRecordDetails",
    "ProfileCompletedDetails",
    "SuspensionSnapshot",
    "UserSnapshot",
    # Repositories
    "InMemoryInconsistencyLogRepository",
    "InMemoryDeletedAccountRepository",
    "InMemoryJobRunRepository",
    "InconsistencyLogRepository",
    "DeletedAccountRepository",
    "JobRunRepository",
    # Service
    "InconsistencyLogService",
    # Exceptions
    "LogEntryNotFoundError",
]
