"""
Consistency module.

Detects divergence between identity and profile records and drives the
suspension lifecycle.

Public API:
- IConsistencyChecker: Interface for the per-request check
- ConsistencyChecker: Per-request checker
- SuspensionLifecycle: Suspend, restore and delete primitives
- compute_divergence, find_missing_fields: Divergence detection
- CheckedUser, ConsistencyAnnotation, Divergence, RestoreTrigger: Models
- AccountDeletedError, IdentityRecordMissingError, AccountSuspendedError,
  AlreadySuspendedError, InsufficientPermissionsError: Exceptions
"""

from .interfaces import IConsistencyChecker
from .models import CheckedUser, ConsistencyAnnotation, Divergence, RestoreTrigger
from .divergence import DEFAULT_REQUIRED_FIELDS, compute_divergence, find_missing_fields
from .lifecycle import (
    DATA_MISMATCH_REASON,
    DELETION_REASON,
    MISSING_IDENTITY_REASON,
    MISSING_PROFILE_REASON,
    SuspensionLifecycle,
    deletion_key,
)
from .checker import ConsistencyChecker
from .exceptions import (
    AccountDeletedError,
    IdentityRecordMissingError,
    AccountSuspendedError,
    AlreadySuspendedError,
    InsufficientPermissionsError,
)

__all__ = [
    # Interface
    "IConsistencyChecker",
    # Models
    "CheckedUser",
    "ConsistencyAnnotation",
    "Divergence",
    "RestoreTrigger",
    # Divergence
    "DEFAULT_REQUIRED_FIELDS",
    "compute_divergence",
    "find_missing_fields",
    # Lifecycle
    "DATA_MISMATCH_REASON",
    "DELETION_REASON",
    "MISSING_IDENTITY_REASON",
    "MISSING_PROFILE_REASON",
    "SuspensionLifecycle",
    "deletion_key",
    # Checker
    "ConsistencyChecker",
    # Exceptions
    "AccountDeletedError",
    "IdentityRecordMissingError",
    "AccountSuspendedError",
    "AlreadySuspendedError",
    "InsufficientPermissionsError",
]
