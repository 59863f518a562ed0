"""
Consistency module exceptions.

The three request-blocking errors map to 403 responses with distinct codes
so clients can tell a deleted account from a suspended one.
"""

from datetime import datetime
from typing import Optional

from shared.exceptions import AuthorizationError, ConflictError
from modules.profiles.models import FieldMismatch


class AccountDeletedError(AuthorizationError):
    """Raised when a request arrives after the suspension window ran out."""

    def __init__(self, user_id: str):
        super().__init__(
            "Account deleted: the suspension period expired before the profile was completed",
            code="ACCOUNT_DELETED",
            details={"user_id": user_id},
        )


class IdentityRecordMissingError(AuthorizationError):
    """Raised when a profile exists but the identity record does not."""

    def __init__(self, user_id: str):
        super().__init__(
            "Authentication record missing, contact an administrator",
            code="IDENTITY_RECORD_MISSING",
            details={"user_id": user_id},
        )


class AccountSuspendedError(AuthorizationError):
    """Raised when a suspended user calls a route outside the allow-list."""

    def __init__(
        self,
        user_id: str,
        expires_at: Optional[datetime] = None,
        missing_fields: Optional[list[str]] = None,
        inconsistencies: Optional[list[FieldMismatch]] = None,
    ):
        super().__init__(
            "Account temporarily suspended: complete your profile to restore access",
            code="ACCOUNT_SUSPENDED",
            details={
                "user_id": user_id,
                "suspension_expires_at": expires_at.isoformat() if expires_at else None,
                "missing_fields": missing_fields or [],
                "inconsistencies": [m.model_dump() for m in inconsistencies or []],
            },
        )


class AlreadySuspendedError(ConflictError):
    """Raised when suspending a profile that is already suspended."""

    def __init__(self, user_id: str):
        super().__init__(
            f"User already suspended: {user_id}",
            code="ALREADY_SUSPENDED",
            details={"user_id": user_id},
        )


class InsufficientPermissionsError(AuthorizationError):
    """Raised when a non-admin principal calls an admin route."""

    def __init__(self, user_id: str, required_role: str):
        super().__init__(
            f"Role '{required_role}' required",
            code="INSUFFICIENT_PERMISSIONS",
            details={"user_id": user_id, "required_role": required_role},
        )
