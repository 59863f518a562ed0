"""
Identity module exceptions.

Raised by identity store implementations so callers can tell a missing
record apart from a provider outage.
"""

from typing import Optional

from shared.exceptions import NotFoundError, ExternalServiceError


class IdentityNotFoundError(NotFoundError):
    """Raised when the provider has no identity record for a user."""

    def __init__(self, user_id: str):
        super().__init__(
            f"Identity record not found: {user_id}",
            code="IDENTITY_NOT_FOUND",
            details={"user_id": user_id},
        )


class IdentityStoreError(ExternalServiceError):
    """Raised when the identity provider call fails for any other reason."""

    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
        original_error: Optional[str] = None,
    ):
        super().__init__(
            message,
            service="identity_provider",
            code="IDENTITY_STORE_ERROR",
            details={"user_id": user_id, "original_error": original_error},
        )
