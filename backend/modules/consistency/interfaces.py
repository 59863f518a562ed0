"""
Consistency module interface.
"""

from typing import Protocol, runtime_checkable

from shared.models import AuthenticatedUser
from .models import CheckedUser


@runtime_checkable
class IConsistencyChecker(Protocol):
    """Checks an authenticated principal before its request is handled."""

    def check(self, user: AuthenticatedUser) -> CheckedUser:
        """
        Check the principal's records and apply the suspension policy.

        Raises:
            AccountDeletedError: The suspension window ran out
            IdentityRecordMissingError: The identity record is missing or could not be fetched
        """
        ...
