"""
Profile module interface.
"""

from datetime import datetime
from typing import Iterator, Optional, Protocol, runtime_checkable

from .models import UserProfile


@runtime_checkable
class IProfileRepository(Protocol):
    """
    Interface to the profile document store.

    Writes are whole-record; there is no cross-store transaction with the
    identity provider.
    """

    def get(self, user_id: str) -> Optional[UserProfile]:
        """Get a profile by user ID, or None if absent."""
        ...

    def insert_if_absent(self, profile: UserProfile) -> bool:
        """
        Create the profile unless one already exists for its ID.

        Returns:
            True if this call created the record
        """
        ...

    def save(self, profile: UserProfile) -> bool:
        """
        Overwrite an existing profile.

        Returns:
            False if the profile no longer exists (nothing written)
        """
        ...

    def delete(self, user_id: str) -> bool:
        """Delete a profile. Returns False if it was already gone."""
        ...

    def iter_all(self, page_size: int = 500) -> Iterator[UserProfile]:
        """Iterate over every profile, one page at a time."""
        ...

    def list_expired_suspensions(self, now: datetime) -> list[UserProfile]:
        """Suspended profiles whose expiry is at or before ``now``."""
        ...

    def count_suspended(self) -> int:
        """Number of currently suspended profiles."""
        ...
