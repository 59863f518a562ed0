"""
Identity module interface.

Other modules should depend on IIdentityStore, not a concrete provider.
This enables testing with the in-memory store and swapping providers.
"""

from typing import Any, Optional, Protocol, runtime_checkable

from .models import UserIdentity


@runtime_checkable
class IIdentityStore(Protocol):
    """
    Interface to the authentication provider's user records.

    Implementations raise IdentityNotFoundError for unknown users and
    IdentityStoreError for every other provider failure.
    """

    def get_user(self, user_id: str) -> UserIdentity:
        """
        Fetch a user's identity record.

        Raises:
            IdentityNotFoundError: If the provider has no such user
            IdentityStoreError: If the provider call fails
        """
        ...

    def update_user(
        self,
        user_id: str,
        email: Optional[str] = None,
        display_name: Optional[str] = None,
    ) -> UserIdentity:
        """Update the email and/or display name held by the provider."""
        ...

    def set_custom_claims(
        self,
        user_id: str,
        role: Optional[str],
        permissions: Optional[dict[str, Any]] = None,
    ) -> None:
        """Replace the user's role and permission claims."""
        ...

    def delete_user(self, user_id: str) -> None:
        """
        Delete the identity record.

        Raises:
            IdentityNotFoundError: If it is already gone
        """
        ...
