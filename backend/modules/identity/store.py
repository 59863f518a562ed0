"""
Identity store implementations.

Provides both in-memory (for testing and local development) and Supabase
Auth-backed (for production) implementations of IIdentityStore.
"""

import logging
from typing import Any, Optional

from supabase import Client, AuthApiError, AuthError

from .interfaces import IIdentityStore
from .models import CustomClaims, UserIdentity
from .exceptions import IdentityNotFoundError, IdentityStoreError

logger = logging.getLogger(__name__)


class InMemoryIdentityStore:
    """
    Identity store with in-memory storage.

    For testing and development. Use SupabaseIdentityStore for production.
    """

    def __init__(self, identities: Optional[list[UserIdentity]] = None):
        self._users: dict[str, UserIdentity] = {}
        for identity in identities or []:
            self._users[identity.id] = identity

    def add(self, identity: UserIdentity) -> None:
        """Seed or replace an identity record."""
        self._users[identity.id] = identity

    def exists(self, user_id: str) -> bool:
        return user_id in self._users

    def get_user(self, user_id: str) -> UserIdentity:
        identity = self._users.get(user_id)
        if identity is None:
            raise IdentityNotFoundError(user_id)
        return identity.model_copy(deep=True)

    def update_user(
        self,
        user_id: str,
        email: Optional[str] = None,
        display_name: Optional[str] = None,
    ) -> UserIdentity:
        identity = self.get_user(user_id)
        changes: dict[str, Any] = {}
        if email is not None:
            changes["email"] = email
        if display_name is not None:
            changes["display_name"] = display_name
        updated = identity.model_copy(update=changes)
        self._users[user_id] = updated
        return updated

    def set_custom_claims(
        self,
        user_id: str,
        role: Optional[str],
        permissions: Optional[dict[str, Any]] = None,
    ) -> None:
        identity = self.get_user(user_id)
        claims = CustomClaims(role=role, permissions=permissions or {})
        self._users[user_id] = identity.model_copy(update={"custom_claims": claims})

    def delete_user(self, user_id: str) -> None:
        if self._users.pop(user_id, None) is None:
            raise IdentityNotFoundError(user_id)


class SupabaseIdentityStore:
    """
    Identity store backed by the Supabase Auth admin API.

    Role and permission claims are kept in ``app_metadata`` and the
    display name in ``user_metadata.display_name``.
    """

    def __init__(self, supabase_client: Client):
        """
        Initialize with a service-role Supabase client.

        Args:
            supabase_client: Client created with the service role key
        """
        self._db = supabase_client

    def get_user(self, user_id: str) -> UserIdentity:
        try:
            response = self._db.auth.admin.get_user_by_id(user_id)
        except AuthApiError as e:
            raise self._translate(user_id, e)
        except AuthError as e:
            raise IdentityStoreError(
                "Failed to fetch identity record",
                user_id=user_id,
                original_error=str(e),
            )

        if response is None or response.user is None:
            raise IdentityNotFoundError(user_id)
        return self._map_to_identity(response.user)

    def update_user(
        self,
        user_id: str,
        email: Optional[str] = None,
        display_name: Optional[str] = None,
    ) -> UserIdentity:
        attributes: dict[str, Any] = {}
        if email is not None:
            attributes["email"] = email
        if display_name is not None:
            attributes["user_metadata"] = {"display_name": display_name}

        try:
            response = self._db.auth.admin.update_user_by_id(user_id, attributes)
        except AuthApiError as e:
            raise self._translate(user_id, e)
        except AuthError as e:
            raise IdentityStoreError(
                "Failed to update identity record",
                user_id=user_id,
                original_error=str(e),
            )
        return self._map_to_identity(response.user)

    def set_custom_claims(
        self,
        user_id: str,
        role: Optional[str],
        permissions: Optional[dict[str, Any]] = None,
    ) -> None:
        attributes = {
            "app_metadata": {"role": role, "permissions": permissions or {}},
        }
        try:
            self._db.auth.admin.update_user_by_id(user_id, attributes)
        except AuthApiError as e:
            raise self._translate(user_id, e)
        except AuthError as e:
            raise IdentityStoreError(
                "Failed to set identity claims",
                user_id=user_id,
                original_error=str(e),
            )

    def delete_user(self, user_id: str) -> None:
        try:
            self._db.auth.admin.delete_user(user_id)
        except AuthApiError as e:
            raise self._translate(user_id, e)
        except AuthError as e:
            raise IdentityStoreError(
                "Failed to delete identity record",
                user_id=user_id,
                original_error=str(e),
            )

    # -------------------------------------------------------------------------
    # Private helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _translate(user_id: str, error: AuthApiError) -> Exception:
        """Translate a GoTrue API error into an identity exception."""
        if getattr(error, "status", None) == 404 or getattr(error, "code", None) == "user_not_found":
            return IdentityNotFoundError(user_id)
        logger.debug(f"Identity provider error for {user_id}: {error}")
        return IdentityStoreError(
            "Identity provider request failed",
            user_id=user_id,
            original_error=str(error),
        )

    @staticmethod
    def _map_to_identity(user: Any) -> UserIdentity:
        """Map a Supabase Auth user object to UserIdentity."""
        app_metadata = getattr(user, "app_metadata", None) or {}
        user_metadata = getattr(user, "user_metadata", None) or {}
        return UserIdentity(
            id=str(user.id),
            email=getattr(user, "email", None),
            email_verified=getattr(user, "email_confirmed_at", None) is not None,
            disabled=bool(getattr(user, "banned_until", None)),
            display_name=user_metadata.get("display_name") or user_metadata.get("full_name"),
            custom_claims=CustomClaims(
                role=app_metadata.get("role"),
                permissions=app_metadata.get("permissions") or {},
            ),
        )


# Verify the implementations satisfy the interface
def _verify_interface():
    """Type check that both stores implement IIdentityStore."""
    memory: IIdentityStore = InMemoryIdentityStore()
    return memory
