"""
Identity module.

Wraps the authentication provider's user records (email, verification,
role/permission claims) behind a small store interface.

Public API:
- IIdentityStore: Interface for identity record operations
- UserIdentity, CustomClaims: Identity record models
- InMemoryIdentityStore, SupabaseIdentityStore: Implementations
- IdentityNotFoundError, IdentityStoreError: Identity exceptions
"""

from .interfaces import IIdentityStore
from .models import UserIdentity, CustomClaims
from .store import InMemoryIdentityStore, SupabaseIdentityStore
from .exceptions import IdentityNotFoundError, IdentityStoreError

__all__ = [
    # Interface
    "IIdentityStore",
    # Models
    "UserIdentity",
    "CustomClaims",
    # Implementations
    "InMemoryIdentityStore",
    "SupabaseIdentityStore",
    # Exceptions
    "IdentityNotFoundError",
    "IdentityStoreError",
]
