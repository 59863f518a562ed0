"""
Profiles module.

The application's own record of each user: role, permissions and the
suspension state driven by the consistency subsystem.

Public API:
- IProfileRepository: Interface for profile storage
- UserProfile, FieldMismatch: Profile models
- ProfileRepository, InMemoryProfileRepository: Implementations
- ProfileNotFoundError
"""

from .interfaces import IProfileRepository
from .models import UserProfile, FieldMismatch
from .repository import ProfileRepository, InMemoryProfileRepository
from .exceptions import ProfileNotFoundError

__all__ = [
    "IProfileRepository",
    "UserProfile",
    "FieldMismatch",
    "ProfileRepository",
    "InMemoryProfileRepository",
    "ProfileNotFoundError",
]
