"""
Consistency module data models.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from shared.models import AuthenticatedUser
from modules.profiles.models import FieldMismatch, UserProfile


class Divergence(BaseModel):
    """Differences found between a user's identity record and profile."""

    mismatches: list[FieldMismatch] = Field(default_factory=list)
    missing_fields: list[str] = Field(default_factory=list)

    @property
    def has_issues(self) -> bool:
        return bool(self.mismatches or self.missing_fields)


class ConsistencyAnnotation(BaseModel):
    """Consistency state attached to a request's principal."""

    needs_data_completion: bool = Field(default=False)
    is_suspended: bool = Field(default=False)
    suspension_expires_at: Optional[datetime] = Field(None)
    missing_fields: list[str] = Field(default_factory=list)
    inconsistencies: list[FieldMismatch] = Field(default_factory=list)

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "ConsistencyAnnotation":
        return cls(
            needs_data_completion=profile.data_incomplete,
            is_suspended=profile.is_temporarily_suspended,
            suspension_expires_at=profile.suspension_expires_at,
            missing_fields=list(profile.missing_fields),
            inconsistencies=list(profile.inconsistencies),
        )


class CheckedUser(BaseModel):
    """
    An authenticated principal after the consistency check.

    ``annotation`` is None for administrators, for fully consistent users
    and when the identity provider could not be reached.
    """

    user: AuthenticatedUser
    profile: Optional[UserProfile] = None
    annotation: Optional[ConsistencyAnnotation] = None

    @property
    def id(self) -> str:
        return self.user.id

    @property
    def is_suspended(self) -> bool:
        return self.annotation is not None and self.annotation.is_suspended


class RestoreTrigger(str, Enum):
    """What ended a suspension."""

    PROFILE_COMPLETED = "profile_completed"
    MANUAL = "manual"
