"""
Remediation module data models.

Request bodies for the self-service and admin endpoints, and the
suspension status shown to a suspended user.
"""

import math
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from modules.profiles.models import FieldMismatch, UserProfile


class CompleteProfileRequest(BaseModel):
    """Body of POST /api/users/me/complete-profile. Validated by the service."""

    name: str = Field(default="")
    email: str = Field(default="")


class UpdateNameRequest(BaseModel):
    name: str = Field(default="")


class RestoreUserRequest(BaseModel):
    notes: str = Field(default="", description="Why the user is being restored")


class ResolveLogRequest(BaseModel):
    notes: str = Field(default="")


class SuspensionStatus(BaseModel):
    """A user's own view of their suspension."""

    email: Optional[str] = None
    name: str = ""
    role: Optional[str] = None
    is_temporarily_suspended: bool = False
    suspension_reason: str = ""
    suspended_at: Optional[datetime] = None
    suspension_expires_at: Optional[datetime] = None
    data_incomplete: bool = False
    missing_fields: list[str] = Field(default_factory=list)
    inconsistencies: list[FieldMismatch] = Field(default_factory=list)
    days_remaining: int = Field(default=0, description="Whole days left, rounded up")

    @classmethod
    def of(cls, profile: UserProfile, now: datetime) -> "SuspensionStatus":
        days_remaining = 0
        if profile.suspension_expires_at is not None:
            seconds = (profile.suspension_expires_at - now).total_seconds()
            days_remaining = max(0, math.ceil(seconds / 86400))
        return cls(
            email=profile.email,
            name=profile.name or "",
            role=profile.role,
            is_temporarily_suspended=profile.is_temporarily_suspended,
            suspension_reason=profile.suspension_reason or "",
            suspended_at=profile.suspended_at,
            suspension_expires_at=profile.suspension_expires_at,
            data_incomplete=profile.data_incomplete,
            missing_fields=list(profile.missing_fields),
            inconsistencies=list(profile.inconsistencies),
            days_remaining=days_remaining,
        )
