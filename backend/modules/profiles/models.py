"""
Profile module data models.

The profile is the application's authoritative record of a user's role,
permissions and suspension state, stored independently of the identity
provider.
"""

from datetime import datetime
from typing import Any, Literal, Optional
from pydantic import BaseModel, Field


class FieldMismatch(BaseModel):
    """A field whose identity-provider value differs from the profile value."""

    field: Literal["email", "role"] = Field(..., description="Diverging field")
    identity_value: Optional[str] = Field(None, description="Value held by the identity provider")
    profile_value: Optional[str] = Field(None, description="Value held by the profile store")


class UserProfile(BaseModel):
    """
    Application profile record.

    Invariant: when ``is_temporarily_suspended`` is False every other
    suspension field is cleared (see ``clear_suspension``).
    """

    id: str = Field(..., description="User ID (same as the identity record)")
    email: Optional[str] = Field(None)
    name: Optional[str] = Field(None)
    role: Optional[str] = Field(None)
    permissions: dict[str, Any] = Field(default_factory=dict)
    is_active: bool = Field(default=True)

    # Suspension state
    is_temporarily_suspended: bool = Field(default=False)
    suspension_reason: Optional[str] = Field(None)
    suspended_at: Optional[datetime] = Field(None)
    suspension_expires_at: Optional[datetime] = Field(None)
    data_incomplete: bool = Field(default=False)
    missing_fields: list[str] = Field(default_factory=list)
    inconsistencies: list[FieldMismatch] = Field(default_factory=list)
    manually_restored: bool = Field(default=False)

    created_at: Optional[datetime] = Field(None)
    updated_at: Optional[datetime] = Field(None)

    model_config = {"extra": "ignore"}

    def is_expired(self, now: datetime) -> bool:
        """Whether the suspension window has run out (the boundary counts as expired)."""
        if not self.is_temporarily_suspended or self.suspension_expires_at is None:
            return False
        return now >= self.suspension_expires_at

    def clear_suspension(self, **changes: Any) -> "UserProfile":
        """Return a copy with every suspension field reset, plus ``changes``."""
        cleared: dict[str, Any] = {
            "is_temporarily_suspended": False,
            "suspension_reason": None,
            "suspended_at": None,
            "suspension_expires_at": None,
            "data_incomplete": False,
            "missing_fields": [],
            "inconsistencies": [],
        }
        cleared.update(changes)
        return self.model_copy(update=cleared)

    def to_row(self) -> dict[str, Any]:
        """Serialize for the document store."""
        return self.model_dump(mode="json")
