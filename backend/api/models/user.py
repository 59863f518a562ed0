"""
User models for authentication.

These models represent authenticated user data extracted from JWT tokens.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from shared.models import AuthenticatedUser
from modules.consistency.models import ConsistencyAnnotation
from modules.profiles.models import UserProfile


class TokenPayload(BaseModel):
    """JWT token payload structure."""
    model_config = ConfigDict(extra="ignore")

    sub: str  # User ID
    email: Optional[str] = None
    email_confirmed_at: Optional[str] = None
    aud: str  # Audience
    exp: int  # Expiration timestamp
    iat: int  # Issued at timestamp
    app_metadata: dict[str, Any] = Field(default_factory=dict)  # Holds the role claim


class CurrentUserResponse(BaseModel):
    """Response of GET /api/users/me."""

    id: str
    email: Optional[str] = None
    email_verified: bool = False
    role: str
    profile: Optional[UserProfile] = None
    consistency: Optional[ConsistencyAnnotation] = None


__all__ = ["AuthenticatedUser", "TokenPayload", "CurrentUserResponse"]
