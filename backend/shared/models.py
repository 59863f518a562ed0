"""
Shared data models used across modules.

These models are shared infrastructure, not business logic.
Module-specific models should stay in their respective module directories.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class AuthenticatedUser(BaseModel):
    """
    Represents an authenticated principal.

    Populated from JWT claims by the auth middleware and made available
    to route handlers via dependency injection. The role comes from the
    identity provider's claims, not from the profile store.
    """

    id: str = Field(..., description="User ID (UUID from Supabase)")
    email: Optional[str] = Field(None, description="Email claimed by the token")
    email_verified: bool = Field(default=False, description="Whether email is verified")
    role: str = Field(default="viewer", description="Role claim from app_metadata")

    last_sign_in: Optional[datetime] = Field(None, description="Token issue time")

    model_config = {
        "frozen": True,  # Make immutable for safety
        "extra": "ignore",  # Ignore extra fields from JWT
    }
