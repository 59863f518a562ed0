"""
Identity module data models.

These models describe the authentication provider's own record of a user,
as opposed to the application's profile record.
"""

from typing import Any, Optional
from pydantic import BaseModel, Field


class CustomClaims(BaseModel):
    """
    Authorization claims stored on the identity record.

    With Supabase these live in the user's ``app_metadata``, which only the
    service role can write.
    """

    role: Optional[str] = Field(None, description="Role claim")
    permissions: dict[str, Any] = Field(default_factory=dict)

    model_config = {"extra": "ignore"}


class UserIdentity(BaseModel):
    """
    External identity record for a user.

    Read and written only through an IIdentityStore implementation.
    """

    id: str = Field(..., description="User ID (UUID)")
    email: Optional[str] = Field(None, description="Email held by the provider")
    email_verified: bool = Field(default=False)
    disabled: bool = Field(default=False, description="Banned/disabled at the provider")
    display_name: Optional[str] = Field(None)
    custom_claims: CustomClaims = Field(default_factory=CustomClaims)
