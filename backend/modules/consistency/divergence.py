"""
Divergence detection between identity and profile records.
"""

from typing import Iterable

from modules.identity.models import UserIdentity
from modules.profiles.models import FieldMismatch, UserProfile
from .models import Divergence

DEFAULT_REQUIRED_FIELDS = ("email", "name", "role")


def find_missing_fields(
    profile: UserProfile,
    required_fields: Iterable[str] = DEFAULT_REQUIRED_FIELDS,
) -> list[str]:
    """Required profile fields that are empty or whitespace only."""
    missing = []
    for field in required_fields:
        value = getattr(profile, field, None)
        if value is None or not str(value).strip():
            missing.append(field)
    return missing


def compute_divergence(
    identity: UserIdentity,
    profile: UserProfile,
    required_fields: Iterable[str] = DEFAULT_REQUIRED_FIELDS,
) -> Divergence:
    """
    Compare an identity record with the matching profile.

    Values are compared exactly: an email that differs only in case is
    still a mismatch, as is a role claim that is unset while the profile
    holds one.
    """
    mismatches = []
    if identity.email != profile.email:
        mismatches.append(FieldMismatch(
            field="email",
            identity_value=identity.email,
            profile_value=profile.email,
        ))
    if identity.custom_claims.role != profile.role:
        mismatches.append(FieldMismatch(
            field="role",
            identity_value=identity.custom_claims.role,
            profile_value=profile.role,
        ))

    return Divergence(
        mismatches=mismatches,
        missing_fields=find_missing_fields(profile, required_fields),
    )
