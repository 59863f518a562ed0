"""
Remediation services.

Two ways out of suspension short of deletion: the user completes their
own profile, or an administrator restores them manually.
"""

import logging
from typing import Optional

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from shared.clock import Clock, SystemClock
from modules.audit.models import (
    DeletedAccountRecord,
    InconsistencyLogEntry,
    InconsistencyLogList,
    InconsistencyStats,
    InconsistencyType,
    LogStatusFilter,
)
from modules.audit.service import InconsistencyLogService
from modules.consistency.lifecycle import SuspensionLifecycle
from modules.consistency.models import RestoreTrigger
from modules.identity.exceptions import IdentityNotFoundError, IdentityStoreError
from modules.identity.interfaces import IIdentityStore
from modules.profiles.exceptions import ProfileNotFoundError
from modules.profiles.interfaces import IProfileRepository
from modules.profiles.models import UserProfile
from .exceptions import RemediationValidationError
from .models import SuspensionStatus

logger = logging.getLogger(__name__)

_email_adapter = TypeAdapter(EmailStr)


def _validate_completion(name: str, email: str) -> tuple[str, str]:
    """Trim and check completion input. Returns the trimmed values."""
    name = (name or "").strip()
    email = (email or "").strip()
    errors: dict[str, str] = {}

    if not name:
        errors["name"] = "Name is required"
    if not email:
        errors["email"] = "Email is required"
    else:
        try:
            _email_adapter.validate_python(email)
        except PydanticValidationError:
            errors["email"] = "Email is not a valid address"

    if errors:
        raise RemediationValidationError(errors)
    return name, email


class ProfileCompletionService:
    """Self-service repair of a suspended user's own profile."""

    def __init__(
        self,
        profiles: IProfileRepository,
        identities: IIdentityStore,
        lifecycle: SuspensionLifecycle,
        clock: Optional[Clock] = None,
        default_role: str = "viewer",
    ):
        self._profiles = profiles
        self._identities = identities
        self._lifecycle = lifecycle
        self._clock = clock or SystemClock()
        self._default_role = default_role

    def get_profile(self, user_id: str) -> UserProfile:
        profile = self._profiles.get(user_id)
        if profile is None:
            raise ProfileNotFoundError(user_id)
        return profile

    def get_status(self, user_id: str) -> SuspensionStatus:
        return SuspensionStatus.of(self.get_profile(user_id), self._clock.now())

    def complete_profile(self, user_id: str, name: str, email: str) -> UserProfile:
        """
        Store the user's name and email and lift their suspension.

        The identity record is updated afterwards on a best-effort basis;
        any remaining drift is picked up by the next scan.

        Raises:
            RemediationValidationError: Name or email missing or malformed
            ProfileNotFoundError: No profile for this user
        """
        name, email = _validate_completion(name, email)
        profile = self.get_profile(user_id)

        changes = {"name": name, "email": email}
        if not (profile.role or "").strip():
            changes["role"] = self._default_role

        restored = self._lifecycle.restore(
            profile,
            RestoreTrigger.PROFILE_COMPLETED,
            actor_id=user_id,
            changes=changes,
        )
        logger.info(f"User {user_id} completed their profile")

        self._mirror_identity(restored, email=email, display_name=name, claims=True)
        return restored

    def update_name(self, user_id: str, name: str) -> UserProfile:
        """Change an active user's name, mirroring it as the display name."""
        name = (name or "").strip()
        if not name:
            raise RemediationValidationError({"name": "Name is required"})

        profile = self.get_profile(user_id)
        updated = profile.model_copy(update={"name": name, "updated_at": self._clock.now()})
        if not self._profiles.save(updated):
            raise ProfileNotFoundError(user_id)

        self._mirror_identity(updated, display_name=name)
        return updated

    def _mirror_identity(
        self,
        profile: UserProfile,
        email: Optional[str] = None,
        display_name: Optional[str] = None,
        claims: bool = False,
    ) -> None:
        try:
            self._identities.update_user(profile.id, email=email, display_name=display_name)
            if claims:
                self._identities.set_custom_claims(profile.id, profile.role, profile.permissions)
        except (IdentityNotFoundError, IdentityStoreError):
            logger.warning(f"Could not update identity record for {profile.id}", exc_info=True)


class AdminRemediationService:
    """Administrator operations over the inconsistency log and suspended users."""

    def __init__(
        self,
        log: InconsistencyLogService,
        profiles: IProfileRepository,
        lifecycle: SuspensionLifecycle,
    ):
        self._log = log
        self._profiles = profiles
        self._lifecycle = lifecycle

    def list_logs(
        self,
        status: LogStatusFilter = LogStatusFilter.ALL,
        entry_type: Optional[InconsistencyType] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> InconsistencyLogList:
        return self._log.query(status=status, entry_type=entry_type, limit=limit, offset=offset)

    def user_logs(self, user_id: str) -> list[InconsistencyLogEntry]:
        return self._log.for_user(user_id)

    def deleted_accounts(self, limit: int = 100) -> list[DeletedAccountRecord]:
        return self._log.deleted_accounts(limit)

    def resolve(self, log_id: str, admin_id: str, notes: str = "") -> InconsistencyLogEntry:
        """Mark one entry resolved. Restoring the user is a separate action."""
        return self._log.mark_resolved(log_id, admin_id, notes or "")

    def restore_user(self, user_id: str, admin_id: str, notes: str) -> UserProfile:
        """
        Lift a user's suspension without requiring profile completion.

        Raises:
            RemediationValidationError: Notes are blank
            ProfileNotFoundError: No profile for this user
        """
        notes = (notes or "").strip()
        if not notes:
            raise RemediationValidationError({"notes": "Restoration notes are required"})

        profile = self._profiles.get(user_id)
        if profile is None:
            raise ProfileNotFoundError(user_id)

        restored = self._lifecycle.restore(
            profile,
            RestoreTrigger.MANUAL,
            actor_id=admin_id,
            notes=notes,
        )
        logger.info(f"User {user_id} manually restored by {admin_id}")
        return restored

    def stats(self) -> InconsistencyStats:
        return self._log.stats()
