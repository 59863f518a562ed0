"""
Suspension lifecycle primitives.

Every transition of a profile into or out of suspension goes through
SuspensionLifecycle, which performs the profile write and the matching
inconsistency log entry together. The inline checker, the reconciliation
jobs and the remediation services all share these primitives.
"""

import logging
import uuid
from datetime import timedelta
from typing import Any, Iterable, Optional

from shared.clock import Clock, SystemClock
from modules.audit.interfaces import IDeletedAccountRepository
from modules.audit.models import (
    AccountDeletedDetails,
    DataMismatchDetails,
    DeletedAccountRecord,
    DetectionSource,
    ManualRestorationDetails,
    MissingIdentityRecordDetails,
    MissingProfileRecordDetails,
    ProfileCompletedDetails,
    SuspensionSnapshot,
)
from modules.audit.service import InconsistencyLogService
from modules.identity.exceptions import IdentityNotFoundError, IdentityStoreError
from modules.identity.interfaces import IIdentityStore
from modules.profiles.exceptions import ProfileNotFoundError
from modules.profiles.interfaces import IProfileRepository
from modules.profiles.models import FieldMismatch, UserProfile
from .divergence import DEFAULT_REQUIRED_FIELDS
from .exceptions import AlreadySuspendedError
from .models import Divergence, RestoreTrigger

logger = logging.getLogger(__name__)

DATA_MISMATCH_REASON = "Data inconsistency detected"
MISSING_IDENTITY_REASON = "Identity record missing"
MISSING_PROFILE_REASON = "Profile record missing"
DELETION_REASON = "Suspension expired - incomplete data"
SYSTEM_ACTOR = "system"

# Namespace for deletion idempotency keys
_DELETION_NAMESPACE = uuid.UUID("6f1c2a9e-3b7d-4c55-9e0a-2d8b7f41c3a6")


def deletion_key(user_id: str, profile: UserProfile) -> uuid.UUID:
    """Stable key for the deletion of one suspension of one user."""
    suspended_at = profile.suspended_at.isoformat() if profile.suspended_at else ""
    return uuid.uuid5(_DELETION_NAMESPACE, f"{user_id}:{suspended_at}")


class SuspensionLifecycle:
    """
    Suspend, restore and delete user profiles.

    There is no transaction spanning the identity provider and the profile
    store. Delete is made safe to repeat with idempotency keys instead, so a
    request and the expiry sweep racing on the same user produce exactly one
    deleted-account record and one log entry.
    """

    def __init__(
        self,
        profiles: IProfileRepository,
        identities: IIdentityStore,
        deleted_accounts: IDeletedAccountRepository,
        log: InconsistencyLogService,
        clock: Optional[Clock] = None,
        window_days: int = 30,
        default_role: str = "viewer",
        required_fields: Iterable[str] = DEFAULT_REQUIRED_FIELDS,
    ):
        self._profiles = profiles
        self._identities = identities
        self._deleted_accounts = deleted_accounts
        self._log = log
        self._clock = clock or SystemClock()
        self._window = timedelta(days=window_days)
        self._default_role = default_role
        self._required_fields = list(required_fields)

    # -------------------------------------------------------------------------
    # Suspension
    # -------------------------------------------------------------------------

    def suspend(
        self,
        profile: UserProfile,
        divergence: Divergence,
        reason: str = DATA_MISMATCH_REASON,
        source: DetectionSource = DetectionSource.REQUEST,
    ) -> UserProfile:
        """
        Suspend a profile whose data diverges from its identity record.

        Raises:
            AlreadySuspendedError: If the profile is already suspended
            ProfileNotFoundError: If the profile vanished before the write
        """
        suspended = self._suspend(profile, reason, divergence.mismatches, divergence.missing_fields)
        self._log.record(profile.id, DataMismatchDetails(
            source=source,
            reason=reason,
            inconsistencies=divergence.mismatches,
            missing_fields=divergence.missing_fields,
            suspension_expires_at=suspended.suspension_expires_at,
            profile=suspended,
        ))
        return suspended

    def suspend_missing_identity(self, profile: UserProfile) -> UserProfile:
        """Suspend a profile whose identity record no longer exists."""
        suspended = self._suspend(profile, MISSING_IDENTITY_REASON, [], [])
        self._log.record(profile.id, MissingIdentityRecordDetails(
            source=DetectionSource.SCAN,
            profile=suspended,
            suspension_expires_at=suspended.suspension_expires_at,
        ))
        return suspended

    def suspend_missing_profile(
        self,
        user_id: str,
        email: Optional[str],
    ) -> tuple[UserProfile, bool]:
        """
        Create a minimal suspended profile for an identity that has none.

        Only the caller that actually creates the profile writes the log
        entry. A caller that loses the race gets the stored profile back.

        Returns:
            Tuple of (profile, whether this call created it)
        """
        now = self._clock.now()
        profile = UserProfile(
            id=user_id,
            email=email or "",
            name="",
            role=self._default_role,
            is_active=False,
            is_temporarily_suspended=True,
            suspension_reason=MISSING_PROFILE_REASON,
            suspended_at=now,
            suspension_expires_at=now + self._window,
            data_incomplete=True,
            missing_fields=list(self._required_fields),
            created_at=now,
            updated_at=now,
        )

        if not self._profiles.insert_if_absent(profile):
            logger.debug(f"Profile for {user_id} created concurrently, using stored record")
            return self._profiles.get(user_id) or profile, False

        self._log.record(user_id, MissingProfileRecordDetails(
            email=email,
            suspension_expires_at=profile.suspension_expires_at,
        ))
        return profile, True

    def _suspend(
        self,
        profile: UserProfile,
        reason: str,
        mismatches: list[FieldMismatch],
        missing_fields: list[str],
    ) -> UserProfile:
        if profile.is_temporarily_suspended:
            raise AlreadySuspendedError(profile.id)

        now = self._clock.now()
        suspended = profile.model_copy(update={
            "is_temporarily_suspended": True,
            "suspension_reason": reason,
            "suspended_at": now,
            "suspension_expires_at": now + self._window,
            "data_incomplete": bool(missing_fields),
            "missing_fields": list(missing_fields),
            "inconsistencies": list(mismatches),
            "updated_at": now,
        })
        if not self._profiles.save(suspended):
            raise ProfileNotFoundError(profile.id)
        return suspended

    # -------------------------------------------------------------------------
    # Exits
    # -------------------------------------------------------------------------

    def restore(
        self,
        profile: UserProfile,
        trigger: RestoreTrigger,
        actor_id: str,
        notes: Optional[str] = None,
        changes: Optional[dict[str, Any]] = None,
    ) -> UserProfile:
        """
        Lift a suspension, applying ``changes`` in the same write.

        Raises:
            ProfileNotFoundError: If the profile was deleted meanwhile
        """
        previous = SuspensionSnapshot.of(profile)
        updates = dict(changes or {})
        updates["is_active"] = True
        updates["updated_at"] = self._clock.now()
        if trigger == RestoreTrigger.MANUAL:
            updates["manually_restored"] = True

        restored = profile.clear_suspension(**updates)
        if not self._profiles.save(restored):
            raise ProfileNotFoundError(profile.id)

        if trigger == RestoreTrigger.MANUAL:
            details = ManualRestorationDetails(
                restored_by=actor_id,
                notes=notes or "",
                previous=previous,
            )
        else:
            details = ProfileCompletedDetails(
                name=restored.name,
                email=restored.email,
                previous=previous,
            )
        self._log.record(profile.id, details, resolved_by=actor_id, notes=notes)
        return restored

    def delete(self, user_id: str) -> Optional[DeletedAccountRecord]:
        """
        Delete an account whose suspension expired.

        Safe to call repeatedly and concurrently for the same user. The
        profile is re-read first; an account that is no longer suspended, or
        whose window has not run out, is left alone.

        Returns:
            The deleted-account record if this call created it, else None
        """
        profile = self._profiles.get(user_id)
        if profile is None:
            logger.debug(f"Delete for {user_id} skipped: profile already gone")
            return None

        now = self._clock.now()
        if not profile.is_expired(now):
            logger.debug(f"Delete for {user_id} skipped: suspension not expired")
            return None

        key = deletion_key(user_id, profile)
        record = DeletedAccountRecord(
            id=str(key),
            user_id=user_id,
            profile=profile,
            reason=DELETION_REASON,
            deleted_at=now,
        )
        created = self._deleted_accounts.insert_if_absent(record)

        self._log.record_once(
            str(uuid.uuid5(key, "account_deleted")),
            user_id,
            AccountDeletedDetails(reason=DELETION_REASON, deleted_at=now, profile=profile),
            resolved_by=SYSTEM_ACTOR,
            notes=DELETION_REASON,
        )
        self._profiles.delete(user_id)

        try:
            self._identities.delete_user(user_id)
        except IdentityNotFoundError:
            logger.debug(f"Identity record for {user_id} already deleted")
        except IdentityStoreError:
            logger.error(f"Failed to delete identity record for {user_id}", exc_info=True)

        if created:
            logger.info(f"Deleted account {user_id}: {DELETION_REASON}")
            return record
        return None
