"""
Per-request consistency checker.

Runs once for every authenticated request, before the route handler, and
compares the caller's profile with their identity record.
"""

import logging
from typing import Iterable, Optional

from shared.clock import Clock, SystemClock
from shared.models import AuthenticatedUser
from modules.audit.models import DetectionSource, MissingIdentityRecordDetails
from modules.audit.service import InconsistencyLogService
from modules.identity.exceptions import IdentityNotFoundError, IdentityStoreError
from modules.identity.interfaces import IIdentityStore
from modules.profiles.interfaces import IProfileRepository
from .divergence import DEFAULT_REQUIRED_FIELDS, compute_divergence
from .exceptions import AccountDeletedError, IdentityRecordMissingError
from .lifecycle import SuspensionLifecycle
from .models import CheckedUser, ConsistencyAnnotation

logger = logging.getLogger(__name__)


class ConsistencyChecker:
    """
    Detects divergence for the calling user and applies the suspension policy.

    Outcomes, in order:
    - admin principal: skipped
    - no profile: a suspended placeholder profile is created
    - suspended and expired: account deleted, AccountDeletedError raised
    - suspended: annotated, request continues
    - no identity record, or the lookup failed: logged, IdentityRecordMissingError raised
    - divergence: suspended and annotated, request continues
    - consistent: no side effects
    """

    def __init__(
        self,
        profiles: IProfileRepository,
        identities: IIdentityStore,
        lifecycle: SuspensionLifecycle,
        log: InconsistencyLogService,
        clock: Optional[Clock] = None,
        admin_role: str = "admin",
        required_fields: Iterable[str] = DEFAULT_REQUIRED_FIELDS,
    ):
        self._profiles = profiles
        self._identities = identities
        self._lifecycle = lifecycle
        self._log = log
        self._clock = clock or SystemClock()
        self._admin_role = admin_role
        self._required_fields = list(required_fields)

    def check(self, user: AuthenticatedUser) -> CheckedUser:
        """
        Check one principal.

        Raises:
            AccountDeletedError: The suspension window ran out
            IdentityRecordMissingError: The identity record is missing or could not be fetched
        """
        if user.role == self._admin_role:
            return CheckedUser(user=user)

        profile = self._profiles.get(user.id)
        if profile is None:
            logger.warning(f"No profile for user {user.id}, creating suspended placeholder")
            profile, created = self._lifecycle.suspend_missing_profile(user.id, user.email)
            if created:
                return self._annotated(user, profile)

        if profile.is_temporarily_suspended:
            if profile.is_expired(self._clock.now()):
                self._lifecycle.delete(user.id)
                raise AccountDeletedError(user.id)
            return self._annotated(user, profile)

        try:
            identity = self._identities.get_user(user.id)
        except (IdentityNotFoundError, IdentityStoreError) as e:
            if isinstance(e, IdentityStoreError):
                logger.warning(f"Identity lookup failed for {user.id}: {e.message}")
            self._log.record(user.id, MissingIdentityRecordDetails(
                source=DetectionSource.REQUEST,
                profile=profile,
            ))
            raise IdentityRecordMissingError(user.id)

        divergence = compute_divergence(identity, profile, self._required_fields)
        if not divergence.has_issues:
            return CheckedUser(user=user, profile=profile)

        logger.warning(
            f"User {user.id} diverges from identity record: "
            f"mismatches={[m.field for m in divergence.mismatches]} "
            f"missing={divergence.missing_fields}"
        )
        suspended = self._lifecycle.suspend(profile, divergence, source=DetectionSource.REQUEST)
        return self._annotated(user, suspended)

    @staticmethod
    def _annotated(user: AuthenticatedUser, profile) -> CheckedUser:
        return CheckedUser(
            user=user,
            profile=profile,
            annotation=ConsistencyAnnotation.from_profile(profile),
        )
