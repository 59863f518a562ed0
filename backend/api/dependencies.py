"""
Dependency injection setup for FastAPI.

This module provides the "container" that wires together all module
implementations. Stores are chosen by ``settings.storage_backend``:
Supabase tables and Supabase Auth in production, in-memory stores for
development and tests.
"""

from typing import TYPE_CHECKING, Optional

from shared.clock import Clock, SystemClock
from shared.config import Settings, get_settings

# Type checking imports for interfaces (avoids circular imports)
if TYPE_CHECKING:
    from modules.identity.interfaces import IIdentityStore
    from modules.profiles.interfaces import IProfileRepository
    from modules.audit.interfaces import (
        IInconsistencyLogRepository,
        IDeletedAccountRepository,
        IJobRunRepository,
    )
    from modules.audit.service import InconsistencyLogService
    from modules.consistency.checker import ConsistencyChecker
    from modules.consistency.lifecycle import SuspensionLifecycle
    from modules.reconciliation.service import ReconciliationService
    from modules.reconciliation.scheduler import ReconciliationScheduler
    from modules.remediation.service import (
        ProfileCompletionService,
        AdminRemediationService,
    )


class ServiceContainer:
    """
    Container for all store and service instances.

    Instances are created lazily on first access and cached for the life
    of the container. Tests build their own container (usually with the
    memory backend and a ManualClock) and install it with
    ``app.dependency_overrides[get_container]``.
    """

    def __init__(self, settings: Optional[Settings] = None, clock: Optional[Clock] = None) -> None:
        self.settings = settings or get_settings()
        self.clock: Clock = clock or SystemClock()
        self._identities: "IIdentityStore | None" = None
        self._profiles: "IProfileRepository | None" = None
        self._log_repository: "IInconsistencyLogRepository | None" = None
        self._deleted_accounts: "IDeletedAccountRepository | None" = None
        self._job_runs: "IJobRunRepository | None" = None
        self._inconsistency_log: "InconsistencyLogService | None" = None
        self._lifecycle: "SuspensionLifecycle | None" = None
        self._checker: "ConsistencyChecker | None" = None
        self._reconciliation: "ReconciliationService | None" = None
        self._scheduler: "ReconciliationScheduler | None" = None
        self._profile_completion: "ProfileCompletionService | None" = None
        self._admin_remediation: "AdminRemediationService | None" = None

    @property
    def uses_memory(self) -> bool:
        return self.settings.storage_backend == "memory"

    # -------------------------------------------------------------------------
    # Stores
    # -------------------------------------------------------------------------

    @property
    def identities(self) -> "IIdentityStore":
        """Get the identity store instance."""
        if self._identities is None:
            if self.uses_memory:
                from modules.identity.store import InMemoryIdentityStore
                self._identities = InMemoryIdentityStore()
            else:
                from modules.identity.store import SupabaseIdentityStore
                from shared.database import get_supabase_client
                self._identities = SupabaseIdentityStore(get_supabase_client())
        return self._identities

    @property
    def profiles(self) -> "IProfileRepository":
        """Get the profile repository instance."""
        if self._profiles is None:
            if self.uses_memory:
                from modules.profiles.repository import InMemoryProfileRepository
                self._profiles = InMemoryProfileRepository()
            else:
                from modules.profiles.repository import ProfileRepository
                from shared.database import get_supabase_client
                self._profiles = ProfileRepository(
                    get_supabase_client(), self.settings.profiles_table
                )
        return self._profiles

    @property
    def log_repository(self) -> "IInconsistencyLogRepository":
        """Get the inconsistency log repository instance."""
        if self._log_repository is None:
            if self.uses_memory:
                from modules.audit.repository import InMemoryInconsistencyLogRepository
                self._log_repository = InMemoryInconsistencyLogRepository()
            else:
                from modules.audit.repository import InconsistencyLogRepository
                from shared.database import get_supabase_client
                self._log_repository = InconsistencyLogRepository(
                    get_supabase_client(), self.settings.inconsistency_logs_table
                )
        return self._log_repository

    @property
    def deleted_accounts(self) -> "IDeletedAccountRepository":
        """Get the deleted-account repository instance."""
        if self._deleted_accounts is None:
            if self.uses_memory:
                from modules.audit.repository import InMemoryDeletedAccountRepository
                self._deleted_accounts = InMemoryDeletedAccountRepository()
            else:
                from modules.audit.repository import DeletedAccountRepository
                from shared.database import get_supabase_client
                self._deleted_accounts = DeletedAccountRepository(
                    get_supabase_client(), self.settings.deleted_accounts_table
                )
        return self._deleted_accounts

    @property
    def job_runs(self) -> "IJobRunRepository":
        """Get the job run repository instance."""
        if self._job_runs is None:
            if self.uses_memory:
                from modules.audit.repository import InMemoryJobRunRepository
                self._job_runs = InMemoryJobRunRepository()
            else:
                from modules.audit.repository import JobRunRepository
                from shared.database import get_supabase_client
                self._job_runs = JobRunRepository(
                    get_supabase_client(), self.settings.job_runs_table
                )
        return self._job_runs

    # -------------------------------------------------------------------------
    # Services
    # -------------------------------------------------------------------------

    @property
    def inconsistency_log(self) -> "InconsistencyLogService":
        """Get the inconsistency log service instance."""
        if self._inconsistency_log is None:
            from modules.audit.service import InconsistencyLogService
            self._inconsistency_log = InconsistencyLogService(
                logs=self.log_repository,
                deleted_accounts=self.deleted_accounts,
                profiles=self.profiles,
                clock=self.clock,
                retention_days=self.settings.log_retention_days,
            )
        return self._inconsistency_log

    @property
    def lifecycle(self) -> "SuspensionLifecycle":
        """Get the suspension lifecycle instance."""
        if self._lifecycle is None:
            from modules.consistency.lifecycle import SuspensionLifecycle
            self._lifecycle = SuspensionLifecycle(
                profiles=self.profiles,
                identities=self.identities,
                deleted_accounts=self.deleted_accounts,
                log=self.inconsistency_log,
                clock=self.clock,
                window_days=self.settings.suspension_window_days,
                default_role=self.settings.default_role,
                required_fields=self.settings.required_profile_fields,
            )
        return self._lifecycle

    @property
    def checker(self) -> "ConsistencyChecker":
        """Get the per-request consistency checker instance."""
        if self._checker is None:
            from modules.consistency.checker import ConsistencyChecker
            self._checker = ConsistencyChecker(
                profiles=self.profiles,
                identities=self.identities,
                lifecycle=self.lifecycle,
                log=self.inconsistency_log,
                clock=self.clock,
                admin_role=self.settings.admin_role,
                required_fields=self.settings.required_profile_fields,
            )
        return self._checker

    @property
    def reconciliation(self) -> "ReconciliationService":
        """Get the reconciliation service instance."""
        if self._reconciliation is None:
            from modules.reconciliation.service import ReconciliationService
            self._reconciliation = ReconciliationService(
                profiles=self.profiles,
                identities=self.identities,
                lifecycle=self.lifecycle,
                log=self.inconsistency_log,
                job_runs=self.job_runs,
                clock=self.clock,
                required_fields=self.settings.required_profile_fields,
                page_size=self.settings.scan_page_size,
            )
        return self._reconciliation

    @property
    def scheduler(self) -> "ReconciliationScheduler":
        """Get the reconciliation scheduler instance."""
        if self._scheduler is None:
            from modules.reconciliation.models import ScheduledJob
            from modules.reconciliation.scheduler import ReconciliationScheduler
            from modules.reconciliation.triggers import (
                DailyTrigger,
                HourlyTrigger,
                MonthlyTrigger,
            )
            settings = self.settings
            self._scheduler = ReconciliationScheduler(
                service=self.reconciliation,
                clock=self.clock,
                schedule={
                    ScheduledJob.FULL_SCAN: DailyTrigger(
                        hour=settings.full_scan_hour, minute=settings.full_scan_minute
                    ),
                    ScheduledJob.EXPIRY_SWEEP: HourlyTrigger(minute=settings.expiry_sweep_minute),
                    ScheduledJob.LOG_PURGE: MonthlyTrigger(
                        day=settings.log_purge_day,
                        hour=settings.log_purge_hour,
                        minute=settings.log_purge_minute,
                    ),
                },
            )
        return self._scheduler

    @property
    def profile_completion(self) -> "ProfileCompletionService":
        """Get the profile completion service instance."""
        if self._profile_completion is None:
            from modules.remediation.service import ProfileCompletionService
            self._profile_completion = ProfileCompletionService(
                profiles=self.profiles,
                identities=self.identities,
                lifecycle=self.lifecycle,
                clock=self.clock,
                default_role=self.settings.default_role,
            )
        return self._profile_completion

    @property
    def admin_remediation(self) -> "AdminRemediationService":
        """Get the admin remediation service instance."""
        if self._admin_remediation is None:
            from modules.remediation.service import AdminRemediationService
            self._admin_remediation = AdminRemediationService(
                log=self.inconsistency_log,
                profiles=self.profiles,
                lifecycle=self.lifecycle,
            )
        return self._admin_remediation

    def reset(self) -> None:
        """
        Reset all cached instances.

        The scheduler must be stopped first; a running scheduler keeps
        references to the old services.
        """
        self._identities = None
        self._profiles = None
        self._log_repository = None
        self._deleted_accounts = None
        self._job_runs = None
        self._inconsistency_log = None
        self._lifecycle = None
        self._checker = None
        self._reconciliation = None
        self._scheduler = None
        self._profile_completion = None
        self._admin_remediation = None


# Module-level container singleton
_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    """Get the singleton service container. Also the FastAPI dependency."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container() -> None:
    """
    Reset the service container.

    This clears the cached container, so the next call to get_container()
    will create a fresh container with new service instances.

    Primarily used for testing.
    """
    global _container
    _container = None
