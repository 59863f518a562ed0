"""
Reconciliation service.

Batch counterparts of the per-request checker: a full divergence scan, a
sweep that deletes accounts whose suspension expired, and a purge of old
resolved log entries. Each job returns a summary and stores it as a job
run record.
"""

import logging
import uuid
from typing import Iterable, Optional, Union

from shared.clock import Clock, SystemClock
from modules.audit.interfaces import IJobRunRepository
from modules.audit.models import DetectionSource, JobRunRecord
from modules.audit.service import InconsistencyLogService
from modules.consistency.divergence import DEFAULT_REQUIRED_FIELDS, compute_divergence
from modules.consistency.lifecycle import SuspensionLifecycle
from modules.identity.exceptions import IdentityNotFoundError
from modules.identity.interfaces import IIdentityStore
from modules.profiles.interfaces import IProfileRepository
from modules.profiles.models import UserProfile
from .models import JobSummary, PurgeSummary, ScanSummary, ScheduledJob, SweepSummary

logger = logging.getLogger(__name__)

AnySummary = Union[ScanSummary, SweepSummary, PurgeSummary]


class ReconciliationService:
    """Runs the reconciliation jobs synchronously against the stores."""

    def __init__(
        self,
        profiles: IProfileRepository,
        identities: IIdentityStore,
        lifecycle: SuspensionLifecycle,
        log: InconsistencyLogService,
        job_runs: IJobRunRepository,
        clock: Optional[Clock] = None,
        required_fields: Iterable[str] = DEFAULT_REQUIRED_FIELDS,
        page_size: int = 500,
    ):
        self._profiles = profiles
        self._identities = identities
        self._lifecycle = lifecycle
        self._log = log
        self._job_runs = job_runs
        self._clock = clock or SystemClock()
        self._required_fields = list(required_fields)
        self._page_size = page_size

    def run(self, job: ScheduledJob) -> AnySummary:
        """Run one job by name."""
        if job == ScheduledJob.FULL_SCAN:
            return self.run_full_scan()
        if job == ScheduledJob.EXPIRY_SWEEP:
            return self.run_expiry_sweep()
        return self.run_log_purge()

    def run_full_scan(self) -> ScanSummary:
        """
        Check every profile against its identity record.

        Profiles that are already suspended are counted and skipped. A
        failing check is logged and counted as checked but not as an issue.
        """
        started = self._clock.now()
        summary = ScanSummary()
        logger.info("Starting full consistency scan")

        for profile in self._profiles.iter_all(page_size=self._page_size):
            summary.users_checked += 1
            if profile.is_temporarily_suspended:
                summary.already_suspended += 1
                continue
            try:
                if self._scan_profile(profile):
                    summary.issues_found += 1
            except Exception:
                summary.failures += 1
                logger.error(f"Consistency check failed for user {profile.id}", exc_info=True)

        logger.info(
            f"Consistency scan complete: {summary.users_checked} users checked, "
            f"{summary.issues_found} issues found, {summary.failures} failures"
        )
        self._record(ScheduledJob.FULL_SCAN, started, summary)
        return summary

    def run_expiry_sweep(self) -> SweepSummary:
        """Delete every account whose suspension has expired (boundary inclusive)."""
        started = self._clock.now()
        candidates = self._profiles.list_expired_suspensions(started)
        summary = SweepSummary(candidates=len(candidates))

        for profile in candidates:
            try:
                if self._lifecycle.delete(profile.id) is not None:
                    summary.deleted += 1
            except Exception:
                summary.failures += 1
                logger.error(f"Failed to delete expired account {profile.id}", exc_info=True)

        if summary.candidates:
            logger.info(f"Expiry sweep deleted {summary.deleted} of {summary.candidates} expired accounts")
        self._record(ScheduledJob.EXPIRY_SWEEP, started, summary)
        return summary

    def run_log_purge(self) -> PurgeSummary:
        """Delete resolved log entries past the retention period."""
        started = self._clock.now()
        cutoff, purged = self._log.purge_resolved()
        summary = PurgeSummary(cutoff=cutoff, purged=purged)
        self._record(ScheduledJob.LOG_PURGE, started, summary)
        return summary

    def _scan_profile(self, profile: UserProfile) -> bool:
        """Check one unsuspended profile. Returns True if it was suspended."""
        try:
            identity = self._identities.get_user(profile.id)
        except IdentityNotFoundError:
            logger.warning(f"Identity record missing for user {profile.id}")
            self._lifecycle.suspend_missing_identity(profile)
            return True

        divergence = compute_divergence(identity, profile, self._required_fields)
        if not divergence.has_issues:
            return False

        logger.warning(f"User {profile.id} diverges from identity record, suspending")
        self._lifecycle.suspend(profile, divergence, source=DetectionSource.SCAN)
        return True

    def _record(self, job: ScheduledJob, started, summary: JobSummary) -> None:
        run = JobRunRecord(
            id=str(uuid.uuid4()),
            job=job.value,
            started_at=started,
            finished_at=self._clock.now(),
            stats=summary.counters(),
        )
        try:
            self._job_runs.record(run)
        except Exception:
            logger.error(f"Failed to store run record for {job.value}", exc_info=True)
