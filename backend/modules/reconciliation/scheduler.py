"""
Reconciliation scheduler.

Runs each ScheduledJob on its own asyncio loop task. Every firing starts
the job as a separate task, so a slow run never delays the next firing of
any job; overlapping runs of the same job are skipped by JobRunLock.
"""

import asyncio
import logging
import threading
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from shared.clock import Clock, SystemClock
from .exceptions import JobAlreadyRunningError
from .models import ScheduledJob
from .service import AnySummary, ReconciliationService
from .triggers import DailyTrigger, HourlyTrigger, MonthlyTrigger, Trigger

logger = logging.getLogger(__name__)


def default_schedule() -> dict[ScheduledJob, Trigger]:
    """Scan daily at 02:00, sweep hourly, purge on the 1st at 03:00 (UTC)."""
    return {
        ScheduledJob.FULL_SCAN: DailyTrigger(hour=2, minute=0),
        ScheduledJob.EXPIRY_SWEEP: HourlyTrigger(minute=0),
        ScheduledJob.LOG_PURGE: MonthlyTrigger(day=1, hour=3, minute=0),
    }


class SchedulerState(str, Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    STOPPED = "stopped"


class JobRunLock:
    """Set of running jobs with an atomic test-and-add."""

    def __init__(self) -> None:
        self._running: set[ScheduledJob] = set()
        self._lock = threading.Lock()

    def try_acquire(self, job: ScheduledJob) -> bool:
        with self._lock:
            if job in self._running:
                return False
            self._running.add(job)
            return True

    def release(self, job: ScheduledJob) -> None:
        with self._lock:
            self._running.discard(job)

    def is_running(self, job: ScheduledJob) -> bool:
        with self._lock:
            return job in self._running

    @property
    def running(self) -> frozenset:
        with self._lock:
            return frozenset(self._running)


class ReconciliationScheduler:
    """
    Owns the timer tasks of the reconciliation jobs.

    start() and stop() are idempotent. Job bodies are synchronous (they
    call the store clients) and run in a worker thread.
    """

    def __init__(
        self,
        service: ReconciliationService,
        clock: Optional[Clock] = None,
        schedule: Optional[dict[ScheduledJob, Trigger]] = None,
        lock: Optional[JobRunLock] = None,
    ):
        self._service = service
        self._clock = clock or SystemClock()
        self._schedule = schedule or default_schedule()
        self._lock = lock or JobRunLock()
        self._state = SchedulerState.NOT_STARTED
        self._timers: dict[ScheduledJob, asyncio.Task] = {}
        self._next_runs: dict[ScheduledJob, datetime] = {}
        self._runs: set[asyncio.Task] = set()

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state == SchedulerState.RUNNING

    @property
    def lock(self) -> JobRunLock:
        return self._lock

    def start(self) -> None:
        """Start one timer task per job. Must be called from the event loop."""
        if self._state == SchedulerState.RUNNING:
            logger.debug("Reconciliation scheduler already running")
            return

        for job, trigger in self._schedule.items():
            self._timers[job] = asyncio.create_task(
                self._timer(job, trigger),
                name=f"reconciliation-{job.value}",
            )
        self._state = SchedulerState.RUNNING
        logger.info(f"Reconciliation scheduler started ({len(self._timers)} jobs)")

    async def stop(self) -> None:
        """Cancel the timers and wait for in-flight runs to finish."""
        if self._state != SchedulerState.RUNNING:
            return

        timers = list(self._timers.values())
        for task in timers:
            task.cancel()
        await asyncio.gather(*timers, return_exceptions=True)
        self._timers.clear()
        self._next_runs.clear()

        await self.wait_idle()
        self._state = SchedulerState.STOPPED
        logger.info("Reconciliation scheduler stopped")

    async def run_now(self, job: ScheduledJob) -> AnySummary:
        """
        Run a job immediately and return its summary.

        Raises:
            JobAlreadyRunningError: If a run of the same job is in progress
        """
        if not self._lock.try_acquire(job):
            raise JobAlreadyRunningError(job.value)
        try:
            return await asyncio.to_thread(self._service.run, job)
        finally:
            self._lock.release(job)

    async def wait_idle(self) -> None:
        """Wait until no job run started by a timer is in progress."""
        while self._runs:
            await asyncio.gather(*list(self._runs), return_exceptions=True)

    def status(self) -> dict[str, Any]:
        return {
            "state": self._state.value,
            "running_jobs": sorted(job.value for job in self._lock.running),
            "next_runs": {
                job.value: moment.isoformat() for job, moment in self._next_runs.items()
            },
        }

    async def _timer(self, job: ScheduledJob, trigger: Trigger) -> None:
        while True:
            next_run = trigger.next_after(self._clock.now())
            self._next_runs[job] = next_run
            await self._clock.sleep_until(next_run)
            task = asyncio.create_task(self._fire(job), name=f"reconciliation-run-{job.value}")
            self._runs.add(task)
            task.add_done_callback(self._runs.discard)

    async def _fire(self, job: ScheduledJob) -> None:
        try:
            summary = await self.run_now(job)
        except JobAlreadyRunningError:
            logger.warning(f"Skipping {job.value}: previous run still in progress")
            return
        except Exception:
            logger.error(f"Scheduled job {job.value} failed", exc_info=True)
            return
        logger.info(f"Scheduled job {job.value} finished: {summary.counters()}")
