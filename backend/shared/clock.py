"""
Time source abstraction.

Everything that reads "now" or waits for a wall-clock moment goes through a
Clock, so suspension windows and scheduled jobs can be driven by simulated
time in tests.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Source of the current time and of timed waits."""

    def now(self) -> datetime:
        """Return the current time as an aware UTC datetime."""
        ...

    async def sleep_until(self, moment: datetime) -> None:
        """Suspend the caller until ``moment`` has been reached."""
        ...


class SystemClock:
    """Clock backed by the system time and asyncio.sleep."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    async def sleep_until(self, moment: datetime) -> None:
        delay = (moment - self.now()).total_seconds()
        await asyncio.sleep(max(delay, 0))


class ManualClock:
    """
    Clock whose time only moves when advance() is called.

    Sleepers are woken when the clock passes their deadline, which lets
    tests step through daily, hourly and monthly schedules instantly.
    """

    def __init__(self, start: datetime):
        if start.tzinfo is None:
            raise ValueError("ManualClock requires an aware datetime")
        self._now = start
        self._waiters: list[tuple[datetime, asyncio.Future]] = []

    def now(self) -> datetime:
        return self._now

    def set(self, moment: datetime) -> None:
        """Jump to ``moment`` without waking sleepers (synchronous tests)."""
        self._now = moment

    @property
    def pending_sleepers(self) -> int:
        return len(self._waiters)

    async def sleep_until(self, moment: datetime) -> None:
        if moment <= self._now:
            await asyncio.sleep(0)
            return

        future = asyncio.get_running_loop().create_future()
        entry = (moment, future)
        self._waiters.append(entry)
        try:
            await future
        finally:
            if entry in self._waiters:
                self._waiters.remove(entry)

    async def advance(self, delta: timedelta) -> None:
        """Move time forward and let every sleeper that is now due run."""
        self._now += delta
        due = [w for w in self._waiters if w[0] <= self._now]
        for entry in sorted(due, key=lambda w: w[0]):
            self._waiters.remove(entry)
            if not entry[1].done():
                entry[1].set_result(None)
        # Give the woken tasks a few turns of the loop to act.
        for _ in range(5):
            await asyncio.sleep(0)
