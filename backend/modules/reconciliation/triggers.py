"""
Wall-clock triggers for the reconciliation scheduler.

All schedules are evaluated in UTC. ``next_after`` is strictly after the
given moment, so a job that fires exactly on schedule computes its next
firing one period later.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol, runtime_checkable

from dateutil.relativedelta import relativedelta


@runtime_checkable
class Trigger(Protocol):
    def next_after(self, moment: datetime) -> datetime:
        """First firing time strictly after ``moment``."""
        ...


@dataclass(frozen=True)
class DailyTrigger:
    """Fires once a day at hour:minute UTC."""

    hour: int
    minute: int = 0

    def next_after(self, moment: datetime) -> datetime:
        moment = moment.astimezone(timezone.utc)
        candidate = moment + relativedelta(
            hour=self.hour, minute=self.minute, second=0, microsecond=0
        )
        if candidate <= moment:
            candidate += relativedelta(days=1)
        return candidate


@dataclass(frozen=True)
class HourlyTrigger:
    """Fires every hour at the given minute."""

    minute: int = 0

    def next_after(self, moment: datetime) -> datetime:
        moment = moment.astimezone(timezone.utc)
        candidate = moment + relativedelta(minute=self.minute, second=0, microsecond=0)
        if candidate <= moment:
            candidate += relativedelta(hours=1)
        return candidate


@dataclass(frozen=True)
class MonthlyTrigger:
    """
    Fires once a month on day:hour:minute UTC.

    Days past the end of a short month fire on its last day.
    """

    day: int = 1
    hour: int = 0
    minute: int = 0

    def next_after(self, moment: datetime) -> datetime:
        moment = moment.astimezone(timezone.utc)
        at = relativedelta(
            day=self.day, hour=self.hour, minute=self.minute, second=0, microsecond=0
        )
        candidate = moment + at
        if candidate <= moment:
            candidate = moment + relativedelta(months=1) + at
        return candidate
