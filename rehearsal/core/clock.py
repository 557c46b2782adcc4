"""
Clocks used by the engine and scheduler.

Production code reads the system clock; tests drive a ManualClock so
timer-driven behaviour is deterministic.
"""

from datetime import datetime, timedelta, timezone

from rehearsal.models.base import utc_now


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return utc_now()


class ManualClock:
    """A clock that only moves when told to."""

    def __init__(self, start: datetime | None = None):
        self._now = start or datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._now

    def set(self, moment: datetime) -> None:
        self._now = moment

    def advance(self, seconds: float = 0, minutes: float = 0, days: float = 0) -> datetime:
        self._now += timedelta(seconds=seconds, minutes=minutes, days=days)
        return self._now
