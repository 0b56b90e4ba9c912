"""
Clock abstraction for day boundaries and hour bucketing.

The ledger resets at the user's local midnight and the forecast buckets
events by local hour, so every "now" and "today" goes through a Clock.
Tests use FixedClock and move it forward explicitly.

A naive instant handed to a clock is wall-clock time in its timezone.
Naive timestamps on records (log entries, calendar events, history
samples) are UTC everywhere; see ``as_utc``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


logger = logging.getLogger(__name__)


def resolve_timezone(tz_name: str | None) -> tzinfo:
    """Resolve an IANA name, falling back to UTC for unknown zones."""
    if not tz_name:
        return ZoneInfo("UTC")
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {tz_name!r}, using UTC")
        return ZoneInfo("UTC")


def as_utc(ts: datetime) -> datetime:
    """Normalize a record timestamp to aware UTC; naive values are taken as UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


class Clock(ABC):
    """Source of the current instant in a user's timezone."""

    def __init__(self, timezone: str | tzinfo | None = None):
        if isinstance(timezone, tzinfo):
            self.tz = timezone
        else:
            self.tz = resolve_timezone(timezone)

    @abstractmethod
    def now(self) -> datetime:
        """Current instant, timezone-aware, in ``self.tz``."""

    def today(self) -> date:
        return self.now().date()

    def localize(self, ts: datetime) -> datetime:
        """Express ``ts`` in the clock's timezone."""
        if ts.tzinfo is None:
            return ts.replace(tzinfo=self.tz)
        return ts.astimezone(self.tz)

    def start_of_day(self, day: date | None = None) -> datetime:
        """Local midnight for ``day`` (default: today)."""
        day = day or self.today()
        return datetime.combine(day, time.min, tzinfo=self.tz)

    def day_bounds(self, day: date | None = None) -> tuple[datetime, datetime]:
        start = self.start_of_day(day)
        return start, self.start_of_day(start.date() + timedelta(days=1))


class SystemClock(Clock):
    """Wall clock."""

    def now(self) -> datetime:
        return datetime.now(self.tz)


class FixedClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, instant: datetime, timezone: str | tzinfo | None = None):
        super().__init__(timezone)
        self._instant = self.localize(instant)

    def now(self) -> datetime:
        return self._instant

    def set(self, instant: datetime) -> None:
        self._instant = self.localize(instant)

    def advance(self, **kwargs) -> datetime:
        """Move forward by ``timedelta(**kwargs)`` and return the new instant."""
        self._instant = self._instant + timedelta(**kwargs)
        return self._instant


__all__ = ["Clock", "FixedClock", "SystemClock", "as_utc", "resolve_timezone"]
