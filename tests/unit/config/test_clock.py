"""Tests for cogbudget/clock.py"""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from cogbudget.clock import FixedClock, SystemClock, resolve_timezone


class TestResolveTimezone:
    def test_known_zone(self):
        assert resolve_timezone("Europe/London") == ZoneInfo("Europe/London")

    def test_unknown_and_empty_fall_back_to_utc(self):
        assert resolve_timezone("Mars/Olympus") == ZoneInfo("UTC")
        assert resolve_timezone(None) == ZoneInfo("UTC")


class TestFixedClock:
    def test_local_day_differs_from_utc(self):
        # 02:00 UTC is still the previous evening in New York
        clock = FixedClock(datetime(2026, 10, 19, 2, 0, tzinfo=timezone.utc), "America/New_York")

        assert clock.today() == date(2026, 10, 18)
        assert clock.start_of_day() == datetime(2026, 10, 18, tzinfo=ZoneInfo("America/New_York"))

    def test_naive_instant_is_local(self):
        clock = FixedClock(datetime(2026, 10, 19, 9, 0), "Asia/Tokyo")
        assert clock.now().utcoffset().total_seconds() == 9 * 3600
        assert clock.now().hour == 9

    def test_advance_crosses_midnight(self):
        clock = FixedClock(datetime(2026, 10, 19, 23, 30, tzinfo=timezone.utc), "UTC")
        clock.advance(hours=1)
        assert clock.today() == date(2026, 10, 20)

    def test_day_bounds_are_one_day(self):
        clock = FixedClock(datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc), "UTC")
        start, end = clock.day_bounds()
        assert (end - start).days == 1
        assert start.date() == date(2026, 10, 19)


class TestSystemClock:
    def test_now_is_aware(self):
        assert SystemClock("UTC").now().tzinfo is not None
