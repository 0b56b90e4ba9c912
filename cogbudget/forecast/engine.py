"""
Tool: Energy Forecast
Purpose: Predict an hourly energy curve for one day

The forecast starts from a fixed circadian curve, adjusts each hour for
the calendar (meetings drain, focus blocks protect) and blends in the
user's historical readings for that hour. It never touches the budget
ledger and has no hidden randomness: the same events, history and date
always give the same forecast.

Per hour h in [6, 22]:
    1. baseline = circadian(h)
    2. baseline -= 10 per meeting starting at h, += 5 per focus block
    3. if history has samples at hour h:
           baseline = (baseline + mean(cognitive_budget) * 100) / 2
    4. energy = round(clamp(baseline, 0, 100))
    5. load = high (>2 events or >1 meeting), medium (any event), low

Calendar or history I/O failures do not fail the forecast. The missing
input is treated as empty and the result is flagged ``degraded``.

Usage:
    engine = ForecastEngine(calendar=SQLiteCalendarSource(), history=SQLiteHistorySource())
    forecast = await engine.generate_forecast("alice")
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Iterable
from datetime import date, datetime, tzinfo
from statistics import mean
from typing import Any
from zoneinfo import ZoneInfo

from cogbudget.clock import Clock, SystemClock, as_utc
from cogbudget.config_models import ForecastSettings
from cogbudget.errors import CognitiveBudgetError, ValidationError
from cogbudget.forecast.models import (
    CalendarEvent,
    DayForecast,
    ForecastPoint,
    ForecastWarning,
    HistoricalSample,
    LoadLevel,
    WorkWindow,
)
from cogbudget.forecast.sources import (
    CalendarSource,
    HistorySource,
    StaticCalendarSource,
    StaticHistorySource,
)


logger = logging.getLogger(__name__)


def circadian_energy(hour: int) -> float:
    """Natural energy curve through the day (0-100)."""
    if 6 <= hour < 8:
        return 60 + (hour - 6) * 15  # Morning rise
    if 8 <= hour < 11:
        return 90  # Morning peak
    if 11 <= hour < 13:
        return 85  # Pre-lunch
    if 13 <= hour < 15:
        return 65  # Post-lunch dip
    if 15 <= hour < 17:
        return 75  # Afternoon recovery
    if 17 <= hour < 19:
        return 70  # Early evening
    if 19 <= hour < 21:
        return 55  # Wind-down
    return 40  # Night


def parse_reference_date(value: Any) -> date:
    """Accept a date, a datetime or an ISO ``YYYY-MM-DD`` string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise ValidationError(f"Malformed date: {value!r}. Expected YYYY-MM-DD")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _local(ts: datetime, tz: tzinfo) -> datetime:
    return as_utc(ts).astimezone(tz)


def score_hour(
    hour: int,
    hour_events: list[CalendarEvent],
    hour_samples: list[HistoricalSample],
    settings: ForecastSettings,
) -> ForecastPoint:
    baseline = circadian_energy(hour)

    meetings = sum(1 for e in hour_events if e.is_meeting)
    focus_blocks = sum(1 for e in hour_events if e.is_focus_block)
    baseline -= meetings * settings.meeting_penalty
    baseline += focus_blocks * settings.focus_bonus

    if hour_samples:
        default = settings.default_sample_budget
        historical = mean(
            s.cognitive_budget if s.cognitive_budget is not None else default
            for s in hour_samples
        )
        baseline = (baseline + historical * 100) / 2

    energy = _round_half_up(max(0.0, min(100.0, baseline)))

    if len(hour_events) > 2 or meetings > 1:
        load = LoadLevel.HIGH
    elif hour_events:
        load = LoadLevel.MEDIUM
    else:
        load = LoadLevel.LOW

    return ForecastPoint(
        hour=hour,
        energy=energy,
        events=tuple(e.title for e in hour_events),
        load=load,
    )


def find_optimal_window(
    points: Iterable[ForecastPoint], settings: ForecastSettings
) -> WorkWindow:
    """
    Best consecutive ``window_hours`` span by mean energy.

    Starts are scanned in ascending order and only a strictly better mean
    replaces the current best, so the earliest window wins ties. With no
    window above zero the configured default is returned.
    """
    by_hour = {p.hour: p.energy for p in points}
    size = settings.window_hours
    best = WorkWindow(*settings.default_window)
    best_avg = 0.0

    for start in range(settings.start_hour, settings.end_hour - size + 1):
        hours = range(start, start + size)
        if not all(h in by_hour for h in hours):
            continue
        avg = sum(by_hour[h] for h in hours) / size
        if avg > best_avg:
            best_avg = avg
            best = WorkWindow(start, start + size)

    return best


def evaluate_warnings(
    points: list[ForecastPoint],
    day_events: list[CalendarEvent],
    tz: tzinfo,
    settings: ForecastSettings,
) -> tuple[ForecastWarning, ...]:
    warnings: list[ForecastWarning] = []

    high_load_hours = sum(1 for p in points if p.load == LoadLevel.HIGH)
    if high_load_hours >= settings.heavy_day_hours:
        warnings.append(ForecastWarning.HEAVY_DAY)

    dip_start, dip_end = settings.dip_hours
    afternoon = [p for p in points if dip_start <= p.hour <= dip_end]
    if afternoon and all(p.energy < settings.dip_threshold for p in afternoon):
        warnings.append(ForecastWarning.AFTERNOON_DIP)

    evening_events = [
        e for e in day_events if _local(e.start_time, tz).hour >= settings.busy_evening_hour
    ]
    if len(evening_events) > settings.busy_evening_events:
        warnings.append(ForecastWarning.BUSY_EVENING)

    return tuple(warnings)


def build_forecast(
    reference_date: date | str,
    calendar_events: Iterable[CalendarEvent] | None = None,
    historical_samples: Iterable[HistoricalSample] | None = None,
    tz: tzinfo | None = None,
    settings: ForecastSettings | None = None,
    degraded_sources: Iterable[str] = (),
) -> DayForecast:
    """
    Compute a DayForecast from already-loaded inputs.

    Args:
        reference_date: Local day to forecast
        calendar_events: Events; only those starting on reference_date count
        historical_samples: Past readings; the newest ``history_limit`` are used
        tz: Timezone for hour bucketing (default UTC); naive timestamps are UTC
        settings: Forecast settings (defaults if omitted)
        degraded_sources: Inputs that failed to load, carried into the result

    Returns:
        DayForecast with one point per hour from start_hour to end_hour
    """
    settings = settings or ForecastSettings()
    tz = tz or ZoneInfo("UTC")
    day = parse_reference_date(reference_date)

    day_events = [
        e for e in (calendar_events or []) if _local(e.start_time, tz).date() == day
    ]

    samples = sorted(
        historical_samples or [],
        key=lambda s: _local(s.created_at, tz),
        reverse=True,
    )[: settings.history_limit]

    events_by_hour: dict[int, list[CalendarEvent]] = {}
    for event in day_events:
        events_by_hour.setdefault(_local(event.start_time, tz).hour, []).append(event)

    samples_by_hour: dict[int, list[HistoricalSample]] = {}
    for sample in samples:
        samples_by_hour.setdefault(_local(sample.created_at, tz).hour, []).append(sample)

    points = [
        score_hour(
            hour,
            events_by_hour.get(hour, []),
            samples_by_hour.get(hour, []),
            settings,
        )
        for hour in range(settings.start_hour, settings.end_hour + 1)
    ]
    energies = [p.energy for p in points]

    degraded_sources = tuple(degraded_sources)
    return DayForecast(
        date=day,
        points=tuple(points),
        peak_energy=max(energies),
        low_energy=min(energies),
        optimal_work_window=find_optimal_window(points, settings),
        warnings=evaluate_warnings(points, day_events, tz, settings),
        degraded=bool(degraded_sources),
        degraded_sources=degraded_sources,
    )


class ForecastEngine:
    """Loads calendar and history for a user and builds the day's forecast."""

    def __init__(
        self,
        calendar: CalendarSource | None = None,
        history: HistorySource | None = None,
        clock: Clock | None = None,
        settings: ForecastSettings | None = None,
        timeout_seconds: float = 5.0,
    ):
        self.calendar = calendar or StaticCalendarSource()
        self.history = history or StaticHistorySource()
        self.clock = clock or SystemClock()
        self.settings = settings or ForecastSettings()
        self.timeout_seconds = timeout_seconds

    async def _load(self, source: str, coro) -> tuple[list, str | None]:
        # Only I/O and bad-data failures degrade; bugs in a source propagate
        try:
            return list(await asyncio.wait_for(coro, self.timeout_seconds)), None
        except (CognitiveBudgetError, OSError, asyncio.TimeoutError, ValueError) as e:
            logger.warning(f"Forecast proceeding without {source}: {type(e).__name__}: {e}")
            return [], source

    async def generate_forecast(
        self, user_id: str, reference_date: date | str | None = None
    ) -> DayForecast:
        """
        Forecast ``reference_date`` (default: today in the clock's timezone).

        Raises:
            ValidationError: reference_date is malformed
        """
        if reference_date is None:
            day = self.clock.today()
        else:
            day = parse_reference_date(reference_date)
        start, end = self.clock.day_bounds(day)

        (events, calendar_failed), (samples, history_failed) = await asyncio.gather(
            self._load("calendar", self.calendar.get_events(user_id, start, end)),
            self._load(
                "history", self.history.get_samples(user_id, self.settings.history_limit)
            ),
        )

        degraded = [s for s in (calendar_failed, history_failed) if s]
        if degraded:
            logger.warning(f"Degraded forecast for {user_id} on {day}: missing {', '.join(degraded)}")

        return build_forecast(
            day,
            events,
            samples,
            tz=self.clock.tz,
            settings=self.settings,
            degraded_sources=degraded,
        )


__all__ = [
    "ForecastEngine",
    "build_forecast",
    "circadian_energy",
    "evaluate_warnings",
    "find_optimal_window",
    "parse_reference_date",
    "score_hour",
]
