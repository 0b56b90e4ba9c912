"""
Forecast - hourly energy curve for the day ahead

    models.py:  CalendarEvent, HistoricalSample, ForecastPoint, DayForecast
    sources.py: Calendar and history collaborators (SQLite or static)
    engine.py:  Circadian baseline, calendar/history adjustment, work window
"""

from cogbudget.forecast.models import (
    CalendarEvent,
    DayForecast,
    ForecastPoint,
    ForecastWarning,
    HistoricalSample,
    LoadLevel,
    WorkWindow,
)

__all__ = [
    "CalendarEvent",
    "DayForecast",
    "ForecastPoint",
    "ForecastWarning",
    "HistoricalSample",
    "LoadLevel",
    "WorkWindow",
]
