"""
Forecast Data Models

Inputs (calendar events, historical samples) and outputs (hourly points,
the day forecast). Outputs are frozen: a forecast is recomputed, never
edited.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import StrEnum
from typing import Any


class LoadLevel(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ForecastWarning(StrEnum):
    """Warning codes; ``message`` is the user-facing text."""

    HEAVY_DAY = "heavy day"
    AFTERNOON_DIP = "afternoon dip"
    BUSY_EVENING = "busy evening"

    @property
    def message(self) -> str:
        return _WARNING_MESSAGES[self]


_WARNING_MESSAGES = {
    ForecastWarning.HEAVY_DAY: "Heavy day ahead - consider rescheduling non-essential meetings",
    ForecastWarning.AFTERNOON_DIP: "Energy dip predicted 2-4pm - schedule lighter work",
    ForecastWarning.BUSY_EVENING: "Busy evening - rest may be limited tonight",
}


def _parse_ts(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


@dataclass(frozen=True)
class CalendarEvent:
    """Calendar entry as supplied by the calendar collaborator."""

    start_time: datetime
    end_time: datetime | None = None
    title: str = ""
    is_meeting: bool = False
    is_focus_block: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CalendarEvent:
        end_time = data.get("end_time")
        return cls(
            start_time=_parse_ts(data["start_time"]),
            end_time=_parse_ts(end_time) if end_time else None,
            title=data.get("title") or "",
            is_meeting=bool(data.get("is_meeting", False)),
            is_focus_block=bool(data.get("is_focus_block", False)),
        )


@dataclass(frozen=True)
class HistoricalSample:
    """
    Past cognitive-state reading.

    cognitive_budget is a 0-1 fraction; None means the reading had no budget
    value and the forecast substitutes its configured default.
    """

    created_at: datetime
    cognitive_budget: float | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HistoricalSample:
        budget = data.get("cognitive_budget")
        return cls(
            created_at=_parse_ts(data["created_at"]),
            cognitive_budget=float(budget) if budget is not None else None,
        )


@dataclass(frozen=True)
class ForecastPoint:
    hour: int
    energy: int
    events: tuple[str, ...] = ()
    load: LoadLevel = LoadLevel.LOW

    def to_dict(self) -> dict[str, Any]:
        return {
            "hour": self.hour,
            "energy": self.energy,
            "events": list(self.events),
            "load": self.load.value,
        }


@dataclass(frozen=True)
class WorkWindow:
    start: int
    end: int

    def to_dict(self) -> dict[str, int]:
        return {"start": self.start, "end": self.end}


@dataclass(frozen=True)
class DayForecast:
    """
    Hourly energy forecast for one local day.

    ``degraded`` is set when the calendar or history could not be loaded
    and the forecast was computed without them; ``degraded_sources`` says
    which.
    """

    date: date
    points: tuple[ForecastPoint, ...]
    peak_energy: int
    low_energy: int
    optimal_work_window: WorkWindow
    warnings: tuple[ForecastWarning, ...] = ()
    degraded: bool = False
    degraded_sources: tuple[str, ...] = field(default=())

    def energy_at(self, hour: int) -> int:
        for point in self.points:
            if point.hour == hour:
                return point.energy
        raise KeyError(hour)

    def point_at(self, hour: int) -> ForecastPoint:
        for point in self.points:
            if point.hour == hour:
                return point
        raise KeyError(hour)

    @property
    def warning_messages(self) -> list[str]:
        return [w.message for w in self.warnings]

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "points": [p.to_dict() for p in self.points],
            "peak_energy": self.peak_energy,
            "low_energy": self.low_energy,
            "optimal_work_window": self.optimal_work_window.to_dict(),
            "warnings": [w.value for w in self.warnings],
            "warning_messages": self.warning_messages,
            "degraded": self.degraded,
            "degraded_sources": list(self.degraded_sources),
        }
