"""
Forecast input collaborators.

The forecast engine reads, never owns, calendar and history data. These
sources adapt whatever holds that data to two small async interfaces.
SQLite-backed versions read the ``calendar_events`` and
``cognitive_states`` tables; static versions wrap plain lists.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any

from cogbudget import DB_PATH
from cogbudget.clock import as_utc
from cogbudget.errors import StorageError
from cogbudget.forecast.models import CalendarEvent, HistoricalSample


logger = logging.getLogger(__name__)


class CalendarSource(ABC):
    @abstractmethod
    async def get_events(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[CalendarEvent]:
        """Events starting in [start, end)."""


class HistorySource(ABC):
    @abstractmethod
    async def get_samples(self, user_id: str, limit: int = 100) -> list[HistoricalSample]:
        """Most recent samples first, at most ``limit``."""


class StaticCalendarSource(CalendarSource):
    def __init__(self, events: list[CalendarEvent | dict[str, Any]] | None = None):
        self.events = [
            e if isinstance(e, CalendarEvent) else CalendarEvent.from_dict(e)
            for e in (events or [])
        ]

    async def get_events(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[CalendarEvent]:
        return [e for e in self.events if _in_range(e.start_time, start, end)]


class StaticHistorySource(HistorySource):
    def __init__(self, samples: list[HistoricalSample | dict[str, Any]] | None = None):
        self.samples = [
            s if isinstance(s, HistoricalSample) else HistoricalSample.from_dict(s)
            for s in (samples or [])
        ]

    async def get_samples(self, user_id: str, limit: int = 100) -> list[HistoricalSample]:
        ordered = sorted(self.samples, key=lambda s: as_utc(s.created_at), reverse=True)
        return ordered[:limit]


def _in_range(ts: datetime, start: datetime, end: datetime) -> bool:
    return as_utc(start) <= as_utc(ts) < as_utc(end)


# =============================================================================
# SQLite
# =============================================================================


class _SQLiteSource:
    def __init__(self, db_path: Path | str | None = None, timeout_seconds: float = 5.0):
        self.db_path = Path(db_path) if db_path else DB_PATH
        self.timeout_seconds = timeout_seconds

    def get_connection(self) -> sqlite3.Connection:
        """Get database connection, creating tables if needed."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path), timeout=self.timeout_seconds)
        conn.row_factory = sqlite3.Row

        cursor = conn.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS calendar_events (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                title TEXT DEFAULT '',
                start_time TEXT NOT NULL,
                end_time TEXT,
                is_meeting INTEGER DEFAULT 0,
                is_focus_block INTEGER DEFAULT 0
            )
        """)
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS cognitive_states (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                created_at TEXT NOT NULL,
                cognitive_budget REAL
            )
        """)
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_calendar_user_start ON calendar_events(user_id, start_time)"
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_states_user_time ON cognitive_states(user_id, created_at)"
        )
        conn.commit()
        return conn

    async def _query(self, sql: str, params: tuple[Any, ...]) -> list[dict[str, Any]]:
        def run() -> list[dict[str, Any]]:
            conn = self.get_connection()
            try:
                return [dict(row) for row in conn.execute(sql, params).fetchall()]
            finally:
                conn.close()

        name = type(self).__name__
        try:
            return await asyncio.wait_for(asyncio.to_thread(run), self.timeout_seconds)
        except asyncio.TimeoutError as e:
            logger.error(f"{name} query timed out after {self.timeout_seconds}s")
            raise StorageError(f"{name} timed out after {self.timeout_seconds}s") from e
        except (sqlite3.Error, OSError) as e:
            logger.error(f"{name} query failed: {e}")
            raise StorageError(f"{name} query failed: {e}") from e


class SQLiteCalendarSource(_SQLiteSource, CalendarSource):
    """Reads ``calendar_events``; times are stored as ISO-8601 in UTC."""

    async def get_events(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[CalendarEvent]:
        rows = await self._query(
            """
            SELECT title, start_time, end_time, is_meeting, is_focus_block
            FROM calendar_events
            WHERE user_id = ? AND start_time >= ? AND start_time < ?
            ORDER BY start_time
        """,
            (
                user_id,
                as_utc(start).isoformat(timespec="seconds"),
                as_utc(end).isoformat(timespec="seconds"),
            ),
        )
        return [CalendarEvent.from_dict(row) for row in rows]

    def add_event(self, user_id: str, event: CalendarEvent) -> None:
        conn = self.get_connection()
        try:
            conn.execute(
                """
                INSERT INTO calendar_events (user_id, title, start_time, end_time, is_meeting, is_focus_block)
                VALUES (?, ?, ?, ?, ?, ?)
            """,
                (
                    user_id,
                    event.title,
                    as_utc(event.start_time).isoformat(timespec="seconds"),
                    as_utc(event.end_time).isoformat(timespec="seconds") if event.end_time else None,
                    int(event.is_meeting),
                    int(event.is_focus_block),
                ),
            )
            conn.commit()
        finally:
            conn.close()


class SQLiteHistorySource(_SQLiteSource, HistorySource):
    """Reads ``cognitive_states`` newest first."""

    async def get_samples(self, user_id: str, limit: int = 100) -> list[HistoricalSample]:
        rows = await self._query(
            """
            SELECT created_at, cognitive_budget
            FROM cognitive_states
            WHERE user_id = ?
            ORDER BY created_at DESC
            LIMIT ?
        """,
            (user_id, limit),
        )
        return [HistoricalSample.from_dict(row) for row in rows]

    def add_sample(self, user_id: str, sample: HistoricalSample) -> None:
        conn = self.get_connection()
        try:
            conn.execute(
                "INSERT INTO cognitive_states (user_id, created_at, cognitive_budget) VALUES (?, ?, ?)",
                (
                    user_id,
                    as_utc(sample.created_at).isoformat(timespec="seconds"),
                    sample.cognitive_budget,
                ),
            )
            conn.commit()
        finally:
            conn.close()


__all__ = [
    "CalendarSource",
    "HistorySource",
    "SQLiteCalendarSource",
    "SQLiteHistorySource",
    "StaticCalendarSource",
    "StaticHistorySource",
]
