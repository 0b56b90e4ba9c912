"""
Tool: Activity Log Store
Purpose: Append-only persistence for energy-affecting activities

The activity log is the source of truth for the ledger. Rows are never
updated or deleted; the daily reset only moves the window the ledger
replays from, so yesterday's entries stay available for analytics.

Each user also has a ledger version: the count of accepted entries. An
append may carry the version the writer last saw, and is rejected with
ConflictError when someone else appended in between.

Blocking sqlite calls run in a worker thread under a timeout; timeouts and
sqlite errors surface as StorageError. Reads are abandoned at the timeout,
appends are waited out so a reported failure always means nothing landed.

Dependencies:
    - sqlite3 (stdlib)
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

from cogbudget import DB_PATH
from cogbudget.budget.models import ActivityLogEntry
from cogbudget.clock import as_utc
from cogbudget.errors import ConflictError, StorageError


logger = logging.getLogger(__name__)


def _utc_iso(ts: datetime) -> str:
    return as_utc(ts).isoformat(timespec="microseconds")


class ActivityLogStore(ABC):
    """
    Async interface over an append-only activity log.

    Subclasses implement the blocking ``_append``/``_entries_since``/``_version``;
    the public coroutines run them off the event loop with a timeout.
    """

    def __init__(self, timeout_seconds: float = 5.0):
        self.timeout_seconds = timeout_seconds

    async def _run(self, func: Callable[..., Any], *args: Any, settle: bool = False) -> Any:
        """
        Run a blocking store call in a worker thread.

        With ``settle`` the call is not abandoned at the timeout: a worker
        thread cannot be stopped, so a write that is already running would
        land after the caller was told it failed. Instead the result is
        awaited and returned, and the overrun is logged.
        """
        task = asyncio.ensure_future(asyncio.to_thread(func, *args))
        try:
            if not settle:
                return await asyncio.wait_for(task, self.timeout_seconds)
            try:
                return await asyncio.wait_for(asyncio.shield(task), self.timeout_seconds)
            except asyncio.TimeoutError:
                logger.warning(
                    f"Activity log call {func.__name__} exceeded {self.timeout_seconds}s, "
                    "waiting for the write to finish"
                )
                return await task
        except ConflictError:
            raise
        except asyncio.TimeoutError as e:
            logger.error(f"Activity log call {func.__name__} timed out after {self.timeout_seconds}s")
            raise StorageError(f"Activity log timed out after {self.timeout_seconds}s") from e
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Activity log call {func.__name__} failed: {e}")
            raise StorageError(f"Activity log failure: {e}") from e

    async def append(self, entry: ActivityLogEntry, expected_version: int | None = None) -> int:
        """
        Append one entry and return the user's new ledger version.

        A StorageError here means the entry was not written. Slow writes are
        waited out rather than reported as failures; SQLite's own busy
        timeout bounds how long a write can block on a lock.
        """
        return await self._run(self._append, entry, expected_version, settle=True)

    async def entries_since(
        self, user_id: str, since: datetime, until: datetime | None = None
    ) -> list[ActivityLogEntry]:
        """Entries with since <= timestamp (< until), oldest first."""
        return await self._run(self._entries_since, user_id, since, until)

    async def version(self, user_id: str) -> int:
        return await self._run(self._version, user_id)

    @abstractmethod
    def _append(self, entry: ActivityLogEntry, expected_version: int | None) -> int: ...

    @abstractmethod
    def _entries_since(
        self, user_id: str, since: datetime, until: datetime | None
    ) -> list[ActivityLogEntry]: ...

    @abstractmethod
    def _version(self, user_id: str) -> int: ...


class InMemoryActivityLogStore(ActivityLogStore):
    """Process-local log for tests and embedding callers that bring their own persistence."""

    def __init__(self, timeout_seconds: float = 5.0):
        super().__init__(timeout_seconds)
        self._entries: dict[str, list[ActivityLogEntry]] = {}
        self._lock = threading.Lock()

    def _append(self, entry: ActivityLogEntry, expected_version: int | None) -> int:
        with self._lock:
            entries = self._entries.setdefault(entry.user_id, [])
            current = len(entries)
            if expected_version is not None and expected_version != current:
                raise ConflictError(entry.user_id, expected_version, current)
            entries.append(entry)
            return current + 1

    def _entries_since(
        self, user_id: str, since: datetime, until: datetime | None
    ) -> list[ActivityLogEntry]:
        since = as_utc(since)
        until = as_utc(until) if until is not None else None
        with self._lock:
            entries = list(self._entries.get(user_id, []))
        return [
            e
            for e in entries
            if as_utc(e.timestamp) >= since and (until is None or as_utc(e.timestamp) < until)
        ]

    def _version(self, user_id: str) -> int:
        with self._lock:
            return len(self._entries.get(user_id, []))


class SQLiteActivityLogStore(ActivityLogStore):
    """
    Activity log in SQLite.

    Tables:
        cognitive_budget_log: user_id, activity_id, domain, cost, created_at
        ledger_versions: user_id -> version
    """

    def __init__(self, db_path: Path | str | None = None, timeout_seconds: float = 5.0):
        super().__init__(timeout_seconds)
        self.db_path = Path(db_path) if db_path else DB_PATH
        self._initialized = False

    def get_connection(self) -> sqlite3.Connection:
        """Get database connection, creating tables if needed."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path), timeout=self.timeout_seconds, isolation_level=None)
        conn.row_factory = sqlite3.Row

        if not self._initialized:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS cognitive_budget_log (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    activity_id TEXT NOT NULL,
                    domain TEXT NOT NULL CHECK(domain IN ('work', 'health', 'social', 'learning')),
                    cost REAL NOT NULL,
                    created_at TEXT NOT NULL
                )
            """)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS ledger_versions (
                    user_id TEXT PRIMARY KEY,
                    version INTEGER NOT NULL DEFAULT 0
                )
            """)
            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_budget_log_user_time "
                "ON cognitive_budget_log(user_id, created_at)"
            )
            self._initialized = True

        return conn

    def _append(self, entry: ActivityLogEntry, expected_version: int | None) -> int:
        conn = self.get_connection()
        try:
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute(
                "SELECT version FROM ledger_versions WHERE user_id = ?", (entry.user_id,)
            ).fetchone()
            current = row["version"] if row else 0

            if expected_version is not None and expected_version != current:
                conn.execute("ROLLBACK")
                raise ConflictError(entry.user_id, expected_version, current)

            conn.execute(
                """
                INSERT INTO cognitive_budget_log (user_id, activity_id, domain, cost, created_at)
                VALUES (?, ?, ?, ?, ?)
            """,
                (
                    entry.user_id,
                    entry.activity_id,
                    entry.domain.value,
                    entry.cost,
                    _utc_iso(entry.timestamp),
                ),
            )
            conn.execute(
                """
                INSERT INTO ledger_versions (user_id, version) VALUES (?, 1)
                ON CONFLICT(user_id) DO UPDATE SET version = version + 1
            """,
                (entry.user_id,),
            )
            conn.execute("COMMIT")
            return current + 1
        except sqlite3.Error:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise
        finally:
            conn.close()

    def _entries_since(
        self, user_id: str, since: datetime, until: datetime | None
    ) -> list[ActivityLogEntry]:
        query = """
            SELECT user_id, activity_id, domain, cost, created_at
            FROM cognitive_budget_log
            WHERE user_id = ? AND created_at >= ?
        """
        params: list[Any] = [user_id, _utc_iso(since)]
        if until is not None:
            query += " AND created_at < ?"
            params.append(_utc_iso(until))
        query += " ORDER BY id"

        conn = self.get_connection()
        try:
            rows = conn.execute(query, params).fetchall()
        finally:
            conn.close()

        return [ActivityLogEntry.from_row(dict(row)) for row in rows]

    def _version(self, user_id: str) -> int:
        conn = self.get_connection()
        try:
            row = conn.execute(
                "SELECT version FROM ledger_versions WHERE user_id = ?", (user_id,)
            ).fetchone()
        finally:
            conn.close()
        return row["version"] if row else 0


__all__ = ["ActivityLogStore", "InMemoryActivityLogStore", "SQLiteActivityLogStore"]
