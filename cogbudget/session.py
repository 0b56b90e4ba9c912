"""
Engine sessions - the entry point for callers

A CognitiveEngine holds the shared collaborators (activity log, calendar,
history, config). ``engine.for_user(user_id)`` returns an EngineSession
bound to that one user; every budget, forecast and suggestion call goes
through a session, so there is no ambient "current user".

Usage:
    engine = CognitiveEngine()
    session = engine.for_user("alice", timezone="Europe/London")

    await session.log_activity("deep_work", "work", 0.3)
    state = await session.get_budget_state()
    forecast = await session.generate_forecast()
    suggestions = await session.select_suggestions(3)
    await session.complete_suggestion(suggestions[0])
"""

from __future__ import annotations

import logging
import random
from datetime import date
from pathlib import Path

from cogbudget import PROJECT_ROOT
from cogbudget.budget.ledger import BudgetLedger
from cogbudget.budget.models import ActivityLogEntry, BudgetAdvice, CognitiveBudgetState, Domain
from cogbudget.budget.store import ActivityLogStore, SQLiteActivityLogStore
from cogbudget.clock import Clock, SystemClock
from cogbudget.config_models import CognitionConfig, load_config
from cogbudget.errors import ValidationError
from cogbudget.forecast.engine import ForecastEngine
from cogbudget.forecast.models import DayForecast
from cogbudget.forecast.sources import (
    CalendarSource,
    HistorySource,
    SQLiteCalendarSource,
    SQLiteHistorySource,
)
from cogbudget.recovery.catalog import DEFAULT_CATALOG, RestorativeActivity, get_activity
from cogbudget.recovery.selector import RandomSource, RecoveryTracker, select_suggestions


logger = logging.getLogger(__name__)


class EngineSession:
    """All engine operations for a single user."""

    def __init__(
        self,
        user_id: str,
        store: ActivityLogStore,
        calendar: CalendarSource,
        history: HistorySource,
        config: CognitionConfig,
        clock: Clock,
        rng: RandomSource,
        catalog: tuple[RestorativeActivity, ...] = DEFAULT_CATALOG,
    ):
        self.user_id = user_id
        self.config = config
        self.clock = clock
        self.rng = rng
        self.catalog = catalog

        self.ledger = BudgetLedger(user_id, store, clock=clock, settings=config.budget)
        self.forecaster = ForecastEngine(
            calendar=calendar,
            history=history,
            clock=clock,
            settings=config.forecast,
            timeout_seconds=config.storage.timeout_seconds,
        )
        self.tracker = RecoveryTracker(self.ledger)

    # -------------------------------------------------------------------------
    # Budget
    # -------------------------------------------------------------------------

    async def log_activity(
        self, activity_id: str, domain: Domain | str | None = None, cost: float | None = None
    ) -> ActivityLogEntry:
        return await self.ledger.log_activity(activity_id, domain, cost)

    async def get_budget_state(self) -> CognitiveBudgetState:
        return await self.ledger.get_budget_state()

    def get_recommendations(self) -> list[str]:
        return self.ledger.get_recommendations()

    def advise(self, domain: Domain | str) -> BudgetAdvice:
        return self.ledger.advise(domain)

    # -------------------------------------------------------------------------
    # Forecast
    # -------------------------------------------------------------------------

    async def generate_forecast(self, reference_date: date | str | None = None) -> DayForecast:
        return await self.forecaster.generate_forecast(self.user_id, reference_date)

    # -------------------------------------------------------------------------
    # Recovery
    # -------------------------------------------------------------------------

    async def select_suggestions(
        self, count: int | None = None, compact: bool = False
    ) -> list[RestorativeActivity]:
        """Suggestions for the current budget (count defaults to 5, or 3 when compact)."""
        if count is None:
            recovery = self.config.recovery
            count = recovery.compact_count if compact else recovery.default_count

        state = await self.ledger.get_budget_state()
        return select_suggestions(
            state,
            self.catalog,
            count,
            self.rng,
            settings=self.config.recovery,
            helper_domains=self.config.budget.helper_domains,
        )

    async def complete_suggestion(self, activity: RestorativeActivity | str) -> bool:
        """Log a suggestion as done. Accepts the activity or its catalog id."""
        if isinstance(activity, str):
            found = get_activity(activity, self.catalog)
            if found is None:
                raise ValidationError(f"Unknown restorative activity: {activity!r}")
            activity = found
        return await self.tracker.complete(activity)

    @property
    def restored_today(self) -> int:
        return self.tracker.restored_today


class CognitiveEngine:
    """Shared collaborators; hands out one EngineSession per user."""

    def __init__(
        self,
        config: CognitionConfig | None = None,
        store: ActivityLogStore | None = None,
        calendar: CalendarSource | None = None,
        history: HistorySource | None = None,
        clock: Clock | None = None,
        catalog: tuple[RestorativeActivity, ...] = DEFAULT_CATALOG,
    ):
        self.config = config or load_config()
        db_path = Path(self.config.storage.database_path)
        if not db_path.is_absolute():
            db_path = PROJECT_ROOT / db_path

        timeout = self.config.storage.timeout_seconds
        self.store = store or SQLiteActivityLogStore(db_path, timeout)
        self.calendar = calendar or SQLiteCalendarSource(db_path, timeout)
        self.history = history or SQLiteHistorySource(db_path, timeout)
        self.clock = clock
        self.catalog = catalog

    def for_user(
        self,
        user_id: str,
        timezone: str | None = None,
        rng: RandomSource | None = None,
        seed: int | None = None,
    ) -> EngineSession:
        """
        Open a session for ``user_id``.

        Args:
            user_id: User to bind the session to
            timezone: IANA zone for day boundaries (ignored if the engine has a clock)
            rng: Random source for suggestions
            seed: Seed for a fresh random.Random when no rng is given
        """
        if not user_id:
            raise ValidationError("user_id is required")

        clock = self.clock or SystemClock(timezone)
        return EngineSession(
            user_id=user_id,
            store=self.store,
            calendar=self.calendar,
            history=self.history,
            config=self.config,
            clock=clock,
            rng=rng or random.Random(seed),
            catalog=self.catalog,
        )


__all__ = ["CognitiveEngine", "EngineSession"]
