"""
Tool: Budget Ledger
Purpose: Track per-domain cognitive energy spend and restoration for one user

The ledger is a materialized view over the activity log. Spending is the
sum of logged costs since local midnight; remaining and status are derived
from it on every change. Nothing else mutates the budget.

Rules:
    - remaining = min(capacity - spent, capacity)
    - healthy when remaining/capacity >= 0.3, depleted when >= 0,
      overdrawn below 0
    - logging is not idempotent: every call is one more entry
    - a new local day starts from zero spend; older entries stay in the log

Writes carry the ledger version this session last saw. If another session
wrote first the store raises ConflictError; call get_budget_state() to
catch up, then retry.

Usage:
    ledger = BudgetLedger("alice", SQLiteActivityLogStore())
    await ledger.log_activity("deep_work", "work", 0.3)
    state = await ledger.get_budget_state()
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, datetime
from typing import Any

from cogbudget.budget.models import (
    DOMAINS,
    ActivityLogEntry,
    BudgetAdvice,
    BudgetStatus,
    BudgetTotals,
    CognitiveBudgetState,
    Domain,
    DomainBudget,
    parse_domain,
    validate_cost,
)
from cogbudget.budget.store import ActivityLogStore
from cogbudget.clock import Clock, SystemClock
from cogbudget.config_models import BudgetSettings
from cogbudget.errors import ValidationError


logger = logging.getLogger(__name__)


# Default energy costs for common activities
ACTIVITY_COSTS: dict[str, tuple[Domain, float]] = {
    # Work
    "deep_work": (Domain.WORK, 0.3),
    "meeting": (Domain.WORK, 0.15),
    "email": (Domain.WORK, 0.05),
    "decision": (Domain.WORK, 0.2),
    "presentation": (Domain.WORK, 0.25),
    "review": (Domain.WORK, 0.1),
    # Health
    "workout": (Domain.HEALTH, 0.2),
    "meal_planning": (Domain.HEALTH, 0.1),
    "meditation": (Domain.HEALTH, -0.1),
    "sleep_tracking": (Domain.HEALTH, 0.02),
    # Social
    "social_call": (Domain.SOCIAL, 0.15),
    "collaboration": (Domain.SOCIAL, 0.2),
    "messaging": (Domain.SOCIAL, 0.05),
    "networking": (Domain.SOCIAL, 0.25),
    # Learning
    "reading": (Domain.LEARNING, 0.15),
    "course": (Domain.LEARNING, 0.25),
    "skill_practice": (Domain.LEARNING, 0.2),
    "reflection": (Domain.LEARNING, 0.05),
}

# What a helper domain can offer a depleted one
RESTORATIVE_ACTIONS: dict[Domain, str] = {
    Domain.WORK: "a proper coffee break away from the desk",
    Domain.HEALTH: "a short walk or a few minutes of stretching",
    Domain.SOCIAL: "a brief chat with someone you like",
    Domain.LEARNING: "some light reading or a favorite song",
}


# =============================================================================
# Pure budget arithmetic
# =============================================================================


def spent_by_domain(entries: Iterable[ActivityLogEntry]) -> dict[Domain, float]:
    """Sum logged costs per domain, in log order."""
    spent = {d: 0.0 for d in DOMAINS}
    for entry in entries:
        spent[entry.domain] += entry.cost
    return spent


def build_domains(
    spent: dict[Domain, float], settings: BudgetSettings
) -> dict[Domain, DomainBudget]:
    return {
        d: DomainBudget.compute(
            d, settings.capacities[d], spent.get(d, 0.0), settings.healthy_ratio
        )
        for d in DOMAINS
    }


def generate_recommendations(
    domains: dict[Domain, DomainBudget], settings: BudgetSettings
) -> list[str]:
    """
    Cross-domain recovery recommendations.

    Depleted and overdrawn domains are visited most-depleted first; each
    healthy helper domain contributes one recommendation, in helper-table
    order, until max_recommendations is reached.
    """
    limit = settings.max_recommendations
    recommendations: list[str] = []
    if limit <= 0:
        return recommendations

    strained = [b for b in domains.values() if b.status != BudgetStatus.HEALTHY]
    # sorted() is stable, so equal ratios keep domain order
    strained = sorted(strained, key=lambda b: b.ratio)

    for budget in strained:
        for helper in settings.helper_domains.get(budget.domain, []):
            if domains[helper].status != BudgetStatus.HEALTHY:
                continue
            recommendations.append(
                f"{budget.domain.value.capitalize()} energy {budget.status.value} - "
                f"{RESTORATIVE_ACTIONS[helper]} ({helper.value}) could help you recover"
            )
            if len(recommendations) >= limit:
                return recommendations

    return recommendations


def materialize(
    user_id: str,
    spent: dict[Domain, float],
    settings: BudgetSettings,
    version: int = 0,
    now: datetime | None = None,
) -> CognitiveBudgetState:
    domains = build_domains(spent, settings)
    return CognitiveBudgetState(
        user_id=user_id,
        domains=domains,
        total=BudgetTotals.from_domains(domains),
        recommendations=generate_recommendations(domains, settings),
        last_updated=now,
        version=version,
    )


def replay(
    user_id: str,
    entries: Iterable[ActivityLogEntry],
    settings: BudgetSettings | None = None,
    version: int = 0,
    now: datetime | None = None,
) -> CognitiveBudgetState:
    """Rebuild a budget state from log entries alone."""
    return materialize(
        user_id, spent_by_domain(entries), settings or BudgetSettings(), version, now
    )


def most_depleted_domain(state: CognitiveBudgetState) -> Domain:
    """Domain with the lowest remaining/capacity ratio; earlier domains win ties."""
    return min(state.domains.values(), key=lambda b: b.ratio).domain


def advise(domain: Domain | str, state: CognitiveBudgetState) -> BudgetAdvice:
    """
    Should the user start something in ``domain`` right now?

    Healthy: go ahead. Depleted: go ahead, but lightly. Overdrawn: no -
    point at the first healthy domain, or at rest if none is left.
    """
    domain = parse_domain(domain)
    status = state.domains[domain].status

    if status == BudgetStatus.HEALTHY:
        return BudgetAdvice(proceed=True)

    if status == BudgetStatus.DEPLETED:
        return BudgetAdvice(proceed=True, reason="Budget is low - keep this light")

    healthy = [d for d, b in state.domains.items() if b.status == BudgetStatus.HEALTHY]
    if healthy:
        return BudgetAdvice(
            proceed=False,
            alternative=healthy[0],
            reason=f"{domain.value} energy depleted. Consider {healthy[0].value} instead?",
        )

    return BudgetAdvice(proceed=False, reason="All domains depleted - rest recommended")


def resolve_activity(
    activity_id: str, domain: Domain | str | None, cost: float | None
) -> tuple[Domain, float | None]:
    """Fill a missing domain or cost from ACTIVITY_COSTS."""
    if not isinstance(activity_id, str) or not activity_id.strip():
        raise ValidationError("Activity id must be a non-empty string")

    known = ACTIVITY_COSTS.get(activity_id)
    if domain is None or cost is None:
        if known is None:
            raise ValidationError(
                f"Unknown activity {activity_id!r}: domain and cost are required"
            )
        if domain is None:
            domain = known[0]
        if cost is None:
            cost = known[1]

    return parse_domain(domain), cost


# =============================================================================
# Ledger
# =============================================================================


class BudgetLedger:
    """
    Per-user budget ledger.

    One instance belongs to exactly one user. Calls within a session are
    expected to be sequential; cross-session writes are arbitrated by the
    store's version check.
    """

    def __init__(
        self,
        user_id: str,
        store: ActivityLogStore,
        clock: Clock | None = None,
        settings: BudgetSettings | None = None,
    ):
        if not user_id:
            raise ValidationError("user_id is required")
        self.user_id = user_id
        self.store = store
        self.clock = clock or SystemClock()
        self.settings = settings or BudgetSettings()

        self._day: date | None = None
        self._version: int | None = None
        self._spent: dict[Domain, float] = {d: 0.0 for d in DOMAINS}
        self._state: CognitiveBudgetState | None = None

    @property
    def version(self) -> int | None:
        """Ledger version last observed by this session (None before first read)."""
        return self._version

    async def _reload(self) -> None:
        today = self.clock.today()
        if self._day is not None and self._day != today:
            logger.info(f"Daily budget reset for {self.user_id} ({self._day} -> {today})")

        version = await self.store.version(self.user_id)
        entries = await self.store.entries_since(self.user_id, self.clock.start_of_day(today))

        self._day = today
        self._version = version
        self._spent = spent_by_domain(entries)
        self._rematerialize()

    def _rematerialize(self) -> None:
        self._state = materialize(
            self.user_id, self._spent, self.settings, self._version or 0, self.clock.now()
        )

    async def log_activity(
        self,
        activity_id: str,
        domain: Domain | str | None = None,
        cost: float | None = None,
    ) -> ActivityLogEntry:
        """
        Record one activity against a domain.

        Args:
            activity_id: What happened (e.g. "deep_work", "walk")
            domain: work/health/social/learning; looked up for known activities
            cost: Fraction of daily energy; positive spends, negative restores

        Returns:
            The appended ActivityLogEntry

        Raises:
            ValidationError: bad domain, cost or activity id
            ConflictError: another session wrote to this ledger first
            StorageError: the activity log failed
        """
        domain, cost = resolve_activity(activity_id, domain, cost)
        cost = validate_cost(cost, self.settings.max_abs_cost)

        if self._day != self.clock.today():
            await self._reload()

        entry = ActivityLogEntry(
            user_id=self.user_id,
            activity_id=activity_id,
            domain=domain,
            cost=cost,
            timestamp=self.clock.now(),
        )
        self._version = await self.store.append(entry, expected_version=self._version)

        self._spent[domain] += cost
        self._rematerialize()

        logger.debug(
            f"Logged {activity_id} ({domain.value}, {cost:+.3f}) for {self.user_id}, "
            f"remaining {self._state.domains[domain].remaining:.3f}"
        )
        return entry

    async def get_budget_state(self) -> CognitiveBudgetState:
        """Current budget, re-read from the activity log (resets on a new local day)."""
        await self._reload()
        return self._state

    def get_recommendations(self) -> list[str]:
        """Recommendations from the last materialized state."""
        if self._state is None:
            self._rematerialize()
        return list(self._state.recommendations)

    def advise(self, domain: Domain | str) -> BudgetAdvice:
        if self._state is None:
            self._rematerialize()
        return advise(domain, self._state)

    async def history(
        self, since: datetime, until: datetime | None = None
    ) -> list[ActivityLogEntry]:
        """Raw log entries for analytics, including days before the last reset."""
        return await self.store.entries_since(self.user_id, since, until)

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "day": self._day.isoformat() if self._day else None,
            "version": self._version,
            "state": self._state.to_dict() if self._state else None,
        }


__all__ = [
    "ACTIVITY_COSTS",
    "BudgetLedger",
    "RESTORATIVE_ACTIONS",
    "advise",
    "build_domains",
    "generate_recommendations",
    "materialize",
    "most_depleted_domain",
    "replay",
    "resolve_activity",
    "spent_by_domain",
]
