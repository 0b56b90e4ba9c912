"""
Tool: Recovery Suggestions
Purpose: Pick restorative micro-activities for the current budget

Depleted domains recover best through a different domain: a drained
work budget is helped by a walk or a chat, not by more desk time. So the
selector looks at which domains are strained and draws from the healthy
domains that can help them.

Selection:
    1. For each depleted/overdrawn domain, one draw from each healthy
       helper domain
    2. If the whole budget is below 30%, one draw from high-restore
       activities (>= 15%)
    3. Random backfill up to the target count
    4. Highest restore first

Randomness comes from an injected source (random.Random works), so a
seeded source gives repeatable suggestions.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable, Sequence
from typing import Protocol, TypeVar

from cogbudget.budget.ledger import BudgetLedger
from cogbudget.budget.models import BudgetStatus, CognitiveBudgetState, Domain
from cogbudget.config_models import DEFAULT_HELPER_DOMAINS, RecoverySettings
from cogbudget.errors import ValidationError
from cogbudget.recovery.catalog import DEFAULT_CATALOG, RestorativeActivity


logger = logging.getLogger(__name__)

T = TypeVar("T")


class RandomSource(Protocol):
    def choice(self, seq: Sequence[T]) -> T: ...


def select_suggestions(
    state: CognitiveBudgetState,
    catalog: Iterable[RestorativeActivity] = DEFAULT_CATALOG,
    target_count: int = 5,
    rng: RandomSource | None = None,
    settings: RecoverySettings | None = None,
    helper_domains: dict[Domain, list[Domain]] | None = None,
) -> list[RestorativeActivity]:
    """
    Choose up to ``target_count`` restorative activities for ``state``.

    Args:
        state: Current budget state
        catalog: Activities to draw from (duplicate ids are ignored)
        target_count: Maximum number of suggestions
        rng: Random source with ``choice``; a fresh random.Random if omitted
        settings: Recovery thresholds
        helper_domains: Depleted domain -> domains that can help it

    Returns:
        Unique activities, highest energy_restore_percent first
    """
    if isinstance(target_count, bool) or not isinstance(target_count, int) or target_count < 0:
        raise ValidationError(f"target_count must be a non-negative integer, got {target_count!r}")

    settings = settings or RecoverySettings()
    helper_domains = helper_domains or DEFAULT_HELPER_DOMAINS
    rng = rng or random.Random()

    pool: list[RestorativeActivity] = []
    seen_ids: set[str] = set()
    for activity in catalog:
        if activity.id not in seen_ids:
            pool.append(activity)
            seen_ids.add(activity.id)

    selected: list[RestorativeActivity] = []
    selected_ids: set[str] = set()

    def draw(candidates: list[RestorativeActivity]) -> None:
        available = [a for a in candidates if a.id not in selected_ids]
        if available and len(selected) < target_count:
            choice = rng.choice(available)
            selected.append(choice)
            selected_ids.add(choice.id)

    depleted = [
        d for d, b in state.domains.items()
        if b.status in (BudgetStatus.DEPLETED, BudgetStatus.OVERDRAWN)
    ]
    for domain in depleted:
        for helper in helper_domains.get(domain, []):
            if state.domains[helper].status == BudgetStatus.HEALTHY:
                draw([a for a in pool if a.domain == helper])

    if state.total.ratio < settings.low_total_ratio:
        draw([a for a in pool if a.energy_restore_percent >= settings.high_restore_threshold])

    while len(selected) < target_count:
        before = len(selected)
        draw(pool)
        if len(selected) == before:
            break

    selected.sort(key=lambda a: a.energy_restore_percent, reverse=True)
    return selected


class RecoveryTracker:
    """
    Completes suggestions against a ledger.

    ``restored_today`` is the sum of restore percents completed through
    this tracker. It lives only as long as the tracker and is not part of
    the persisted budget.
    """

    def __init__(self, ledger: BudgetLedger):
        self.ledger = ledger
        self.completed: list[str] = []
        self.restored_today = 0

    async def complete(self, activity: RestorativeActivity) -> bool:
        """Log ``activity`` as restoration. Returns False if already completed here."""
        if activity.id in self.completed:
            return False

        await self.ledger.log_activity(activity.id, activity.domain, activity.restore_cost)

        self.completed.append(activity.id)
        self.restored_today += activity.energy_restore_percent
        logger.info(
            f"Recovery {activity.id} completed for {self.ledger.user_id} "
            f"(+{activity.energy_restore_percent}%, {self.restored_today}% today)"
        )
        return True


__all__ = ["RandomSource", "RecoveryTracker", "select_suggestions"]
