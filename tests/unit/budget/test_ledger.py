"""Tests for cogbudget/budget/ledger.py

The ledger is a materialized view over the activity log. Key behavior:
- Spend/restore accounting with remaining clamped at capacity
- Status derived from remaining/capacity only
- Cross-domain recommendations, most depleted first
- Daily reset at local midnight with history kept
- Optimistic versioning across sessions
"""

import time
from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from cogbudget.budget.ledger import (
    ACTIVITY_COSTS,
    BudgetLedger,
    advise,
    build_domains,
    generate_recommendations,
    materialize,
    most_depleted_domain,
    replay,
)
from cogbudget.budget.models import DOMAINS, BudgetStatus, Domain
from cogbudget.budget.store import InMemoryActivityLogStore
from cogbudget.clock import FixedClock
from cogbudget.config_models import BudgetSettings
from cogbudget.errors import ConflictError, StorageError, ValidationError


# ─────────────────────────────────────────────────────────────────────────────
# Fresh state and basic accounting
# ─────────────────────────────────────────────────────────────────────────────


class TestFreshState:
    @pytest.mark.asyncio
    async def test_fresh_user_has_full_budget(self, ledger):
        state = await ledger.get_budget_state()

        for domain in DOMAINS:
            budget = state.domains[domain]
            assert budget.capacity == 0.25
            assert budget.remaining == 0.25
            assert budget.status == BudgetStatus.HEALTHY
        assert state.total.remaining / state.total.capacity == pytest.approx(1.0)
        assert state.recommendations == []
        assert state.version == 0

    @pytest.mark.asyncio
    async def test_total_capacity_is_sum_of_domains(self, ledger):
        state = await ledger.get_budget_state()
        assert state.total.capacity == pytest.approx(sum(b.capacity for b in state.domains.values()))


class TestLogActivity:
    @pytest.mark.asyncio
    async def test_deep_work_overdraws_equal_split(self, ledger):
        await ledger.log_activity("deep_work", "work", 0.3)
        state = await ledger.get_budget_state()

        work = state.domains[Domain.WORK]
        assert work.spent == pytest.approx(0.3)
        assert work.remaining == pytest.approx(-0.05)
        assert work.status == BudgetStatus.OVERDRAWN
        assert state.total.remaining == pytest.approx(0.7)

    @pytest.mark.asyncio
    async def test_deep_work_depletes_when_capacity_matches(
        self, mock_user_id, memory_store, fixed_clock
    ):
        settings = BudgetSettings(
            capacities={"work": 0.3, "health": 0.25, "social": 0.25, "learning": 0.2}
        )
        ledger = BudgetLedger(mock_user_id, memory_store, clock=fixed_clock, settings=settings)

        await ledger.log_activity("deep_work", "work", 0.3)
        state = await ledger.get_budget_state()

        work = state.domains[Domain.WORK]
        assert work.remaining == 0
        assert work.status == BudgetStatus.DEPLETED
        assert state.total.remaining == pytest.approx(0.7)

    @pytest.mark.asyncio
    async def test_restoration_clamps_at_capacity(self, ledger):
        await ledger.log_activity("deep_work", "work", 0.3)
        await ledger.log_activity("coffee_break", "health", -0.05)
        state = await ledger.get_budget_state()

        assert state.domains[Domain.HEALTH].remaining == 0.25

    @pytest.mark.asyncio
    async def test_spend_then_restore_round_trip(self, ledger):
        before = (await ledger.get_budget_state()).domains[Domain.LEARNING].remaining
        await ledger.log_activity("reading", "learning", 0.15)
        await ledger.log_activity("rest", "learning", -0.15)
        after = (await ledger.get_budget_state()).domains[Domain.LEARNING].remaining

        assert after == pytest.approx(before)

    @pytest.mark.asyncio
    async def test_logging_is_not_idempotent(self, ledger):
        await ledger.log_activity("email", "work", 0.05)
        await ledger.log_activity("email", "work", 0.05)
        state = await ledger.get_budget_state()

        assert state.domains[Domain.WORK].spent == pytest.approx(0.1)
        assert state.version == 2

    @pytest.mark.asyncio
    async def test_state_reflects_write_without_reread(self, ledger):
        await ledger.log_activity("meeting", "work", 0.15)
        assert ledger.get_recommendations() == []
        await ledger.log_activity("decision", "work", 0.2)

        assert ledger.get_recommendations()
        assert "Work energy overdrawn" in ledger.get_recommendations()[0]

    @pytest.mark.asyncio
    async def test_known_activity_fills_domain_and_cost(self, ledger):
        entry = await ledger.log_activity("meditation")

        assert entry.domain == Domain.HEALTH
        assert entry.cost == ACTIVITY_COSTS["meditation"][1]

    @pytest.mark.asyncio
    async def test_explicit_values_override_known_activity(self, ledger):
        entry = await ledger.log_activity("meeting", "social", 0.05)
        assert entry.domain == Domain.SOCIAL
        assert entry.cost == 0.05

    @pytest.mark.asyncio
    async def test_unknown_activity_needs_domain_and_cost(self, ledger):
        with pytest.raises(ValidationError):
            await ledger.log_activity("juggling")
        with pytest.raises(ValidationError):
            await ledger.log_activity("juggling", "health")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("domain,cost", [("play", 0.1), ("work", float("nan")), ("work", 2.0)])
    async def test_invalid_input_writes_nothing(
        self, ledger, memory_store, mock_user_id, domain, cost
    ):
        with pytest.raises(ValidationError):
            await ledger.log_activity("x", domain, cost)
        assert await memory_store.version(mock_user_id) == 0

    @pytest.mark.asyncio
    async def test_materialized_view_matches_replay(
        self, ledger, memory_store, mock_user_id, fixed_clock
    ):
        for activity, domain, cost in [
            ("deep_work", "work", 0.3),
            ("walk", "health", -0.15),
            ("networking", "social", 0.25),
            ("course", "learning", 0.1),
            ("meditation", "health", 0.05),
        ]:
            await ledger.log_activity(activity, domain, cost)

        entries = await memory_store.entries_since(mock_user_id, fixed_clock.start_of_day())
        replayed = replay(mock_user_id, entries, ledger.settings)
        current = ledger._state

        for domain in DOMAINS:
            assert current.domains[domain] == replayed.domains[domain]
        assert current.total == replayed.total


class TestStorageFailures:
    @pytest.mark.asyncio
    async def test_append_failure_propagates_and_leaves_state(self, ledger, memory_store):
        await ledger.get_budget_state()
        memory_store.append = AsyncMock(side_effect=StorageError("disk gone"))

        with pytest.raises(StorageError):
            await ledger.log_activity("deep_work", "work", 0.3)

        assert ledger._state.domains[Domain.WORK].spent == 0.0

    @pytest.mark.asyncio
    async def test_read_failure_propagates(self, ledger, memory_store):
        memory_store.entries_since = AsyncMock(side_effect=StorageError("unreachable"))
        with pytest.raises(StorageError):
            await ledger.get_budget_state()

    @pytest.mark.asyncio
    async def test_slow_append_keeps_view_in_step_with_log(self, mock_user_id, fixed_clock):
        class SlowAppendStore(InMemoryActivityLogStore):
            def _append(self, entry, expected_version):
                time.sleep(0.3)
                return super()._append(entry, expected_version)

        store = SlowAppendStore(timeout_seconds=0.05)
        ledger = BudgetLedger(mock_user_id, store, clock=fixed_clock)

        await ledger.log_activity("deep_work", "work", 0.3)

        assert ledger.version == 1
        entries = await store.entries_since(mock_user_id, fixed_clock.start_of_day())
        replayed = replay(mock_user_id, entries, ledger.settings)
        assert ledger._state.domains[Domain.WORK] == replayed.domains[Domain.WORK]
        assert ledger.get_recommendations() == replayed.recommendations

        # The next write carries the right expected version
        await ledger.log_activity("walk", "health", -0.1)
        assert await store.version(mock_user_id) == 2


# ─────────────────────────────────────────────────────────────────────────────
# Daily reset
# ─────────────────────────────────────────────────────────────────────────────


class TestDailyReset:
    @pytest.mark.asyncio
    async def test_new_day_zeroes_spend_and_keeps_history(self, ledger, fixed_clock):
        await ledger.log_activity("deep_work", "work", 0.3)
        yesterday_start = fixed_clock.start_of_day()

        fixed_clock.advance(days=1)
        state = await ledger.get_budget_state()

        assert state.domains[Domain.WORK].spent == 0.0
        assert state.domains[Domain.WORK].status == BudgetStatus.HEALTHY
        history = await ledger.history(yesterday_start)
        assert [e.activity_id for e in history] == ["deep_work"]

    @pytest.mark.asyncio
    async def test_log_after_midnight_starts_fresh(self, ledger, fixed_clock):
        await ledger.log_activity("deep_work", "work", 0.2)
        fixed_clock.set(fixed_clock.start_of_day() + timedelta(days=1, minutes=5))

        await ledger.log_activity("email", "work", 0.05)

        assert ledger._state.domains[Domain.WORK].spent == pytest.approx(0.05)

    @pytest.mark.asyncio
    async def test_reset_follows_local_timezone(self, mock_user_id, memory_store):
        clock = FixedClock(datetime(2026, 10, 19, 23, 30), "America/New_York")
        ledger = BudgetLedger(mock_user_id, memory_store, clock=clock)
        await ledger.log_activity("deep_work", "work", 0.2)

        clock.advance(minutes=45)  # 00:15 local next day
        state = await ledger.get_budget_state()

        assert state.domains[Domain.WORK].spent == 0.0


# ─────────────────────────────────────────────────────────────────────────────
# Concurrent sessions
# ─────────────────────────────────────────────────────────────────────────────


class TestOptimisticVersioning:
    @pytest.mark.asyncio
    async def test_stale_session_is_rejected(self, mock_user_id, memory_store, fixed_clock):
        tab_a = BudgetLedger(mock_user_id, memory_store, clock=fixed_clock)
        tab_b = BudgetLedger(mock_user_id, memory_store, clock=fixed_clock)
        await tab_a.get_budget_state()
        await tab_b.get_budget_state()

        await tab_a.log_activity("email", "work", 0.05)

        with pytest.raises(ConflictError) as exc_info:
            await tab_b.log_activity("meeting", "work", 0.15)
        assert exc_info.value.expected == 0
        assert exc_info.value.actual == 1

    @pytest.mark.asyncio
    async def test_refresh_then_retry_succeeds(self, mock_user_id, memory_store, fixed_clock):
        tab_a = BudgetLedger(mock_user_id, memory_store, clock=fixed_clock)
        tab_b = BudgetLedger(mock_user_id, memory_store, clock=fixed_clock)
        await tab_b.get_budget_state()
        await tab_a.log_activity("email", "work", 0.05)

        with pytest.raises(ConflictError):
            await tab_b.log_activity("meeting", "work", 0.15)
        await tab_b.get_budget_state()
        await tab_b.log_activity("meeting", "work", 0.15)

        state = await tab_a.get_budget_state()
        assert state.domains[Domain.WORK].spent == pytest.approx(0.2)

    @pytest.mark.asyncio
    async def test_users_do_not_share_state(self, memory_store, fixed_clock):
        alice = BudgetLedger("alice", memory_store, clock=fixed_clock)
        bob = BudgetLedger("bob", memory_store, clock=fixed_clock)

        await alice.log_activity("deep_work", "work", 0.3)

        bob_state = await bob.get_budget_state()
        assert bob_state.domains[Domain.WORK].spent == 0.0

    def test_requires_user_id(self, memory_store):
        with pytest.raises(ValidationError):
            BudgetLedger("", memory_store)


# ─────────────────────────────────────────────────────────────────────────────
# Recommendations and advice
# ─────────────────────────────────────────────────────────────────────────────


def _state(spent: dict, settings: BudgetSettings | None = None):
    return materialize("u", {Domain(k): v for k, v in spent.items()}, settings or BudgetSettings())


class TestRecommendations:
    def test_none_when_all_healthy(self):
        domains = build_domains({}, BudgetSettings())
        assert generate_recommendations(domains, BudgetSettings()) == []

    def test_helpers_in_table_order(self):
        settings = BudgetSettings()
        domains = build_domains({Domain.WORK: 0.3}, settings)

        recs = generate_recommendations(domains, settings)

        assert len(recs) == 2
        assert "(health)" in recs[0]
        assert "(social)" in recs[1]

    def test_most_depleted_first(self):
        settings = BudgetSettings()
        # learning depleted (ratio 0.2), work overdrawn (ratio -0.2)
        domains = build_domains({Domain.LEARNING: 0.2, Domain.WORK: 0.3}, settings)

        recs = generate_recommendations(domains, settings)

        assert recs[0].startswith("Work energy overdrawn")
        assert recs[2].startswith("Learning energy depleted")

    def test_only_healthy_helpers_count(self):
        settings = BudgetSettings()
        domains = build_domains({Domain.WORK: 0.3, Domain.HEALTH: 0.2}, settings)

        recs = generate_recommendations(domains, settings)

        assert all("(health)" not in r for r in recs)
        assert any("(social)" in r for r in recs)

    def test_bounded_count(self):
        settings = BudgetSettings()
        domains = build_domains({Domain.WORK: 0.3, Domain.LEARNING: 0.25}, settings)

        assert len(generate_recommendations(domains, settings)) == 3

        settings = BudgetSettings(max_recommendations=1)
        assert len(generate_recommendations(domains, settings)) == 1


class TestAdvice:
    def test_healthy_proceeds(self):
        state = replay("u", [])
        assert advise("work", state).proceed is True

    def test_depleted_proceeds_lightly(self):
        state = _state({"work": 0.2})
        advice = advise(Domain.WORK, state)
        assert advice.proceed is True
        assert "light" in advice.reason

    def test_overdrawn_points_to_healthy_domain(self):
        state = _state({"work": 0.3})
        advice = advise(Domain.WORK, state)
        assert advice.proceed is False
        assert advice.alternative == Domain.HEALTH

    def test_all_overdrawn_recommends_rest(self):
        state = _state({"work": 0.3, "health": 0.3, "social": 0.3, "learning": 0.3})
        advice = advise(Domain.SOCIAL, state)
        assert advice.proceed is False
        assert advice.alternative is None
        assert "rest" in advice.reason

    def test_most_depleted_domain(self):
        state = _state({"social": 0.2, "learning": 0.1})
        assert most_depleted_domain(state) == Domain.SOCIAL
