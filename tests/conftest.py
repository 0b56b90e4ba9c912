"""Shared test fixtures for cognitive budget tests.

This module provides common fixtures used across all test modules:
- Database isolation with temporary files
- A fixed clock so day boundaries are under test control
- Seeded random sources for repeatable suggestions
- Standard test user

Usage:
    def test_something(temp_db, fixed_clock):
        ...
"""

import os
import random
import tempfile
from collections.abc import Generator
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

from cogbudget.budget.ledger import BudgetLedger
from cogbudget.budget.store import InMemoryActivityLogStore, SQLiteActivityLogStore
from cogbudget.clock import FixedClock
from cogbudget.config_models import BudgetSettings


# ─────────────────────────────────────────────────────────────────────────────
# Database Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def temp_db() -> Generator[Path, None, None]:
    """Create a temporary database file for testing.

    The database file is automatically deleted after the test completes.

    Yields:
        Path to the temporary database file
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    yield db_path

    # Cleanup
    if db_path.exists():
        os.unlink(db_path)


@pytest.fixture
def memory_store() -> InMemoryActivityLogStore:
    return InMemoryActivityLogStore()


@pytest.fixture
def sqlite_store(temp_db: Path) -> SQLiteActivityLogStore:
    return SQLiteActivityLogStore(temp_db)


# ─────────────────────────────────────────────────────────────────────────────
# Time / Randomness
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def fixed_clock() -> FixedClock:
    """Clock pinned to 2026-10-19 10:30 UTC."""
    return FixedClock(datetime(2026, 10, 19, 10, 30, tzinfo=ZoneInfo("UTC")), "UTC")


@pytest.fixture
def seeded_rng() -> random.Random:
    return random.Random(42)


# ─────────────────────────────────────────────────────────────────────────────
# User / Ledger Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def mock_user_id() -> str:
    """Standard test user ID."""
    return "test_user_123"


@pytest.fixture
def budget_settings() -> BudgetSettings:
    return BudgetSettings()


@pytest.fixture
def ledger(mock_user_id, memory_store, fixed_clock, budget_settings) -> BudgetLedger:
    """Ledger over an in-memory log with default equal-split capacities."""
    return BudgetLedger(mock_user_id, memory_store, clock=fixed_clock, settings=budget_settings)
