"""Cognitive Budget Test Suite

Test organization:
- unit/: Unit tests for individual modules
  - budget/: Models, activity log stores, ledger (reset, versioning)
  - forecast/: Circadian forecast engine and calendar/history sources
  - recovery/: Restorative catalog, suggestion selector, completion tracker
  - session/: Per-user engine sessions and the cogbudget CLI
  - config/: YAML config models, clock, logging setup

Running tests:
    # All tests
    uv run pytest

    # Specific module
    uv run pytest tests/unit/forecast/

    # With coverage
    uv run pytest --cov=cogbudget --cov-report=term-missing
"""
