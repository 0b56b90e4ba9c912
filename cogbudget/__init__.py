"""Cognitive Budget - Energy accounting and forecasting

Philosophy:
    Energy is a budget, not a score.
    Spending in one life domain should be visible before it runs out,
    and recovery should come from the domains that still have room.

Components:
    budget/: Per-domain ledger of spent and restored energy
        - Activity log is the only mutation path
        - Remaining/status are derived, never stored
        - Daily reset at local midnight, history kept

    forecast/: Hourly energy curve for the day ahead
        - Circadian baseline
        - Calendar load (meetings drain, focus blocks protect)
        - Historical samples blended in per hour

    recovery/: Restorative micro-activities
        - Cross-domain suggestions for depleted domains
        - Completing one logs a negative-cost activity

    session.py: Per-user handle tying the pieces together

Database: data/cognition.db
    - cognitive_budget_log: Append-only activity log
    - ledger_versions: Optimistic write versions per user
    - calendar_events: Calendar feed (optional)
    - cognitive_states: Historical energy samples (optional)

Configuration: args/cognition.yaml
"""

from pathlib import Path

# Path constants
PROJECT_ROOT = Path(__file__).parent.parent
PACKAGE_ROOT = Path(__file__).parent
DATA_DIR = PROJECT_ROOT / "data"
ARGS_DIR = PROJECT_ROOT / "args"
CONFIG_PATH = ARGS_DIR / "cognition.yaml"
DB_PATH = DATA_DIR / "cognition.db"

__version__ = "0.1.0"

__all__ = [
    "ARGS_DIR",
    "CONFIG_PATH",
    "DATA_DIR",
    "DB_PATH",
    "PACKAGE_ROOT",
    "PROJECT_ROOT",
    "__version__",
]
