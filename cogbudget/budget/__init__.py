"""
Budget - per-domain cognitive energy accounting

    models.py: Domain, DomainBudget, CognitiveBudgetState, ActivityLogEntry
    store.py:  Append-only activity log (SQLite or in-memory)
    ledger.py: BudgetLedger - the per-user materialized view over the log
"""

from cogbudget.budget.models import (
    DOMAINS,
    ActivityLogEntry,
    BudgetAdvice,
    BudgetStatus,
    BudgetTotals,
    CognitiveBudgetState,
    Domain,
    DomainBudget,
)

__all__ = [
    "DOMAINS",
    "ActivityLogEntry",
    "BudgetAdvice",
    "BudgetStatus",
    "BudgetTotals",
    "CognitiveBudgetState",
    "Domain",
    "DomainBudget",
]
