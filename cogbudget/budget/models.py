"""
Budget Data Models

Domains, per-domain budgets and the activity log entry that drives them.
Everything here is derived or immutable: the only mutable thing in the
ledger is the list of log entries.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from cogbudget.errors import ValidationError


# Values are rounded before status classification so that float noise
# (0.25 - 0.1 - 0.15) cannot flip a zero balance into Overdrawn.
ROUND_DIGITS = 9


class Domain(StrEnum):
    """Fixed partition of cognitive capacity."""

    WORK = "work"
    HEALTH = "health"
    SOCIAL = "social"
    LEARNING = "learning"


DOMAINS: tuple[Domain, ...] = tuple(Domain)


class BudgetStatus(StrEnum):
    HEALTHY = "healthy"
    DEPLETED = "depleted"
    OVERDRAWN = "overdrawn"


def parse_domain(value: Any) -> Domain:
    """Coerce a string to a Domain, raising ValidationError on anything else."""
    if isinstance(value, Domain):
        return value
    if isinstance(value, str):
        try:
            return Domain(value.strip().lower())
        except ValueError:
            pass
    valid = ", ".join(d.value for d in DOMAINS)
    raise ValidationError(f"Invalid domain: {value!r}. Must be one of: {valid}")


def validate_cost(cost: Any, max_abs_cost: float = 1.0) -> float:
    """
    Check an energy cost.

    Positive costs spend, negative costs restore. Booleans and non-finite
    numbers are rejected, as is anything outside [-max_abs_cost, max_abs_cost].
    """
    if isinstance(cost, bool) or not isinstance(cost, (int, float)):
        raise ValidationError(f"Cost must be a number, got {type(cost).__name__}")
    cost = float(cost)
    if not math.isfinite(cost):
        raise ValidationError(f"Cost must be finite, got {cost}")
    if abs(cost) > max_abs_cost:
        raise ValidationError(f"Cost {cost} outside [-{max_abs_cost}, {max_abs_cost}]")
    return cost


def classify(remaining: float, capacity: float, healthy_ratio: float = 0.3) -> BudgetStatus:
    """Status from remaining/capacity: >= healthy_ratio healthy, >= 0 depleted, else overdrawn."""
    ratio = remaining / capacity
    if ratio >= healthy_ratio:
        return BudgetStatus.HEALTHY
    if ratio >= 0:
        return BudgetStatus.DEPLETED
    return BudgetStatus.OVERDRAWN


@dataclass(frozen=True)
class DomainBudget:
    """Capacity, spend and what is left for one domain."""

    domain: Domain
    capacity: float
    spent: float
    remaining: float
    status: BudgetStatus

    @classmethod
    def compute(
        cls, domain: Domain, capacity: float, spent: float, healthy_ratio: float = 0.3
    ) -> DomainBudget:
        spent = round(spent, ROUND_DIGITS)
        # Restoration never lifts a domain above its capacity
        remaining = round(min(capacity - spent, capacity), ROUND_DIGITS)
        return cls(
            domain=domain,
            capacity=capacity,
            spent=spent,
            remaining=remaining,
            status=classify(remaining, capacity, healthy_ratio),
        )

    @property
    def ratio(self) -> float:
        return self.remaining / self.capacity

    def to_dict(self) -> dict[str, Any]:
        return {
            "domain": self.domain.value,
            "capacity": self.capacity,
            "spent": self.spent,
            "remaining": self.remaining,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class BudgetTotals:
    capacity: float
    spent: float
    remaining: float

    @classmethod
    def from_domains(cls, domains: dict[Domain, DomainBudget]) -> BudgetTotals:
        budgets = list(domains.values())
        return cls(
            capacity=round(sum(b.capacity for b in budgets), ROUND_DIGITS),
            spent=round(sum(b.spent for b in budgets), ROUND_DIGITS),
            remaining=round(sum(b.remaining for b in budgets), ROUND_DIGITS),
        )

    @property
    def ratio(self) -> float:
        return self.remaining / self.capacity if self.capacity else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"capacity": self.capacity, "spent": self.spent, "remaining": self.remaining}


@dataclass
class CognitiveBudgetState:
    """Materialized ledger view for one user."""

    user_id: str
    domains: dict[Domain, DomainBudget]
    total: BudgetTotals
    recommendations: list[str] = field(default_factory=list)
    last_updated: datetime | None = None
    version: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "domains": {d.value: b.to_dict() for d, b in self.domains.items()},
            "total": self.total.to_dict(),
            "recommendations": list(self.recommendations),
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
            "version": self.version,
        }


@dataclass(frozen=True)
class ActivityLogEntry:
    """One energy-affecting event. cost > 0 spends, cost < 0 restores."""

    user_id: str
    activity_id: str
    domain: Domain
    cost: float
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "activity_id": self.activity_id,
            "domain": self.domain.value,
            "cost": self.cost,
            "created_at": self.timestamp.isoformat(),
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> ActivityLogEntry:
        created_at = row["created_at"]
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        return cls(
            user_id=row["user_id"],
            activity_id=row["activity_id"],
            domain=Domain(row["domain"]),
            cost=float(row["cost"]),
            timestamp=created_at,
        )


@dataclass(frozen=True)
class BudgetAdvice:
    """Whether to go ahead with an activity in a given domain."""

    proceed: bool
    alternative: Domain | None = None
    reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "proceed": self.proceed,
            "alternative": self.alternative.value if self.alternative else None,
            "reason": self.reason,
        }
