from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from cogbudget import CONFIG_PATH
from cogbudget.budget.models import DOMAINS, Domain

logger = logging.getLogger(__name__)


DEFAULT_HELPER_DOMAINS: dict[Domain, list[Domain]] = {
    Domain.WORK: [Domain.HEALTH, Domain.SOCIAL],
    Domain.HEALTH: [Domain.SOCIAL, Domain.LEARNING],
    Domain.SOCIAL: [Domain.HEALTH, Domain.LEARNING],
    Domain.LEARNING: [Domain.HEALTH, Domain.SOCIAL],
}


# =============================================================================
# budget:
# =============================================================================

class BudgetSettings(BaseModel):
    model_config = ConfigDict(extra="allow")
    capacities: dict[Domain, float] = Field(default_factory=lambda: {d: 0.25 for d in DOMAINS})
    healthy_ratio: float = Field(default=0.3, gt=0.0, le=1.0)
    max_recommendations: int = Field(default=3, ge=0)
    max_abs_cost: float = Field(default=1.0, gt=0.0)
    helper_domains: dict[Domain, list[Domain]] = Field(
        default_factory=lambda: {d: list(h) for d, h in DEFAULT_HELPER_DOMAINS.items()}
    )

    @field_validator("capacities")
    @classmethod
    def _every_domain_positive(cls, value: dict[Domain, float]) -> dict[Domain, float]:
        missing = [d.value for d in DOMAINS if d not in value]
        if missing:
            raise ValueError(f"capacities missing domains: {missing}")
        for domain, capacity in value.items():
            if capacity <= 0:
                raise ValueError(f"capacity for {domain.value} must be > 0")
        # Keep the canonical domain order regardless of YAML key order
        return {d: float(value[d]) for d in DOMAINS}

    @property
    def total_capacity(self) -> float:
        return sum(self.capacities.values())


# =============================================================================
# forecast:
# =============================================================================

class ForecastSettings(BaseModel):
    model_config = ConfigDict(extra="allow")
    start_hour: int = Field(default=6, ge=0, le=23)
    end_hour: int = Field(default=22, ge=0, le=23)
    window_hours: int = Field(default=3, ge=1)
    default_window: tuple[int, int] = Field(default=(9, 12))
    meeting_penalty: float = Field(default=10.0, ge=0)
    focus_bonus: float = Field(default=5.0, ge=0)
    history_limit: int = Field(default=100, ge=0)
    default_sample_budget: float = Field(default=0.7, ge=0.0, le=1.0)
    heavy_day_hours: int = Field(default=4, ge=1)
    dip_threshold: int = Field(default=50, ge=0, le=100)
    dip_hours: tuple[int, int] = Field(default=(14, 16))
    busy_evening_hour: int = Field(default=18, ge=0, le=23)
    busy_evening_events: int = Field(default=2, ge=0)


# =============================================================================
# recovery:
# =============================================================================

class RecoverySettings(BaseModel):
    model_config = ConfigDict(extra="allow")
    default_count: int = Field(default=5, ge=0)
    compact_count: int = Field(default=3, ge=0)
    high_restore_threshold: int = Field(default=15, ge=0)
    low_total_ratio: float = Field(default=0.3, ge=0.0, le=1.0)


# =============================================================================
# storage:
# =============================================================================

class StorageSettings(BaseModel):
    model_config = ConfigDict(extra="allow")
    database_path: str = Field(default="data/cognition.db")
    timeout_seconds: float = Field(default=5.0, gt=0)


class CognitionConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    budget: BudgetSettings = Field(default_factory=BudgetSettings)
    forecast: ForecastSettings = Field(default_factory=ForecastSettings)
    recovery: RecoverySettings = Field(default_factory=RecoverySettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)


# =============================================================================
# load_config
# =============================================================================

def load_config(path: Path | None = None, overrides: dict[str, Any] | None = None) -> CognitionConfig:
    """
    Load args/cognition.yaml into a CognitionConfig.

    A missing file gives defaults. A file that fails validation is logged
    and replaced by defaults so a typo never takes the engine down.
    """
    yaml_path = path or CONFIG_PATH

    try:
        if yaml_path.exists():
            with open(yaml_path) as f:
                raw = yaml.safe_load(f) or {}
        else:
            raw = {}

        raw = raw.get("cognition", raw)
        if overrides:
            raw = {**raw, **overrides}
        return CognitionConfig.model_validate(raw)
    except Exception as e:
        logger.warning(f"Config validation failed for {yaml_path.name}: {e}, using defaults")
        return CognitionConfig()


__all__ = [
    "BudgetSettings",
    "CognitionConfig",
    "DEFAULT_HELPER_DOMAINS",
    "ForecastSettings",
    "RecoverySettings",
    "StorageSettings",
    "load_config",
]
