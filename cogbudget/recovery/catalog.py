"""
Restorative activity catalog.

Static reference data: short activities that give energy back to a
domain. Completing one is logged as a negative cost of
``energy_restore_percent / 100``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from cogbudget.budget.models import Domain


@dataclass(frozen=True)
class RestorativeActivity:
    id: str
    domain: Domain
    energy_restore_percent: int
    duration_label: str
    title: str = ""
    description: str = ""

    @property
    def restore_cost(self) -> float:
        """Ledger cost for completing this activity (negative)."""
        return -self.energy_restore_percent / 100

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "domain": self.domain.value,
            "energy_restore_percent": self.energy_restore_percent,
            "duration_label": self.duration_label,
            "title": self.title,
            "description": self.description,
        }


DEFAULT_CATALOG: tuple[RestorativeActivity, ...] = (
    # Health / physical
    RestorativeActivity(
        "walk", Domain.HEALTH, 15, "10 min",
        "Take a Walk", "A 10-minute walk outdoors can reset your mental state",
    ),
    RestorativeActivity(
        "stretch", Domain.HEALTH, 10, "5 min",
        "Desk Stretches", "Quick stretches to release tension and improve circulation",
    ),
    RestorativeActivity(
        "breathing", Domain.HEALTH, 12, "3 min",
        "Box Breathing", "4 seconds in, hold, out, hold. Repeat for calm focus",
    ),
    RestorativeActivity(
        "hydrate", Domain.HEALTH, 5, "1 min",
        "Hydrate", "Drink a full glass of water - dehydration drains energy",
    ),
    RestorativeActivity(
        "sunlight", Domain.HEALTH, 10, "5 min",
        "Get Sunlight", "Step outside for natural light to boost alertness",
    ),
    # Social
    RestorativeActivity(
        "chat", Domain.SOCIAL, 10, "5 min",
        "Social Break", "Brief casual chat with someone you like",
    ),
    RestorativeActivity(
        "call", Domain.SOCIAL, 15, "10 min",
        "Quick Call", "Call a friend or family member for connection",
    ),
    # Learning / mental
    RestorativeActivity(
        "read", Domain.LEARNING, 10, "15 min",
        "Leisure Reading", "Read something light and enjoyable, not work-related",
    ),
    RestorativeActivity(
        "music", Domain.LEARNING, 8, "5 min",
        "Listen to Music", "Put on a favorite song or calming playlist",
    ),
    # Work
    RestorativeActivity(
        "coffee", Domain.WORK, 10, "10 min",
        "Coffee Break", "Step away for a proper coffee or tea break",
    ),
    RestorativeActivity(
        "eyes", Domain.WORK, 5, "1 min",
        "20-20-20 Rule", "Look at something 20 feet away for 20 seconds",
    ),
    RestorativeActivity(
        "nature", Domain.WORK, 7, "2 min",
        "Nature View", "Look at plants or nature photos to reduce stress",
    ),
    # Deep recovery
    RestorativeActivity(
        "meditation", Domain.HEALTH, 15, "5 min",
        "Mini Meditation", "Close your eyes and focus on your breath",
    ),
    RestorativeActivity(
        "powernap", Domain.HEALTH, 25, "20 min",
        "Power Nap", "A 15-20 minute nap can significantly restore energy",
    ),
)


def get_activity(activity_id: str, catalog: tuple[RestorativeActivity, ...] = DEFAULT_CATALOG):
    """Catalog entry by id, or None."""
    return next((a for a in catalog if a.id == activity_id), None)


__all__ = ["DEFAULT_CATALOG", "RestorativeActivity", "get_activity"]
