from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class Tier(StrEnum):
    SCOUTER = "scouter"
    PRODUCER = "producer"
    ICON = "icon"


@dataclass(frozen=True)
class TierLimits:
    # None means unlimited.
    max_saved_items: int | None
    max_collections: int | None
    premium: bool


TIER_LIMITS: dict[Tier, TierLimits] = {
    Tier.SCOUTER: TierLimits(max_saved_items=3, max_collections=3, premium=False),
    Tier.PRODUCER: TierLimits(max_saved_items=1000, max_collections=10, premium=False),
    Tier.ICON: TierLimits(max_saved_items=None, max_collections=None, premium=True),
}


def parse_tier(raw: str | None) -> Tier:
    if not raw:
        return Tier.SCOUTER
    try:
        return Tier(raw.strip().lower())
    except ValueError:
        return Tier.SCOUTER


def _remaining(limit: int | None, current: int) -> int | None:
    if limit is None:
        return None
    return max(0, limit - int(current))


class FeaturePolicy:
    def __init__(self, tier: Tier = Tier.SCOUTER) -> None:
        self.tier = tier
        self.limits = TIER_LIMITS[tier]

    @property
    def max_saved_items(self) -> int | None:
        return self.limits.max_saved_items

    @property
    def max_collections(self) -> int | None:
        return self.limits.max_collections

    @property
    def has_advanced_search(self) -> bool:
        return self.limits.premium

    @property
    def has_cloud_sync(self) -> bool:
        return self.limits.premium

    @property
    def has_ai_access(self) -> bool:
        return self.limits.premium

    def can_save(self, current_count: int) -> bool:
        limit = self.max_saved_items
        return limit is None or int(current_count) < limit

    def can_create_collection(self, current_count: int) -> bool:
        limit = self.max_collections
        return limit is None or int(current_count) < limit

    def remaining_saves(self, current_count: int) -> int | None:
        return _remaining(self.max_saved_items, current_count)

    def remaining_collections(self, current_count: int) -> int | None:
        return _remaining(self.max_collections, current_count)

    def snapshot(self, *, saved_items: int, collections: int) -> dict[str, Any]:
        return {
            "tier": self.tier.value,
            "max_saved_items": self.max_saved_items,
            "max_collections": self.max_collections,
            "remaining_saves": self.remaining_saves(saved_items),
            "remaining_collections": self.remaining_collections(collections),
            "has_advanced_search": self.has_advanced_search,
            "has_cloud_sync": self.has_cloud_sync,
            "has_ai_access": self.has_ai_access,
        }
