"""Cross-era synergies.

Synergy levels are never stored.  They are recomputed from the monotone
``synergy_stats`` counters every time they are read, so a synergy can only
ever grow as the player harvests more.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Dict, Mapping

if TYPE_CHECKING:
    from ..catalog import Catalog, SynergySpec


def synergy_level(spec: "SynergySpec", stats: Mapping[str, float]) -> int:
    value = float(stats.get(spec.stat, 0.0))
    if spec.threshold <= 0 or value <= 0:
        return 0
    level = int(math.floor(value / float(spec.threshold)))
    if spec.max_levels is not None:
        level = min(level, int(spec.max_levels))
    return max(0, level)


def synergy_effect(spec: "SynergySpec", stats: Mapping[str, float]) -> float:
    return synergy_level(spec, stats) * float(spec.effect_per_level)


def synergy_levels(catalog: "Catalog", stats: Mapping[str, float]) -> Dict[str, int]:
    return {synergy_id: synergy_level(spec, stats) for synergy_id, spec in catalog.synergies.items()}


def harvest_stat_name(era_id: str) -> str:
    return f"cropsHarvested{era_id}"


__all__ = ["harvest_stat_name", "synergy_effect", "synergy_level", "synergy_levels"]
