"""Pull-based crop growth.

Nothing here keeps a timer.  Maturity is always recomputed from the planting
timestamp and the caller's ``now``, so pausing or reloading a game never
skews growth: a crop planted an hour ago is an hour old.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..catalog import Catalog
    from ..runtime.config import EngineConfig
    from ..state import GameState, PlantedCrop

SECONDS_PER_MINUTE: float = 60.0
MIN_GROWTH_MULTIPLIER: float = 0.1


def maturity(planted_at: float, growth_duration: float, now: float) -> float:
    """Return the growth fraction in ``[0, 1]``."""

    if growth_duration <= 0:
        return 1.0
    elapsed = float(now) - float(planted_at)
    if elapsed <= 0:
        return 0.0
    return min(1.0, elapsed / float(growth_duration))


def is_mature(planted_at: float, growth_duration: float, now: float) -> bool:
    return maturity(planted_at, growth_duration, now) >= 1.0


def growth_multiplier(state: "GameState", catalog: "Catalog", *, crop_id: str, era_id: str, config: "EngineConfig") -> float:
    """Combined growth-time multiplier from upgrades, synergies and rare seeds."""

    from ..runtime.synergy import synergy_effect

    multiplier = 1.0
    for upgrade in catalog.upgrades_for(era_id, "cropGrowth"):
        if upgrade.crop_id is not None and upgrade.crop_id != crop_id:
            continue
        level = state.upgrade_levels.get(upgrade.upgrade_id, 0)
        if level > 0:
            multiplier *= upgrade.effect_at(level)
    for upgrade in catalog.permanent_upgrades_for("globalGrowth"):
        level = state.permanent_upgrade_levels.get(upgrade.upgrade_id, 0)
        if level > 0:
            multiplier *= upgrade.effect_at(level)
    for synergy in catalog.synergies_for(era_id, "growthTime"):
        multiplier *= 1.0 - synergy_effect(synergy, state.synergy_stats)
    if crop_id in state.rare_seeds:
        multiplier *= config.rare_seed_growth_multiplier
    return max(MIN_GROWTH_MULTIPLIER, multiplier)


def effective_growth_time(state: "GameState", catalog: "Catalog", planted: "PlantedCrop", *, config: "EngineConfig") -> float:
    crop = catalog.crop(planted.crop_id)
    if crop is None:
        return 0.0
    return crop.growth_time * growth_multiplier(
        state, catalog, crop_id=planted.crop_id, era_id=planted.era_id, config=config
    )


def crop_maturity(state: "GameState", catalog: "Catalog", planted: "PlantedCrop", now: float, *, config: "EngineConfig") -> float:
    return maturity(planted.planted_at, effective_growth_time(state, catalog, planted, config=config), now)


def remaining_seconds(state: "GameState", catalog: "Catalog", planted: "PlantedCrop", now: float, *, config: "EngineConfig") -> float:
    duration = effective_growth_time(state, catalog, planted, config=config)
    return max(0.0, planted.planted_at + duration - float(now))


__all__ = [
    "MIN_GROWTH_MULTIPLIER",
    "SECONDS_PER_MINUTE",
    "crop_maturity",
    "effective_growth_time",
    "growth_multiplier",
    "is_mature",
    "maturity",
    "remaining_seconds",
]
