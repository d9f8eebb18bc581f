"""Era upgrades, Chrono Nexus (permanent) upgrades, planting costs and harvest yields."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict

from ..event import UPGRADE_PURCHASED
from ..world.ledger import InsufficientResourceError
from .config import CHRONO_ENERGY_RESOURCE
from .results import ActionStatus, Rejection
from .synergy import synergy_effect

if TYPE_CHECKING:
    from ..catalog import Catalog, CropSpec
    from ..state import GameState
    from .config import EngineConfig
    from .context import EngineContext

MIN_WATER_COST_MULTIPLIER: float = 0.1


def _level_effect(state: "GameState", catalog: "Catalog", era_id: str, applies_to: str, crop_id: str) -> float:
    multiplier = 1.0
    for upgrade in catalog.upgrades_for(era_id, applies_to):
        if upgrade.crop_id is not None and upgrade.crop_id != crop_id:
            continue
        level = state.upgrade_levels.get(upgrade.upgrade_id, 0)
        if level > 0:
            multiplier *= upgrade.effect_at(level)
    return multiplier


def plant_cost(state: "GameState", catalog: "Catalog", crop: "CropSpec", era_id: str) -> Dict[str, float]:
    """Resources consumed by planting ``crop`` in ``era_id`` right now.

    ``cropCost`` upgrades scale every entry; ``waterCost`` upgrades and
    synergies scale Water only.  Amounts are rounded to whole units.
    """

    cost_multiplier = _level_effect(state, catalog, era_id, "cropCost", crop.crop_id)
    water_multiplier = 1.0
    for synergy in catalog.synergies_for(crop.era_id, "waterCost"):
        water_multiplier -= synergy_effect(synergy, state.synergy_stats)
    water_multiplier = max(MIN_WATER_COST_MULTIPLIER, water_multiplier)
    water_multiplier *= _level_effect(state, catalog, era_id, "waterCost", crop.crop_id)

    final: Dict[str, float] = {}
    for resource_id, amount in crop.cost.items():
        multiplier = cost_multiplier
        if resource_id == "Water":
            multiplier *= water_multiplier
        rounded = max(0.0, float(round(float(amount) * multiplier)))
        if rounded > 0:
            final[resource_id] = rounded
    return final


def harvest_yield(
    state: "GameState", catalog: "Catalog", crop: "CropSpec", era_id: str, config: "EngineConfig"
) -> Dict[str, float]:
    """Resources credited by harvesting ``crop`` planted in ``era_id``.

    ``cropYield`` upgrades scale every entry (an upgrade naming a crop only
    scales that crop).  Owning the crop as a rare seed adds a flat bonus to
    the currency-like resources, and ``chronoEnergyYield`` synergies scale
    ChronoEnergy.  Without any of these the result is exactly the configured
    yield; modified amounts are rounded to whole units.
    """

    multiplier = _level_effect(state, catalog, era_id, "cropYield", crop.crop_id)
    energy_multiplier = 1.0
    for synergy in catalog.synergies_for(era_id, "chronoEnergyYield"):
        energy_multiplier += synergy_effect(synergy, state.synergy_stats)
    rare = crop.crop_id in state.rare_seeds

    final: Dict[str, float] = {}
    for resource_id, amount in crop.yield_.items():
        if amount <= 0:
            continue
        value = float(amount) * multiplier
        if rare and resource_id in config.rare_seed_bonus_resources:
            value += config.rare_seed_yield_bonus
        if resource_id == CHRONO_ENERGY_RESOURCE:
            value *= energy_multiplier
        if value != float(amount):
            value = float(round(value))
        if value > 0:
            final[resource_id] = value
    return final


def rare_seed_chance(state: "GameState", catalog: "Catalog", config: "EngineConfig") -> float:
    chance = config.base_rare_seed_chance
    for upgrade in catalog.permanent_upgrades_for("rareSeedChance"):
        level = state.permanent_upgrade_levels.get(upgrade.upgrade_id, 0)
        if level > 0:
            chance += upgrade.effect_at(level)
    return max(0.0, min(1.0, chance))


def purchase_upgrade(ctx: "EngineContext", upgrade_id: str) -> int:
    upgrade = ctx.catalog.upgrades.get(upgrade_id)
    if upgrade is None:
        raise Rejection(ActionStatus.UNKNOWN_UPGRADE, f"no upgrade '{upgrade_id}'")
    state = ctx.state
    if upgrade.era_id not in state.unlocked_eras:
        raise Rejection(ActionStatus.ERA_LOCKED, f"era '{upgrade.era_id}' is locked")
    level = state.upgrade_levels.get(upgrade_id, 0)
    if level >= upgrade.max_level:
        raise Rejection(ActionStatus.MAX_LEVEL, f"'{upgrade_id}' is at max level {upgrade.max_level}")
    cost = {resource_id: amount for resource_id, amount in upgrade.cost_at(level).items() if amount > 0}
    try:
        ctx.ledger.debit_many(cost)
    except InsufficientResourceError as exc:
        raise Rejection(ActionStatus.CANNOT_AFFORD, str(exc)) from exc
    state.upgrade_levels[upgrade_id] = level + 1
    ctx.emit(UPGRADE_PURCHASED, upgrade_id=upgrade_id, level=level + 1, permanent=False)
    return level + 1


def purchase_permanent_upgrade(ctx: "EngineContext", upgrade_id: str) -> int:
    upgrade = ctx.catalog.permanent_upgrades.get(upgrade_id)
    if upgrade is None:
        raise Rejection(ActionStatus.UNKNOWN_UPGRADE, f"no permanent upgrade '{upgrade_id}'")
    state = ctx.state
    if ctx.config.nexus_requires_prestige and state.prestige_count < 1:
        raise Rejection(ActionStatus.PRESTIGE_REQUIRED, "the Chrono Nexus opens after the first prestige")
    level = state.permanent_upgrade_levels.get(upgrade_id, 0)
    if level >= upgrade.max_level:
        raise Rejection(ActionStatus.MAX_LEVEL, f"'{upgrade_id}' is at max level {upgrade.max_level}")
    cost = upgrade.cost_at(level)
    if len(state.rare_seeds) < cost.rare_seeds or state.chrono_energy < cost.chrono_energy:
        raise Rejection(
            ActionStatus.CANNOT_AFFORD,
            f"needs {cost.rare_seeds} rare seeds and {cost.chrono_energy:g} chrono-energy",
        )
    # Oldest seeds are consumed first.
    del state.rare_seeds[: cost.rare_seeds]
    state.chrono_energy -= cost.chrono_energy
    state.permanent_upgrade_levels[upgrade_id] = level + 1
    ctx.emit(UPGRADE_PURCHASED, upgrade_id=upgrade_id, level=level + 1, permanent=True)
    return level + 1


__all__ = [
    "MIN_WATER_COST_MULTIPLIER",
    "harvest_yield",
    "plant_cost",
    "purchase_permanent_upgrade",
    "purchase_upgrade",
    "rare_seed_chance",
]
