"""Runtime configuration for the progression engine."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping, Tuple

PRESTIGE_GATE_ERA: str = "Modern"
CHRONO_ENERGY_RESOURCE: str = "ChronoEnergy"
WATER_RESOURCE: str = "Water"
SUNLIGHT_RESOURCE: str = "Sunlight"
RARE_SEED_BONUS_RESOURCES: Tuple[str, ...] = ("Coins", "Energy", "Sunlight", CHRONO_ENERGY_RESOURCE, "EnergyCredits")

SOIL_MIN: float = 0.0
SOIL_MAX: float = 100.0


@dataclass(slots=True)
class EngineConfig:
    plot_size: int = 9
    initial_soil_quality: float = 75.0
    plant_soil_cost: float = 0.5
    automation_soil_cost: float = 1.0
    soil_regen_per_minute: float = 0.25
    prestige_gate_era: str = PRESTIGE_GATE_ERA
    nexus_requires_prestige: bool = True
    base_rare_seed_chance: float = 0.01
    rare_seed_growth_multiplier: float = 0.9
    rare_seed_yield_bonus: float = 1.0
    rare_seed_bonus_resources: Tuple[str, ...] = RARE_SEED_BONUS_RESOURCES
    visitor_check_interval: float = 60.0
    sunlight_interval: float = 5.0
    passive_sunlight_amount: float = 1.0
    gather_water_amount: float = 10.0
    default_player_name: str = "Time Gardener"
    default_garden_name: str = "My ChronoGarden"
    activity_log_capacity: int = 500

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "EngineConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise ValueError(f"Unknown engine config keys: {unknown}")
        values = dict(raw)
        if "rare_seed_bonus_resources" in values:
            values["rare_seed_bonus_resources"] = tuple(values["rare_seed_bonus_resources"])
        return cls(**values)


__all__ = [
    "CHRONO_ENERGY_RESOURCE",
    "EngineConfig",
    "PRESTIGE_GATE_ERA",
    "RARE_SEED_BONUS_RESOURCES",
    "SOIL_MAX",
    "SOIL_MIN",
    "SUNLIGHT_RESOURCE",
    "WATER_RESOURCE",
]
