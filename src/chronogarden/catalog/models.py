"""Static catalog records describing eras, crops and the progression tree.

Every record is a frozen dataclass: the catalog is loaded once and never
mutated.  Cost and effect curves are plain data so that the whole catalog can
live in a YAML document, while the engine evaluates them as pure functions of
the current level.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple


@dataclass(frozen=True, slots=True)
class ResourceSpec:
    resource_id: str
    name: str
    description: str = ""
    initial_amount: float = 0.0
    tradable: bool = False


@dataclass(frozen=True, slots=True)
class CropSpec:
    crop_id: str
    name: str
    era_id: str
    growth_time: float
    cost: Mapping[str, float] = field(default_factory=dict)
    yield_: Mapping[str, float] = field(default_factory=dict)
    description: str = ""
    unlock_cost: Optional[float] = None
    rare_seed_eligible: bool = False
    tradable_seed: bool = False


@dataclass(frozen=True, slots=True)
class EraSpec:
    era_id: str
    name: str
    unlock_cost: float
    crop_ids: Tuple[str, ...] = ()
    resource_ids: Tuple[str, ...] = ()
    description: str = ""
    special_mechanic: Optional[str] = None


@dataclass(frozen=True, slots=True)
class AutomationRuleSpec:
    rule_id: str
    name: str
    cost: Mapping[str, float] = field(default_factory=dict)
    description: str = ""
    effect: str = ""
    era_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class CostCurve:
    """Geometric cost curve: ``base[r] * growth[r] ** level`` per resource."""

    base: Mapping[str, float]
    growth: Mapping[str, float] = field(default_factory=dict)

    def at(self, level: int) -> Dict[str, float]:
        return {
            resource_id: float(amount) * float(self.growth.get(resource_id, 1.0)) ** int(level)
            for resource_id, amount in self.base.items()
        }


@dataclass(frozen=True, slots=True)
class EffectCurve:
    """Linear effect curve: ``base + per_level * level``."""

    base: float = 0.0
    per_level: float = 0.0

    def at(self, level: int) -> float:
        return float(self.base) + float(self.per_level) * int(level)


@dataclass(frozen=True, slots=True)
class UpgradeSpec:
    upgrade_id: str
    name: str
    max_level: int
    cost: CostCurve
    effect: EffectCurve
    applies_to: str
    era_id: str
    description: str = ""
    crop_id: Optional[str] = None

    def cost_at(self, level: int) -> Dict[str, float]:
        return self.cost.at(level)

    def effect_at(self, level: int) -> float:
        return self.effect.at(level)


@dataclass(frozen=True, slots=True)
class PermanentCost:
    rare_seeds: int
    chrono_energy: float


@dataclass(frozen=True, slots=True)
class PermanentUpgradeSpec:
    upgrade_id: str
    name: str
    max_level: int
    chrono_energy: CostCurve
    rare_seeds: CostCurve
    effect: EffectCurve
    applies_to: str
    description: str = ""

    def cost_at(self, level: int) -> PermanentCost:
        seeds = self.rare_seeds.at(level).get("rare_seeds", 0.0)
        energy = self.chrono_energy.at(level).get("chrono_energy", 0.0)
        return PermanentCost(rare_seeds=int(round(seeds)), chrono_energy=float(energy))

    def effect_at(self, level: int) -> float:
        return self.effect.at(level)


@dataclass(frozen=True, slots=True)
class SynergySpec:
    synergy_id: str
    name: str
    stat: str
    threshold: float
    effect_per_level: float
    applies_to: str
    target_era_id: str
    max_levels: Optional[int] = None
    description: str = ""


@dataclass(frozen=True, slots=True)
class RewardSpec:
    kind: str  # chronoEnergy | rareSeed | resource
    amount: float = 0.0
    resource_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class GoalSpec:
    goal_id: str
    name: str
    stat: str
    target: float
    reward: RewardSpec
    description: str = ""


@dataclass(frozen=True, slots=True)
class QuestTrigger:
    kind: str  # harvestCrop | growWhileWeather | buildAutomation
    crop_id: Optional[str] = None
    era_id: Optional[str] = None
    weather_id: Optional[str] = None
    rule_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class QuestSpec:
    quest_id: str
    title: str
    target_amount: float
    trigger: QuestTrigger
    reward: RewardSpec
    duration_minutes: Optional[float] = None
    description: str = ""
    dialogue: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class VisitorSpec:
    visitor_id: str
    name: str
    era_id: str
    spawn_chance: float
    quest_ids: Tuple[str, ...] = ()
    description: str = ""


@dataclass(frozen=True, slots=True)
class LoreEntry:
    lore_id: str
    title: str
    text: str
    stat: str
    threshold: float


@dataclass(frozen=True, slots=True)
class PrestigeTier:
    tier_id: str
    name: str
    min_prestige: int


@dataclass(frozen=True, slots=True)
class WeatherSpec:
    weather_id: str
    name: str
    description: str = ""


__all__ = [
    "AutomationRuleSpec",
    "CostCurve",
    "CropSpec",
    "EffectCurve",
    "EraSpec",
    "GoalSpec",
    "LoreEntry",
    "PermanentCost",
    "PermanentUpgradeSpec",
    "PrestigeTier",
    "QuestSpec",
    "QuestTrigger",
    "ResourceSpec",
    "RewardSpec",
    "SynergySpec",
    "UpgradeSpec",
    "VisitorSpec",
    "WeatherSpec",
]
