"""Game state snapshot for the ChronoGarden engine.

``GameState`` is owned by the progression engine.  Handlers never mutate the
snapshot they receive: the engine deep-copies it, applies the action to the
copy and hands the copy back, so every snapshot a caller holds stays valid.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional

if TYPE_CHECKING:
    from .catalog import Catalog
    from .runtime.config import EngineConfig


class QuestStatus(Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(slots=True)
class PlantedCrop:
    instance_id: str
    crop_id: str
    era_id: str
    planted_at: float


@dataclass(slots=True)
class AutomationInstance:
    instance_id: str
    rule_id: str
    name: str
    description: str = ""
    effect: str = ""
    era_id: Optional[str] = None


@dataclass(slots=True)
class GoalStatus:
    progress: float = 0.0
    completed: bool = False


@dataclass(slots=True)
class ActiveQuest:
    visitor_id: str
    quest_id: str
    status: QuestStatus = QuestStatus.ACTIVE
    progress: float = 0.0
    start_time: float = 0.0


@dataclass(slots=True)
class GameState:
    current_era: str
    unlocked_eras: List[str]
    chrono_energy: float = 0.0
    resources: Dict[str, float] = field(default_factory=dict)
    planted_crops: List[PlantedCrop] = field(default_factory=list)
    automation_rules: List[AutomationInstance] = field(default_factory=list)
    rare_seeds: List[str] = field(default_factory=list)
    soil_quality: float = 75.0
    upgrade_levels: Dict[str, int] = field(default_factory=dict)
    permanent_upgrade_levels: Dict[str, int] = field(default_factory=dict)
    goal_status: Dict[str, GoalStatus] = field(default_factory=dict)
    synergy_stats: Dict[str, float] = field(default_factory=dict)
    unlocked_lore_ids: List[str] = field(default_factory=list)
    current_visitor_id: Optional[str] = None
    active_quest: Optional[ActiveQuest] = None
    completed_quests: List[str] = field(default_factory=list)
    prestige_count: int = 0
    player_name: str = "Time Gardener"
    garden_name: str = "My ChronoGarden"
    total_crops_harvested: int = 0
    total_chrono_energy_earned: float = 0.0
    current_weather_id: Optional[str] = None
    advisor_suggestion: Optional[str] = None
    last_tick: float = 0.0
    last_visitor_check: Optional[float] = None
    next_instance_seq: int = 0

    def planted(self, instance_id: str) -> Optional[PlantedCrop]:
        for planted in self.planted_crops:
            if planted.instance_id == instance_id:
                return planted
        return None

    def resource(self, resource_id: str) -> float:
        return float(self.resources.get(resource_id, 0.0))

    def next_instance_id(self, prefix: str) -> str:
        seq = self.next_instance_seq
        self.next_instance_seq = seq + 1
        return f"{prefix}-{seq}"


def initial_state(catalog: "Catalog", config: "EngineConfig | None" = None) -> GameState:
    """Fresh game: starting era unlocked, starter resources, zero everything else."""

    from .runtime.config import EngineConfig

    cfg = config or EngineConfig()
    return GameState(
        current_era=catalog.starting_era,
        unlocked_eras=[catalog.starting_era],
        resources=catalog.initial_resources(),
        soil_quality=cfg.initial_soil_quality,
        upgrade_levels={upgrade_id: 0 for upgrade_id in catalog.upgrades},
        permanent_upgrade_levels={upgrade_id: 0 for upgrade_id in catalog.permanent_upgrades},
        goal_status={goal_id: GoalStatus() for goal_id in catalog.goals},
        synergy_stats={stat: 0.0 for stat in catalog.synergy_stat_names()},
        player_name=cfg.default_player_name,
        garden_name=cfg.default_garden_name,
    )


__all__ = [
    "ActiveQuest",
    "AutomationInstance",
    "GameState",
    "GoalStatus",
    "PlantedCrop",
    "QuestStatus",
    "initial_state",
]
