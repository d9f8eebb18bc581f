"""Progression engine runtime: actions, handlers, persistence."""

from .actions import (
    ACTION_TYPES,
    AcceptQuest,
    Action,
    AddAutomationRule,
    AddEnergy,
    CheckVisitorSpawn,
    DismissVisitor,
    GatherWater,
    HarvestCrop,
    ListMarketItem,
    PlantCrop,
    PrestigeReset,
    PurchasePermanentUpgrade,
    PurchaseUpgrade,
    RemoveAutomationRule,
    RestoreMarketItem,
    SetAdvice,
    SetEra,
    SetGardenName,
    SetPlayerName,
    SetWeather,
    SpendEnergy,
    Tick,
    UnlockEra,
    UpdateResource,
    UpdateSoilQuality,
    action_from_mapping,
)
from .config import EngineConfig
from .engine import ProgressionEngine, reduce
from .results import ActionResult, ActionStatus
from .rng_service import RNGConfig, RNGService, RandomSource, ScriptedRandom
from .snapshot import (
    SnapshotValidationError,
    dumps,
    export_garden_code,
    from_record,
    import_garden_code,
    load_state,
    loads,
    save_state,
    state_signature,
    to_record,
)
from .synergy import synergy_effect, synergy_level, synergy_levels
from .telemetry import Metrics

__all__ = [
    "ACTION_TYPES",
    "AcceptQuest",
    "Action",
    "ActionResult",
    "ActionStatus",
    "AddAutomationRule",
    "AddEnergy",
    "CheckVisitorSpawn",
    "DismissVisitor",
    "EngineConfig",
    "GatherWater",
    "HarvestCrop",
    "ListMarketItem",
    "Metrics",
    "PlantCrop",
    "PrestigeReset",
    "ProgressionEngine",
    "PurchasePermanentUpgrade",
    "PurchaseUpgrade",
    "RNGConfig",
    "RNGService",
    "RandomSource",
    "RemoveAutomationRule",
    "RestoreMarketItem",
    "ScriptedRandom",
    "SetAdvice",
    "SetEra",
    "SetGardenName",
    "SetPlayerName",
    "SetWeather",
    "SnapshotValidationError",
    "SpendEnergy",
    "Tick",
    "UnlockEra",
    "UpdateResource",
    "UpdateSoilQuality",
    "action_from_mapping",
    "dumps",
    "export_garden_code",
    "from_record",
    "import_garden_code",
    "load_state",
    "loads",
    "reduce",
    "save_state",
    "state_signature",
    "synergy_effect",
    "synergy_level",
    "synergy_levels",
    "to_record",
]
