"""ChronoGarden engine package public façade."""

from .activity_log import ActivityEvent, ActivityLog
from .catalog import Catalog, CatalogError, default_catalog, load_catalog
from .event import EventBus, GameplayEvent
from .runtime import (
    ActionResult,
    ActionStatus,
    EngineConfig,
    Metrics,
    ProgressionEngine,
    RNGService,
    ScriptedRandom,
    SnapshotValidationError,
    reduce,
)
from .state import GameState, initial_state
from .world import ResourceLedger

__all__ = [
    "ActionResult",
    "ActionStatus",
    "ActivityEvent",
    "ActivityLog",
    "Catalog",
    "CatalogError",
    "EngineConfig",
    "EventBus",
    "GameState",
    "GameplayEvent",
    "Metrics",
    "ProgressionEngine",
    "RNGService",
    "ResourceLedger",
    "ScriptedRandom",
    "SnapshotValidationError",
    "default_catalog",
    "initial_state",
    "load_catalog",
    "reduce",
]
