"""Working context threaded through a single action application."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..event import EventBus, GameplayEvent
from ..world.ledger import ResourceLedger
from .config import SOIL_MAX, SOIL_MIN, EngineConfig

if TYPE_CHECKING:
    from ..catalog import Catalog
    from ..state import GameState
    from .rng_service import RandomSource


@dataclass
class EngineContext:
    """Everything a handler may touch.

    ``state`` is the engine's private working copy; handlers mutate it freely
    and the engine discards it when the action is rejected.
    """

    state: "GameState"
    catalog: "Catalog"
    config: EngineConfig
    rng: "RandomSource"
    now: float
    bus: EventBus = field(default_factory=EventBus)

    @property
    def ledger(self) -> ResourceLedger:
        # Shares the resource dict with the working state.
        return ResourceLedger(balances=self.state.resources)

    def emit(self, kind: str, **payload: Any) -> GameplayEvent:
        return self.bus.emit(kind, self.now, **payload)

    def credit_energy(self, amount: float) -> None:
        if amount <= 0:
            return
        self.state.chrono_energy += float(amount)
        self.state.total_chrono_energy_earned += float(amount)

    def adjust_soil(self, delta: float) -> float:
        self.state.soil_quality = min(SOIL_MAX, max(SOIL_MIN, self.state.soil_quality + float(delta)))
        return self.state.soil_quality


__all__ = ["EngineContext"]
