"""Crop advisor adapter.

Builds a plain-text description of the garden, asks an advisory client for a
suggestion and relays the answer into the game through ``SetAdvice``.  A
failing client leaves a displayable error string in the state instead of
raising.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Protocol

from ..runtime.actions import SetAdvice
from ..runtime.results import ActionResult

if TYPE_CHECKING:
    from ..catalog import Catalog
    from ..runtime.engine import ProgressionEngine
    from ..state import GameState

ADVICE_ERROR_TEXT = "Error fetching suggestion. Please try again."
KEY_RESOURCES = ("Water", "Sunlight", "Coins", "Energy")


@dataclass(frozen=True, slots=True)
class AdvisoryRequest:
    crop_health_text: str
    automation_config_text: str
    era_id: str


@dataclass(frozen=True, slots=True)
class AdvisoryResponse:
    suggestion_text: str


class AdvisorClient(Protocol):
    def suggest(self, request: AdvisoryRequest) -> AdvisoryResponse: ...


def describe_crop_health(state: "GameState", catalog: "Catalog") -> str:
    era_id = state.current_era
    crops = [
        f"{catalog.crop(p.crop_id).name if catalog.crop(p.crop_id) else p.crop_id} (planted)"
        for p in state.planted_crops
        if p.era_id == era_id
    ]
    key = ", ".join(f"{r}: {math.floor(state.resource(r))}" for r in KEY_RESOURCES)
    era = catalog.era(era_id)
    era_resources = [
        f"{catalog.resources[r].name if r in catalog.resources else r}: {math.floor(state.resource(r))}"
        for r in (era.resource_ids if era else ())
        if state.resource(r) > 0
    ]
    return "\n".join(
        [
            f"Soil Quality: {state.soil_quality:g}%.",
            f"Crops in {era_id}: {', '.join(crops) or 'No crops planted in this era.'}.",
            f"Key Resources: {key}, ChronoEnergy: {math.floor(state.chrono_energy)}.",
            f"{era_id} Era Specific Resources: {', '.join(era_resources) or 'None available'}.",
        ]
    )


def describe_automation(state: "GameState") -> str:
    era_id = state.current_era
    active = [rule.name for rule in state.automation_rules if rule.era_id in (None, era_id)]
    return "\n".join(
        [
            f"Active automations in {era_id}: {', '.join(active) or 'None active in this era.'}.",
            f"Total automations built across all eras: {len(state.automation_rules)}.",
        ]
    )


def build_request(
    state: "GameState",
    catalog: "Catalog",
    *,
    crop_health_override: Optional[str] = None,
    automation_override: Optional[str] = None,
) -> AdvisoryRequest:
    return AdvisoryRequest(
        crop_health_text=crop_health_override or describe_crop_health(state, catalog),
        automation_config_text=automation_override or describe_automation(state),
        era_id=state.current_era,
    )


class HeuristicAdvisor:
    """Offline advisory client built from simple rules of thumb."""

    def __init__(self, state: "GameState", catalog: "Catalog") -> None:
        self.state = state
        self.catalog = catalog

    def suggest(self, request: AdvisoryRequest) -> AdvisoryResponse:
        state = self.state
        tips: List[str] = []
        if state.soil_quality < 50:
            tips.append("Let the soil rest: it regenerates slowly over time.")
        if state.resource("Water") < 20:
            tips.append("Water is running low; gather more before planting.")
        if not any(p.era_id == request.era_id for p in state.planted_crops):
            tips.append(f"Your {request.era_id} plots are empty; plant something quick to keep income flowing.")
        locked = [era for era in self.catalog.eras.values() if era.era_id not in state.unlocked_eras]
        if locked:
            cheapest = min(locked, key=lambda era: era.unlock_cost)
            tips.append(f"Save {cheapest.unlock_cost:g} chrono-energy to open the {cheapest.name} era.")
        if not tips:
            tips.append("Everything looks healthy. Consider another automation rule.")
        return AdvisoryResponse(suggestion_text="\n".join(f"- {tip}" for tip in tips))


@dataclass(slots=True)
class AdviceOutcome:
    ok: bool
    suggestion: Optional[str] = None
    error: Optional[str] = None
    result: Optional[ActionResult] = None


def request_advice(
    engine: "ProgressionEngine",
    client: AdvisorClient,
    *,
    crop_health_override: Optional[str] = None,
    automation_override: Optional[str] = None,
    now: Optional[float] = None,
) -> AdviceOutcome:
    request = build_request(
        engine.state,
        engine.catalog,
        crop_health_override=crop_health_override,
        automation_override=automation_override,
    )
    try:
        response = client.suggest(request)
        text = response.suggestion_text
    except Exception as exc:  # collaborator failure stays at the boundary
        result = engine.dispatch(SetAdvice(text=ADVICE_ERROR_TEXT), now=now)
        return AdviceOutcome(ok=False, error=f"advisor failed: {exc}", result=result)
    result = engine.dispatch(SetAdvice(text=text), now=now)
    return AdviceOutcome(ok=result.ok, suggestion=text, result=result)


__all__ = [
    "ADVICE_ERROR_TEXT",
    "AdviceOutcome",
    "AdvisorClient",
    "AdvisoryRequest",
    "AdvisoryResponse",
    "HeuristicAdvisor",
    "build_request",
    "describe_automation",
    "describe_crop_health",
    "request_advice",
]
