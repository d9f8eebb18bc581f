"""Action vocabulary accepted by the progression engine.

Every trigger, whether a player click or a timer firing, reaches the engine as
one of these immutable records.  ``verb`` is the stable wire name used by
:func:`action_from_mapping` and by the activity log.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, ClassVar, Dict, Mapping, Type


@dataclass(frozen=True, slots=True)
class Action:
    verb: ClassVar[str] = "action"

    def to_mapping(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["verb"] = self.verb
        return payload


# ---------------------------------------------------------------------------
# Eras and chrono-energy
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SetEra(Action):
    verb: ClassVar[str] = "set_era"
    era_id: str


@dataclass(frozen=True, slots=True)
class UnlockEra(Action):
    verb: ClassVar[str] = "unlock_era"
    era_id: str


@dataclass(frozen=True, slots=True)
class AddEnergy(Action):
    verb: ClassVar[str] = "add_energy"
    amount: float


@dataclass(frozen=True, slots=True)
class SpendEnergy(Action):
    verb: ClassVar[str] = "spend_energy"
    amount: float


@dataclass(frozen=True, slots=True)
class UpdateResource(Action):
    verb: ClassVar[str] = "update_resource"
    resource_id: str
    delta: float


@dataclass(frozen=True, slots=True)
class GatherWater(Action):
    verb: ClassVar[str] = "gather_water"


# ---------------------------------------------------------------------------
# Garden plot
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PlantCrop(Action):
    verb: ClassVar[str] = "plant_crop"
    crop_id: str
    era_id: str


@dataclass(frozen=True, slots=True)
class HarvestCrop(Action):
    verb: ClassVar[str] = "harvest_crop"
    instance_id: str


@dataclass(frozen=True, slots=True)
class AddAutomationRule(Action):
    verb: ClassVar[str] = "add_automation_rule"
    rule_id: str


@dataclass(frozen=True, slots=True)
class RemoveAutomationRule(Action):
    verb: ClassVar[str] = "remove_automation_rule"
    instance_id: str


@dataclass(frozen=True, slots=True)
class UpdateSoilQuality(Action):
    verb: ClassVar[str] = "update_soil_quality"
    delta: float


@dataclass(frozen=True, slots=True)
class SetWeather(Action):
    verb: ClassVar[str] = "set_weather"
    weather_id: str


# ---------------------------------------------------------------------------
# Progression
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PurchaseUpgrade(Action):
    verb: ClassVar[str] = "purchase_upgrade"
    upgrade_id: str


@dataclass(frozen=True, slots=True)
class PurchasePermanentUpgrade(Action):
    verb: ClassVar[str] = "purchase_permanent_upgrade"
    upgrade_id: str


@dataclass(frozen=True, slots=True)
class PrestigeReset(Action):
    verb: ClassVar[str] = "prestige_reset"


# ---------------------------------------------------------------------------
# Visitors and quests
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AcceptQuest(Action):
    verb: ClassVar[str] = "accept_quest"
    visitor_id: str
    quest_id: str


@dataclass(frozen=True, slots=True)
class DismissVisitor(Action):
    verb: ClassVar[str] = "dismiss_visitor"


@dataclass(frozen=True, slots=True)
class CheckVisitorSpawn(Action):
    verb: ClassVar[str] = "check_visitor_spawn"


# ---------------------------------------------------------------------------
# Timers, profile, collaborators
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Tick(Action):
    verb: ClassVar[str] = "tick"


@dataclass(frozen=True, slots=True)
class SetPlayerName(Action):
    verb: ClassVar[str] = "set_player_name"
    name: str


@dataclass(frozen=True, slots=True)
class SetGardenName(Action):
    verb: ClassVar[str] = "set_garden_name"
    name: str


@dataclass(frozen=True, slots=True)
class SetAdvice(Action):
    verb: ClassVar[str] = "set_advice"
    text: str


@dataclass(frozen=True, slots=True)
class ListMarketItem(Action):
    verb: ClassVar[str] = "list_market_item"
    item_type: str  # "seed" | "resource"
    item_id: str
    quantity: float = 1.0


@dataclass(frozen=True, slots=True)
class RestoreMarketItem(Action):
    verb: ClassVar[str] = "restore_market_item"
    item_type: str
    item_id: str
    quantity: float = 1.0


ACTION_TYPES: Dict[str, Type[Action]] = {
    cls.verb: cls
    for cls in (
        SetEra,
        UnlockEra,
        AddEnergy,
        SpendEnergy,
        UpdateResource,
        GatherWater,
        PlantCrop,
        HarvestCrop,
        AddAutomationRule,
        RemoveAutomationRule,
        UpdateSoilQuality,
        SetWeather,
        PurchaseUpgrade,
        PurchasePermanentUpgrade,
        PrestigeReset,
        AcceptQuest,
        DismissVisitor,
        CheckVisitorSpawn,
        Tick,
        SetPlayerName,
        SetGardenName,
        SetAdvice,
        ListMarketItem,
        RestoreMarketItem,
    )
}


def action_from_mapping(raw: Mapping[str, Any]) -> Action:
    """Build an action from ``{"verb": ..., <fields>}``.

    Raises ``ValueError`` for an unknown verb or mismatched fields.
    """

    verb = raw.get("verb")
    cls = ACTION_TYPES.get(str(verb))
    if cls is None:
        raise ValueError(f"Unknown action verb: {verb!r}")
    names = {f.name for f in fields(cls)}
    params = {key: value for key, value in raw.items() if key != "verb"}
    unknown = sorted(set(params) - names)
    if unknown:
        raise ValueError(f"Unexpected fields for {verb}: {unknown}")
    try:
        return cls(**params)
    except TypeError as exc:
        raise ValueError(f"Invalid fields for {verb}: {exc}") from exc


__all__ = [
    "ACTION_TYPES",
    "Action",
    "AcceptQuest",
    "AddAutomationRule",
    "AddEnergy",
    "CheckVisitorSpawn",
    "DismissVisitor",
    "GatherWater",
    "HarvestCrop",
    "ListMarketItem",
    "PlantCrop",
    "PrestigeReset",
    "PurchasePermanentUpgrade",
    "PurchaseUpgrade",
    "RemoveAutomationRule",
    "RestoreMarketItem",
    "SetAdvice",
    "SetEra",
    "SetGardenName",
    "SetPlayerName",
    "SetWeather",
    "SpendEnergy",
    "Tick",
    "UnlockEra",
    "UpdateResource",
    "action_from_mapping",
]
