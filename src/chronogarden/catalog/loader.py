"""Load and validate catalog documents.

Catalog content is authored as YAML (see ``default_catalog.yaml``).  Each
section is a list of rows; every row is checked against the structural
contracts in :mod:`chronogarden.interfaces.contracts` before being normalised
into frozen dataclasses.  Cross references (crop -> era, visitor -> quest,
upgrade -> era) are verified afterwards so that a half-valid catalog never
reaches the engine.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping

import yaml

from ..interfaces.contracts import validate_catalog_row
from .models import (
    AutomationRuleSpec,
    CostCurve,
    CropSpec,
    EffectCurve,
    EraSpec,
    GoalSpec,
    LoreEntry,
    PermanentUpgradeSpec,
    PrestigeTier,
    QuestSpec,
    QuestTrigger,
    ResourceSpec,
    RewardSpec,
    SynergySpec,
    UpgradeSpec,
    VisitorSpec,
    WeatherSpec,
)
from .registry import Catalog

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent / "default_catalog.yaml"

REWARD_KINDS = frozenset({"chronoEnergy", "rareSeed", "resource"})
QUEST_TRIGGER_KINDS = frozenset({"harvestCrop", "growWhileWeather", "buildAutomation"})
UPGRADE_TARGETS = frozenset({"cropGrowth", "cropCost", "waterCost", "cropYield"})
PERMANENT_UPGRADE_TARGETS = frozenset({"globalGrowth", "rareSeedChance"})
SYNERGY_TARGETS = frozenset({"waterCost", "growthTime", "chronoEnergyYield"})
# Lifetime stats the engine maintains; per-era harvest counters come on top.
LIFETIME_STATS = frozenset(
    {
        "totalCropsHarvested",
        "prestigeCount",
        "rareSeedsFoundCount",
        "totalChronoEnergyEarned",
        "unlockedErasCount",
        "questsCompletedCount",
    }
)


class CatalogError(ValueError):
    """Raised when catalog data is missing fields or references unknown ids."""


def _rows(raw: Mapping[str, Any], section: str) -> List[Mapping[str, Any]]:
    rows = raw.get(section) or []
    if not isinstance(rows, list):
        raise CatalogError(f"Section '{section}' must be a list")
    for index, row in enumerate(rows):
        try:
            validate_catalog_row(section, row)
        except (TypeError, ValueError) as exc:
            raise CatalogError(f"{section}[{index}]: {exc}") from exc
    return rows


def _amounts(raw: Mapping[str, Any]) -> Dict[str, float]:
    return {str(key): float(value) for key, value in raw.items()}


def _reward(raw: Mapping[str, Any], *, where: str) -> RewardSpec:
    try:
        validate_catalog_row("reward", raw)
    except (TypeError, ValueError) as exc:
        raise CatalogError(f"{where}.reward: {exc}") from exc
    kind = raw["type"]
    if kind not in REWARD_KINDS:
        raise CatalogError(f"{where}.reward: unknown reward type '{kind}'")
    if kind == "resource" and not raw.get("resource_id"):
        raise CatalogError(f"{where}.reward: resource rewards need a resource_id")
    return RewardSpec(kind=kind, amount=float(raw.get("amount", 0.0)), resource_id=raw.get("resource_id"))


def _cost_curve(raw: Mapping[str, Any], *, where: str) -> CostCurve:
    base = raw.get("base")
    if not isinstance(base, Mapping):
        raise CatalogError(f"{where}: cost curve needs a 'base' mapping")
    return CostCurve(base=_amounts(base), growth=_amounts(raw.get("growth") or {}))


def _effect_curve(raw: Mapping[str, Any]) -> EffectCurve:
    return EffectCurve(base=float(raw.get("base", 0.0)), per_level=float(raw.get("per_level", 0.0)))


def _ids(items: Iterable[Any]) -> tuple[str, ...]:
    return tuple(str(item) for item in items)


def build_catalog(raw: Mapping[str, Any]) -> Catalog:
    """Normalise a parsed catalog document into a :class:`Catalog`."""

    if not isinstance(raw, Mapping):
        raise CatalogError("Catalog document must be a mapping")

    resources = {
        row["id"]: ResourceSpec(
            resource_id=row["id"],
            name=row["name"],
            description=row.get("description", ""),
            initial_amount=float(row.get("initial_amount", 0.0)),
            tradable=bool(row.get("tradable", False)),
        )
        for row in _rows(raw, "resources")
    }

    eras: Dict[str, EraSpec] = {}
    crops: Dict[str, CropSpec] = {}
    for era_row in _rows(raw, "eras"):
        era_id = era_row["id"]
        crop_ids: List[str] = []
        for index, crop_row in enumerate(era_row["crops"]):
            try:
                validate_catalog_row("crops", crop_row)
            except (TypeError, ValueError) as exc:
                raise CatalogError(f"eras[{era_id}].crops[{index}]: {exc}") from exc
            crop_id = crop_row["id"]
            if crop_id in crops:
                raise CatalogError(f"Crop '{crop_id}' is defined in more than one era")
            if float(crop_row["growth_time"]) < 0:
                raise CatalogError(f"Crop '{crop_id}' has a negative growth time")
            crops[crop_id] = CropSpec(
                crop_id=crop_id,
                name=crop_row["name"],
                era_id=era_id,
                growth_time=float(crop_row["growth_time"]),
                cost=_amounts(crop_row["cost"]),
                yield_=_amounts(crop_row["yield"]),
                description=crop_row.get("description", ""),
                unlock_cost=float(crop_row["unlock_cost"]) if crop_row.get("unlock_cost") is not None else None,
                rare_seed_eligible=bool(crop_row.get("rare_seed_eligible", False)),
                tradable_seed=bool(crop_row.get("tradable_seed", False)),
            )
            crop_ids.append(crop_id)
        eras[era_id] = EraSpec(
            era_id=era_id,
            name=era_row["name"],
            unlock_cost=float(era_row["unlock_cost"]),
            crop_ids=tuple(crop_ids),
            resource_ids=_ids(era_row.get("resources") or ()),
            description=era_row.get("description", ""),
            special_mechanic=era_row.get("special_mechanic"),
        )

    starting_era = str(raw.get("starting_era", "Present"))
    if starting_era not in eras:
        raise CatalogError(f"Starting era '{starting_era}' is not defined")

    automation_rules = {
        row["id"]: AutomationRuleSpec(
            rule_id=row["id"],
            name=row["name"],
            cost=_amounts(row["cost"]),
            description=row.get("description", ""),
            effect=row.get("effect", ""),
            era_id=row.get("era"),
        )
        for row in _rows(raw, "automation_rules")
    }

    upgrades = {
        row["id"]: UpgradeSpec(
            upgrade_id=row["id"],
            name=row["name"],
            max_level=int(row["max_level"]),
            cost=_cost_curve(row["cost"], where=f"upgrades[{row['id']}]"),
            effect=_effect_curve(row["effect"]),
            applies_to=row["applies_to"],
            era_id=row["era"],
            description=row.get("description", ""),
            crop_id=row.get("crop"),
        )
        for row in _rows(raw, "upgrades")
    }

    permanent_upgrades = {
        row["id"]: PermanentUpgradeSpec(
            upgrade_id=row["id"],
            name=row["name"],
            max_level=int(row["max_level"]),
            chrono_energy=_cost_curve(row["chrono_energy"], where=f"permanent_upgrades[{row['id']}]"),
            rare_seeds=_cost_curve(row["rare_seeds"], where=f"permanent_upgrades[{row['id']}]"),
            effect=_effect_curve(row["effect"]),
            applies_to=row["applies_to"],
            description=row.get("description", ""),
        )
        for row in _rows(raw, "permanent_upgrades")
    }

    synergies = {
        row["id"]: SynergySpec(
            synergy_id=row["id"],
            name=row["name"],
            stat=row["stat"],
            threshold=float(row["threshold"]),
            effect_per_level=float(row["effect_per_level"]),
            applies_to=row["applies_to"],
            target_era_id=row["target_era"],
            max_levels=row.get("max_levels"),
            description=row.get("description", ""),
        )
        for row in _rows(raw, "synergies")
    }

    goals = {
        row["id"]: GoalSpec(
            goal_id=row["id"],
            name=row["name"],
            stat=row["stat"],
            target=float(row["target"]),
            reward=_reward(row["reward"], where=f"goals[{row['id']}]"),
            description=row.get("description", ""),
        )
        for row in _rows(raw, "goals")
    }

    quests: Dict[str, QuestSpec] = {}
    for row in _rows(raw, "quests"):
        trigger_raw = row["trigger"]
        kind = trigger_raw.get("type")
        if kind not in QUEST_TRIGGER_KINDS:
            raise CatalogError(f"quests[{row['id']}]: unknown trigger type '{kind}'")
        quests[row["id"]] = QuestSpec(
            quest_id=row["id"],
            title=row["title"],
            target_amount=float(row["target_amount"]),
            trigger=QuestTrigger(
                kind=kind,
                crop_id=trigger_raw.get("crop_id"),
                era_id=trigger_raw.get("era_id"),
                weather_id=trigger_raw.get("weather_id"),
                rule_id=trigger_raw.get("rule_id"),
            ),
            reward=_reward(row["reward"], where=f"quests[{row['id']}]"),
            duration_minutes=float(row["duration_minutes"]) if row.get("duration_minutes") is not None else None,
            description=row.get("description", ""),
            dialogue={str(k): str(v) for k, v in (row.get("dialogue") or {}).items()},
        )

    visitors = {
        row["id"]: VisitorSpec(
            visitor_id=row["id"],
            name=row["name"],
            era_id=row["era"],
            spawn_chance=float(row["spawn_chance"]),
            quest_ids=_ids(row.get("quests") or ()),
            description=row.get("description", ""),
        )
        for row in _rows(raw, "visitors")
    }

    weather = {
        row["id"]: WeatherSpec(weather_id=row["id"], name=row["name"], description=row.get("description", ""))
        for row in _rows(raw, "weather")
    }

    lore = {
        row["id"]: LoreEntry(
            lore_id=row["id"],
            title=row["title"],
            text=row["text"],
            stat=row["stat"],
            threshold=float(row["threshold"]),
        )
        for row in _rows(raw, "lore")
    }

    tiers = tuple(
        PrestigeTier(tier_id=row["id"], name=row["name"], min_prestige=int(row["min_prestige"]))
        for row in _rows(raw, "prestige_tiers")
    )

    catalog = Catalog(
        starting_era=starting_era,
        resources=resources,
        eras=eras,
        crops=crops,
        automation_rules=automation_rules,
        upgrades=upgrades,
        permanent_upgrades=permanent_upgrades,
        synergies=synergies,
        goals=goals,
        quests=quests,
        visitors=visitors,
        weather=weather,
        lore=lore,
        prestige_tiers=tiers,
    )
    _check_references(catalog)
    return catalog


def _check_references(catalog: Catalog) -> None:
    problems: List[str] = []
    for rule in catalog.automation_rules.values():
        if rule.era_id is not None and rule.era_id not in catalog.eras:
            problems.append(f"automation rule '{rule.rule_id}' references unknown era '{rule.era_id}'")
    for upgrade in catalog.upgrades.values():
        if upgrade.era_id not in catalog.eras:
            problems.append(f"upgrade '{upgrade.upgrade_id}' references unknown era '{upgrade.era_id}'")
        if upgrade.applies_to not in UPGRADE_TARGETS:
            problems.append(f"upgrade '{upgrade.upgrade_id}' applies to unknown target '{upgrade.applies_to}'")
        if upgrade.crop_id is not None:
            crop = catalog.crops.get(upgrade.crop_id)
            if crop is None:
                problems.append(f"upgrade '{upgrade.upgrade_id}' targets unknown crop '{upgrade.crop_id}'")
            elif crop.era_id != upgrade.era_id:
                problems.append(f"upgrade '{upgrade.upgrade_id}' targets crop '{upgrade.crop_id}' outside its era")
    for nexus in catalog.permanent_upgrades.values():
        if nexus.applies_to not in PERMANENT_UPGRADE_TARGETS:
            problems.append(f"permanent upgrade '{nexus.upgrade_id}' applies to unknown target '{nexus.applies_to}'")
    stats = LIFETIME_STATS | set(catalog.synergy_stat_names())
    for synergy in catalog.synergies.values():
        if synergy.target_era_id not in catalog.eras:
            problems.append(f"synergy '{synergy.synergy_id}' targets unknown era '{synergy.target_era_id}'")
        if synergy.threshold <= 0:
            problems.append(f"synergy '{synergy.synergy_id}' needs a positive threshold")
        if synergy.applies_to not in SYNERGY_TARGETS:
            problems.append(f"synergy '{synergy.synergy_id}' applies to unknown target '{synergy.applies_to}'")
        if synergy.stat not in stats:
            problems.append(f"synergy '{synergy.synergy_id}' tracks unknown stat '{synergy.stat}'")
    for goal in catalog.goals.values():
        if goal.stat not in stats:
            problems.append(f"goal '{goal.goal_id}' tracks unknown stat '{goal.stat}'")
        if goal.reward.resource_id is not None and goal.reward.resource_id not in catalog.resources:
            problems.append(f"goal '{goal.goal_id}' rewards unknown resource '{goal.reward.resource_id}'")
    for entry in catalog.lore.values():
        if entry.stat not in stats:
            problems.append(f"lore '{entry.lore_id}' tracks unknown stat '{entry.stat}'")
    for visitor in catalog.visitors.values():
        if visitor.era_id not in catalog.eras:
            problems.append(f"visitor '{visitor.visitor_id}' references unknown era '{visitor.era_id}'")
        for quest_id in visitor.quest_ids:
            if quest_id not in catalog.quests:
                problems.append(f"visitor '{visitor.visitor_id}' offers unknown quest '{quest_id}'")
    for quest in catalog.quests.values():
        trigger = quest.trigger
        if trigger.crop_id is not None and trigger.crop_id not in catalog.crops:
            problems.append(f"quest '{quest.quest_id}' tracks unknown crop '{trigger.crop_id}'")
        if trigger.weather_id is not None and trigger.weather_id not in catalog.weather:
            problems.append(f"quest '{quest.quest_id}' needs unknown weather '{trigger.weather_id}'")
        if trigger.rule_id is not None and trigger.rule_id not in catalog.automation_rules:
            problems.append(f"quest '{quest.quest_id}' tracks unknown automation '{trigger.rule_id}'")
    if problems:
        raise CatalogError("; ".join(problems))


def load_catalog_string(text: str) -> Catalog:
    try:
        raw = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise CatalogError(f"Catalog is not valid YAML: {exc}") from exc
    return build_catalog(raw)


def load_catalog(path: Path | str | None = None) -> Catalog:
    """Load a catalog document from ``path`` (the bundled catalog by default)."""

    target = Path(path) if path is not None else DEFAULT_CATALOG_PATH
    with open(target, "r", encoding="utf-8") as fp:
        text = fp.read()
    return load_catalog_string(text)


@lru_cache(maxsize=1)
def default_catalog() -> Catalog:
    return load_catalog(DEFAULT_CATALOG_PATH)


__all__ = [
    "CatalogError",
    "DEFAULT_CATALOG_PATH",
    "LIFETIME_STATS",
    "PERMANENT_UPGRADE_TARGETS",
    "SYNERGY_TARGETS",
    "UPGRADE_TARGETS",
    "build_catalog",
    "default_catalog",
    "load_catalog",
    "load_catalog_string",
]
