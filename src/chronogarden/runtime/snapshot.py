"""Persistence codec: plain records <-> :class:`GameState`.

Records are JSON-friendly dictionaries.  Import is all-or-nothing: the record
is validated against :data:`SNAPSHOT_SCHEMA` (and against the catalog when
one is given) before a single field is applied, and any problem surfaces as
:class:`SnapshotValidationError`.
"""

from __future__ import annotations

import copy
import gzip
import json
import math
from hashlib import sha256
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, MutableMapping, Optional

from ..interfaces.contracts import GARDEN_CODE_SCHEMA, PLANTED_CROP_SCHEMA, SNAPSHOT_SCHEMA, PayloadSchema
from ..state import ActiveQuest, AutomationInstance, GameState, GoalStatus, PlantedCrop, QuestStatus, initial_state
from .config import EngineConfig

if TYPE_CHECKING:
    from ..catalog import Catalog

SNAPSHOT_SCHEMA_VERSION = "chronogarden_state_v1"


class SnapshotValidationError(ValueError):
    """Raised when a saved or imported record cannot be applied."""


def _check(schema: PayloadSchema, payload: Any, *, where: str) -> None:
    try:
        schema.validate(payload)
    except (TypeError, ValueError) as exc:
        raise SnapshotValidationError(f"{where}: {exc}") from exc


def _canonical_dumps(data: Mapping[str, Any]) -> str:
    return json.dumps(data, sort_keys=True, separators=(",", ":"))


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


def to_record(state: GameState) -> Dict[str, Any]:
    active = state.active_quest
    return {
        "schema_version": SNAPSHOT_SCHEMA_VERSION,
        "current_era": state.current_era,
        "unlocked_eras": list(state.unlocked_eras),
        "chrono_energy": state.chrono_energy,
        "resources": dict(state.resources),
        "planted_crops": [
            {
                "instance_id": p.instance_id,
                "crop_id": p.crop_id,
                "era_id": p.era_id,
                "planted_at": p.planted_at,
            }
            for p in state.planted_crops
        ],
        "automation_rules": [
            {
                "instance_id": rule.instance_id,
                "rule_id": rule.rule_id,
                "name": rule.name,
                "description": rule.description,
                "effect": rule.effect,
                "era_id": rule.era_id,
            }
            for rule in state.automation_rules
        ],
        "rare_seeds": list(state.rare_seeds),
        "soil_quality": state.soil_quality,
        "upgrade_levels": dict(state.upgrade_levels),
        "permanent_upgrade_levels": dict(state.permanent_upgrade_levels),
        "goal_status": {
            goal_id: {"progress": status.progress, "completed": status.completed}
            for goal_id, status in state.goal_status.items()
        },
        "synergy_stats": dict(state.synergy_stats),
        "unlocked_lore_ids": list(state.unlocked_lore_ids),
        "current_visitor_id": state.current_visitor_id,
        "active_quest": None
        if active is None
        else {
            "visitor_id": active.visitor_id,
            "quest_id": active.quest_id,
            "status": active.status.value,
            "progress": active.progress,
            "start_time": active.start_time,
        },
        "completed_quests": list(state.completed_quests),
        "prestige_count": state.prestige_count,
        "player_name": state.player_name,
        "garden_name": state.garden_name,
        "total_crops_harvested": state.total_crops_harvested,
        "total_chrono_energy_earned": state.total_chrono_energy_earned,
        "current_weather_id": state.current_weather_id,
        "advisor_suggestion": state.advisor_suggestion,
        "last_tick": state.last_tick,
        "last_visitor_check": state.last_visitor_check,
        "next_instance_seq": state.next_instance_seq,
    }


def dumps(state: GameState) -> str:
    return _canonical_dumps(to_record(state))


def state_signature(state: GameState) -> str:
    return sha256(dumps(state).encode("utf-8")).hexdigest()


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------


def _planted_crops(rows: List[Any], catalog: Optional["Catalog"]) -> List[PlantedCrop]:
    planted: List[PlantedCrop] = []
    seen: set[str] = set()
    for index, row in enumerate(rows):
        if row is None:
            continue  # empty plot slot
        _check(PLANTED_CROP_SCHEMA, row, where=f"planted_crops[{index}]")
        if catalog is not None and row["crop_id"] not in catalog.crops:
            raise SnapshotValidationError(f"planted_crops[{index}]: unknown crop '{row['crop_id']}'")
        if catalog is not None and row["era_id"] not in catalog.eras:
            raise SnapshotValidationError(f"planted_crops[{index}]: unknown era '{row['era_id']}'")
        instance_id = row.get("instance_id") or f"plant-import-{index}"
        if instance_id in seen:
            raise SnapshotValidationError(f"planted_crops[{index}]: duplicate instance id '{instance_id}'")
        seen.add(instance_id)
        planted.append(
            PlantedCrop(
                instance_id=instance_id,
                crop_id=row["crop_id"],
                era_id=row["era_id"],
                planted_at=float(row["planted_at"]),
            )
        )
    return planted


def _active_quest(raw: Optional[Mapping[str, Any]]) -> Optional[ActiveQuest]:
    if raw is None:
        return None
    try:
        return ActiveQuest(
            visitor_id=str(raw["visitor_id"]),
            quest_id=str(raw["quest_id"]),
            status=QuestStatus(raw.get("status", QuestStatus.ACTIVE.value)),
            progress=float(raw.get("progress", 0.0)),
            start_time=float(raw.get("start_time", 0.0)),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise SnapshotValidationError(f"active_quest: {exc}") from exc


def _automation_rules(rows: List[Any]) -> List[AutomationInstance]:
    rules: List[AutomationInstance] = []
    for index, row in enumerate(rows):
        if not isinstance(row, Mapping) or "instance_id" not in row or "rule_id" not in row:
            raise SnapshotValidationError(f"automation_rules[{index}]: needs instance_id and rule_id")
        rules.append(
            AutomationInstance(
                instance_id=str(row["instance_id"]),
                rule_id=str(row["rule_id"]),
                name=str(row.get("name") or row["rule_id"]),
                description=str(row.get("description") or ""),
                effect=str(row.get("effect") or ""),
                era_id=row.get("era_id"),
            )
        )
    return rules


def _scalar(record: Mapping[str, Any], key: str, default: Any, cast: Any) -> Any:
    """``cast(record[key])``; a missing or null field gives ``default``."""

    raw = record.get(key)
    if raw is None:
        return default
    value = cast(raw)
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError(f"'{key}' must be finite")
    return value


def _check_catalog_ids(
    catalog: "Catalog",
    visitor_id: Optional[str],
    active_quest: Optional[ActiveQuest],
    rules: List[AutomationInstance],
) -> None:
    if visitor_id is not None and visitor_id not in catalog.visitors:
        raise SnapshotValidationError(f"unknown visitor '{visitor_id}'")
    if active_quest is not None:
        if active_quest.quest_id not in catalog.quests:
            raise SnapshotValidationError(f"active_quest: unknown quest '{active_quest.quest_id}'")
        if active_quest.visitor_id not in catalog.visitors:
            raise SnapshotValidationError(f"active_quest: unknown visitor '{active_quest.visitor_id}'")
    for rule in rules:
        if rule.rule_id not in catalog.automation_rules:
            raise SnapshotValidationError(f"unknown automation rule '{rule.rule_id}'")


def from_record(
    record: Mapping[str, Any],
    catalog: Optional["Catalog"] = None,
    *,
    config: Optional[EngineConfig] = None,
) -> GameState:
    """Rebuild a :class:`GameState`; missing or null optional fields take initial values.

    Every field is converted and checked before the state is touched, so a bad
    record raises :class:`SnapshotValidationError` and never yields a
    half-restored state.
    """

    _check(SNAPSHOT_SCHEMA, record, where="snapshot")
    version = record.get("schema_version") or SNAPSHOT_SCHEMA_VERSION
    if version != SNAPSHOT_SCHEMA_VERSION:
        raise SnapshotValidationError(f"unsupported schema version '{version}'")
    cfg = config or EngineConfig()
    current_era = record["current_era"]
    if catalog is not None and current_era not in catalog.eras:
        raise SnapshotValidationError(f"unknown era '{current_era}'")
    planted = _planted_crops(list(record["planted_crops"]), catalog)
    if len(planted) > cfg.plot_size:
        raise SnapshotValidationError(f"{len(planted)} planted crops exceed the {cfg.plot_size} plot slots")

    if catalog is not None:
        state = initial_state(catalog, cfg)
    else:
        state = GameState(current_era=current_era, unlocked_eras=[current_era], soil_quality=cfg.initial_soil_quality)

    unlocked = [str(era_id) for era_id in record.get("unlocked_eras") or state.unlocked_eras]
    if catalog is not None:
        unknown = [era_id for era_id in unlocked if era_id not in catalog.eras]
        if unknown:
            raise SnapshotValidationError(f"unknown unlocked eras {unknown}")
    if current_era not in unlocked:
        unlocked.append(current_era)

    try:
        goal_status = {
            str(goal_id): GoalStatus(progress=float(raw.get("progress", 0.0)), completed=bool(raw.get("completed", False)))
            for goal_id, raw in (record.get("goal_status") or {}).items()
        }
        resources = {str(k): max(0.0, float(v)) for k, v in (record.get("resources") or {}).items()}
        upgrade_levels = {str(k): int(v) for k, v in (record.get("upgrade_levels") or {}).items()}
        permanent_levels = {str(k): int(v) for k, v in (record.get("permanent_upgrade_levels") or {}).items()}
        synergy_stats = {str(k): float(v) for k, v in (record.get("synergy_stats") or {}).items()}
        if not all(math.isfinite(v) for v in (*resources.values(), *synergy_stats.values())):
            raise ValueError("resources and synergy stats must be finite")
        chrono_energy = max(0.0, _scalar(record, "chrono_energy", 0.0, float))
        soil_quality = min(100.0, max(0.0, _scalar(record, "soil_quality", state.soil_quality, float)))
        prestige_count = max(0, _scalar(record, "prestige_count", 0, int))
        total_crops = max(0, _scalar(record, "total_crops_harvested", 0, int))
        total_energy = max(0.0, _scalar(record, "total_chrono_energy_earned", 0.0, float))
        last_tick = _scalar(record, "last_tick", 0.0, float)
        last_check = _scalar(record, "last_visitor_check", None, float)
        next_seq = _scalar(record, "next_instance_seq", 0, int)
    except (AttributeError, TypeError, ValueError) as exc:
        raise SnapshotValidationError(f"malformed numeric field: {exc}") from exc

    rare_seeds: List[str] = []
    for crop_id in record.get("rare_seeds") or []:
        if str(crop_id) not in rare_seeds:
            rare_seeds.append(str(crop_id))
    rules = _automation_rules(list(record.get("automation_rules") or []))
    visitor_id = record.get("current_visitor_id")
    active_quest = _active_quest(record.get("active_quest"))
    if catalog is not None:
        _check_catalog_ids(catalog, visitor_id, active_quest, rules)

    # Everything validated; apply in one go.
    state.current_era = current_era
    state.unlocked_eras = unlocked
    state.chrono_energy = chrono_energy
    if record.get("resources") is not None:
        state.resources = resources
    state.planted_crops = planted
    state.automation_rules = rules
    state.rare_seeds = rare_seeds
    state.soil_quality = soil_quality
    state.upgrade_levels.update(upgrade_levels)
    state.permanent_upgrade_levels.update(permanent_levels)
    state.goal_status.update(goal_status)
    state.synergy_stats.update(synergy_stats)
    state.unlocked_lore_ids = [str(lore_id) for lore_id in record.get("unlocked_lore_ids") or []]
    state.current_visitor_id = visitor_id
    state.active_quest = active_quest
    state.completed_quests = [str(quest_id) for quest_id in record.get("completed_quests") or []]
    state.prestige_count = prestige_count
    state.player_name = record["player_name"]
    state.garden_name = record["garden_name"]
    state.total_crops_harvested = total_crops
    state.total_chrono_energy_earned = total_energy
    state.current_weather_id = record.get("current_weather_id")
    state.advisor_suggestion = record.get("advisor_suggestion")
    state.last_tick = last_tick
    state.last_visitor_check = last_check
    state.next_instance_seq = max(next_seq, len(planted) + len(state.automation_rules))
    return state


def loads(text: str, catalog: Optional["Catalog"] = None, *, config: Optional[EngineConfig] = None) -> GameState:
    try:
        record = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SnapshotValidationError(f"snapshot is not valid JSON: {exc}") from exc
    return from_record(record, catalog, config=config)


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


def save_state(state: GameState, path: Path | str, *, gzip_output: bool = False) -> str:
    """Write the canonical record to ``path`` and return its sha256 digest."""

    target = Path(path)
    payload = dumps(state).encode("utf-8")
    digest = sha256(payload).hexdigest()
    target.parent.mkdir(parents=True, exist_ok=True)
    if gzip_output:
        with gzip.open(target, "wb") as fp:
            fp.write(payload)
    else:
        with open(target, "wb") as fp:
            fp.write(payload)
    return digest


def load_state(path: Path | str, catalog: Optional["Catalog"] = None, *, config: Optional[EngineConfig] = None) -> GameState:
    target = Path(path)
    if not target.exists():
        raise FileNotFoundError(target)
    if target.suffix.endswith("gz"):
        with gzip.open(target, "rb") as fp:
            raw = fp.read()
    else:
        with open(target, "rb") as fp:
            raw = fp.read()
    return loads(raw.decode("utf-8"), catalog, config=config)


# ---------------------------------------------------------------------------
# Garden codes (layout sharing only)
# ---------------------------------------------------------------------------


def export_garden_code(state: GameState, *, config: Optional[EngineConfig] = None) -> str:
    """Share names, era and plot layout; empty plot slots are ``null``."""

    cfg = config or EngineConfig()
    slots: List[Optional[MutableMapping[str, Any]]] = [
        {"crop_id": p.crop_id, "era_id": p.era_id, "planted_at": p.planted_at} for p in state.planted_crops
    ]
    slots.extend([None] * max(0, cfg.plot_size - len(slots)))
    return _canonical_dumps(
        {
            "player_name": state.player_name,
            "garden_name": state.garden_name,
            "current_era": state.current_era,
            "planted_crops": slots,
        }
    )


def import_garden_code(
    code: str,
    state: GameState,
    catalog: "Catalog",
    *,
    config: Optional[EngineConfig] = None,
) -> GameState:
    """Return a copy of ``state`` with the shared layout applied.

    The era must already be unlocked in ``state``.  ``state`` itself is never
    modified, even when the code is rejected.
    """

    cfg = config or EngineConfig()
    try:
        payload = json.loads(code)
    except json.JSONDecodeError as exc:
        raise SnapshotValidationError(f"garden code is not valid JSON: {exc}") from exc
    _check(GARDEN_CODE_SCHEMA, payload, where="garden code")
    if not payload["player_name"].strip() or not payload["garden_name"].strip():
        raise SnapshotValidationError("garden code: names must not be blank")
    era_id = payload["current_era"]
    if era_id not in catalog.eras:
        raise SnapshotValidationError(f"garden code: unknown era '{era_id}'")
    if era_id not in state.unlocked_eras:
        raise SnapshotValidationError(f"garden code: era '{era_id}' is not unlocked")
    # Shared layouts never carry instance ids; fresh ones are minted below.
    rows = [
        {k: v for k, v in row.items() if k != "instance_id"} if isinstance(row, Mapping) else row
        for row in payload["planted_crops"]
    ]
    planted = _planted_crops(rows, catalog)
    if len(planted) > cfg.plot_size:
        raise SnapshotValidationError(f"garden code: {len(planted)} crops exceed the {cfg.plot_size} plot slots")

    imported = copy.deepcopy(state)
    imported.player_name = payload["player_name"].strip()
    imported.garden_name = payload["garden_name"].strip()
    imported.current_era = era_id
    imported.planted_crops = [
        PlantedCrop(
            instance_id=imported.next_instance_id("plant"),
            crop_id=p.crop_id,
            era_id=p.era_id,
            planted_at=p.planted_at,
        )
        for p in planted
    ]
    return imported


__all__ = [
    "SNAPSHOT_SCHEMA_VERSION",
    "SnapshotValidationError",
    "dumps",
    "export_garden_code",
    "from_record",
    "import_garden_code",
    "load_state",
    "loads",
    "save_state",
    "state_signature",
    "to_record",
]
