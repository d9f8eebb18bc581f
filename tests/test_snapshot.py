from __future__ import annotations

import json

import pytest

from chronogarden import ProgressionEngine, SnapshotValidationError, default_catalog, initial_state
from chronogarden.runtime.actions import AddAutomationRule, PlantCrop, SetPlayerName
from chronogarden.runtime.snapshot import (
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


def _played_state():
    engine = ProgressionEngine(default_catalog(), seed=1)
    engine.dispatch(SetPlayerName(name="Ada"), now=0.0)
    engine.dispatch(PlantCrop(crop_id="carrot", era_id="Present"), now=1.0)
    engine.dispatch(PlantCrop(crop_id="tomato", era_id="Present"), now=2.0)
    engine.dispatch(AddAutomationRule(rule_id="sprinkler"), now=3.0)
    return engine.state


def test_record_round_trip_is_lossless():
    state = _played_state()
    restored = loads(dumps(state), default_catalog())
    assert to_record(restored) == to_record(state)
    assert state_signature(restored) == state_signature(state)


def test_save_and_load_plain_and_gzip(tmp_path):
    state = _played_state()
    plain = tmp_path / "garden.json"
    packed = tmp_path / "garden.json.gz"
    digest = save_state(state, plain)
    assert save_state(state, packed, gzip_output=True) == digest
    assert state_signature(load_state(plain, default_catalog())) == digest
    assert state_signature(load_state(packed, default_catalog())) == digest


def test_missing_required_field_is_rejected():
    record = to_record(_played_state())
    del record["player_name"]
    with pytest.raises(SnapshotValidationError):
        from_record(record, default_catalog())


def test_invalid_records_are_rejected():
    with pytest.raises(SnapshotValidationError):
        loads("{not json", default_catalog())

    record = to_record(_played_state())
    record["planted_crops"][0]["crop_id"] = "pumpkin"
    with pytest.raises(SnapshotValidationError):
        from_record(record, default_catalog())

    record = to_record(_played_state())
    record["planted_crops"].append(dict(record["planted_crops"][0]))
    with pytest.raises(SnapshotValidationError):
        from_record(record, default_catalog())

    record = to_record(_played_state())
    record["schema_version"] = "chronogarden_state_v0"
    with pytest.raises(SnapshotValidationError):
        from_record(record, default_catalog())


def test_empty_plot_slots_and_optional_fields():
    record = {
        "player_name": "Ada",
        "garden_name": "Acre",
        "current_era": "Present",
        "planted_crops": [None, {"crop_id": "carrot", "era_id": "Present", "planted_at": 4.0}, None],
    }
    state = from_record(record, default_catalog())
    assert [p.crop_id for p in state.planted_crops] == ["carrot"]
    assert state.resources == default_catalog().initial_resources()
    assert state.next_instance_seq >= 1
    assert state.last_visitor_check is None


def test_too_many_planted_crops_are_rejected():
    rows = [{"crop_id": "carrot", "era_id": "Present", "planted_at": 0.0} for _ in range(10)]
    record = {"player_name": "Ada", "garden_name": "Acre", "current_era": "Present", "planted_crops": rows}
    with pytest.raises(SnapshotValidationError):
        from_record(record, default_catalog())


def test_garden_code_shares_layout_only():
    source = _played_state()
    code = export_garden_code(source)
    payload = json.loads(code)
    assert len(payload["planted_crops"]) == 9
    assert payload["planted_crops"][2] is None

    target = initial_state(default_catalog())
    imported = import_garden_code(code, target, default_catalog())
    assert imported.player_name == "Ada"
    assert [p.crop_id for p in imported.planted_crops] == ["carrot", "tomato"]
    assert [p.instance_id for p in imported.planted_crops] == ["plant-0", "plant-1"]
    assert imported.resources == target.resources
    assert target.planted_crops == []


def test_garden_code_for_locked_era_leaves_state_untouched():
    code = json.dumps(
        {"player_name": "Grok", "garden_name": "Cave", "current_era": "Prehistoric", "planted_crops": []}
    )
    target = initial_state(default_catalog())
    before = state_signature(target)
    with pytest.raises(SnapshotValidationError):
        import_garden_code(code, target, default_catalog())
    assert state_signature(target) == before

    with pytest.raises(SnapshotValidationError):
        import_garden_code('{"player_name": "Ada"}', target, default_catalog())


def test_null_optional_fields_take_initial_values():
    record = to_record(_played_state())
    for key in ("prestige_count", "chrono_energy", "soil_quality", "total_crops_harvested", "last_tick",
                "next_instance_seq", "resources", "synergy_stats", "active_quest", "current_visitor_id"):
        record[key] = None
    state = from_record(record, default_catalog())
    assert state.prestige_count == 0
    assert state.chrono_energy == 0.0
    assert state.soil_quality == initial_state(default_catalog()).soil_quality
    assert state.resources == default_catalog().initial_resources()
    assert state.active_quest is None
    assert state.next_instance_seq >= 3


def test_non_finite_numbers_are_rejected():
    for key, value in [("soil_quality", float("nan")), ("chrono_energy", float("inf")), ("last_tick", float("nan"))]:
        record = to_record(_played_state())
        record[key] = value
        with pytest.raises(SnapshotValidationError):
            from_record(record, default_catalog())

    record = to_record(_played_state())
    record["resources"]["Seeds"] = float("nan")
    with pytest.raises(SnapshotValidationError):
        from_record(record, default_catalog())

    record = to_record(_played_state())
    record["chrono_energy"] = "lots"
    with pytest.raises(SnapshotValidationError):
        from_record(record, default_catalog())


def test_unknown_visitor_and_quest_ids_are_rejected():
    record = to_record(_played_state())
    record["current_visitor_id"] = "ghost"
    with pytest.raises(SnapshotValidationError, match="ghost"):
        from_record(record, default_catalog())

    record = to_record(_played_state())
    record["current_visitor_id"] = "farmerGiles"
    record["active_quest"] = {"visitor_id": "farmerGiles", "quest_id": "fetchUnicorn", "progress": 1.0}
    with pytest.raises(SnapshotValidationError, match="fetchUnicorn"):
        from_record(record, default_catalog())

    record["active_quest"] = {"visitor_id": "farmerGiles", "quest_id": "farmerTomatoes", "progress": 1.0}
    state = from_record(record, default_catalog())
    assert state.current_visitor_id == "farmerGiles"
    assert state.active_quest.quest_id == "farmerTomatoes"
