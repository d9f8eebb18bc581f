from __future__ import annotations

from chronogarden import ActionStatus, ProgressionEngine, ScriptedRandom, default_catalog, initial_state
from chronogarden.event import AUTOMATION_ADDED, CROP_HARVESTED, CROP_PLANTED, RARE_SEED_FOUND
from chronogarden.runtime.actions import (
    AddAutomationRule,
    GatherWater,
    HarvestCrop,
    PlantCrop,
    RemoveAutomationRule,
    SetWeather,
    Tick,
    UpdateSoilQuality,
)
from chronogarden.runtime.config import EngineConfig
from chronogarden.runtime.snapshot import state_signature
from chronogarden.runtime.upgrades import harvest_yield


def _engine(draws=None, state=None) -> ProgressionEngine:
    rng = ScriptedRandom(draws) if draws is not None else None
    return ProgressionEngine(default_catalog(), state, rng=rng, seed=7)


def test_plant_then_harvest_tomato():
    engine = _engine(draws=[0.5])
    planted = engine.dispatch(PlantCrop(crop_id="tomato", era_id="Present"), now=1000.0)
    assert planted.ok
    assert engine.state.resources["Seeds"] == 9.0
    assert engine.state.resources["Water"] == 42.0
    assert engine.state.soil_quality == 74.5
    assert [p.instance_id for p in engine.state.planted_crops] == ["plant-0"]
    assert [event.kind for event in planted.events] == [CROP_PLANTED]

    before = engine.state
    early = engine.dispatch(HarvestCrop(instance_id="plant-0"), now=1030.0)
    assert early.status is ActionStatus.NOT_MATURE
    assert early.state is before
    assert engine.maturity("plant-0", now=1030.0) == 0.5

    harvested = engine.dispatch(HarvestCrop(instance_id="plant-0"), now=1060.0)
    assert harvested.ok
    state = engine.state
    assert state.resources["Tomato"] == 3.0
    assert state.resources["Seeds"] == 10.0
    assert state.planted_crops == []
    assert state.total_crops_harvested == 1
    assert state.synergy_stats["cropsHarvestedPresent"] == 1.0
    assert "firstSprout" in state.unlocked_lore_ids
    assert state.rare_seeds == []
    assert CROP_HARVESTED in [event.kind for event in harvested.events]


def test_lucky_harvest_finds_rare_seed():
    engine = _engine(draws=[0.001])
    engine.dispatch(PlantCrop(crop_id="carrot", era_id="Present"), now=0.0)
    result = engine.dispatch(HarvestCrop(instance_id="plant-0"), now=30.0)
    assert result.ok
    assert engine.state.rare_seeds == ["carrot"]
    found = [event for event in result.events if event.kind == RARE_SEED_FOUND]
    assert found and found[0].get("crop_id") == "carrot"


def test_owned_rare_seed_skips_the_drop_roll():
    state = initial_state(default_catalog())
    state.rare_seeds.append("carrot")
    engine = _engine(draws=[], state=state)
    engine.dispatch(PlantCrop(crop_id="carrot", era_id="Present"), now=0.0)
    result = engine.dispatch(HarvestCrop(instance_id="plant-0"), now=30.0)
    assert result.ok
    assert engine.rng.calls == []
    assert engine.state.resources["Coins"] == 111.0
    assert engine.state.resources["Carrot"] == 2.0


def test_unaffordable_planting_changes_nothing():
    state = initial_state(default_catalog())
    state.resources["Seeds"] = 0.0
    engine = _engine(state=state)
    signature = state_signature(state)
    result = engine.dispatch(PlantCrop(crop_id="carrot", era_id="Present"), now=5.0)
    assert result.status is ActionStatus.CANNOT_AFFORD
    assert result.state is state
    assert state_signature(engine.state) == signature


def test_planting_checks_era_rules():
    engine = _engine()
    assert engine.dispatch(PlantCrop(crop_id="giantfern", era_id="Prehistoric"), now=0.0).status is ActionStatus.ERA_LOCKED
    assert engine.dispatch(PlantCrop(crop_id="giantfern", era_id="Present"), now=0.0).status is ActionStatus.CROP_NOT_IN_ERA
    assert engine.dispatch(PlantCrop(crop_id="pumpkin", era_id="Present"), now=0.0).status is ActionStatus.UNKNOWN_CROP
    assert engine.dispatch(PlantCrop(crop_id="carrot", era_id="Atlantis"), now=0.0).status is ActionStatus.UNKNOWN_ERA
    assert engine.state.planted_crops == []


def test_rare_seed_can_be_planted_in_any_unlocked_era():
    state = initial_state(default_catalog())
    state.rare_seeds.append("amberfruit")
    engine = _engine(state=state)
    result = engine.dispatch(PlantCrop(crop_id="amberfruit", era_id="Present"), now=0.0)
    assert result.ok
    assert engine.state.resources["Water"] == 20.0


def test_plot_holds_nine_crops():
    engine = _engine()
    results = [engine.dispatch(PlantCrop(crop_id="carrot", era_id="Present"), now=float(i)) for i in range(9)]
    assert all(result.ok for result in results)
    full = engine.dispatch(PlantCrop(crop_id="carrot", era_id="Present"), now=10.0)
    assert full.status is ActionStatus.PLOT_FULL
    assert len(engine.state.planted_crops) == 9
    assert engine.state.soil_quality == 70.5
    assert len({p.instance_id for p in engine.state.planted_crops}) == 9


def test_harvest_unknown_instance_is_rejected():
    engine = _engine()
    assert engine.dispatch(HarvestCrop(instance_id="plant-42"), now=0.0).status is ActionStatus.UNKNOWN_PLANTED_CROP


def test_chrono_energy_yield_goes_to_energy_balance():
    state = initial_state(default_catalog())
    state.unlocked_eras.append("Prehistoric")
    engine = _engine(draws=[0.99], state=state)
    engine.dispatch(PlantCrop(crop_id="amberfruit", era_id="Prehistoric"), now=0.0)
    result = engine.dispatch(HarvestCrop(instance_id="plant-0"), now=200.0)
    assert result.ok
    assert engine.state.chrono_energy == 5.0
    assert engine.state.total_chrono_energy_earned == 5.0
    assert "ChronoEnergy" not in engine.state.resources
    assert engine.state.resources["Amberfruit"] == 2.0
    assert engine.state.synergy_stats["cropsHarvestedPrehistoric"] == 1.0


def test_automation_rules_are_bought_and_removed():
    engine = _engine()
    built = engine.dispatch(AddAutomationRule(rule_id="sprinkler"), now=0.0)
    assert built.ok
    assert engine.state.resources["Coins"] == 50.0
    assert engine.state.resources["Energy"] == 10.0
    assert engine.state.soil_quality == 74.0
    assert [rule.instance_id for rule in engine.state.automation_rules] == ["sprinkler-0"]
    assert [event.kind for event in built.events] == [AUTOMATION_ADDED]

    assert engine.dispatch(AddAutomationRule(rule_id="autoharvester"), now=1.0).status is ActionStatus.CANNOT_AFFORD
    assert engine.dispatch(AddAutomationRule(rule_id="soil_conditioner"), now=1.0).status is ActionStatus.ERA_LOCKED
    assert engine.dispatch(AddAutomationRule(rule_id="teleporter"), now=1.0).status is ActionStatus.UNKNOWN_AUTOMATION

    assert engine.dispatch(RemoveAutomationRule(instance_id="sprinkler-0"), now=2.0).ok
    assert engine.state.automation_rules == []
    assert engine.dispatch(RemoveAutomationRule(instance_id="sprinkler-0"), now=3.0).status is ActionStatus.UNKNOWN_AUTOMATION


def test_tick_adds_sunlight_and_regenerates_soil():
    engine = _engine()
    engine.dispatch(Tick(), now=1000.0)
    assert engine.state.last_tick == 1000.0
    assert engine.state.resources["Sunlight"] == 50.0

    engine.dispatch(Tick(), now=1004.0)
    assert engine.state.resources["Sunlight"] == 50.0
    engine.dispatch(Tick(), now=1005.0)
    assert engine.state.resources["Sunlight"] == 51.0
    assert engine.state.soil_quality == 75.0

    engine.dispatch(Tick(), now=1020.0)
    assert engine.state.resources["Sunlight"] == 52.0
    assert engine.state.soil_quality == 75.25


def test_soil_water_and_weather_actions():
    engine = _engine()
    assert engine.dispatch(GatherWater(), now=0.0).ok
    assert engine.state.resources["Water"] == 60.0

    engine.dispatch(UpdateSoilQuality(delta=40.0), now=0.0)
    assert engine.state.soil_quality == 100.0
    engine.dispatch(UpdateSoilQuality(delta=-250.0), now=0.0)
    assert engine.state.soil_quality == 0.0

    assert engine.dispatch(SetWeather(weather_id="rainy"), now=0.0).ok
    assert engine.state.current_weather_id == "rainy"
    assert engine.dispatch(SetWeather(weather_id="hail"), now=0.0).status is ActionStatus.UNKNOWN_WEATHER
    assert engine.state.current_weather_id == "rainy"


def test_yield_upgrade_scales_only_its_crop():
    state = initial_state(default_catalog())
    state.upgrade_levels["sunflowerBoost_Present"] = 1
    engine = _engine(draws=[0.99, 0.99], state=state)
    engine.dispatch(PlantCrop(crop_id="sunflower", era_id="Present"), now=0.0)
    engine.dispatch(PlantCrop(crop_id="carrot", era_id="Present"), now=0.0)
    assert engine.dispatch(HarvestCrop(instance_id="plant-0"), now=500.0).ok
    assert engine.state.resources["Sunlight"] == 110.0
    assert engine.state.resources["Seeds"] == 10.0
    assert engine.dispatch(HarvestCrop(instance_id="plant-1"), now=500.0).ok
    assert engine.state.resources["Coins"] == 110.0
    assert engine.state.resources["Carrot"] == 2.0


def test_chrono_energy_yield_synergy_and_plain_yields():
    catalog = default_catalog()
    state = initial_state(catalog)
    photonbloom = catalog.crop("photonbloom")
    assert harvest_yield(state, catalog, photonbloom, "Future", EngineConfig()) == {
        "EnergyCredits": 100.0,
        "ChronoEnergy": 20.0,
    }
    state.synergy_stats["cropsHarvestedPresent"] = 50.0
    assert harvest_yield(state, catalog, photonbloom, "Future", EngineConfig()) == {
        "EnergyCredits": 100.0,
        "ChronoEnergy": 22.0,
    }
    tomato = catalog.crop("tomato")
    assert harvest_yield(state, catalog, tomato, "Present", EngineConfig()) == {"Tomato": 3.0, "Seeds": 1.0}
