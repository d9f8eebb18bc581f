from __future__ import annotations

from chronogarden import ActionStatus, ProgressionEngine, ScriptedRandom, default_catalog, initial_state
from chronogarden.event import CROP_HARVESTED, QUEST_COMPLETED, QUEST_FAILED, VISITOR_ARRIVED, GameplayEvent
from chronogarden.runtime.actions import (
    AcceptQuest,
    AddAutomationRule,
    CheckVisitorSpawn,
    DismissVisitor,
    HarvestCrop,
    PlantCrop,
    Tick,
)
from chronogarden.runtime.quests import trigger_matches
from chronogarden.state import QuestStatus


def _engine_with_visitor(visitor_id: str = "farmerGiles", draws=None) -> ProgressionEngine:
    state = initial_state(default_catalog())
    state.current_visitor_id = visitor_id
    rng = ScriptedRandom(draws) if draws is not None else None
    return ProgressionEngine(default_catalog(), state, rng=rng, seed=5)


def test_visitor_spawn_rolls_in_catalog_order():
    engine = ProgressionEngine(default_catalog(), rng=ScriptedRandom([0.5, 0.05]))
    result = engine.dispatch(CheckVisitorSpawn(), now=100.0)
    assert result.ok
    # Grok lives in the locked Prehistoric era and never rolls.
    assert engine.state.current_visitor_id == "engineerAda"
    assert engine.rng.remaining == 0
    assert [event.kind for event in result.events] == [VISITOR_ARRIVED]

    again = engine.dispatch(CheckVisitorSpawn(), now=500.0)
    assert again.status is ActionStatus.VISITOR_PRESENT


def test_visitor_checks_are_throttled():
    engine = ProgressionEngine(default_catalog(), rng=ScriptedRandom([0.9, 0.9, 0.9, 0.9]))
    quiet = engine.dispatch(CheckVisitorSpawn(), now=100.0)
    assert quiet.ok
    assert engine.state.current_visitor_id is None
    assert engine.state.last_visitor_check == 100.0

    assert engine.dispatch(CheckVisitorSpawn(), now=130.0).status is ActionStatus.NOT_DUE
    assert engine.rng.remaining == 2

    assert engine.dispatch(CheckVisitorSpawn(), now=160.0).ok
    assert engine.rng.remaining == 0
    assert engine.state.last_visitor_check == 160.0


def test_accept_quest_and_reject_a_second_one():
    engine = _engine_with_visitor()
    accepted = engine.dispatch(AcceptQuest(visitor_id="farmerGiles", quest_id="farmerTomatoes"), now=50.0)
    assert accepted.ok
    active = engine.state.active_quest
    assert active.quest_id == "farmerTomatoes"
    assert active.status is QuestStatus.ACTIVE
    assert active.start_time == 50.0

    second = engine.dispatch(AcceptQuest(visitor_id="farmerGiles", quest_id="farmerRainSunflowers"), now=60.0)
    assert second.status is ActionStatus.QUEST_ALREADY_ACTIVE
    assert engine.state.active_quest == active


def test_accept_quest_rejections():
    engine = _engine_with_visitor()
    wrong_visitor = engine.dispatch(AcceptQuest(visitor_id="grok", quest_id="cavemanFerns"), now=0.0)
    assert wrong_visitor.status is ActionStatus.VISITOR_NOT_PRESENT
    not_offered = engine.dispatch(AcceptQuest(visitor_id="farmerGiles", quest_id="cavemanFerns"), now=0.0)
    assert not_offered.status is ActionStatus.UNKNOWN_QUEST

    engine.state.completed_quests.append("farmerTomatoes")
    done = engine.dispatch(AcceptQuest(visitor_id="farmerGiles", quest_id="farmerTomatoes"), now=0.0)
    assert done.status is ActionStatus.QUEST_ALREADY_COMPLETED
    assert engine.state.active_quest is None


def test_harvest_quest_completes_and_pays_out():
    engine = _engine_with_visitor()
    engine.dispatch(AcceptQuest(visitor_id="farmerGiles", quest_id="farmerTomatoes"), now=0.0)
    for _ in range(5):
        assert engine.dispatch(PlantCrop(crop_id="tomato", era_id="Present"), now=10.0).ok

    results = [engine.dispatch(HarvestCrop(instance_id=f"plant-{i}"), now=100.0) for i in range(5)]
    assert all(result.ok for result in results)
    assert engine.state.active_quest.progress == 5.0
    assert engine.state.active_quest.status is QuestStatus.COMPLETED
    assert engine.state.completed_quests == ["farmerTomatoes"]
    assert engine.state.resources["Coins"] == 250.0
    assert QUEST_COMPLETED in [event.kind for event in results[-1].events]

    dismissed = engine.dispatch(DismissVisitor(), now=120.0)
    assert dismissed.ok
    assert engine.state.current_visitor_id is None
    assert engine.state.active_quest is None


def test_build_quest_tracks_automation_events():
    engine = _engine_with_visitor("engineerAda")
    engine.dispatch(AcceptQuest(visitor_id="engineerAda", quest_id="engineerSprinklers"), now=0.0)
    result = engine.dispatch(AddAutomationRule(rule_id="sprinkler"), now=5.0)
    assert result.ok
    assert engine.state.active_quest.status is QuestStatus.COMPLETED
    # Sprinkler cost 10 Energy, the quest pays 30.
    assert engine.state.resources["Energy"] == 40.0


def test_timed_quest_fails_after_its_deadline():
    engine = _engine_with_visitor()
    engine.dispatch(AcceptQuest(visitor_id="farmerGiles", quest_id="farmerTomatoes"), now=0.0)
    in_time = engine.dispatch(Tick(), now=1800.0)
    assert engine.state.active_quest.status is QuestStatus.ACTIVE
    assert not [event for event in in_time.events if event.kind == QUEST_FAILED]

    late = engine.dispatch(Tick(), now=1801.0)
    assert engine.state.active_quest.status is QuestStatus.FAILED
    assert [event.kind for event in late.events] == [QUEST_FAILED]
    assert engine.state.completed_quests == []

    assert engine.dispatch(DismissVisitor(), now=1802.0).ok
    assert engine.state.active_quest is None


def test_dismiss_rules():
    engine = ProgressionEngine(default_catalog())
    assert engine.dispatch(DismissVisitor(), now=0.0).status is ActionStatus.NO_VISITOR

    engine = _engine_with_visitor()
    assert engine.dispatch(DismissVisitor(), now=0.0).status is ActionStatus.VISITOR_HAS_QUEST

    engine.dispatch(AcceptQuest(visitor_id="farmerGiles", quest_id="farmerRainSunflowers"), now=0.0)
    assert engine.dispatch(DismissVisitor(), now=10.0).status is ActionStatus.QUEST_IN_PROGRESS

    engine = _engine_with_visitor()
    engine.state.completed_quests.extend(["farmerTomatoes", "farmerRainSunflowers"])
    assert engine.dispatch(DismissVisitor(), now=0.0).ok


def test_weather_quest_trigger_needs_matching_weather():
    quest = default_catalog().quests["farmerRainSunflowers"]
    rainy = GameplayEvent(kind=CROP_HARVESTED, at=0.0, payload={"crop_id": "sunflower", "weather_id": "rainy"})
    sunny = GameplayEvent(kind=CROP_HARVESTED, at=0.0, payload={"crop_id": "sunflower", "weather_id": "sunny"})
    other = GameplayEvent(kind=CROP_HARVESTED, at=0.0, payload={"crop_id": "carrot", "weather_id": "rainy"})
    assert trigger_matches(quest, rainy)
    assert not trigger_matches(quest, sunny)
    assert not trigger_matches(quest, other)
