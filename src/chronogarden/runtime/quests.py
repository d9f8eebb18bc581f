"""Visitor and quest lifecycle.

A visitor arrives through :func:`check_visitor_spawn`, offers quests, and the
player accepts at most one at a time.  Progress is not pushed by the harvest
or automation handlers: :class:`QuestTracker` subscribes to the gameplay
event stream and advances the active quest whenever an event matches the
quest's trigger.  Expiry is pull-based, evaluated against ``now`` whenever
the quest is touched.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from ..event import (
    AUTOMATION_ADDED,
    CROP_HARVESTED,
    QUEST_ACCEPTED,
    QUEST_COMPLETED,
    QUEST_FAILED,
    VISITOR_ARRIVED,
    VISITOR_DISMISSED,
    EventBus,
    GameplayEvent,
)
from ..state import ActiveQuest, QuestStatus
from ..world.growth import SECONDS_PER_MINUTE
from .goals import grant_reward
from .results import ActionStatus, Rejection

if TYPE_CHECKING:
    from ..catalog import Catalog, QuestSpec
    from ..state import GameState
    from .context import EngineContext


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def eligible_quests(state: "GameState", catalog: "Catalog", visitor_id: str) -> List["QuestSpec"]:
    """Quests the visitor still offers (not yet completed), in catalog order."""

    return [quest for quest in catalog.quests_for_visitor(visitor_id) if quest.quest_id not in state.completed_quests]


def quest_deadline(quest: "QuestSpec", active: ActiveQuest) -> Optional[float]:
    if quest.duration_minutes is None:
        return None
    return active.start_time + float(quest.duration_minutes) * SECONDS_PER_MINUTE


def trigger_matches(quest: "QuestSpec", event: GameplayEvent) -> bool:
    trigger = quest.trigger
    if trigger.kind in ("harvestCrop", "growWhileWeather"):
        if event.kind != CROP_HARVESTED:
            return False
        if trigger.crop_id is not None and event.get("crop_id") != trigger.crop_id:
            return False
        if trigger.era_id is not None and event.get("era_id") != trigger.era_id:
            return False
        if trigger.kind == "growWhileWeather" and event.get("weather_id") != trigger.weather_id:
            return False
        return True
    if trigger.kind == "buildAutomation":
        if event.kind != AUTOMATION_ADDED:
            return False
        return trigger.rule_id is None or event.get("rule_id") == trigger.rule_id
    return False


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


def accept_quest(ctx: "EngineContext", visitor_id: str, quest_id: str) -> ActiveQuest:
    state = ctx.state
    if state.active_quest is not None:
        raise Rejection(ActionStatus.QUEST_ALREADY_ACTIVE, f"quest '{state.active_quest.quest_id}' is already taken")
    if state.current_visitor_id is None or state.current_visitor_id != visitor_id:
        raise Rejection(ActionStatus.VISITOR_NOT_PRESENT, f"visitor '{visitor_id}' is not in the garden")
    offered = {quest.quest_id for quest in ctx.catalog.quests_for_visitor(visitor_id)}
    if quest_id not in offered:
        raise Rejection(ActionStatus.UNKNOWN_QUEST, f"visitor '{visitor_id}' does not offer '{quest_id}'")
    if quest_id in state.completed_quests:
        raise Rejection(ActionStatus.QUEST_ALREADY_COMPLETED, f"quest '{quest_id}' was already completed")
    state.active_quest = ActiveQuest(
        visitor_id=visitor_id,
        quest_id=quest_id,
        status=QuestStatus.ACTIVE,
        progress=0.0,
        start_time=ctx.now,
    )
    ctx.emit(QUEST_ACCEPTED, visitor_id=visitor_id, quest_id=quest_id)
    return state.active_quest


def expire_quest(ctx: "EngineContext") -> bool:
    """Fail the active quest if its deadline has passed.  True when it failed now."""

    active = ctx.state.active_quest
    if active is None or active.status is not QuestStatus.ACTIVE:
        return False
    quest = ctx.catalog.quests.get(active.quest_id)
    if quest is None:
        return False
    deadline = quest_deadline(quest, active)
    if deadline is None or ctx.now <= deadline:
        return False
    active.status = QuestStatus.FAILED
    ctx.emit(QUEST_FAILED, visitor_id=active.visitor_id, quest_id=active.quest_id)
    return True


def complete_quest(ctx: "EngineContext") -> bool:
    active = ctx.state.active_quest
    if active is None or active.status is not QuestStatus.ACTIVE:
        return False
    quest = ctx.catalog.quests.get(active.quest_id)
    if quest is None or active.progress < quest.target_amount:
        return False
    active.status = QuestStatus.COMPLETED
    description = grant_reward(ctx, quest.reward, source=f"quest.{quest.quest_id}")
    if quest.quest_id not in ctx.state.completed_quests:
        ctx.state.completed_quests.append(quest.quest_id)
    ctx.emit(QUEST_COMPLETED, visitor_id=active.visitor_id, quest_id=quest.quest_id, reward=description)
    return True


def advance_quest(ctx: "EngineContext", amount: float) -> bool:
    """Add ``amount`` progress to the active quest, then check completion.

    Returns ``True`` when the quest completed as a result.
    """

    if expire_quest(ctx):
        return False
    active = ctx.state.active_quest
    if active is None or active.status is not QuestStatus.ACTIVE or amount <= 0:
        return False
    active.progress += float(amount)
    return complete_quest(ctx)


def dismiss_visitor(ctx: "EngineContext") -> str:
    state = ctx.state
    visitor_id = state.current_visitor_id
    if visitor_id is None:
        raise Rejection(ActionStatus.NO_VISITOR, "nobody is visiting")
    expire_quest(ctx)
    active = state.active_quest
    if active is not None and active.status is QuestStatus.ACTIVE:
        raise Rejection(ActionStatus.QUEST_IN_PROGRESS, f"quest '{active.quest_id}' is still in progress")
    if active is None and eligible_quests(state, ctx.catalog, visitor_id):
        raise Rejection(ActionStatus.VISITOR_HAS_QUEST, f"visitor '{visitor_id}' still has a quest to offer")
    state.current_visitor_id = None
    state.active_quest = None
    ctx.emit(VISITOR_DISMISSED, visitor_id=visitor_id)
    return visitor_id


def check_visitor_spawn(ctx: "EngineContext") -> Optional[str]:
    """Roll for a visitor.  Returns the arriving visitor id, if any."""

    state = ctx.state
    if state.current_visitor_id is not None:
        raise Rejection(ActionStatus.VISITOR_PRESENT, f"visitor '{state.current_visitor_id}' is already here")
    last = state.last_visitor_check
    if last is not None and ctx.now - last < ctx.config.visitor_check_interval:
        raise Rejection(ActionStatus.NOT_DUE, "too soon since the last visitor check")
    state.last_visitor_check = ctx.now
    for visitor_id, visitor in ctx.catalog.visitors.items():
        if visitor.era_id not in state.unlocked_eras:
            continue
        if not eligible_quests(state, ctx.catalog, visitor_id):
            continue
        roll = ctx.rng.rand("visitor.spawn", scope={"visitor": visitor_id})
        if roll < visitor.spawn_chance:
            state.current_visitor_id = visitor_id
            ctx.emit(VISITOR_ARRIVED, visitor_id=visitor_id, era_id=visitor.era_id)
            return visitor_id
    return None


# ---------------------------------------------------------------------------
# Event subscription
# ---------------------------------------------------------------------------


class QuestTracker:
    """Event-stream subscriber that advances the active quest."""

    def __init__(self, ctx: "EngineContext") -> None:
        self.ctx = ctx

    def __call__(self, state: "GameState", event: GameplayEvent) -> None:
        active = state.active_quest
        if active is None or active.status is not QuestStatus.ACTIVE:
            return
        quest = self.ctx.catalog.quests.get(active.quest_id)
        if quest is None or not trigger_matches(quest, event):
            return
        advance_quest(self.ctx, float(event.get("amount", 1)))

    def attach(self, bus: EventBus) -> None:
        bus.subscribe(self, kinds=(CROP_HARVESTED, AUTOMATION_ADDED))


__all__ = [
    "QuestTracker",
    "accept_quest",
    "advance_quest",
    "check_visitor_spawn",
    "complete_quest",
    "dismiss_visitor",
    "eligible_quests",
    "expire_quest",
    "quest_deadline",
    "trigger_matches",
]
