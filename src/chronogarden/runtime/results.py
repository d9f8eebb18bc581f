"""Outcome of applying one action to the game state."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Tuple

if TYPE_CHECKING:
    from ..event import GameplayEvent
    from ..state import GameState


class ActionStatus(Enum):
    OK = "ok"
    UNKNOWN_ERA = "unknown_era"
    ERA_LOCKED = "era_locked"
    ERA_ALREADY_UNLOCKED = "era_already_unlocked"
    CANNOT_AFFORD = "cannot_afford"
    MAX_LEVEL = "max_level"
    UNKNOWN_CROP = "unknown_crop"
    UNKNOWN_PLANTED_CROP = "unknown_planted_crop"
    NOT_MATURE = "not_mature"
    PLOT_FULL = "plot_full"
    CROP_NOT_IN_ERA = "crop_not_in_era"
    UNKNOWN_AUTOMATION = "unknown_automation"
    UNKNOWN_UPGRADE = "unknown_upgrade"
    PRESTIGE_LOCKED = "prestige_locked"
    PRESTIGE_REQUIRED = "prestige_required"
    NO_VISITOR = "no_visitor"
    VISITOR_NOT_PRESENT = "visitor_not_present"
    VISITOR_PRESENT = "visitor_present"
    VISITOR_HAS_QUEST = "visitor_has_quest"
    UNKNOWN_QUEST = "unknown_quest"
    QUEST_ALREADY_ACTIVE = "quest_already_active"
    QUEST_ALREADY_COMPLETED = "quest_already_completed"
    QUEST_IN_PROGRESS = "quest_in_progress"
    NO_ACTIVE_QUEST = "no_active_quest"
    INVALID_AMOUNT = "invalid_amount"
    INVALID_NAME = "invalid_name"
    NAME_REQUIRED = "name_required"
    UNKNOWN_WEATHER = "unknown_weather"
    UNKNOWN_ITEM = "unknown_item"
    NOT_TRADABLE = "not_tradable"
    UNKNOWN_ACTION = "unknown_action"
    NOT_DUE = "not_due"

    @property
    def ok(self) -> bool:
        return self is ActionStatus.OK


@dataclass(slots=True)
class ActionResult:
    """New snapshot plus what happened.

    On rejection ``state`` is the very object that was passed in.
    """

    state: "GameState"
    status: ActionStatus = ActionStatus.OK
    message: str = ""
    events: Tuple["GameplayEvent", ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.status.ok


class Rejection(Exception):
    """Internal control flow: a handler refused the action.

    Never escapes :func:`chronogarden.runtime.engine.reduce`; callers only ever
    see the status inside an :class:`ActionResult`.
    """

    def __init__(self, status: ActionStatus, message: str = "") -> None:
        super().__init__(message or status.value)
        self.status = status
        self.message = message or status.value.replace("_", " ")


__all__ = ["ActionResult", "ActionStatus", "Rejection"]
