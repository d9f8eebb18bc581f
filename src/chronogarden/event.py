"""Gameplay event stream for the ChronoGarden engine.

Handlers describe what happened (a crop was harvested, an automation rule was
built) by publishing :class:`GameplayEvent` records.  Subsystems that react to
gameplay, most notably visitor quests, subscribe to the bus instead of being
called directly from the handlers.

Delivery is deterministic: events are delivered in publication order, and an
event published while another one is being delivered is queued behind it.
Every subscriber receives the working :class:`~chronogarden.state.GameState`
together with the event.
"""

from __future__ import annotations

from collections import Counter, deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Deque, Dict, Iterable, List, Optional

if TYPE_CHECKING:
    from .state import GameState

ERA_UNLOCKED = "era_unlocked"
CROP_PLANTED = "crop_planted"
CROP_HARVESTED = "crop_harvested"
RARE_SEED_FOUND = "rare_seed_found"
AUTOMATION_ADDED = "automation_added"
UPGRADE_PURCHASED = "upgrade_purchased"
GOAL_COMPLETED = "goal_completed"
LORE_UNLOCKED = "lore_unlocked"
QUEST_ACCEPTED = "quest_accepted"
QUEST_COMPLETED = "quest_completed"
QUEST_FAILED = "quest_failed"
VISITOR_ARRIVED = "visitor_arrived"
VISITOR_DISMISSED = "visitor_dismissed"
PRESTIGE = "prestige"


@dataclass(slots=True)
class GameplayEvent:
    """Single thing that happened while applying an action."""

    kind: str
    at: float
    payload: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.payload.get(key, default)


Subscriber = Callable[["GameState", GameplayEvent], None]
Predicate = Callable[[GameplayEvent], bool]


@dataclass
class Subscription:
    """Handle returned when subscribing to the event bus."""

    predicate: Predicate
    callback: Subscriber
    active: bool = True

    def matches(self, event: GameplayEvent) -> bool:
        return self.active and self.predicate(event)


class EventBus:
    """FIFO dispatcher for gameplay events."""

    def __init__(self) -> None:
        self._subscriptions: List[Subscription] = []
        self._queue: Deque[GameplayEvent] = deque()
        self._outbox: List[GameplayEvent] = []
        self._published: Counter[str] = Counter()

    # ------------------------------------------------------------------
    # Subscription management
    # ------------------------------------------------------------------
    def subscribe(
        self,
        callback: Subscriber,
        *,
        predicate: Optional[Predicate] = None,
        kinds: Iterable[str] = (),
    ) -> Subscription:
        """Register ``callback``.

        ``kinds`` is a shortcut for a predicate matching the event kind; an
        explicit ``predicate`` wins when both are given.
        """

        if predicate is None:
            wanted = frozenset(kinds)
            if wanted:
                predicate = lambda event: event.kind in wanted
            else:
                predicate = lambda event: True
        sub = Subscription(predicate=predicate, callback=callback)
        self._subscriptions.append(sub)
        return sub

    # ------------------------------------------------------------------
    # Emission and dispatch
    # ------------------------------------------------------------------
    def publish(self, event: GameplayEvent) -> GameplayEvent:
        self._queue.append(event)
        self._outbox.append(event)
        self._published[event.kind] += 1
        return event

    def emit(self, kind: str, at: float, **payload: Any) -> GameplayEvent:
        return self.publish(GameplayEvent(kind=kind, at=float(at), payload=dict(payload)))

    def dispatch(self, state: "GameState") -> List[GameplayEvent]:
        """Drain the queue, notifying matching subscribers with ``state``."""

        delivered: List[GameplayEvent] = []
        while self._queue:
            event = self._queue.popleft()
            delivered.append(event)
            for subscription in list(self._subscriptions):
                if subscription.matches(event):
                    subscription.callback(state, event)
        return delivered

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def outbox(self) -> tuple[GameplayEvent, ...]:
        return tuple(self._outbox)

    @property
    def pending(self) -> int:
        return len(self._queue)

    def published_counts(self) -> Dict[str, int]:
        return dict(sorted(self._published.items()))


__all__ = [
    "AUTOMATION_ADDED",
    "CROP_HARVESTED",
    "CROP_PLANTED",
    "ERA_UNLOCKED",
    "EventBus",
    "GOAL_COMPLETED",
    "GameplayEvent",
    "LORE_UNLOCKED",
    "PRESTIGE",
    "QUEST_ACCEPTED",
    "QUEST_COMPLETED",
    "QUEST_FAILED",
    "RARE_SEED_FOUND",
    "Subscription",
    "UPGRADE_PURCHASED",
    "VISITOR_ARRIVED",
    "VISITOR_DISMISSED",
]
