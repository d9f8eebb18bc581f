"""Activity log for the garden engine.

A bounded, side-effect free history of what the engine did: one record per
dispatched action (accepted or rejected) and one per gameplay event.  Tools
such as the CLI or a debug overlay read the newest records from here instead
of diffing game states.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Iterable, List, Mapping, MutableMapping, Optional, Tuple

ACTION_APPLIED = "ACTION_APPLIED"
ACTION_REJECTED = "ACTION_REJECTED"
GAMEPLAY_EVENT = "GAMEPLAY_EVENT"


@dataclass(slots=True)
class ActivityEvent:
    """Structured record for a single activity entry."""

    at: float
    event_type: str
    payload: MutableMapping[str, Any]
    tags: Tuple[str, ...] = field(default_factory=tuple)

    def summary(self) -> str:
        if self.event_type in (ACTION_APPLIED, ACTION_REJECTED):
            action = self.payload.get("action", "?")
            status = self.payload.get("status", "?")
            message = self.payload.get("message")
            if message:
                return f"{action} -> {status}: {message}"
            return f"{action} -> {status}"
        if self.event_type == GAMEPLAY_EVENT:
            kind = self.payload.get("kind", "?")
            details = ", ".join(
                f"{k}={v}" for k, v in sorted(self.payload.items()) if k != "kind"
            )
            return f"{kind} ({details})" if details else str(kind)
        return ", ".join(f"{k}={v}" for k, v in sorted(self.payload.items()))


class ActivityLog:
    """Fixed-size activity history."""

    def __init__(self, capacity: int = 500) -> None:
        self.capacity = max(1, capacity)
        self._events: Deque[ActivityEvent] = deque(maxlen=self.capacity)

    # ------------------------------------------------------------------
    # Recording helpers
    # ------------------------------------------------------------------
    def record(
        self,
        *,
        at: float,
        event_type: str,
        payload: Mapping[str, Any],
        tags: Iterable[str] = (),
    ) -> ActivityEvent:
        event = ActivityEvent(at=float(at), event_type=event_type, payload=dict(payload), tags=tuple(tags))
        self._events.append(event)
        return event

    def log_action(self, *, at: float, action: str, status: str, ok: bool, message: str = "") -> ActivityEvent:
        payload: MutableMapping[str, Any] = {"action": action, "status": status}
        if message:
            payload["message"] = message
        return self.record(
            at=at,
            event_type=ACTION_APPLIED if ok else ACTION_REJECTED,
            payload=payload,
            tags=[action],
        )

    def log_gameplay(self, *, at: float, kind: str, payload: Mapping[str, Any]) -> ActivityEvent:
        body: MutableMapping[str, Any] = {"kind": kind}
        body.update(payload)
        return self.record(at=at, event_type=GAMEPLAY_EVENT, payload=body, tags=[kind])

    # ------------------------------------------------------------------
    # Introspection helpers
    # ------------------------------------------------------------------
    def __len__(self) -> int:  # pragma: no cover - trivial
        return len(self._events)

    def get_recent(
        self,
        *,
        event_type: Optional[str] = None,
        tag: Optional[str] = None,
        limit: int = 100,
    ) -> List[ActivityEvent]:
        """Return the newest events matching the optional filters, oldest first."""

        selected: List[ActivityEvent] = []
        for event in reversed(self._events):
            if event_type and event.event_type != event_type:
                continue
            if tag and tag not in event.tags:
                continue
            selected.append(event)
            if len(selected) >= limit:
                break
        return list(reversed(selected))


__all__ = ["ACTION_APPLIED", "ACTION_REJECTED", "ActivityEvent", "ActivityLog", "GAMEPLAY_EVENT"]
