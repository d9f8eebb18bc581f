from __future__ import annotations

from dataclasses import dataclass, field
import json


@dataclass(slots=True)
class Metrics:
    """Counters for dispatched actions and emitted events, plus state gauges."""

    counters: dict[str, float] = field(default_factory=dict)
    gauges: dict[str, float] = field(default_factory=dict)

    def inc(self, path: str, n: float = 1.0) -> float:
        self.counters[path] = self.counters.get(path, 0.0) + float(n)
        return self.counters[path]

    def get(self, path: str, default: float = 0.0) -> float:
        return self.counters.get(path, default)

    def set_gauge(self, path: str, value: float) -> float:
        self.gauges[path] = float(value)
        return self.gauges[path]

    def record_action(self, action_name: str, status: str, ok: bool) -> None:
        if ok:
            self.inc("actions.ok")
            self.inc(f"actions.ok.{action_name}")
        else:
            self.inc("actions.rejected")
            self.inc(f"actions.rejected.{status}")

    def record_event(self, kind: str) -> None:
        self.inc(f"events.{kind}")

    def snapshot_signature(self) -> str:
        canonical = {
            "counters": {k: float(v) for k, v in sorted(self.counters.items())},
            "gauges": {k: float(v) for k, v in sorted(self.gauges.items())},
        }
        return json.dumps(canonical, sort_keys=True, separators=(",", ":"))


__all__ = ["Metrics"]
