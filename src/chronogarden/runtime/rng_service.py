from __future__ import annotations

import json
import random
from dataclasses import dataclass, field
from hashlib import sha256
from typing import Any, Dict, Iterable, List, Mapping, Protocol, Sequence, TypeVar

T = TypeVar("T")


class RandomSource(Protocol):
    """What the engine needs from a random source."""

    def rand(self, stream_key: str, *, scope: Dict[str, object] | None = None) -> float: ...

    def choice(self, stream_key: str, seq: Sequence[T], *, scope: Dict[str, object] | None = None) -> T: ...


def _scope_json(scope: Mapping[str, object] | None) -> str:
    if not scope:
        return "{}"
    try:
        return json.dumps(scope, sort_keys=True, separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise TypeError(f"Random scope must be plain JSON data: {scope!r}") from exc


@dataclass(slots=True)
class RNGConfig:
    salt: str = "chronogarden-rng-v1"
    audit_enabled: bool = True
    max_audit_streams: int = 64


@dataclass
class RNGService:
    """Seeded draws keyed by stream name and scope.

    Every (stream, scope) pair owns its own draw counter, so a roll for one
    visitor never shifts the rolls of a harvest.  Two services with the same
    seed that see the same calls produce the same numbers.
    """

    seed: int
    config: RNGConfig = field(default_factory=RNGConfig)
    counters: dict[str, int] = field(default_factory=dict)
    audit: dict[str, str] = field(default_factory=dict)

    def _generator(self, stream_key: str, scope: Mapping[str, object] | None) -> random.Random:
        prefix = f"{self.config.salt}|{self.seed}|{stream_key}|{_scope_json(scope)}"
        stream_id = sha256(prefix.encode()).hexdigest()[:16]
        index = self.counters.get(stream_id, 0)
        self.counters[stream_id] = index + 1
        if self.config.audit_enabled:
            self.audit[stream_id] = stream_key
            self._trim_audit()
        digest = sha256(f"{prefix}|{index}".encode()).digest()
        return random.Random(int.from_bytes(digest[:8], "big"))

    def _trim_audit(self) -> None:
        excess = len(self.audit) - self.config.max_audit_streams
        if excess <= 0:
            return
        quietest = sorted(self.audit, key=lambda sid: (self.counters.get(sid, 0), sid))
        for stream_id in quietest[:excess]:
            del self.audit[stream_id]

    def rand(self, stream_key: str, *, scope: Dict[str, object] | None = None) -> float:
        return self._generator(stream_key, scope).random()

    def choice(self, stream_key: str, seq: Sequence[T], *, scope: Dict[str, object] | None = None) -> T:
        generator = self._generator(stream_key, scope)
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        return seq[generator.randrange(len(seq))]

    def signature(self) -> str:
        payload = json.dumps(sorted(self.counters.items()), separators=(",", ":"))
        return sha256(payload.encode()).hexdigest()[:16]

    def audit_summary(self) -> list[tuple[str, int]]:
        """Draw counts per stream, busiest first."""

        if not self.config.audit_enabled:
            return []
        totals: dict[str, int] = {}
        for stream_id, stream_key in self.audit.items():
            totals[stream_key] = totals.get(stream_key, 0) + self.counters.get(stream_id, 0)
        return sorted(totals.items(), key=lambda pair: (-pair[1], pair[0]))


class ScriptedRandom:
    """Replays a fixed sequence of draws; useful for tests and replays.

    ``rand`` pops the next float.  ``choice`` pops the next value and uses it
    as an index when it is an ``int``, or as a fraction of the sequence length
    when it is a ``float``.  Running out of draws raises ``IndexError``.
    """

    def __init__(self, draws: Iterable[Any]) -> None:
        self._draws: List[Any] = list(draws)
        self.calls: List[str] = []

    def _next(self, stream_key: str) -> Any:
        self.calls.append(stream_key)
        if not self._draws:
            raise IndexError(f"ScriptedRandom exhausted on stream '{stream_key}'")
        return self._draws.pop(0)

    def rand(self, stream_key: str, *, scope: Dict[str, object] | None = None) -> float:
        return float(self._next(stream_key))

    def choice(self, stream_key: str, seq: Sequence[T], *, scope: Dict[str, object] | None = None) -> T:
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        draw = self._next(stream_key)
        if isinstance(draw, int):
            return seq[draw % len(seq)]
        return seq[min(len(seq) - 1, int(float(draw) * len(seq)))]

    @property
    def remaining(self) -> int:
        return len(self._draws)


__all__ = ["RNGConfig", "RNGService", "RandomSource", "ScriptedRandom"]
