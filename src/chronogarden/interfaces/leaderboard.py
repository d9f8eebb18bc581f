"""Leaderboard adapter.

The game pushes its own lifetime record and reads a ranked snapshot back.
Transport is somebody else's problem: anything with ``submit`` and ``fetch``
works as a client, and :class:`InMemoryLeaderboard` is the reference one.
Client failures never reach the caller as exceptions; they come back as a
:class:`LeaderboardOutcome` with ``ok=False``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol

from ..state import GameState
from .contracts import LEADERBOARD_RECORD_SCHEMA


@dataclass(frozen=True, slots=True)
class LeaderboardRecord:
    player_id: str
    name: str
    total_crops_harvested: int
    prestige_count: int
    total_chrono_energy_earned: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "LeaderboardRecord":
        LEADERBOARD_RECORD_SCHEMA.validate(payload)
        return cls(
            player_id=payload["player_id"],
            name=payload["name"],
            total_crops_harvested=int(payload["total_crops_harvested"]),
            prestige_count=int(payload["prestige_count"]),
            total_chrono_energy_earned=float(payload["total_chrono_energy_earned"]),
        )

    @classmethod
    def from_state(cls, state: GameState, player_id: str) -> "LeaderboardRecord":
        return cls(
            player_id=player_id,
            name=state.player_name,
            total_crops_harvested=int(state.total_crops_harvested),
            prestige_count=int(state.prestige_count),
            total_chrono_energy_earned=float(state.total_chrono_energy_earned),
        )


def rank(records: List[LeaderboardRecord]) -> List[LeaderboardRecord]:
    """Most crops harvested first; prestige count then name break ties."""

    return sorted(records, key=lambda r: (-r.total_crops_harvested, -r.prestige_count, r.name, r.player_id))


class LeaderboardClient(Protocol):
    def submit(self, record: Mapping[str, Any]) -> None: ...

    def fetch(self, limit: int) -> List[Mapping[str, Any]]: ...


class InMemoryLeaderboard:
    """Keeps the latest record per player."""

    def __init__(self) -> None:
        self._records: Dict[str, Dict[str, Any]] = {}

    def submit(self, record: Mapping[str, Any]) -> None:
        LEADERBOARD_RECORD_SCHEMA.validate(record)
        self._records[str(record["player_id"])] = dict(record)

    def fetch(self, limit: int) -> List[Mapping[str, Any]]:
        rows = rank([LeaderboardRecord.from_mapping(row) for row in self._records.values()])
        return [row.to_dict() for row in rows[: max(0, int(limit))]]


@dataclass(slots=True)
class LeaderboardOutcome:
    ok: bool
    records: List[LeaderboardRecord] = field(default_factory=list)
    skipped: int = 0
    error: Optional[str] = None


def push_record(client: LeaderboardClient, state: GameState, player_id: str) -> LeaderboardOutcome:
    record = LeaderboardRecord.from_state(state, player_id)
    try:
        client.submit(record.to_dict())
    except Exception as exc:  # collaborator failure stays at the boundary
        return LeaderboardOutcome(ok=False, records=[record], error=f"leaderboard submit failed: {exc}")
    return LeaderboardOutcome(ok=True, records=[record])


def fetch_leaderboard(client: LeaderboardClient, limit: int = 10) -> LeaderboardOutcome:
    """Ranked snapshot; malformed rows are skipped and counted."""

    try:
        rows = client.fetch(limit)
    except Exception as exc:  # collaborator failure stays at the boundary
        return LeaderboardOutcome(ok=False, error=f"leaderboard fetch failed: {exc}")
    records: List[LeaderboardRecord] = []
    skipped = 0
    for row in rows:
        try:
            records.append(LeaderboardRecord.from_mapping(row))
        except (TypeError, ValueError):
            skipped += 1
    return LeaderboardOutcome(ok=True, records=rank(records)[: max(0, int(limit))], skipped=skipped)


__all__ = [
    "InMemoryLeaderboard",
    "LeaderboardClient",
    "LeaderboardOutcome",
    "LeaderboardRecord",
    "fetch_leaderboard",
    "push_record",
    "rank",
]
