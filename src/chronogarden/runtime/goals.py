"""Goals, lore unlocks and reward grants.

Goal progress is never accumulated by hand; it is re-derived from a named
stat after every successful action.  Completion is one-way and the reward is
granted exactly once, at the evaluation that first sees ``progress >= target``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Dict, List, Optional

from ..event import GOAL_COMPLETED, LORE_UNLOCKED, RARE_SEED_FOUND
from ..state import GoalStatus

if TYPE_CHECKING:
    from ..catalog import RewardSpec
    from ..state import GameState
    from .context import EngineContext

StatReader = Callable[["GameState"], float]

STAT_READERS: Dict[str, StatReader] = {
    "totalCropsHarvested": lambda state: float(state.total_crops_harvested),
    "prestigeCount": lambda state: float(state.prestige_count),
    "rareSeedsFoundCount": lambda state: float(len(state.rare_seeds)),
    "totalChronoEnergyEarned": lambda state: float(state.total_chrono_energy_earned),
    "unlockedErasCount": lambda state: float(len(state.unlocked_eras)),
    "questsCompletedCount": lambda state: float(len(state.completed_quests)),
}


def stat_value(state: "GameState", stat: str) -> float:
    """Current value of a goal/lore stat; synergy counters are stats too."""

    reader = STAT_READERS.get(stat)
    if reader is not None:
        return reader(state)
    return float(state.synergy_stats.get(stat, 0.0))


# ---------------------------------------------------------------------------
# Rewards
# ---------------------------------------------------------------------------


def grant_rare_seed(ctx: "EngineContext", *, stream_key: str, source: str) -> Optional[str]:
    """Add a random, not yet owned, eligible rare seed.  ``None`` if none left."""

    candidates = [crop_id for crop_id in ctx.catalog.rare_seed_candidates() if crop_id not in ctx.state.rare_seeds]
    if not candidates:
        return None
    crop_id = ctx.rng.choice(stream_key, candidates)
    ctx.state.rare_seeds.append(crop_id)
    ctx.emit(RARE_SEED_FOUND, crop_id=crop_id, source=source)
    return crop_id


def grant_reward(ctx: "EngineContext", reward: "RewardSpec", *, source: str) -> str:
    """Apply ``reward`` to the working state and return a short description."""

    if reward.kind == "chronoEnergy":
        ctx.credit_energy(reward.amount)
        return f"{reward.amount:g} Chrono-Energy"
    if reward.kind == "rareSeed":
        granted: List[str] = []
        for _ in range(max(1, int(reward.amount))):
            crop_id = grant_rare_seed(ctx, stream_key=f"reward.rare_seed.{source}", source=source)
            if crop_id is None:
                break
            granted.append(crop_id)
        return f"rare seed(s): {', '.join(granted)}" if granted else "no rare seed left to find"
    if reward.kind == "resource" and reward.resource_id:
        if reward.amount > 0:
            ctx.ledger.credit(reward.resource_id, reward.amount)
        return f"{reward.amount:g} {reward.resource_id}"
    return "nothing"


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def evaluate_goals(ctx: "EngineContext") -> List[str]:
    """Refresh progress of every goal; complete and reward newly met ones.

    Returns the ids of goals completed by this evaluation.  A reward may move
    another stat (e.g. a rare seed), so evaluation repeats until stable.
    """

    completed: List[str] = []
    state = ctx.state
    changed = True
    while changed:
        changed = False
        for goal_id, goal in ctx.catalog.goals.items():
            status = state.goal_status.get(goal_id)
            if status is None:
                status = GoalStatus()
                state.goal_status[goal_id] = status
            status.progress = stat_value(state, goal.stat)
            if status.completed or status.progress < goal.target:
                continue
            status.completed = True
            description = grant_reward(ctx, goal.reward, source=f"goal.{goal_id}")
            ctx.emit(GOAL_COMPLETED, goal_id=goal_id, reward=description)
            completed.append(goal_id)
            changed = True
    return completed


def evaluate_lore(ctx: "EngineContext") -> List[str]:
    unlocked: List[str] = []
    state = ctx.state
    for lore_id, entry in ctx.catalog.lore.items():
        if lore_id in state.unlocked_lore_ids:
            continue
        if stat_value(state, entry.stat) >= entry.threshold:
            state.unlocked_lore_ids.append(lore_id)
            ctx.emit(LORE_UNLOCKED, lore_id=lore_id, title=entry.title)
            unlocked.append(lore_id)
    return unlocked


__all__ = ["STAT_READERS", "evaluate_goals", "evaluate_lore", "grant_rare_seed", "grant_reward", "stat_value"]
