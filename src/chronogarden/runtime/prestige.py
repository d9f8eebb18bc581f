"""Prestige soft-reset.

The new run starts from the catalog's initial snapshot.  Only cross-run
progress is carried: rare seeds, Chrono Nexus levels, the prestige counter,
lifetime totals, display names, and the one-way or monotone records (goal
completion, lore, synergy counters).
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Optional

from ..event import PRESTIGE
from ..state import GoalStatus, initial_state
from .results import ActionStatus, Rejection

if TYPE_CHECKING:
    from ..catalog import Catalog, PrestigeTier
    from ..state import GameState
    from .config import EngineConfig
    from .context import EngineContext


def can_prestige(state: "GameState", config: "EngineConfig") -> bool:
    return config.prestige_gate_era in state.unlocked_eras


def reborn_state(state: "GameState", catalog: "Catalog", config: "EngineConfig", now: float) -> "GameState":
    """Build the post-prestige snapshot from ``state`` without touching it."""

    fresh = initial_state(catalog, config)
    fresh.rare_seeds = list(state.rare_seeds)
    fresh.permanent_upgrade_levels.update(state.permanent_upgrade_levels)
    fresh.prestige_count = state.prestige_count + 1
    fresh.total_crops_harvested = state.total_crops_harvested
    fresh.total_chrono_energy_earned = state.total_chrono_energy_earned
    fresh.player_name = state.player_name
    fresh.garden_name = state.garden_name
    for goal_id, status in state.goal_status.items():
        fresh.goal_status[goal_id] = GoalStatus(progress=status.progress, completed=status.completed)
    fresh.unlocked_lore_ids = list(state.unlocked_lore_ids)
    fresh.synergy_stats.update(copy.deepcopy(state.synergy_stats))
    fresh.completed_quests = []
    fresh.next_instance_seq = state.next_instance_seq
    fresh.last_tick = float(now)
    return fresh


def prestige_reset(ctx: "EngineContext") -> "GameState":
    if not can_prestige(ctx.state, ctx.config):
        raise Rejection(ActionStatus.PRESTIGE_LOCKED, f"unlock the {ctx.config.prestige_gate_era} era first")
    ctx.state = reborn_state(ctx.state, ctx.catalog, ctx.config, ctx.now)
    tier = prestige_tier(ctx.catalog, ctx.state.prestige_count)
    ctx.emit(PRESTIGE, prestige_count=ctx.state.prestige_count, tier=tier.tier_id if tier else None)
    return ctx.state


def prestige_tier(catalog: "Catalog", prestige_count: int) -> Optional["PrestigeTier"]:
    return catalog.prestige_tier(prestige_count)


__all__ = ["can_prestige", "prestige_reset", "prestige_tier", "reborn_state"]
