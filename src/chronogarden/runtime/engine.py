"""Progression engine: applies one action to the game state.

:func:`reduce` is the pure transition function ``(state, action) -> result``.
It deep-copies the incoming snapshot, runs the handler on the copy, delivers
the gameplay events the handler published (the quest tracker listens here),
re-evaluates goals and lore, and returns the copy.  When the handler rejects
the action the input snapshot object is returned untouched, so a rejected
action is always a no-op.

:class:`ProgressionEngine` is the stateful wrapper a game loop holds: it owns
the current snapshot, the random source, the clock, the activity log and the
metrics, and threads the state through successive ``dispatch`` calls.
"""

from __future__ import annotations

import copy
import math
import time
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Type

from ..activity_log import ActivityLog
from ..catalog import Catalog, default_catalog
from ..event import (
    AUTOMATION_ADDED,
    CROP_HARVESTED,
    CROP_PLANTED,
    ERA_UNLOCKED,
    RARE_SEED_FOUND,
    GameplayEvent,
    Subscriber,
)
from ..state import AutomationInstance, GameState, PlantedCrop, initial_state
from ..world.growth import SECONDS_PER_MINUTE, crop_maturity
from ..world.ledger import InsufficientResourceError
from .actions import (
    AcceptQuest,
    Action,
    AddAutomationRule,
    AddEnergy,
    CheckVisitorSpawn,
    DismissVisitor,
    GatherWater,
    HarvestCrop,
    ListMarketItem,
    PlantCrop,
    PrestigeReset,
    PurchasePermanentUpgrade,
    PurchaseUpgrade,
    RemoveAutomationRule,
    RestoreMarketItem,
    SetAdvice,
    SetEra,
    SetGardenName,
    SetPlayerName,
    SetWeather,
    SpendEnergy,
    Tick,
    UnlockEra,
    UpdateResource,
    UpdateSoilQuality,
)
from .config import CHRONO_ENERGY_RESOURCE, SUNLIGHT_RESOURCE, WATER_RESOURCE, EngineConfig
from .context import EngineContext
from .goals import evaluate_goals, evaluate_lore
from .prestige import prestige_reset, prestige_tier
from .quests import QuestTracker, accept_quest, check_visitor_spawn, dismiss_visitor, expire_quest
from .results import ActionResult, ActionStatus, Rejection
from .rng_service import RandomSource, RNGService
from .synergy import harvest_stat_name, synergy_levels
from .telemetry import Metrics
from .upgrades import harvest_yield, plant_cost, purchase_permanent_upgrade, purchase_upgrade, rare_seed_chance

Handler = Callable[[EngineContext, Action], Optional[str]]

MARKET_ITEM_TYPES = ("seed", "resource")


# ---------------------------------------------------------------------------
# Eras and chrono-energy
# ---------------------------------------------------------------------------


def _set_era(ctx: EngineContext, action: SetEra) -> str:
    if ctx.catalog.era(action.era_id) is None:
        raise Rejection(ActionStatus.UNKNOWN_ERA, f"no era '{action.era_id}'")
    if action.era_id not in ctx.state.unlocked_eras:
        raise Rejection(ActionStatus.ERA_LOCKED, f"era '{action.era_id}' is locked")
    ctx.state.current_era = action.era_id
    return f"travelled to {action.era_id}"


def _unlock_era(ctx: EngineContext, action: UnlockEra) -> str:
    era = ctx.catalog.era(action.era_id)
    if era is None:
        raise Rejection(ActionStatus.UNKNOWN_ERA, f"no era '{action.era_id}'")
    state = ctx.state
    if era.era_id in state.unlocked_eras:
        raise Rejection(ActionStatus.ERA_ALREADY_UNLOCKED, f"era '{era.era_id}' is already unlocked")
    if state.chrono_energy < era.unlock_cost:
        raise Rejection(
            ActionStatus.CANNOT_AFFORD,
            f"needs {era.unlock_cost:g} chrono-energy, have {state.chrono_energy:g}",
        )
    state.chrono_energy -= era.unlock_cost
    state.unlocked_eras.append(era.era_id)
    ctx.emit(ERA_UNLOCKED, era_id=era.era_id, cost=era.unlock_cost)
    return f"unlocked {era.era_id}"


def _amount(value: float, what: str, *, positive: bool = True) -> float:
    """Reject non-finite amounts (and non-positive ones unless told otherwise)."""

    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise Rejection(ActionStatus.INVALID_AMOUNT, f"{what} must be a number") from None
    if not math.isfinite(amount):
        raise Rejection(ActionStatus.INVALID_AMOUNT, f"{what} must be finite")
    if positive and amount <= 0:
        raise Rejection(ActionStatus.INVALID_AMOUNT, f"{what} must be positive")
    return amount


def _add_energy(ctx: EngineContext, action: AddEnergy) -> str:
    amount = _amount(action.amount, "energy amount")
    ctx.credit_energy(amount)
    return f"+{amount:g} chrono-energy"


def _spend_energy(ctx: EngineContext, action: SpendEnergy) -> str:
    amount = _amount(action.amount, "energy amount")
    # Soft floor: overspending clamps at zero instead of rejecting.
    ctx.state.chrono_energy = max(0.0, ctx.state.chrono_energy - amount)
    return f"-{amount:g} chrono-energy"


def _update_resource(ctx: EngineContext, action: UpdateResource) -> str:
    if not action.resource_id:
        raise Rejection(ActionStatus.INVALID_AMOUNT, "resource id is required")
    delta = _amount(action.delta, "resource delta", positive=False)
    balance = ctx.ledger.adjust(action.resource_id, delta)
    return f"{action.resource_id} is now {balance:g}"


def _gather_water(ctx: EngineContext, action: GatherWater) -> str:
    ctx.ledger.credit(WATER_RESOURCE, ctx.config.gather_water_amount)
    return f"+{ctx.config.gather_water_amount:g} {WATER_RESOURCE}"


# ---------------------------------------------------------------------------
# Garden plot
# ---------------------------------------------------------------------------


def _plant_crop(ctx: EngineContext, action: PlantCrop) -> str:
    crop = ctx.catalog.crop(action.crop_id)
    if crop is None:
        raise Rejection(ActionStatus.UNKNOWN_CROP, f"no crop '{action.crop_id}'")
    state = ctx.state
    if ctx.catalog.era(action.era_id) is None:
        raise Rejection(ActionStatus.UNKNOWN_ERA, f"no era '{action.era_id}'")
    if action.era_id not in state.unlocked_eras:
        raise Rejection(ActionStatus.ERA_LOCKED, f"era '{action.era_id}' is locked")
    if crop.era_id != action.era_id and crop.crop_id not in state.rare_seeds:
        raise Rejection(ActionStatus.CROP_NOT_IN_ERA, f"'{crop.crop_id}' does not grow in {action.era_id}")
    if len(state.planted_crops) >= ctx.config.plot_size:
        raise Rejection(ActionStatus.PLOT_FULL, f"all {ctx.config.plot_size} plots are in use")
    cost = plant_cost(state, ctx.catalog, crop, action.era_id)
    try:
        ctx.ledger.debit_many(cost)
    except InsufficientResourceError as exc:
        raise Rejection(ActionStatus.CANNOT_AFFORD, str(exc)) from exc
    planted = PlantedCrop(
        instance_id=state.next_instance_id("plant"),
        crop_id=crop.crop_id,
        era_id=action.era_id,
        planted_at=ctx.now,
    )
    state.planted_crops.append(planted)
    ctx.adjust_soil(-ctx.config.plant_soil_cost)
    ctx.emit(CROP_PLANTED, crop_id=crop.crop_id, era_id=action.era_id, instance_id=planted.instance_id)
    return f"planted {crop.name} ({planted.instance_id})"


def _harvest_crop(ctx: EngineContext, action: HarvestCrop) -> str:
    state = ctx.state
    planted = state.planted(action.instance_id)
    if planted is None:
        raise Rejection(ActionStatus.UNKNOWN_PLANTED_CROP, f"nothing planted as '{action.instance_id}'")
    crop = ctx.catalog.crop(planted.crop_id)
    if crop is None:
        raise Rejection(ActionStatus.UNKNOWN_CROP, f"no crop '{planted.crop_id}'")
    progress = crop_maturity(state, ctx.catalog, planted, ctx.now, config=ctx.config)
    if progress < 1.0:
        raise Rejection(ActionStatus.NOT_MATURE, f"{crop.name} is {progress:.0%} grown")

    for resource_id, amount in harvest_yield(state, ctx.catalog, crop, planted.era_id, ctx.config).items():
        if resource_id == CHRONO_ENERGY_RESOURCE:
            ctx.credit_energy(amount)
        else:
            ctx.ledger.credit(resource_id, amount)
    state.planted_crops = [p for p in state.planted_crops if p.instance_id != planted.instance_id]
    state.total_crops_harvested += 1
    stat = harvest_stat_name(planted.era_id)
    state.synergy_stats[stat] = state.synergy_stats.get(stat, 0.0) + 1.0

    if crop.crop_id not in state.rare_seeds:
        roll = ctx.rng.rand("harvest.rare_seed", scope={"instance": planted.instance_id})
        if roll < rare_seed_chance(state, ctx.catalog, ctx.config):
            state.rare_seeds.append(crop.crop_id)
            ctx.emit(RARE_SEED_FOUND, crop_id=crop.crop_id, source="harvest")

    ctx.emit(
        CROP_HARVESTED,
        crop_id=crop.crop_id,
        era_id=planted.era_id,
        weather_id=state.current_weather_id,
        instance_id=planted.instance_id,
        amount=1,
    )
    return f"harvested {crop.name}"


def _add_automation_rule(ctx: EngineContext, action: AddAutomationRule) -> str:
    rule = ctx.catalog.automation_rules.get(action.rule_id)
    if rule is None:
        raise Rejection(ActionStatus.UNKNOWN_AUTOMATION, f"no automation rule '{action.rule_id}'")
    state = ctx.state
    if rule.era_id is not None and rule.era_id not in state.unlocked_eras:
        raise Rejection(ActionStatus.ERA_LOCKED, f"era '{rule.era_id}' is locked")
    try:
        ctx.ledger.debit_many({k: v for k, v in rule.cost.items() if v > 0})
    except InsufficientResourceError as exc:
        raise Rejection(ActionStatus.CANNOT_AFFORD, str(exc)) from exc
    instance = AutomationInstance(
        instance_id=state.next_instance_id(rule.rule_id),
        rule_id=rule.rule_id,
        name=rule.name,
        description=rule.description,
        effect=rule.effect,
        era_id=rule.era_id,
    )
    state.automation_rules.append(instance)
    ctx.adjust_soil(-ctx.config.automation_soil_cost)
    ctx.emit(AUTOMATION_ADDED, rule_id=rule.rule_id, instance_id=instance.instance_id, amount=1)
    return f"built {rule.name} ({instance.instance_id})"


def _remove_automation_rule(ctx: EngineContext, action: RemoveAutomationRule) -> str:
    state = ctx.state
    remaining = [rule for rule in state.automation_rules if rule.instance_id != action.instance_id]
    if len(remaining) == len(state.automation_rules):
        raise Rejection(ActionStatus.UNKNOWN_AUTOMATION, f"no automation instance '{action.instance_id}'")
    state.automation_rules = remaining
    return f"removed {action.instance_id}"


def _update_soil_quality(ctx: EngineContext, action: UpdateSoilQuality) -> str:
    soil = ctx.adjust_soil(_amount(action.delta, "soil delta", positive=False))
    return f"soil quality {soil:g}"


def _set_weather(ctx: EngineContext, action: SetWeather) -> str:
    if action.weather_id not in ctx.catalog.weather:
        raise Rejection(ActionStatus.UNKNOWN_WEATHER, f"no weather '{action.weather_id}'")
    ctx.state.current_weather_id = action.weather_id
    return f"weather is {action.weather_id}"


# ---------------------------------------------------------------------------
# Progression
# ---------------------------------------------------------------------------


def _purchase_upgrade(ctx: EngineContext, action: PurchaseUpgrade) -> str:
    level = purchase_upgrade(ctx, action.upgrade_id)
    return f"{action.upgrade_id} level {level}"


def _purchase_permanent_upgrade(ctx: EngineContext, action: PurchasePermanentUpgrade) -> str:
    level = purchase_permanent_upgrade(ctx, action.upgrade_id)
    return f"{action.upgrade_id} level {level}"


def _prestige_reset(ctx: EngineContext, action: PrestigeReset) -> str:
    state = prestige_reset(ctx)
    return f"prestige {state.prestige_count}"


# ---------------------------------------------------------------------------
# Visitors and quests
# ---------------------------------------------------------------------------


def _accept_quest(ctx: EngineContext, action: AcceptQuest) -> str:
    expire_quest(ctx)
    accept_quest(ctx, action.visitor_id, action.quest_id)
    return f"accepted {action.quest_id}"


def _dismiss_visitor(ctx: EngineContext, action: DismissVisitor) -> str:
    visitor_id = dismiss_visitor(ctx)
    return f"{visitor_id} left the garden"


def _check_visitor_spawn(ctx: EngineContext, action: CheckVisitorSpawn) -> str:
    visitor_id = check_visitor_spawn(ctx)
    if visitor_id is None:
        return "no visitor arrived"
    return f"{visitor_id} arrived"


# ---------------------------------------------------------------------------
# Timers, profile, collaborators
# ---------------------------------------------------------------------------


def _crossed(last: float, now: float, interval: float) -> bool:
    if interval <= 0:
        return False
    return int(now // interval) > int(last // interval)


def _tick(ctx: EngineContext, action: Tick) -> str:
    state = ctx.state
    last = state.last_tick
    notes: List[str] = []
    if last > 0:
        if _crossed(last, ctx.now, ctx.config.sunlight_interval) and ctx.config.passive_sunlight_amount > 0:
            ctx.ledger.credit(SUNLIGHT_RESOURCE, ctx.config.passive_sunlight_amount)
            notes.append("sunlight")
        if _crossed(last, ctx.now, SECONDS_PER_MINUTE):
            ctx.adjust_soil(ctx.config.soil_regen_per_minute)
            notes.append("soil")
    if expire_quest(ctx):
        notes.append("quest expired")
    state.last_tick = ctx.now
    return ", ".join(notes) or "tick"


def _clean_name(name: str) -> str:
    cleaned = " ".join(str(name).split())
    if not cleaned:
        raise Rejection(ActionStatus.INVALID_NAME, "name must not be blank")
    return cleaned


def _set_player_name(ctx: EngineContext, action: SetPlayerName) -> str:
    ctx.state.player_name = _clean_name(action.name)
    return f"player is {ctx.state.player_name}"


def _set_garden_name(ctx: EngineContext, action: SetGardenName) -> str:
    ctx.state.garden_name = _clean_name(action.name)
    return f"garden is {ctx.state.garden_name}"


def _set_advice(ctx: EngineContext, action: SetAdvice) -> str:
    text = str(action.text).strip()
    ctx.state.advisor_suggestion = text or None
    return "advice updated"


def _check_market_item(action: ListMarketItem | RestoreMarketItem) -> None:
    if action.item_type not in MARKET_ITEM_TYPES:
        raise Rejection(ActionStatus.UNKNOWN_ITEM, f"unknown item type '{action.item_type}'")
    _amount(action.quantity, "quantity")


def _list_market_item(ctx: EngineContext, action: ListMarketItem) -> str:
    state = ctx.state
    name = state.player_name.strip()
    if not name or name == ctx.config.default_player_name:
        raise Rejection(ActionStatus.NAME_REQUIRED, "set a player name before listing items")
    _check_market_item(action)
    if not ctx.catalog.is_tradable(action.item_type, action.item_id):
        raise Rejection(ActionStatus.NOT_TRADABLE, f"{action.item_type} '{action.item_id}' cannot be traded")
    if action.item_type == "seed":
        if action.item_id not in state.rare_seeds:
            raise Rejection(ActionStatus.CANNOT_AFFORD, f"no rare seed '{action.item_id}' to list")
        state.rare_seeds.remove(action.item_id)
        return f"listed rare seed {action.item_id}"
    try:
        ctx.ledger.debit(action.item_id, action.quantity)
    except InsufficientResourceError as exc:
        raise Rejection(ActionStatus.CANNOT_AFFORD, str(exc)) from exc
    return f"listed {action.quantity:g} {action.item_id}"


def _restore_market_item(ctx: EngineContext, action: RestoreMarketItem) -> str:
    _check_market_item(action)
    state = ctx.state
    if action.item_type == "seed":
        if action.item_id not in state.rare_seeds:
            state.rare_seeds.append(action.item_id)
        return f"restored rare seed {action.item_id}"
    ctx.ledger.credit(action.item_id, action.quantity)
    return f"restored {action.quantity:g} {action.item_id}"


HANDLERS: Dict[Type[Action], Handler] = {
    SetEra: _set_era,
    UnlockEra: _unlock_era,
    AddEnergy: _add_energy,
    SpendEnergy: _spend_energy,
    UpdateResource: _update_resource,
    GatherWater: _gather_water,
    PlantCrop: _plant_crop,
    HarvestCrop: _harvest_crop,
    AddAutomationRule: _add_automation_rule,
    RemoveAutomationRule: _remove_automation_rule,
    UpdateSoilQuality: _update_soil_quality,
    SetWeather: _set_weather,
    PurchaseUpgrade: _purchase_upgrade,
    PurchasePermanentUpgrade: _purchase_permanent_upgrade,
    PrestigeReset: _prestige_reset,
    AcceptQuest: _accept_quest,
    DismissVisitor: _dismiss_visitor,
    CheckVisitorSpawn: _check_visitor_spawn,
    Tick: _tick,
    SetPlayerName: _set_player_name,
    SetGardenName: _set_garden_name,
    SetAdvice: _set_advice,
    ListMarketItem: _list_market_item,
    RestoreMarketItem: _restore_market_item,
}


# ---------------------------------------------------------------------------
# Transition function
# ---------------------------------------------------------------------------


def _settle(ctx: EngineContext) -> None:
    """Deliver pending events, then re-evaluate goals and lore until quiet."""

    while True:
        ctx.bus.dispatch(ctx.state)
        evaluate_goals(ctx)
        evaluate_lore(ctx)
        if not ctx.bus.pending:
            return


def reduce(
    state: GameState,
    action: Action,
    *,
    catalog: Catalog,
    now: float,
    rng: RandomSource,
    config: Optional[EngineConfig] = None,
    observers: Sequence[Subscriber] = (),
) -> ActionResult:
    """Apply ``action`` to ``state`` at time ``now``.

    ``state`` is never mutated.  ``observers`` receive every gameplay event
    of an accepted action, after the quest tracker.
    """

    handler = HANDLERS.get(type(action))
    if handler is None:
        return ActionResult(state=state, status=ActionStatus.UNKNOWN_ACTION, message=f"unsupported action {action!r}")
    ctx = EngineContext(
        state=copy.deepcopy(state),
        catalog=catalog,
        config=config or EngineConfig(),
        rng=rng,
        now=float(now),
    )
    QuestTracker(ctx).attach(ctx.bus)
    for observer in observers:
        ctx.bus.subscribe(observer)
    try:
        message = handler(ctx, action) or ""
    except Rejection as rejection:
        return ActionResult(state=state, status=rejection.status, message=rejection.message)
    _settle(ctx)
    return ActionResult(state=ctx.state, status=ActionStatus.OK, message=message, events=ctx.bus.outbox)


# ---------------------------------------------------------------------------
# Stateful engine
# ---------------------------------------------------------------------------


class ProgressionEngine:
    """Owns the current snapshot and threads it through ``dispatch``."""

    def __init__(
        self,
        catalog: Optional[Catalog] = None,
        state: Optional[GameState] = None,
        *,
        rng: Optional[RandomSource] = None,
        clock: Optional[Callable[[], float]] = None,
        config: Optional[EngineConfig] = None,
        seed: int = 0,
        activity_log: Optional[ActivityLog] = None,
        metrics: Optional[Metrics] = None,
    ) -> None:
        self.catalog = catalog or default_catalog()
        self.config = config or EngineConfig()
        self.state = state if state is not None else initial_state(self.catalog, self.config)
        self.rng: RandomSource = rng if rng is not None else RNGService(seed=seed)
        self.clock = clock or time.time
        self.activity_log = activity_log or ActivityLog(self.config.activity_log_capacity)
        self.metrics = metrics or Metrics()
        self._observers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber, *, kinds: Iterable[str] = ()) -> None:
        wanted = frozenset(kinds)
        if not wanted:
            self._observers.append(callback)
            return

        def filtered(state: GameState, event: GameplayEvent) -> None:
            if event.kind in wanted:
                callback(state, event)

        self._observers.append(filtered)

    def dispatch(self, action: Action, now: Optional[float] = None) -> ActionResult:
        at = float(self.clock() if now is None else now)
        result = reduce(
            self.state,
            action,
            catalog=self.catalog,
            now=at,
            rng=self.rng,
            config=self.config,
            observers=tuple(self._observers),
        )
        self.state = result.state
        self._record(action, result, at)
        return result

    def dispatch_many(self, actions: Iterable[Action], now: Optional[float] = None) -> List[ActionResult]:
        return [self.dispatch(action, now=now) for action in actions]

    def _record(self, action: Action, result: ActionResult, at: float) -> None:
        self.activity_log.log_action(
            at=at,
            action=action.verb,
            status=result.status.value,
            ok=result.ok,
            message=result.message,
        )
        self.metrics.record_action(action.verb, result.status.value, result.ok)
        for event in result.events:
            self.activity_log.log_gameplay(at=event.at, kind=event.kind, payload=event.payload)
            self.metrics.record_event(event.kind)
        self.metrics.set_gauge("chrono_energy", self.state.chrono_energy)
        self.metrics.set_gauge("soil_quality", self.state.soil_quality)
        self.metrics.set_gauge("planted_crops", len(self.state.planted_crops))

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------
    def maturity(self, instance_id: str, now: Optional[float] = None) -> Optional[float]:
        planted = self.state.planted(instance_id)
        if planted is None:
            return None
        at = float(self.clock() if now is None else now)
        return crop_maturity(self.state, self.catalog, planted, at, config=self.config)

    def plant_cost(self, crop_id: str, era_id: Optional[str] = None) -> Optional[Dict[str, float]]:
        crop = self.catalog.crop(crop_id)
        if crop is None:
            return None
        return plant_cost(self.state, self.catalog, crop, era_id or crop.era_id)

    def synergy_levels(self) -> Dict[str, int]:
        return synergy_levels(self.catalog, self.state.synergy_stats)

    def prestige_tier(self):
        return prestige_tier(self.catalog, self.state.prestige_count)


__all__ = ["HANDLERS", "ProgressionEngine", "reduce"]
