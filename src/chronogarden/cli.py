"""Command line tools: inspect the catalog and replay scripted actions.

    chronogarden catalog [--catalog PATH]
    chronogarden new STATE [--player NAME]
    chronogarden replay STATE SCRIPT [--seed N] [--out PATH]
    chronogarden status STATE

A replay script is a YAML (or JSON) list of actions, each a mapping with a
``verb``, the action's fields and an optional ``at`` timestamp in seconds.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence

import yaml

from .catalog import Catalog, CatalogError, default_catalog, load_catalog
from .runtime.actions import action_from_mapping
from .runtime.config import EngineConfig
from .runtime.engine import ProgressionEngine
from .runtime.snapshot import SnapshotValidationError, load_state, save_state
from .state import initial_state


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="chronogarden", description="ChronoGarden engine tools")
    parser.add_argument("--catalog", type=Path, help="Catalog YAML (defaults to the bundled catalog)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("catalog", help="List eras, crops and upgrades")

    new = sub.add_parser("new", help="Write a fresh game state")
    new.add_argument("state", type=Path)
    new.add_argument("--player", help="Player name")
    new.add_argument("--garden", help="Garden name")

    replay = sub.add_parser("replay", help="Apply a scripted list of actions to a saved state")
    replay.add_argument("state", type=Path)
    replay.add_argument("script", type=Path)
    replay.add_argument("--seed", type=int, default=0, help="Seed for the random source")
    replay.add_argument("--out", type=Path, help="Where to save the result (defaults to STATE)")
    replay.add_argument("--start", type=float, default=0.0, help="Timestamp for actions without 'at'")

    status = sub.add_parser("status", help="Summarise a saved state")
    status.add_argument("state", type=Path)
    return parser.parse_args(argv)


def _load_catalog(path: Optional[Path]) -> Catalog:
    return load_catalog(path) if path is not None else default_catalog()


def _print_catalog(catalog: Catalog) -> None:
    for era in sorted(catalog.eras.values(), key=lambda e: e.unlock_cost):
        print(f"{era.era_id} (unlock {era.unlock_cost:g} CE)")
        for crop in catalog.crops_for_era(era.era_id):
            cost = ", ".join(f"{k} {v:g}" for k, v in crop.cost.items())
            gain = ", ".join(f"{k} {v:g}" for k, v in crop.yield_.items())
            print(f"  {crop.crop_id:<14} {crop.growth_time:>6g}s  cost: {cost}  yield: {gain}")
        for upgrade in catalog.upgrades.values():
            if upgrade.era_id == era.era_id:
                print(f"  [upgrade] {upgrade.upgrade_id} (max {upgrade.max_level})")
    for upgrade in catalog.permanent_upgrades.values():
        print(f"[nexus] {upgrade.upgrade_id} (max {upgrade.max_level})")


def _print_status(engine: ProgressionEngine) -> None:
    state = engine.state
    tier = engine.prestige_tier()
    print(f"{state.player_name} / {state.garden_name}")
    print(f"era: {state.current_era}  unlocked: {', '.join(state.unlocked_eras)}")
    print(f"chrono-energy: {state.chrono_energy:g}  prestige: {state.prestige_count} ({tier.name if tier else '-'})")
    print(f"soil: {state.soil_quality:g}  rare seeds: {', '.join(state.rare_seeds) or '-'}")
    resources = ", ".join(f"{k} {v:g}" for k, v in sorted(state.resources.items()) if v)
    print(f"resources: {resources or '-'}")
    for planted in state.planted_crops:
        print(f"  {planted.instance_id}: {planted.crop_id} ({planted.era_id})")
    completed = [goal_id for goal_id, status in state.goal_status.items() if status.completed]
    print(f"goals completed: {', '.join(completed) or '-'}")


def _read_script(path: Path) -> List[Mapping[str, Any]]:
    with open(path, "r", encoding="utf-8") as fp:
        steps = yaml.safe_load(fp) or []
    if not isinstance(steps, list) or not all(isinstance(step, Mapping) for step in steps):
        raise ValueError(f"{path}: expected a list of action mappings")
    return steps


def _replay(args: argparse.Namespace, catalog: Catalog, config: EngineConfig) -> int:
    state = load_state(args.state, catalog, config=config)
    engine = ProgressionEngine(catalog, state, seed=args.seed, config=config)
    rejected = 0
    for index, step in enumerate(_read_script(args.script)):
        fields = {key: value for key, value in step.items() if key != "at"}
        at = float(step.get("at", args.start))
        action = action_from_mapping(fields)
        result = engine.dispatch(action, now=at)
        marker = "ok " if result.ok else "-- "
        print(f"{marker}{index:>3} {action.verb}: {result.status.value} {result.message}".rstrip())
        if not result.ok:
            rejected += 1
    digest = save_state(engine.state, args.out or args.state)
    print(f"saved {args.out or args.state} ({digest[:12]}), {rejected} rejected")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    config = EngineConfig()
    try:
        catalog = _load_catalog(args.catalog)
        if args.command == "catalog":
            _print_catalog(catalog)
            return 0
        if args.command == "new":
            state = initial_state(catalog, config)
            if args.player:
                state.player_name = args.player
            if args.garden:
                state.garden_name = args.garden
            digest = save_state(state, args.state)
            print(f"saved {args.state} ({digest[:12]})")
            return 0
        if args.command == "replay":
            return _replay(args, catalog, config)
        if args.command == "status":
            engine = ProgressionEngine(catalog, load_state(args.state, catalog, config=config), config=config)
            _print_status(engine)
            return 0
    except (CatalogError, SnapshotValidationError, ValueError, FileNotFoundError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
