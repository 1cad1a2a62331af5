#!/usr/bin/env python3
"""
Card Battle Engine - Command Line Interface

List content and run scripted battles against the engine.

Usage:
    python cli.py simulate --seed 42 --enemy goblin_scout
    python cli.py simulate --seed 7 --floor 5 --json
    python cli.py simulate --seed 7 --profile alice --profiles-dir profiles --record
    python cli.py enemies
    python cli.py cards --rarity epic
    python cli.py items
    python cli.py statuses
"""

import argparse
import json
import logging
import os
import sys
from typing import Optional

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from packages.battle.combat_engine import BattleEngine, create_battle
from packages.battle.config import BattleConfig
from packages.battle.content.cards import ALL_CARDS, CardRarity, get_card
from packages.battle.content.enemies import ALL_ENEMIES, get_enemy_for_floor
from packages.battle.content.items import ALL_ITEMS
from packages.battle.content.statuses import list_statuses
from packages.battle.profile import InMemoryProfileStore, JsonProfileStore
from packages.battle.state.combat import Action, BattlePhase, EndTurn, Hold, PlayCard, RespondToCounter
from packages.battle.state.rng import Random

logger = logging.getLogger("battle.cli")


# =============================================================================
# SCRIPTED POLICY
# =============================================================================

def choose_action(engine: BattleEngine) -> Optional[Action]:
    """
    Greedy scripted player.

    - Counter window: play the first affordable counter card
    - Own turn: play the affordable card with the most base damage, then
      anything else affordable, then end the turn
    - Otherwise: None (the caller advances time)
    """
    state = engine.state
    legal = engine.get_legal_actions()
    if not legal:
        return None

    if state.hold is Hold.COUNTER_WINDOW:
        counters = [a for a in legal if a.card_id is not None]
        return counters[0] if counters else RespondToCounter(None)

    if state.phase is not BattlePhase.PLAYER_TURN:
        return None

    plays = [a for a in legal if isinstance(a, PlayCard)]
    if plays:
        return max(plays, key=lambda a: get_card(state.card_id_of(a.card_id)).base_damage)
    return EndTurn()


def run_battle(engine: BattleEngine, step: float = 1.0, max_time: float = 3600.0) -> None:
    """Drive a battle to completion with choose_action()."""
    engine.start_battle()
    while not engine.state.terminal and engine.now < max_time:
        action = choose_action(engine)
        if action is None:
            engine.advance(step)
            continue
        result = engine.execute_action(action)
        if not result["success"]:
            logger.warning("Policy action rejected: %s", result["error"])
            engine.advance(step)


# =============================================================================
# COMMANDS
# =============================================================================

def cmd_simulate(args) -> int:
    """Simulate one battle with the scripted policy."""
    config = BattleConfig.from_env(args.env_file)

    if args.profiles_dir:
        store = JsonProfileStore(args.profiles_dir)
    else:
        store = InMemoryProfileStore()
    profile = store.load(args.profile)

    if args.enemy:
        enemy = args.enemy
    else:
        enemy = get_enemy_for_floor(args.floor, Random(args.seed))

    engine = create_battle(profile, enemy=enemy, config=config, rng=args.seed)
    run_battle(engine, max_time=args.max_time)

    if engine.report is None:
        print(f"Battle did not finish within {args.max_time} time units")
        return 1

    if args.record:
        store.record_battle(profile.name, engine.report)

    if args.json:
        print(json.dumps({
            "enemy": engine.enemy_def.id,
            "report": engine.report.to_dict(),
            "log": engine.log.tail(args.log_lines),
        }, indent=2))
        return 0

    report = engine.report
    print(f"{profile.name} vs {engine.enemy_def.name} (seed {args.seed})")
    print(f"First turn: {engine.state.first_side.value}")
    print(f"Result: {report.result.value}")
    print(f"Final HP: {report.final_player_hp}/{engine.state.player.max_hp}")
    print(f"Time: {engine.now:.1f}  Turns: {report.stats.turns}")
    print()
    print("Stats:")
    for key, value in report.stats.to_dict().items():
        print(f"  {key}: {value}")
    if report.reward:
        print()
        print(f"Reward: {report.reward.gold} gold, {report.reward.xp} xp")
        print(f"  Card options: {', '.join(report.reward.card_options)}")
        if report.reward.items:
            print(f"  Items: {', '.join(report.reward.items)}")
    return 0


def cmd_enemies(args) -> int:
    """List enemies."""
    enemies = list(ALL_ENEMIES.values())
    if args.json:
        print(json.dumps([e.to_dict() for e in enemies], indent=2))
        return 0
    for e in enemies:
        print(f"{e.id:<20} {e.name:<20} {e.tier.value:<6} HP {e.max_hp:<4} energy {e.max_energy}")
        for ability in e.abilities:
            print(f"    {ability.name:<22} cost {ability.cost} weight {ability.weight}")
    return 0


def cmd_cards(args) -> int:
    """List cards, optionally filtered by rarity."""
    cards = list(ALL_CARDS.values())
    if args.rarity:
        cards = [c for c in cards if c.rarity is CardRarity(args.rarity)]
    if args.json:
        print(json.dumps([c.to_dict() for c in cards], indent=2))
        return 0
    for c in cards:
        print(f"{c.id:<20} {c.card_type.value:<8} {c.rarity.value:<6} cost {c.cost}  {c.description}")
    return 0


def cmd_items(args) -> int:
    """List items."""
    for item in ALL_ITEMS.values():
        print(f"{item.id:<22} {item.item_type.value:<10} {item.rarity.value:<6} {item.description}")
    return 0


def cmd_statuses(args) -> int:
    """List statuses."""
    for status in list_statuses():
        kind = "debuff" if status.is_debuff else "buff"
        print(f"{status.id:<14} {kind:<7} {status.stacking.value:<12} max {status.max_stacks:<3} "
              f"{status.description}")
    return 0


# =============================================================================
# MAIN
# =============================================================================

def main(argv: Optional[list] = None):
    parser = argparse.ArgumentParser(
        description="Card Battle Engine - CLI for content and scripted battles",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s simulate --seed 42 --enemy goblin_scout
  %(prog)s simulate --seed 7 --floor 8 --json
  %(prog)s enemies
  %(prog)s cards --rarity rare
        """
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Simulate command
    sim_parser = subparsers.add_parser("simulate", help="Run a scripted battle")
    sim_parser.add_argument("--seed", "-s", type=int, default=0, help="Battle seed")
    sim_parser.add_argument("--enemy", "-e", choices=sorted(ALL_ENEMIES), help="Enemy id")
    sim_parser.add_argument("--floor", "-f", type=int, default=1,
                            help="Pick the enemy for this floor (ignored with --enemy)")
    sim_parser.add_argument("--profile", "-p", default="Player", help="Profile name")
    sim_parser.add_argument("--profiles-dir", help="Directory of JSON profiles")
    sim_parser.add_argument("--record", action="store_true",
                            help="Write the result back to the profile")
    sim_parser.add_argument("--env-file", help="Path to a .env file with BATTLE_* settings")
    sim_parser.add_argument("--max-time", type=float, default=3600.0,
                            help="Give up after this much virtual time")
    sim_parser.add_argument("--log-lines", type=int, default=30,
                            help="Battle log entries included in JSON output")
    sim_parser.add_argument("--json", "-j", action="store_true", help="Output in JSON format")

    # Content commands
    enemies_parser = subparsers.add_parser("enemies", help="List enemies")
    enemies_parser.add_argument("--json", "-j", action="store_true", help="Output in JSON format")

    cards_parser = subparsers.add_parser("cards", help="List cards")
    cards_parser.add_argument("--rarity", choices=[r.value for r in CardRarity])
    cards_parser.add_argument("--json", "-j", action="store_true", help="Output in JSON format")

    subparsers.add_parser("items", help="List items")
    subparsers.add_parser("statuses", help="List statuses")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    if not args.command:
        parser.print_help()
        return 1

    # Dispatch to command handler
    commands = {
        "simulate": cmd_simulate,
        "enemies": cmd_enemies,
        "cards": cmd_cards,
        "items": cmd_items,
        "statuses": cmd_statuses,
    }

    handler = commands.get(args.command)
    if handler:
        return handler(args)
    return 1


if __name__ == "__main__":
    sys.exit(main())
