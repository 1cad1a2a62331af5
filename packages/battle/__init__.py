"""
Card Battle Engine

A turn-based duel between one player and one enemy, driven by a virtual
clock so every battle is reproducible.

Core subsystems:
- state: RNG streams, status ledgers, card piles, battle state
- content: Statuses, cards, enemies, items, talents
- calc: Damage resolution pipeline
- effects: Card/item effect and counter handler registries
- handlers: Enemy action selection, counter windows, time pressure

Usage:
    from packages.battle import create_battle, InMemoryProfileStore

    store = InMemoryProfileStore()
    engine = create_battle(store.load("alice"), enemy="bandit", rng=7)
    engine.start_battle()
    engine.advance(3.0)
    engine.execute_action(engine.get_legal_actions()[0])
"""

__version__ = "0.1.0"

# Configuration
from .config import BattleConfig, DEFAULT_CONFIG

# RNG System
from .state.rng import SplitMix64, Random, BattleRNG

# Statuses
from .content.statuses import StatusDefinition, StackingPolicy, get_status, register_status
from .state.ledger import StatusLedger, StatusInstance, EMPTY_LEDGER, apply_status, tick_statuses

# Damage Calculation
from .calc.damage import DamageResolution, preview_damage, resolve_damage, land_hit

# Battle State
from .state.combat import (
    CombatState,
    Combatant,
    BattlePhase,
    BattleResult,
    Hold,
    Rejection,
    Side,
    PlayCard,
    DiscardCard,
    EndTurn,
    RespondToCounter,
    UseDrawAbility,
    UseDiscardAbility,
    UseItem,
    Action,
)

# Engine
from .scheduler import Scheduler
from .combat_engine import BattleEngine, BattleLog, BattleReport, create_battle
from .rewards import Reward, roll_rewards
from .profile import PlayerProfile, ProfileStore, InMemoryProfileStore, JsonProfileStore

__all__ = [
    "BattleConfig", "DEFAULT_CONFIG",
    "SplitMix64", "Random", "BattleRNG",
    "StatusDefinition", "StackingPolicy", "get_status", "register_status",
    "StatusLedger", "StatusInstance", "EMPTY_LEDGER", "apply_status", "tick_statuses",
    "DamageResolution", "preview_damage", "resolve_damage", "land_hit",
    "CombatState", "Combatant", "BattlePhase", "BattleResult", "Hold", "Rejection", "Side",
    "PlayCard", "DiscardCard", "EndTurn", "RespondToCounter", "UseDrawAbility",
    "UseDiscardAbility", "UseItem", "Action",
    "Scheduler", "BattleEngine", "BattleLog", "BattleReport", "create_battle",
    "Reward", "roll_rewards",
    "PlayerProfile", "ProfileStore", "InMemoryProfileStore", "JsonProfileStore",
]
