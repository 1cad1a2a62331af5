"""
Shared pytest fixtures for the card battle test suite.

This module provides reusable fixtures for:
- RNG with known seeds
- Profiles and engines with a controlled deck and enemy
- Scripted enemies whose damage is fixed
"""

import os
import sys

import pytest

# Ensure project root is in path
_project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _project_root)

from packages.battle.combat_engine import BattleEngine, create_battle
from packages.battle.config import BattleConfig
from packages.battle.content.enemies import EnemyDefinition, EnemyTier, strike
from packages.battle.profile import PlayerProfile
from packages.battle.state.combat import BattlePhase, Side
from packages.battle.state.rng import BattleRNG, Random


# =============================================================================
# Helpers
# =============================================================================


def make_enemy(damage=12, hp=100, energy=1, abilities=None, enemy_id="dummy"):
    """A basic enemy whose only ability hits for exactly `damage`."""
    if abilities is None:
        abilities = (strike("Hit", damage, damage, 100, "hits you!"),)
    return EnemyDefinition(enemy_id, "Dummy", hp, EnemyTier.BASIC, tuple(abilities),
                           gold_reward=(10, 10), max_energy=energy)


def make_profile(hp=100, max_energy=10, hand_size=6, deck=None, talents=(), items=(),
                 unlocks=()):
    profile = PlayerProfile(name="Tester", max_hp=hp, hp=hp, max_energy=max_energy,
                            hand_size=hand_size, talents=list(talents), items=list(items),
                            unlocks=list(unlocks))
    if deck is not None:
        profile.deck = list(deck)
    return profile


def make_engine(deck=None, enemy=None, seed=42, config=None, **profile_kwargs) -> BattleEngine:
    """
    Create a BattleEngine for testing (not started).

    Six copies per card, so a one-card deck fills a hand exactly.
    """
    return create_battle(
        make_profile(deck=deck, **profile_kwargs),
        enemy=enemy if enemy is not None else make_enemy(),
        config=config or BattleConfig(copies_per_card=6),
        rng=seed,
        session_id="test",
    )


def begin_player_turn(engine: BattleEngine) -> None:
    """Skip the coin flip and the turn holds: the player acts with a fresh hand."""
    engine.state.phase = BattlePhase.PLAYER_TURN
    engine._start_turn(Side.PLAYER)


def begin_enemy_turn(engine: BattleEngine) -> None:
    """Skip the coin flip and the turn holds: the enemy starts acting."""
    engine.state.phase = BattlePhase.ENEMY_TURN
    engine._start_turn(Side.ENEMY)


def hand_card(engine: BattleEngine, card_id: str) -> str:
    """Instance id of the first copy of card_id in hand."""
    for instance_id in engine.state.hand:
        if engine.state.card_id_of(instance_id) == card_id:
            return instance_id
    raise AssertionError(f"{card_id} not in hand: {engine.state.hand}")


# =============================================================================
# RNG Fixtures
# =============================================================================


@pytest.fixture
def rng_seed_42():
    """RNG initialized with seed 42 for deterministic tests."""
    return Random(42)


@pytest.fixture
def battle_rng():
    return BattleRNG(seed=42)


# =============================================================================
# Engine Fixtures
# =============================================================================


@pytest.fixture
def config():
    return BattleConfig()


@pytest.fixture
def profile():
    return make_profile()


@pytest.fixture
def dummy_enemy():
    return make_enemy()


@pytest.fixture
def engine():
    """Engine with a strike-only deck against a 12-damage dummy."""
    return make_engine(deck=["quick_jab"])
