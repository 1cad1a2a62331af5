"""
Victory rewards.

Rolled once, from the battle's reward stream, when the player wins:
- Gold: uniform in the enemy's range, scaled by gold talents
- XP: 15 basic / 50 elite / 100 boss
- Card options: 3 picks weighted 60/30/10 by rarity
- Items: 30% drop chance for non-boss enemies, 2 items from elites
"""

import math
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from .content.cards import RARITY_WEIGHTS, Card, cards_by_rarity
from .content.enemies import EnemyDefinition, EnemyTier
from .content.items import random_item
from .content.talents import talent_gold_multiplier
from .state.rng import Random

XP_BY_TIER = {
    EnemyTier.BASIC: 15,
    EnemyTier.ELITE: 50,
    EnemyTier.BOSS: 100,
}

ITEM_DROP_CHANCE = 0.3
CARD_OPTION_COUNT = 3


@dataclass(frozen=True)
class Reward:
    gold: int
    xp: int
    card_options: Tuple[str, ...] = ()
    items: Tuple[str, ...] = ()
    boss_reward: bool = False

    def to_dict(self) -> dict:
        return {
            "gold": self.gold,
            "xp": self.xp,
            "card_options": list(self.card_options),
            "items": list(self.items),
            "boss_reward": self.boss_reward,
        }


def roll_gold(enemy: EnemyDefinition, talents: Iterable[str], rng: Random) -> int:
    lo, hi = enemy.gold_reward
    return math.floor(rng.random_int_range(lo, hi) * talent_gold_multiplier(talents))


def roll_card_options(rng: Random, count: int = CARD_OPTION_COUNT) -> Tuple[str, ...]:
    """Distinct card ids, each rarity picked by weight first."""
    total = sum(RARITY_WEIGHTS.values())
    options: List[str] = []
    for _ in range(count):
        roll = rng.random_int(total - 1)
        cumulative = 0
        for rarity, weight in RARITY_WEIGHTS.items():
            cumulative += weight
            if roll < cumulative:
                break
        pool: List[Card] = [c for c in cards_by_rarity(rarity) if c.id not in options]
        if not pool:
            continue
        options.append(pool[rng.random_int(len(pool) - 1)].id)
    return tuple(options)


def roll_items(enemy: EnemyDefinition, rng: Random) -> Tuple[str, ...]:
    if enemy.is_boss or not rng.random_boolean(ITEM_DROP_CHANCE):
        return ()
    count = 2 if enemy.is_elite else 1
    return tuple(random_item(rng).id for _ in range(count))


def roll_rewards(enemy: EnemyDefinition, talents: Iterable[str], rng: Random) -> Reward:
    talents = tuple(talents)
    return Reward(
        gold=roll_gold(enemy, talents, rng),
        xp=XP_BY_TIER[enemy.tier],
        card_options=roll_card_options(rng),
        items=roll_items(enemy, rng),
        boss_reward=enemy.is_boss,
    )
