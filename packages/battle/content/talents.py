"""
Talent bonuses.

Talents are unlocked on the profile and only ever adjust numbers: starting
stats when a battle is built, and card damage/healing after the damage
pipeline has run.
"""

import math
from typing import Iterable, Optional

from ..state.rng import Random

# Flat damage added before the multipliers
DAMAGE_FLAT = {
    "combat_mastery_1": 2,
    "combat_mastery_2": 3,
}

# Damage multipliers, each floored in turn
DAMAGE_MULT = (
    ("power_strike", 1.15),
    ("devastating_blow", 1.25),
    ("berserker_rage", 1.1),
    ("blood_fury", 1.2),
)

# Flat damage added last
DAMAGE_FINAL_FLAT = {
    "precision_strikes": 1,
    "deadly_strikes": 2,
}

CRITICAL_TALENT = "critical_mastery"
CRITICAL_CHANCE = 0.2

HEALING_MULT = (
    ("vitality_1", 1.1),
    ("vitality_2", 1.2),
    ("regeneration_mastery", 1.3),
)

ENERGY_BONUS = {"energy_boost_1": 1, "energy_boost_2": 2, "energy_mastery": 3}
HAND_SIZE_BONUS = {"card_draw_1": 1, "card_draw_2": 1}
HEALTH_BONUS = {"health_boost_1": 10, "health_boost_2": 20, "health_boost_3": 30,
                "vitality_major": 50}
GOLD_BONUS = {"gold_finder": 0.1, "treasure_hunter": 0.2, "fortune": 0.3}


def apply_talent_damage_bonus(damage: int, talents: Iterable[str],
                              rng: Optional[Random] = None) -> int:
    """Card damage after talent bonuses. A critical needs an rng to roll."""
    talents = set(talents)
    if not talents:
        return damage

    final = damage
    for talent, bonus in DAMAGE_FLAT.items():
        if talent in talents:
            final += bonus
    for talent, mult in DAMAGE_MULT[:2]:
        if talent in talents:
            final = math.floor(final * mult)
    if CRITICAL_TALENT in talents and rng is not None and rng.random_boolean(CRITICAL_CHANCE):
        final *= 2
    for talent, mult in DAMAGE_MULT[2:]:
        if talent in talents:
            final = math.floor(final * mult)
    for talent, bonus in DAMAGE_FINAL_FLAT.items():
        if talent in talents:
            final += bonus
    return math.floor(final)


def apply_talent_healing_bonus(healing: int, talents: Iterable[str]) -> int:
    talents = set(talents)
    final = healing
    for talent, mult in HEALING_MULT:
        if talent in talents:
            final = math.floor(final * mult)
    return final


def _sum_bonus(table: dict, talents: Iterable[str]) -> int:
    talents = set(talents)
    return sum(v for k, v in table.items() if k in talents)


def talent_energy_bonus(talents: Iterable[str]) -> int:
    return _sum_bonus(ENERGY_BONUS, talents)


def talent_hand_size_bonus(talents: Iterable[str]) -> int:
    return _sum_bonus(HAND_SIZE_BONUS, talents)


def talent_health_bonus(talents: Iterable[str]) -> int:
    return _sum_bonus(HEALTH_BONUS, talents)


def talent_gold_multiplier(talents: Iterable[str]) -> float:
    talents = set(talents)
    return 1.0 + sum(v for k, v in GOLD_BONUS.items() if k in talents)
