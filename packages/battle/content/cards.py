"""
Card Definitions.

A card is pure data: a type, an energy cost, a rarity and a tuple of
CardEffect payloads. The effect executor (effects/cards.py) interprets the
payloads; counter cards carry an extra CounterSpec read by the counter
subsystem.

Effect payloads:
- damage:      value = base damage, hits = multi-hit count
               extra: dice (adds d6 x 3), recoil, execute_bonus / execute_threshold
- heal:        value = health restored; extra: dice (adds d6 x 3)
- draw:        value = cards drawn
- draw_roll:   draw d6 cards
- gain_energy: value = energy gained
- apply_self:  extra["status"], value = stacks
- apply_enemy: extra["status"], value = stacks
- shield:      value = shield gained
- cleanse:     extra["status"]
- cleanse_all: remove every status on the player
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class CardType(Enum):
    DAMAGE = "damage"
    HEAL = "heal"
    UTILITY = "utility"
    CLEANSE = "cleanse"
    COUNTER = "counter"


class CardRarity(Enum):
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"


RARITY_WEIGHTS: Dict[CardRarity, int] = {
    CardRarity.COMMON: 60,
    CardRarity.RARE: 30,
    CardRarity.EPIC: 10,
}

DICE_MULTIPLIER = 3
EXECUTE_BONUS = 15
EXECUTE_THRESHOLD = 0.3


@dataclass(frozen=True)
class CardEffect:
    """One effect a card applies."""
    effect_type: str
    value: int = 0
    hits: int = 1
    extra: Dict[str, Any] = field(default_factory=dict, hash=False, compare=False)


@dataclass(frozen=True)
class CounterSpec:
    """What a counter card does to a pending enemy strike."""
    counter_type: str  # block, block_and_damage, reduce_and_damage, dice_counter, block_and_shield
    reduction: float = 1.0  # Fraction of the strike removed
    damage_back: int = 0
    threshold: int = 0  # dice_counter: roll needed to block
    damage_per_pip: int = 0  # dice_counter: damage back per pip rolled
    shield_gain: int = 0


@dataclass(frozen=True)
class Card:
    """A card definition."""
    id: str
    name: str
    card_type: CardType
    rarity: CardRarity
    cost: int = 1
    effects: Tuple[CardEffect, ...] = ()
    counter: Optional[CounterSpec] = None
    description: str = ""

    @property
    def is_counter(self) -> bool:
        return self.card_type is CardType.COUNTER

    @property
    def base_damage(self) -> int:
        return sum(e.value for e in self.effects if e.effect_type == "damage")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.card_type.value,
            "rarity": self.rarity.value,
            "cost": self.cost,
            "description": self.description,
        }


def _damage(value: int, hits: int = 1, **extra) -> CardEffect:
    return CardEffect("damage", value, hits, extra)


def _heal(value: int, **extra) -> CardEffect:
    return CardEffect("heal", value, extra=extra)


def _buff(status: str, stacks: int) -> CardEffect:
    return CardEffect("apply_self", stacks, extra={"status": status})


def _shield(amount: int) -> CardEffect:
    return CardEffect("shield", amount)


def _cleanse(status: str) -> CardEffect:
    return CardEffect("cleanse", extra={"status": status})


DRAW_1 = CardEffect("draw", 1)
CLEANSE_ALL = CardEffect("cleanse_all")


# ============ DAMAGE ============

QUICK_JAB = Card(
    id="quick_jab", name="Quick Jab", card_type=CardType.DAMAGE, rarity=CardRarity.COMMON,
    cost=2, effects=(_damage(15),),
    description="Deal 15 damage.",
)

POWER_SLAM = Card(
    id="power_slam", name="Power Slam", card_type=CardType.DAMAGE, rarity=CardRarity.COMMON,
    cost=3, effects=(_damage(22),),
    description="Deal 22 damage.",
)

SWIFT_STRIKE = Card(
    id="swift_strike", name="Swift Strike", card_type=CardType.DAMAGE, rarity=CardRarity.COMMON,
    cost=1, effects=(_damage(12),),
    description="Deal 12 damage.",
)

HEAVY_BLOW = Card(
    id="heavy_blow", name="Heavy Blow", card_type=CardType.DAMAGE, rarity=CardRarity.COMMON,
    cost=2, effects=(_damage(18),),
    description="Deal 18 damage.",
)

LUCKY_STRIKE = Card(
    id="lucky_strike", name="Lucky Strike", card_type=CardType.DAMAGE, rarity=CardRarity.RARE,
    cost=3, effects=(_damage(18, dice=True),),
    description="Deal 18 damage plus 3 per pip on a d6.",
)

CRUSHING_HAMMER = Card(
    id="crushing_hammer", name="Crushing Hammer", card_type=CardType.DAMAGE, rarity=CardRarity.RARE,
    cost=4, effects=(_damage(28),),
    description="Deal 28 damage.",
)

DOUBLE_TAP = Card(
    id="double_tap", name="Double Tap", card_type=CardType.DAMAGE, rarity=CardRarity.RARE,
    cost=3, effects=(_damage(10, hits=2),),
    description="Deal 10 damage twice.",
)

EXECUTE = Card(
    id="execute", name="Execute", card_type=CardType.DAMAGE, rarity=CardRarity.RARE,
    cost=3, effects=(_damage(20, execute_bonus=EXECUTE_BONUS, execute_threshold=EXECUTE_THRESHOLD),),
    description="Deal 20 damage. 15 more if the enemy is at 30% health or less.",
)

DEVASTATING_BLOW = Card(
    id="devastating_blow", name="Devastating Blow", card_type=CardType.DAMAGE,
    rarity=CardRarity.EPIC, cost=5, effects=(_damage(40),),
    description="Deal 40 damage.",
)

METEOR_STRIKE = Card(
    id="meteor_strike", name="Meteor Strike", card_type=CardType.DAMAGE, rarity=CardRarity.EPIC,
    cost=3, effects=(_damage(35, recoil=5),),
    description="Deal 35 damage. Take 5 recoil.",
)

BLADE_FLURRY = Card(
    id="blade_flurry", name="Blade Flurry", card_type=CardType.DAMAGE, rarity=CardRarity.EPIC,
    cost=3, effects=(_damage(8, hits=3),),
    description="Deal 8 damage three times.",
)


# ============ HEAL ============

FIRST_AID = Card(
    id="first_aid", name="First Aid", card_type=CardType.HEAL, rarity=CardRarity.COMMON,
    cost=2, effects=(_heal(18),),
    description="Heal 18.",
)

MINOR_HEAL = Card(
    id="minor_heal", name="Minor Heal", card_type=CardType.HEAL, rarity=CardRarity.COMMON,
    cost=1, effects=(_heal(12),),
    description="Heal 12.",
)

HEALING_POTION = Card(
    id="healing_potion", name="Healing Potion", card_type=CardType.HEAL, rarity=CardRarity.RARE,
    cost=3, effects=(_heal(12, dice=True),),
    description="Heal 12 plus 3 per pip on a d6.",
)

BIG_HEAL = Card(
    id="big_heal", name="Big Heal", card_type=CardType.HEAL, rarity=CardRarity.RARE,
    cost=3, effects=(_heal(25),),
    description="Heal 25.",
)

REGENERATION = Card(
    id="regeneration", name="Regeneration", card_type=CardType.HEAL, rarity=CardRarity.RARE,
    cost=2, effects=(_heal(10), DRAW_1),
    description="Heal 10. Draw 1 card.",
)

FULL_RESTORE = Card(
    id="full_restore", name="Full Restore", card_type=CardType.HEAL, rarity=CardRarity.EPIC,
    cost=4, effects=(_heal(40),),
    description="Heal 40.",
)

MIRACLE_CURE = Card(
    id="miracle_cure", name="Miracle Cure", card_type=CardType.HEAL, rarity=CardRarity.EPIC,
    cost=4, effects=(_heal(30), CLEANSE_ALL),
    description="Heal 30. Remove all statuses.",
)


# ============ UTILITY ============

SHIELD_WALL = Card(
    id="shield_wall", name="Shield Wall", card_type=CardType.UTILITY, rarity=CardRarity.COMMON,
    cost=1, effects=(_shield(10),),
    description="Gain 10 shield.",
)

CARD_DRAW = Card(
    id="card_draw", name="Card Draw", card_type=CardType.UTILITY, rarity=CardRarity.COMMON,
    cost=1, effects=(DRAW_1,),
    description="Draw 1 card.",
)

ENERGY_BOOST = Card(
    id="energy_boost", name="Energy Boost", card_type=CardType.UTILITY, rarity=CardRarity.COMMON,
    cost=0, effects=(CardEffect("gain_energy", 2),),
    description="Gain 2 energy.",
)

FOCUS = Card(
    id="focus", name="Focus", card_type=CardType.UTILITY, rarity=CardRarity.COMMON,
    cost=1, effects=(CardEffect("gain_energy", 2),),
    description="Gain 2 energy.",
)

LUCKY_DRAW = Card(
    id="lucky_draw", name="Lucky Draw", card_type=CardType.UTILITY, rarity=CardRarity.RARE,
    cost=3, effects=(CardEffect("draw_roll"),),
    description="Draw a d6 of cards.",
)

SECOND_WIND = Card(
    id="second_wind", name="Second Wind", card_type=CardType.UTILITY, rarity=CardRarity.RARE,
    cost=1, effects=(CardEffect("draw", 2), CardEffect("gain_energy", 2)),
    description="Draw 2 cards. Gain 2 energy.",
)

PREPARATION = Card(
    id="preparation", name="Preparation", card_type=CardType.UTILITY, rarity=CardRarity.RARE,
    cost=2, effects=(CardEffect("draw", 3),),
    description="Draw 3 cards.",
)

FORTIFY = Card(
    id="fortify", name="Fortify", card_type=CardType.UTILITY, rarity=CardRarity.RARE,
    cost=2, effects=(_shield(20),),
    description="Gain 20 shield.",
)

TIME_WARP = Card(
    id="time_warp", name="Time Warp", card_type=CardType.UTILITY, rarity=CardRarity.EPIC,
    cost=0, effects=(CardEffect("gain_energy", 8),),
    description="Gain 8 energy.",
)

MASTER_PLAN = Card(
    id="master_plan", name="Master Plan", card_type=CardType.UTILITY, rarity=CardRarity.EPIC,
    cost=2, effects=(CardEffect("draw", 4), CardEffect("gain_energy", 3)),
    description="Draw 4 cards. Gain 3 energy.",
)

ADRENALINE_RUSH = Card(
    id="adrenaline_rush", name="Adrenaline Rush", card_type=CardType.UTILITY,
    rarity=CardRarity.EPIC, cost=1,
    effects=(CardEffect("draw", 2), CardEffect("gain_energy", 4), _heal(10)),
    description="Draw 2 cards. Gain 4 energy. Heal 10.",
)

BATTLE_CRY = Card(
    id="battle_cry", name="Battle Cry", card_type=CardType.UTILITY, rarity=CardRarity.COMMON,
    cost=2, effects=(_buff("strength", 3),),
    description="Gain 3 Strength.",
)

REGENERATE = Card(
    id="regenerate", name="Regenerate", card_type=CardType.UTILITY, rarity=CardRarity.COMMON,
    cost=2, effects=(_buff("regeneration", 2),),
    description="Gain 2 Regeneration.",
)

EVASION = Card(
    id="evasion", name="Evasion", card_type=CardType.UTILITY, rarity=CardRarity.RARE,
    cost=2, effects=(_buff("dodge", 1),),
    description="Gain 1 Dodge.",
)

THORNY_ARMOR = Card(
    id="thorny_armor", name="Thorny Armor", card_type=CardType.UTILITY, rarity=CardRarity.RARE,
    cost=2, effects=(_buff("thorns", 3),),
    description="Gain 3 Thorns.",
)

POWER_SURGE = Card(
    id="power_surge", name="Power Surge", card_type=CardType.UTILITY, rarity=CardRarity.EPIC,
    cost=3, effects=(_buff("strength", 5),),
    description="Gain 5 Strength.",
)

DIVINE_PROTECTION = Card(
    id="divine_protection", name="Divine Protection", card_type=CardType.UTILITY,
    rarity=CardRarity.EPIC, cost=3, effects=(_shield(15), _buff("dodge", 1)),
    description="Gain 15 shield and 1 Dodge.",
)


# ============ CLEANSE ============

ANTIDOTE = Card(
    id="antidote", name="Antidote", card_type=CardType.CLEANSE, rarity=CardRarity.COMMON,
    cost=1, effects=(_cleanse("poison"),),
    description="Remove Poison.",
)

CLEAR_MIND = Card(
    id="clear_mind", name="Clear Mind", card_type=CardType.CLEANSE, rarity=CardRarity.COMMON,
    cost=1, effects=(_cleanse("dazed"),),
    description="Remove Dazed.",
)

BANDAGE = Card(
    id="bandage", name="Bandage", card_type=CardType.CLEANSE, rarity=CardRarity.COMMON,
    cost=2, effects=(_cleanse("bleed"), _heal(5)),
    description="Remove Bleed. Heal 5.",
)

PURIFY = Card(
    id="purify", name="Purify", card_type=CardType.CLEANSE, rarity=CardRarity.RARE,
    cost=2, effects=(CLEANSE_ALL,),
    description="Remove all statuses.",
)

CLEANSING_FIRE = Card(
    id="cleansing_fire", name="Cleansing Fire", card_type=CardType.CLEANSE,
    rarity=CardRarity.RARE, cost=3, effects=(CLEANSE_ALL, _heal(15)),
    description="Remove all statuses. Heal 15.",
)


# ============ COUNTER ============

PERFECT_BLOCK = Card(
    id="perfect_block", name="Perfect Block", card_type=CardType.COUNTER, rarity=CardRarity.RARE,
    cost=2, counter=CounterSpec("block"),
    description="Counter: block the incoming attack.",
)

RIPOSTE = Card(
    id="riposte", name="Riposte", card_type=CardType.COUNTER, rarity=CardRarity.RARE,
    cost=3, counter=CounterSpec("block_and_damage", damage_back=15),
    description="Counter: block the attack and deal 15 damage.",
)

COUNTER_STRIKE = Card(
    id="counter_strike", name="Counter Strike", card_type=CardType.COUNTER,
    rarity=CardRarity.COMMON, cost=2,
    counter=CounterSpec("reduce_and_damage", reduction=0.5, damage_back=20),
    description="Counter: halve the attack and deal 20 damage.",
)

LUCKY_COUNTER = Card(
    id="lucky_counter", name="Lucky Counter", card_type=CardType.COUNTER, rarity=CardRarity.EPIC,
    cost=2, counter=CounterSpec("dice_counter", threshold=4, damage_per_pip=5),
    description="Counter: roll a d6. On 4+ block and deal 5 per pip.",
)

PARRY = Card(
    id="parry", name="Parry", card_type=CardType.COUNTER, rarity=CardRarity.RARE,
    cost=2, counter=CounterSpec("block_and_shield", shield_gain=10),
    description="Counter: block the attack and gain 10 shield.",
)


ALL_CARDS: Dict[str, Card] = {
    c.id: c for c in (
        QUICK_JAB, POWER_SLAM, SWIFT_STRIKE, HEAVY_BLOW, LUCKY_STRIKE, CRUSHING_HAMMER,
        DOUBLE_TAP, EXECUTE, DEVASTATING_BLOW, METEOR_STRIKE, BLADE_FLURRY,
        FIRST_AID, MINOR_HEAL, HEALING_POTION, BIG_HEAL, REGENERATION, FULL_RESTORE,
        MIRACLE_CURE,
        SHIELD_WALL, CARD_DRAW, ENERGY_BOOST, FOCUS, LUCKY_DRAW, SECOND_WIND, PREPARATION,
        FORTIFY, TIME_WARP, MASTER_PLAN, ADRENALINE_RUSH, BATTLE_CRY, REGENERATE, EVASION,
        THORNY_ARMOR, POWER_SURGE, DIVINE_PROTECTION,
        ANTIDOTE, CLEAR_MIND, BANDAGE, PURIFY, CLEANSING_FIRE,
        PERFECT_BLOCK, RIPOSTE, COUNTER_STRIKE, LUCKY_COUNTER, PARRY,
    )
}

STARTER_DECK: List[str] = [
    "quick_jab", "heavy_blow", "swift_strike", "first_aid", "shield_wall", "counter_strike",
]


def get_card(card_id: str) -> Card:
    """Get a card definition by id."""
    if card_id not in ALL_CARDS:
        raise ValueError(f"Unknown card: {card_id}")
    return ALL_CARDS[card_id]


def cards_by_rarity(rarity: CardRarity) -> List[Card]:
    return [c for c in ALL_CARDS.values() if c.rarity is rarity]
