"""
Item Definitions.

Consumables are single-use per battle and reuse the card effect payloads, so
the same executor interprets them. Passive items never act during a battle;
they adjust the starting stats handed to the engine (see profile.py).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple

from .cards import CardEffect, CardRarity
from ..state.rng import Random


class ItemType(Enum):
    CONSUMABLE = "consumable"
    PASSIVE = "passive"


@dataclass(frozen=True)
class Item:
    id: str
    name: str
    item_type: ItemType
    rarity: CardRarity
    price: int = 0
    effects: Tuple[CardEffect, ...] = ()
    # Passive: stat -> bonus (max_hp, max_energy, hand_size) or status id -> stacks
    passive: Tuple[Tuple[str, int], ...] = ()
    description: str = ""

    @property
    def is_consumable(self) -> bool:
        return self.item_type is ItemType.CONSUMABLE

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "type": self.item_type.value,
                "rarity": self.rarity.value, "description": self.description}


# ============ CONSUMABLES ============

HEALTH_POTION = Item(
    id="health_potion", name="Health Potion", item_type=ItemType.CONSUMABLE,
    rarity=CardRarity.COMMON, price=40,
    effects=(CardEffect("heal", 30),),
    description="Restore 30 HP.",
)

ENERGY_DRINK = Item(
    id="energy_drink", name="Energy Drink", item_type=ItemType.CONSUMABLE,
    rarity=CardRarity.COMMON, price=35,
    effects=(CardEffect("gain_energy", 5),),
    description="Gain 5 energy.",
)

STRENGTH_POTION = Item(
    id="strength_potion", name="Strength Potion", item_type=ItemType.CONSUMABLE,
    rarity=CardRarity.COMMON, price=45,
    effects=(CardEffect("apply_self", 3, extra={"status": "strength", "duration": 1}),),
    description="Gain 3 Strength until end of turn.",
)

MYSTIC_SCROLL = Item(
    id="card_draw", name="Mystic Scroll", item_type=ItemType.CONSUMABLE,
    rarity=CardRarity.RARE, price=50,
    effects=(CardEffect("draw", 3),),
    description="Draw 3 cards.",
)

SMOKE_BOMB = Item(
    id="smoke_bomb", name="Smoke Bomb", item_type=ItemType.CONSUMABLE,
    rarity=CardRarity.RARE, price=55,
    effects=(CardEffect("apply_self", 1, extra={"status": "dodge"}),),
    description="The next enemy attack misses.",
)

CLEANSE_TONIC = Item(
    id="cleanse_tonic", name="Cleanse Tonic", item_type=ItemType.CONSUMABLE,
    rarity=CardRarity.RARE, price=60,
    effects=(CardEffect("cleanse_debuffs"),),
    description="Remove all negative effects.",
)

MEGA_POTION = Item(
    id="mega_potion", name="Mega Potion", item_type=ItemType.CONSUMABLE,
    rarity=CardRarity.EPIC, price=80,
    effects=(CardEffect("heal", 60),),
    description="Restore 60 HP.",
)

ADRENALINE_SHOT = Item(
    id="adrenaline_shot", name="Adrenaline Shot", item_type=ItemType.CONSUMABLE,
    rarity=CardRarity.EPIC, price=90,
    effects=(CardEffect("gain_energy", 8), CardEffect("draw", 2)),
    description="Gain 8 energy and draw 2 cards.",
)


# ============ PASSIVES ============

VITALITY_RING = Item(
    id="vitality_ring", name="Vitality Ring", item_type=ItemType.PASSIVE,
    rarity=CardRarity.COMMON, price=70, passive=(("max_hp", 20),),
    description="+20 max HP.",
)

ENERGY_CRYSTAL = Item(
    id="energy_crystal", name="Energy Crystal", item_type=ItemType.PASSIVE,
    rarity=CardRarity.RARE, price=100, passive=(("max_energy", 3),),
    description="+3 max energy.",
)

LUCKY_CHARM = Item(
    id="lucky_charm", name="Lucky Charm", item_type=ItemType.PASSIVE,
    rarity=CardRarity.RARE, price=90, passive=(("hand_size", 1),),
    description="+1 hand size.",
)

THORNS_RING = Item(
    id="thorns_ring", name="Thorns Ring", item_type=ItemType.PASSIVE,
    rarity=CardRarity.EPIC, price=120, passive=(("thorns", 2),),
    description="Start each battle with 2 Thorns.",
)

REGENERATION_PENDANT = Item(
    id="regeneration_pendant", name="Regeneration Pendant", item_type=ItemType.PASSIVE,
    rarity=CardRarity.EPIC, price=110, passive=(("regeneration", 1),),
    description="Start each battle with 1 Regeneration.",
)

SHIELD_AMULET = Item(
    id="shield_amulet", name="Shield Amulet", item_type=ItemType.PASSIVE,
    rarity=CardRarity.EPIC, price=130, passive=(("ward", 2),),
    description="Every hit taken deals 2 less damage.",
)


ALL_ITEMS: Dict[str, Item] = {
    i.id: i for i in (
        HEALTH_POTION, ENERGY_DRINK, STRENGTH_POTION, MYSTIC_SCROLL, SMOKE_BOMB,
        CLEANSE_TONIC, MEGA_POTION, ADRENALINE_SHOT,
        VITALITY_RING, ENERGY_CRYSTAL, LUCKY_CHARM, THORNS_RING, REGENERATION_PENDANT,
        SHIELD_AMULET,
    )
}

STAT_BONUSES = ("max_hp", "max_energy", "hand_size")


def get_item(item_id: str) -> Item:
    if item_id not in ALL_ITEMS:
        raise ValueError(f"Unknown item: {item_id}")
    return ALL_ITEMS[item_id]


def random_item(rng: Random) -> Item:
    """Roll a reward item: 10% epic, 30% rare, otherwise common."""
    roll = rng.random_int(99)
    if roll < 10:
        rarity = CardRarity.EPIC
    elif roll < 40:
        rarity = CardRarity.RARE
    else:
        rarity = CardRarity.COMMON
    pool: List[Item] = [i for i in ALL_ITEMS.values() if i.rarity is rarity]
    return pool[rng.random_int(len(pool) - 1)]
