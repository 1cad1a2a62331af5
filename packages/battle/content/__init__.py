"""
Content module - statuses, cards, enemies, items and talents.
"""

from .statuses import StatusDefinition, StackingPolicy, STATUS_DEFINITIONS, get_status
from .cards import Card, CardType, CardRarity, CardEffect, CounterSpec, ALL_CARDS, STARTER_DECK, get_card
from .enemies import (
    EnemyDefinition, EnemyTier, Ability, AbilityKind, AbilityStep,
    ALL_ENEMIES, get_enemy, get_enemy_for_floor,
)
from .items import Item, ItemType, ALL_ITEMS, get_item
