"""
State module - RNG, status ledgers and card piles.

Contains:
- RNG system (SplitMix64, one counted stream per subsystem)
- Status ledgers (immutable, insertion-ordered)
- Card piles (deck / hand / discard)

Battle state and action types live in state.combat.
"""

from .rng import SplitMix64, Random, BattleRNG
from .ledger import (
    StatusInstance,
    StatusLedger,
    EMPTY_LEDGER,
    apply_status,
    tick_statuses,
    remove_status,
    reduce_status,
    clear_statuses,
)
from .piles import CardInstance, Piles, build_arena, new_piles, reshuffle, draw, discard
