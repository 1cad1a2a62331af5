"""
Counter window rules.

A window opens when an enemy is about to deal direct damage, the player
holds a counter card, no counter has been played yet this enemy turn and no
window is already open. The engine owns the timer; these helpers only
answer the rule questions.
"""

from typing import List

from ..content.cards import get_card
from ..state.combat import BattlePhase, CombatState, Hold


def counter_cards_in_hand(state: CombatState) -> List[str]:
    return [c for c in state.piles.hand if get_card(state.card_id_of(c)).is_counter]


def can_open_window(state: CombatState) -> bool:
    if state.terminal or state.phase is not BattlePhase.ENEMY_TURN:
        return False
    if state.pending_counter is not None or state.counter_consumed:
        return False
    return bool(counter_cards_in_hand(state))


def window_open(state: CombatState) -> bool:
    return state.hold is Hold.COUNTER_WINDOW and state.pending_counter is not None
