"""
Battle State - the aggregate one BattleEngine owns and mutates.

Holds both combatants, the card arena and piles, the phase/hold pair the
turn machine runs on, the pending counter record, and the statistics
reported when the battle ends.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Set, Tuple, Union

from .ledger import EMPTY_LEDGER, StatusLedger
from .piles import CardInstance, Piles
from ..calc.damage import DamageResolution


# =============================================================================
# Action Types
# =============================================================================


@dataclass(frozen=True)
class PlayCard:
    """Play a card from hand."""

    card_id: str  # Card instance id


@dataclass(frozen=True)
class DiscardCard:
    """Manually discard a card from hand."""

    card_id: str


@dataclass(frozen=True)
class EndTurn:
    """End the player's turn."""

    pass


@dataclass(frozen=True)
class RespondToCounter:
    """Answer an open counter window: a counter card instance id, or None to skip."""

    card_id: Optional[str] = None


@dataclass(frozen=True)
class UseDrawAbility:
    """Pay energy to draw one card (once per turn)."""

    pass


@dataclass(frozen=True)
class UseDiscardAbility:
    """Discard a card for energy (once per turn)."""

    card_id: str


@dataclass(frozen=True)
class UseItem:
    """Use a consumable item (once per battle per item)."""

    item_id: str  # Item instance id


Action = Union[PlayCard, DiscardCard, EndTurn, RespondToCounter, UseDrawAbility,
               UseDiscardAbility, UseItem]


# =============================================================================
# Phases
# =============================================================================


class Side(Enum):
    PLAYER = "player"
    ENEMY = "enemy"


class BattlePhase(Enum):
    AWAITING_FIRST_TURN = "awaiting_first_turn"
    PLAYER_TURN = "player_turn"
    ENEMY_TURN = "enemy_turn"
    VICTORY = "victory"
    DEFEAT = "defeat"


class Hold(Enum):
    """Sub-state layered over a phase while a scheduled continuation is pending."""
    NONE = "none"
    TURN_BANNER = "turn_banner"
    TURN_START_DELAY = "turn_start_delay"
    COUNTER_WINDOW = "counter_window"
    ENEMY_ACTION_DELAY = "enemy_action_delay"

    @property
    def blocking(self) -> bool:
        """Clocks are frozen and player input is refused."""
        return self in (Hold.TURN_BANNER, Hold.TURN_START_DELAY, Hold.COUNTER_WINDOW)


class BattleResult(Enum):
    VICTORY = "victory"
    DEFEAT = "defeat"
    TIMEOUT_VICTORY = "timeout_victory"

    @property
    def player_won(self) -> bool:
        return self is not BattleResult.DEFEAT


class Rejection(Enum):
    """Why an action was refused. A refused action never changes state."""
    INVALID_ACTION = "invalid_action"
    INSUFFICIENT_RESOURCE = "insufficient_resource"
    BATTLE_OVER = "battle_over"


# =============================================================================
# Entity States
# =============================================================================


@dataclass
class Combatant:
    """Health, energy and statuses of one side."""

    name: str
    hp: int
    max_hp: int
    energy: int
    max_energy: int
    ledger: StatusLedger = EMPTY_LEDGER

    @property
    def is_dead(self) -> bool:
        return self.hp <= 0

    def lose_hp(self, amount: int) -> int:
        """Subtract health, clamped at 0. Returns health actually lost."""
        lost = min(self.hp, max(0, amount))
        self.hp -= lost
        return lost

    def heal(self, amount: int) -> int:
        """Add health, clamped at max_hp. Returns health actually gained."""
        gained = min(self.max_hp - self.hp, max(0, amount))
        self.hp += gained
        return gained

    def gain_energy(self, amount: int) -> int:
        gained = min(self.max_energy - self.energy, max(0, amount))
        self.energy += gained
        return gained

    def spend_energy(self, amount: int) -> None:
        assert 0 <= amount <= self.energy, f"cannot spend {amount} of {self.energy} energy"
        self.energy -= amount

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "hp": self.hp,
            "max_hp": self.max_hp,
            "energy": self.energy,
            "max_energy": self.max_energy,
            "statuses": self.ledger.to_list(),
        }


@dataclass
class PendingCounter:
    """An enemy strike held while the player may answer it."""

    resolution: DamageResolution
    ability: str
    deadline: float

    @property
    def amount(self) -> int:
        return self.resolution.amount


@dataclass
class BattleStats:
    damage_dealt: int = 0
    damage_taken: int = 0
    healing_done: int = 0
    cards_played: int = 0
    counters_played: int = 0
    items_used: int = 0
    enemies_defeated: int = 0
    turns: int = 0

    def to_dict(self) -> Dict[str, int]:
        return dict(self.__dict__)


@dataclass
class CombatState:
    """Complete battle state."""

    session_id: str
    player: Combatant
    enemy: Combatant
    enemy_id: str

    # Cards
    arena: Dict[str, CardInstance] = field(default_factory=dict)
    piles: Piles = field(default_factory=Piles)
    hand_size: int = 6

    # Turn machine
    phase: BattlePhase = BattlePhase.AWAITING_FIRST_TURN
    hold: Hold = Hold.NONE
    turn: int = 1
    first_side: Optional[Side] = None
    terminal: bool = False
    result: Optional[BattleResult] = None

    # Counter window
    pending_counter: Optional[PendingCounter] = None
    counter_consumed: bool = False

    # Enemy turn bookkeeping
    enemy_skips_turn: bool = False
    enemy_actions_taken: int = 0

    # Per-turn abilities
    draw_ability_unlocked: bool = False
    discard_ability_unlocked: bool = False
    draw_ability_used: bool = False
    discard_ability_used: bool = False

    # Items: instance id -> item id
    items: Dict[str, str] = field(default_factory=dict)
    used_items: Set[str] = field(default_factory=set)

    talents: Tuple[str, ...] = ()
    stats: BattleStats = field(default_factory=BattleStats)

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def hand(self) -> Tuple[str, ...]:
        return self.piles.hand

    @property
    def acting_side(self) -> Optional[Side]:
        if self.phase is BattlePhase.PLAYER_TURN:
            return Side.PLAYER
        if self.phase is BattlePhase.ENEMY_TURN:
            return Side.ENEMY
        return None

    def card_id_of(self, instance_id: str) -> str:
        return self.arena[instance_id].card_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "phase": self.phase.value,
            "hold": self.hold.value,
            "turn": self.turn,
            "first_side": self.first_side.value if self.first_side else None,
            "terminal": self.terminal,
            "result": self.result.value if self.result else None,
            "player": self.player.to_dict(),
            "enemy": dict(self.enemy.to_dict(), id=self.enemy_id),
            "hand": [
                {"instance_id": c, "card_id": self.card_id_of(c)} for c in self.piles.hand
            ],
            "deck_count": len(self.piles.deck),
            "discard_count": len(self.piles.discard),
            "pending_counter": (
                {"amount": self.pending_counter.amount, "ability": self.pending_counter.ability}
                if self.pending_counter else None
            ),
            "draw_ability_available": self.draw_ability_unlocked and not self.draw_ability_used,
            "discard_ability_available": (
                self.discard_ability_unlocked and not self.discard_ability_used
            ),
            "items": {k: v for k, v in self.items.items() if k not in self.used_items},
            "stats": self.stats.to_dict(),
        }


def create_combatant(name: str, hp: int, max_hp: Optional[int] = None,
                     max_energy: int = 0, ledger: StatusLedger = EMPTY_LEDGER) -> Combatant:
    """Create a combatant at full energy."""
    return Combatant(name=name, hp=hp, max_hp=max_hp or hp, energy=max_energy,
                     max_energy=max_energy, ledger=ledger)
