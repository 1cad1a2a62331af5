"""
Deck/Hand Manager - draw, discard and reshuffle bookkeeping.

Cards live in an arena keyed by instance id; the three piles are ordered
tuples of those ids. Every operation is a single transition from one Piles
triple to the next, so a reshuffle in the middle of a draw is never visible
half-done.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from .rng import Random

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CardInstance:
    """One physical card: a definition id plus a unique instance id."""
    instance_id: str
    card_id: str


@dataclass(frozen=True)
class Piles:
    """Deck (top = index 0), hand and discard as instance-id tuples."""
    deck: Tuple[str, ...] = ()
    hand: Tuple[str, ...] = ()
    discard: Tuple[str, ...] = ()

    def __post_init__(self):
        total = self.deck + self.hand + self.discard
        assert len(set(total)) == len(total), "card instance in more than one pile"

    @property
    def total(self) -> int:
        return len(self.deck) + len(self.hand) + len(self.discard)

    def in_hand(self, instance_id: str) -> bool:
        return instance_id in self.hand

    def to_dict(self) -> dict:
        return {"deck": list(self.deck), "hand": list(self.hand), "discard": list(self.discard)}


def build_arena(card_ids: Iterable[str], copies: int = 1) -> Dict[str, CardInstance]:
    """
    Expand a deck list into card instances.

    Each entry yields `copies` instances with ids "<card_id>#<n>", numbered
    per card so two copies of the same card never collide.
    """
    arena: Dict[str, CardInstance] = {}
    counts: Dict[str, int] = {}
    for card_id in card_ids:
        for _ in range(copies):
            n = counts.get(card_id, 0) + 1
            counts[card_id] = n
            instance_id = f"{card_id}#{n}"
            arena[instance_id] = CardInstance(instance_id, card_id)
    return arena


def new_piles(instance_ids: Iterable[str], rng: Random) -> Piles:
    """Shuffle every instance into the deck."""
    return Piles(deck=tuple(rng.shuffle(list(instance_ids))))


def reshuffle(piles: Piles, rng: Random) -> Piles:
    """Shuffle the discard pile under the deck; discard becomes empty."""
    if not piles.discard:
        return piles
    return Piles(
        deck=piles.deck + tuple(rng.shuffle(list(piles.discard))),
        hand=piles.hand,
        discard=(),
    )


def draw(piles: Piles, count: int, rng: Random) -> Tuple[Piles, List[str]]:
    """
    Draw up to `count` cards from the top of the deck.

    Reshuffles the discard pile when the deck runs out. If both are empty the
    draw stops early and returns what it got.
    """
    drawn: List[str] = []
    for _ in range(max(0, count)):
        if not piles.deck:
            if not piles.discard:
                logger.warning("Draw requested with empty deck and discard (%d short)",
                               count - len(drawn))
                break
            piles = reshuffle(piles, rng)
            logger.debug("Reshuffled %d cards into deck", len(piles.deck))
        card = piles.deck[0]
        drawn.append(card)
        piles = Piles(piles.deck[1:], piles.hand + (card,), piles.discard)
    return piles, drawn


def discard(piles: Piles, instance_id: str) -> Piles:
    """Move a card from hand to the discard pile (playing or manual discard)."""
    if instance_id not in piles.hand:
        raise ValueError(f"{instance_id} is not in hand")
    return Piles(
        deck=piles.deck,
        hand=tuple(c for c in piles.hand if c != instance_id),
        discard=piles.discard + (instance_id,),
    )
