"""
Seeded random streams for a battle.

Every random decision the engine makes goes through a Random instance so a
battle replays exactly from its seed. Each stream counts its draws; the
counts are exposed in the engine snapshot.

RNG Streams (BattleRNG):
- turn_rng: First-turn coin flip
- ai_rng: Enemy ability selection and damage rolls
- shuffle_rng: Deck shuffle order
- card_rng: Dice rolls inside card and counter effects
- reward_rng: Gold, item drops and card reward options
"""

from dataclasses import dataclass, field
from typing import Dict, List, Sequence, TypeVar

T = TypeVar("T")

MASK_64 = 0xFFFFFFFFFFFFFFFF
GOLDEN_GAMMA = 0x9E3779B97F4A7C15

STREAMS = ("turn", "ai", "shuffle", "card", "reward")


class SplitMix64:
    """SplitMix64: a 64-bit counter passed through a mixing function."""

    def __init__(self, seed: int):
        self.state = seed & MASK_64

    def next_u64(self) -> int:
        self.state = (self.state + GOLDEN_GAMMA) & MASK_64
        z = self.state
        z = ((z ^ (z >> 30)) * 0xBF58476D1CE4E5B9) & MASK_64
        z = ((z ^ (z >> 27)) * 0x94D049BB133111EB) & MASK_64
        return z ^ (z >> 31)

    def next_below(self, bound: int) -> int:
        """Uniform int in [0, bound), rejecting the biased tail."""
        if bound <= 0:
            raise ValueError("bound must be positive")
        limit = (1 << 64) - (1 << 64) % bound
        while True:
            value = self.next_u64()
            if value < limit:
                return value % bound

    def next_float(self) -> float:
        """Float in [0, 1) from the top 53 bits."""
        return (self.next_u64() >> 11) / (1 << 53)


class Random:
    """
    Counted random stream.

    - random_int(n) -> [0, n] inclusive
    - random_int_range(start, end) -> [start, end] inclusive
    - random_boolean() -> 50/50, random_boolean(chance) -> float < chance
    - random_float_max(x) -> [0, x)
    """

    def __init__(self, seed: int):
        self._gen = SplitMix64(seed)
        self.counter = 0

    def random_int(self, range_val: int) -> int:
        self.counter += 1
        return self._gen.next_below(range_val + 1)

    def random_int_range(self, start: int, end: int) -> int:
        self.counter += 1
        return start + self._gen.next_below(end - start + 1)

    def random_boolean(self, chance: float = None) -> bool:
        self.counter += 1
        if chance is None:
            return self._gen.next_u64() >> 63 == 1
        return self._gen.next_float() < chance

    def random_float_max(self, range_val: float) -> float:
        self.counter += 1
        return self._gen.next_float() * range_val

    def roll_die(self, sides: int = 6) -> int:
        """Roll a die with faces 1..sides."""
        return self.random_int_range(1, sides)

    def shuffle(self, items: Sequence[T]) -> List[T]:
        """Return a Fisher-Yates shuffled copy of items."""
        result = list(items)
        for i in range(len(result) - 1, 0, -1):
            j = self.random_int(i)
            result[i], result[j] = result[j], result[i]
        return result


@dataclass
class BattleRNG:
    """
    All RNG streams for one battle.

    Stream i is seeded with seed + i, so how often one subsystem rolls never
    shifts the others.
    """
    seed: int
    streams: Dict[str, Random] = field(init=False, repr=False)

    def __post_init__(self):
        self.streams = {name: Random(self.seed + i) for i, name in enumerate(STREAMS)}

    @property
    def turn_rng(self) -> Random:
        return self.streams["turn"]

    @property
    def ai_rng(self) -> Random:
        return self.streams["ai"]

    @property
    def shuffle_rng(self) -> Random:
        return self.streams["shuffle"]

    @property
    def card_rng(self) -> Random:
        return self.streams["card"]

    @property
    def reward_rng(self) -> Random:
        return self.streams["reward"]

    def counters(self) -> Dict[str, int]:
        """Draws taken from each stream so far."""
        return {name: rng.counter for name, rng in self.streams.items()}
