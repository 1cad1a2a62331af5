"""
Enemy Action Selector.

An enemy turn is a sequence of abilities bought with the enemy's energy:

1. Filter abilities with cost <= remaining energy; none left ends the turn
2. Draw r uniformly in [0, total weight) and take the first ability whose
   cumulative weight reaches r (list order breaks ties)
3. Run the ability's steps in order
4. Deduct the cost; stop at the action cap

EnemyTurnPlan only does the bookkeeping. BattleEngine executes each step so the
counter window can pause a sequence between two steps.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, List, Optional, Sequence

from ..content.enemies import Ability, AbilityKind, AbilityStep
from ..state.rng import Random

logger = logging.getLogger(__name__)

DEFAULT_ACTION_CAP = 10


def affordable(abilities: Sequence[Ability], energy: int) -> List[Ability]:
    return [a for a in abilities if a.cost <= energy]


def select_ability(abilities: Sequence[Ability], energy: int, rng: Random) -> Optional[Ability]:
    """Weighted random choice among the abilities the enemy can pay for."""
    candidates = affordable(abilities, energy)
    if not candidates:
        return None

    total = sum(a.weight for a in candidates)
    r = rng.random_float_max(total)
    cumulative = 0
    for ability in candidates:
        cumulative += ability.weight
        if cumulative >= r:
            return ability
    return candidates[-1]


def roll_step_damage(step: AbilityStep, rng: Random) -> int:
    """Damage for a strike step. Multi-hit rolls are summed into one strike."""
    lo, hi = step.damage
    hits = step.hits if step.kind is AbilityKind.MULTI_HIT else 1
    return sum(rng.random_int_range(lo, hi) for _ in range(max(1, hits)))


@dataclass
class EnemyTurnPlan:
    """Progress through one enemy turn."""
    action_cap: int = DEFAULT_ACTION_CAP
    actions_taken: int = 0
    current: Optional[Ability] = None
    steps: Deque[AbilityStep] = field(default_factory=deque)

    def can_continue(self, energy: int) -> bool:
        return energy > 0 and self.actions_taken < self.action_cap

    def begin(self, abilities: Sequence[Ability], energy: int, rng: Random) -> Optional[Ability]:
        """Pick the next ability, or None when the turn is over."""
        assert self.current is None, "previous ability still running"
        if not self.can_continue(energy):
            return None
        ability = select_ability(abilities, energy, rng)
        if ability is None:
            return None
        self.current = ability
        self.steps = deque(ability.steps)
        logger.debug("Enemy selects %s (cost %d, energy %d)", ability.name, ability.cost, energy)
        return ability

    def next_step(self) -> Optional[AbilityStep]:
        return self.steps.popleft() if self.steps else None

    def finish(self) -> Ability:
        """Close the running ability. The caller deducts its cost."""
        ability = self.current
        assert ability is not None, "no ability running"
        self.current = None
        self.steps.clear()
        self.actions_taken += 1
        return ability
