"""
Status Ledger - the ordered set of live status instances on one combatant.

Ledgers are immutable: every operation returns a new ledger and leaves the
input untouched, so the damage pipeline can read a ledger speculatively and
the engine commits the result only when an action actually resolves.

Insertion order is preserved. It is both the display order and the order in
which multipliers are composed.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterator, Optional, Tuple

from ..content.statuses import StatusDefinition, get_status


@dataclass(frozen=True)
class StatusInstance:
    """A live status on a combatant."""
    status_id: str
    stacks: int = 1
    duration: Optional[int] = None

    @property
    def definition(self) -> StatusDefinition:
        return get_status(self.status_id)

    def to_dict(self) -> dict:
        return {"id": self.status_id, "stacks": self.stacks, "duration": self.duration}


@dataclass(frozen=True)
class StatusLedger:
    """Ordered, duplicate-free collection of StatusInstance."""
    instances: Tuple[StatusInstance, ...] = ()

    def __post_init__(self):
        seen = set()
        for inst in self.instances:
            assert inst.status_id not in seen, f"duplicate status instance: {inst.status_id}"
            seen.add(inst.status_id)
            max_stacks = inst.definition.max_stacks
            assert 1 <= inst.stacks <= max_stacks, (
                f"{inst.status_id} stacks {inst.stacks} outside [1, {max_stacks}]"
            )

    def __iter__(self) -> Iterator[StatusInstance]:
        return iter(self.instances)

    def __len__(self) -> int:
        return len(self.instances)

    def __contains__(self, status_id: str) -> bool:
        return self.get(status_id) is not None

    def get(self, status_id: str) -> Optional[StatusInstance]:
        for inst in self.instances:
            if inst.status_id == status_id:
                return inst
        return None

    def stacks(self, status_id: str) -> int:
        inst = self.get(status_id)
        return inst.stacks if inst else 0

    def with_definitions(self) -> Iterator[Tuple[StatusInstance, StatusDefinition]]:
        for inst in self.instances:
            yield inst, inst.definition

    def apply(self, definition: StatusDefinition, stacks: int = 1,
              duration: Optional[int] = None) -> "StatusLedger":
        return apply_status(self, definition, stacks, duration)

    def tick(self) -> "StatusLedger":
        return tick_statuses(self)

    def remove(self, status_id: str) -> "StatusLedger":
        return remove_status(self, status_id)

    def to_list(self) -> list:
        return [inst.to_dict() for inst in self.instances]


EMPTY_LEDGER = StatusLedger()


def create_instance(definition: StatusDefinition, stacks: int = 1,
                    duration: Optional[int] = None) -> StatusInstance:
    """Build a fresh instance: refresh-only kinds hold one stack, duration
    falls back to the definition default."""
    if definition.stackable:
        stacks = min(max(stacks, 1), definition.max_stacks)
    else:
        stacks = 1
    if duration is None:
        duration = definition.default_duration
    return StatusInstance(definition.id, stacks, duration)


def apply_status(ledger: StatusLedger, definition: StatusDefinition,
                 stacks: int = 1, duration: Optional[int] = None) -> StatusLedger:
    """
    Apply a status to a ledger.

    - Existing stackable: stacks = min(existing + stacks, max_stacks), duration kept
    - Existing refresh-only: duration overwritten, stacks stay at 1
    - Absent: new instance appended
    """
    new_inst = create_instance(definition, stacks, duration)
    instances = list(ledger.instances)

    for i, existing in enumerate(instances):
        if existing.status_id != definition.id:
            continue
        if definition.stackable:
            total = min(existing.stacks + new_inst.stacks, definition.max_stacks)
            instances[i] = replace(existing, stacks=total)
        else:
            instances[i] = replace(existing, stacks=1, duration=new_inst.duration)
        return StatusLedger(tuple(instances))

    instances.append(new_inst)
    return StatusLedger(tuple(instances))


def tick_statuses(ledger: StatusLedger) -> StatusLedger:
    """
    End-of-owner-turn tick.

    Escalating statuses gain a stack (up to max); others lose one turn of
    duration. Instances whose duration reaches 0 are dropped.
    """
    ticked = []
    for inst, definition in ledger.with_definitions():
        if definition.escalating:
            inst = replace(inst, stacks=min(inst.stacks + 1, definition.max_stacks))
        elif inst.duration is not None:
            inst = replace(inst, duration=inst.duration - 1)

        if inst.duration is not None and inst.duration <= 0:
            continue
        ticked.append(inst)
    return StatusLedger(tuple(ticked))


def remove_status(ledger: StatusLedger, status_id: str) -> StatusLedger:
    """Cleanse: drop every instance of a status kind."""
    return StatusLedger(tuple(i for i in ledger.instances if i.status_id != status_id))


def reduce_status(ledger: StatusLedger, status_id: str, amount: int = 1) -> StatusLedger:
    """Remove `amount` stacks, dropping the instance when none remain."""
    inst = ledger.get(status_id)
    if inst is None:
        return ledger
    remaining = inst.stacks - amount
    if remaining <= 0:
        return remove_status(ledger, status_id)
    return StatusLedger(tuple(
        replace(i, stacks=remaining) if i.status_id == status_id else i
        for i in ledger.instances
    ))


def clear_statuses(ledger: StatusLedger, debuffs_only: bool = False) -> StatusLedger:
    if not debuffs_only:
        return EMPTY_LEDGER
    return StatusLedger(tuple(
        inst for inst, definition in ledger.with_definitions() if not definition.is_debuff
    ))


def apply_named(ledger: StatusLedger, status_id: str, stacks: int = 1,
                duration: Optional[int] = None) -> StatusLedger:
    """apply_status by id."""
    return apply_status(ledger, get_status(status_id), stacks, duration)
