"""
Time-Pressure Escalator.

Each side has a countdown clock that only runs during its own turn and
outside blocking holds (the engine decides when to call tick()).

Player clock stages:
- early: above the mid threshold
- mid:   at or below it; the enemy gains the mid buff once
- late:  at or below the late threshold; the enemy gains the late buff once,
         topping stackable statuses up to the late magnitude instead of adding
- 0:     overtime; every later player turn starts with a penalty of
         overtime_step x round index

Enemy clock at 0 during the enemy's turn ends the battle as a timeout win.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from ..config import BattleConfig
from ..content.statuses import get_status
from ..state.combat import Side

logger = logging.getLogger(__name__)


class Stage(Enum):
    EARLY = "early"
    MID = "mid"
    LATE = "late"


class PressureEventType(Enum):
    STAGE = "stage"
    OVERTIME = "overtime"
    ENEMY_TIMEOUT = "enemy_timeout"


@dataclass(frozen=True)
class PressureEvent:
    event_type: PressureEventType
    stage: Optional[Stage] = None
    buffs: Tuple[Tuple[str, int], ...] = ()


# Enemy buffs per stage: (status id, magnitude)
STAGE_BUFFS: Dict[Stage, Tuple[Tuple[str, int], ...]] = {
    Stage.MID: (("strength", 1),),
    Stage.LATE: (("strength", 2), ("enraged", 1)),
}


@dataclass
class TimePressure:
    config: BattleConfig
    clocks: Dict[Side, float] = field(default_factory=dict)
    stage: Stage = Stage.EARLY
    fired: set = field(default_factory=set)
    granted: Dict[str, int] = field(default_factory=dict)
    overtime: bool = False
    overtime_round: int = 0

    def __post_init__(self):
        if not self.clocks:
            self.clocks = {Side.PLAYER: self.config.clock_budget,
                           Side.ENEMY: self.config.clock_budget}

    def remaining(self, side: Side) -> float:
        return self.clocks[side]

    def _player_marks(self) -> List[Tuple[float, str]]:
        return [
            (self.config.mid_threshold, Stage.MID.value),
            (self.config.late_threshold, Stage.LATE.value),
            (0.0, PressureEventType.OVERTIME.value),
        ]

    def time_to_next_event(self, side: Side) -> Optional[float]:
        """Clock time until the next unfired crossing for this side."""
        clock = self.clocks[side]
        if side is Side.ENEMY:
            if PressureEventType.ENEMY_TIMEOUT.value in self.fired:
                return None
            return max(0.0, clock)
        pending = [clock - mark for mark, key in self._player_marks() if key not in self.fired]
        if not pending:
            return None
        return max(0.0, min(pending))

    def tick(self, side: Side, dt: float) -> List[PressureEvent]:
        """Run one side's clock for dt and report every crossing, in order."""
        assert dt >= 0
        self.clocks[side] = max(0.0, self.clocks[side] - dt)
        clock = self.clocks[side]
        events: List[PressureEvent] = []

        if side is Side.ENEMY:
            key = PressureEventType.ENEMY_TIMEOUT.value
            if clock <= 0 and key not in self.fired:
                self.fired.add(key)
                events.append(PressureEvent(PressureEventType.ENEMY_TIMEOUT))
            return events

        for mark, key in self._player_marks():
            if clock > mark or key in self.fired:
                continue
            self.fired.add(key)
            if key == PressureEventType.OVERTIME.value:
                self.overtime = True
                logger.info("Overtime: player clock expired")
                events.append(PressureEvent(PressureEventType.OVERTIME))
            else:
                stage = Stage(key)
                self.stage = stage
                events.append(PressureEvent(PressureEventType.STAGE, stage, self._grants(stage)))
        return events

    def _grants(self, stage: Stage) -> Tuple[Tuple[str, int], ...]:
        """Buffs to apply now. Stackable statuses only receive what the
        earlier stages have not already granted."""
        grants = []
        for status_id, magnitude in STAGE_BUFFS.get(stage, ()):
            if get_status(status_id).stackable:
                amount = max(0, magnitude - self.granted.get(status_id, 0))
            else:
                amount = magnitude
            if amount:
                self.granted[status_id] = self.granted.get(status_id, 0) + amount
                grants.append((status_id, amount))
        return tuple(grants)

    def start_player_turn(self) -> int:
        """Overtime penalty owed at the start of this player turn (0 if none)."""
        if not self.overtime:
            return 0
        self.overtime_round += 1
        return self.config.overtime_penalty(self.overtime_round)

    def to_dict(self) -> dict:
        return {
            "player_clock": round(self.clocks[Side.PLAYER], 3),
            "enemy_clock": round(self.clocks[Side.ENEMY], 3),
            "stage": self.stage.value,
            "overtime": self.overtime,
            "overtime_round": self.overtime_round,
        }
