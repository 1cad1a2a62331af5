"""
Scheduled continuations on a virtual clock.

Every timed gap in a battle (turn banner, turn-start delay, pause between
enemy actions, counter window) is a ScheduledTask keyed by
(session_id, channel). A channel holds at most one pending task, and
cancel_session drops everything a finished battle still had queued.

Time only moves when the owner calls advance(), which makes battles fully
reproducible in tests and lets a host map units to wall-clock seconds.
"""

from __future__ import annotations

import heapq
import itertools
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

# Channels
CHANNEL_TURN = "turn"
CHANNEL_ENEMY = "enemy"
CHANNEL_COUNTER = "counter"


@dataclass(order=True)
class ScheduledTask:
    due: float
    seq: int
    session_id: str = field(compare=False)
    channel: str = field(compare=False)
    callback: Callable[[], None] = field(compare=False, repr=False)
    cancelled: bool = field(default=False, compare=False)

    @property
    def key(self) -> Tuple[str, str]:
        return (self.session_id, self.channel)


class Scheduler:
    """Virtual-time task queue."""

    def __init__(self):
        self.now = 0.0
        self._queue: List[ScheduledTask] = []
        self._pending: Dict[Tuple[str, str], ScheduledTask] = {}
        self._seq = itertools.count()

    def schedule(self, session_id: str, channel: str, delay: float,
                 callback: Callable[[], None]) -> ScheduledTask:
        """Run callback after `delay` units. One pending task per channel."""
        key = (session_id, channel)
        assert key not in self._pending, f"task already pending on {key}"
        task = ScheduledTask(self.now + max(0.0, delay), next(self._seq),
                             session_id, channel, callback)
        heapq.heappush(self._queue, task)
        self._pending[key] = task
        logger.debug("Scheduled %s/%s at t=%.2f", session_id, channel, task.due)
        return task

    def is_pending(self, session_id: str, channel: str) -> bool:
        return (session_id, channel) in self._pending

    def pending(self, session_id: str) -> List[str]:
        return sorted(ch for (sid, ch) in self._pending if sid == session_id)

    def remaining(self, session_id: str, channel: str) -> Optional[float]:
        task = self._pending.get((session_id, channel))
        return None if task is None else max(0.0, task.due - self.now)

    def cancel(self, session_id: str, channel: str) -> bool:
        task = self._pending.pop((session_id, channel), None)
        if task is None:
            return False
        task.cancelled = True
        return True

    def cancel_session(self, session_id: str) -> int:
        """Cancel every pending task of a session. Returns how many."""
        keys = [k for k in self._pending if k[0] == session_id]
        for key in keys:
            self._pending.pop(key).cancelled = True
        if keys:
            logger.debug("Cancelled %d task(s) for %s", len(keys), session_id)
        return len(keys)

    def next_due_in(self) -> Optional[float]:
        """Time until the earliest live task, or None when idle."""
        self._drop_cancelled()
        if not self._queue:
            return None
        return max(0.0, self._queue[0].due - self.now)

    def pop_due(self) -> Optional[ScheduledTask]:
        """Remove and return the earliest live task already due."""
        self._drop_cancelled()
        if self._queue and self._queue[0].due <= self.now:
            task = heapq.heappop(self._queue)
            del self._pending[task.key]
            return task
        return None

    def advance_clock(self, dt: float) -> None:
        assert dt >= 0, "time only moves forward"
        self.now += dt

    def _drop_cancelled(self) -> None:
        while self._queue and self._queue[0].cancelled:
            heapq.heappop(self._queue)
