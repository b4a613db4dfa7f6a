"""
Simulated clock and delayed work queue.

Meter ticks and trade settlements are scheduled here instead of on real
timers. Nothing runs until ``advance`` moves the clock, and every due task
runs to completion before the next one starts, so the ledger only ever sees
one mutation at a time.
"""

import heapq
import itertools
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from greenpe_exchange.logging_config import logger

# Simulated time is kept to the microsecond so repeated small steps do not drift
TIME_PLACES = 6


@dataclass(order=True)
class ScheduledTask:
    """Entry of the work queue, ordered by due time then insertion order."""
    ready_at: float
    seq: int
    action: Callable[[], None] = field(compare=False)
    name: str = field(default="task", compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class SimulatedScheduler:
    """Single-threaded scheduler driven by an explicit clock."""

    def __init__(self, epoch: Optional[datetime] = None):
        """
        Initialize the scheduler.

        Args:
            epoch: Wall-clock time that corresponds to scheduler time 0.
                Defaults to the current UTC time.
        """
        self.epoch = epoch or datetime.now(tz=timezone.utc)
        self.now: float = 0.0
        self._queue: List[ScheduledTask] = []
        self._counter = itertools.count()

    def current_time(self) -> datetime:
        """Wall-clock equivalent of the simulated time"""
        return self.epoch + timedelta(seconds=self.now)

    def call_later(
        self, delay: float, action: Callable[[], None], name: str = "task"
    ) -> ScheduledTask:
        """
        Schedule an action to run ``delay`` seconds from now.

        Args:
            delay: Seconds of simulated time to wait
            action: Zero-argument callable
            name: Label used in log messages

        Returns:
            The scheduled task, which can be cancelled
        """
        if delay < 0:
            raise ValueError(f"delay must be >= 0, got {delay}")

        task = ScheduledTask(
            round(self.now + delay, TIME_PLACES), next(self._counter), action, name
        )
        heapq.heappush(self._queue, task)
        logger.debug(f"Scheduled {name} at t={task.ready_at:.3f}")
        return task

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward, running every task that falls due.

        Tasks scheduled by a running task are picked up in the same call if
        they fall inside the window.

        Returns:
            Number of tasks executed
        """
        if seconds < 0:
            raise ValueError(f"cannot advance the clock backwards ({seconds})")

        target = round(self.now + seconds, TIME_PLACES)
        executed = 0
        while self._queue and self._queue[0].ready_at <= target:
            task = heapq.heappop(self._queue)
            if task.cancelled:
                continue
            self.now = task.ready_at
            task.action()
            executed += 1
        self.now = target
        return executed

    def run_pending(self) -> int:
        """Run the tasks that are already due without moving the clock"""
        return self.advance(0)

    @property
    def pending(self) -> List[ScheduledTask]:
        return sorted(task for task in self._queue if not task.cancelled)

    def cancel_all(self) -> int:
        """Cancel every pending task. Returns how many were dropped."""
        dropped = sum(1 for task in self._queue if not task.cancelled)
        for task in self._queue:
            task.cancel()
        self._queue.clear()
        if dropped:
            logger.info(f"Cancelled {dropped} pending task(s)")
        return dropped
