"""
Scheduler - Delayed callbacks for robot moves.

The robot's pause before committing is the only suspension point in a
game. The engine asks a Scheduler for a timer and keeps the returned
handle so it can cancel it.

- AsyncioScheduler: real delays on the running event loop (HTTP service)
- ManualScheduler: virtual clock, drained explicitly (CLI, simulations, tests)
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import asyncio
import heapq
import itertools
from typing import Callable, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(ABC):
    """Source of cancellable delayed callbacks."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback after delay seconds; return a cancellable handle."""
        pass


class AsyncioScheduler(Scheduler):
    """
    Schedules on the running asyncio loop.

    The loop is looked up at call time, so one scheduler can be built
    before the server starts.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


@dataclass(order=True)
class _ManualEntry:
    due: float
    order: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self):
        self.cancelled = True


class ManualScheduler(Scheduler):
    """
    Virtual-time scheduler.

    Nothing runs until advance() or run_until_idle() is called.
    Callbacks fire in due-time order; ties keep scheduling order.

    Args:
        sleep: Optional real sleep hook called with each wait, so a
            terminal game can still show the robot's pick for a moment
    """

    def __init__(self, sleep: Callable[[float], None] | None = None):
        self.now = 0.0
        self._queue: list[_ManualEntry] = []
        self._counter = itertools.count()
        self._sleep = sleep

    def call_later(self, delay: float, callback: Callable[[], None]) -> _ManualEntry:
        entry = _ManualEntry(due=self.now + delay, order=next(self._counter), callback=callback)
        heapq.heappush(self._queue, entry)
        return entry

    @property
    def pending(self) -> int:
        return sum(1 for e in self._queue if not e.cancelled)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, running every callback that falls due."""
        target = self.now + seconds
        ran = 0
        while self._queue and self._queue[0].due <= target:
            ran += self._run_next()
        self.now = target
        return ran

    def run_until_idle(self, max_callbacks: int = 100_000) -> int:
        """Run callbacks (including ones they schedule) until none remain."""
        ran = 0
        while self._queue:
            if ran >= max_callbacks:
                raise RuntimeError(f"Scheduler still busy after {max_callbacks} callbacks")
            ran += self._run_next()
        return ran

    def _run_next(self) -> int:
        entry = heapq.heappop(self._queue)
        if entry.cancelled:
            return 0
        wait = entry.due - self.now
        if wait > 0:
            if self._sleep:
                self._sleep(wait)
            self.now = entry.due
        entry.callback()
        return 1
