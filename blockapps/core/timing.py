"""Deferred callbacks with cancellable handles.

The UI runs on a single event loop. Animations and deferred work are
scheduled through a :class:`Scheduler` so the same state logic can run on a
Qt timer in the app and on virtual time in tests.
"""

from __future__ import annotations

import heapq
import itertools
import logging
from typing import Callable, List, Protocol, Tuple

logger = logging.getLogger(__name__)

# Length of the dialog open/close morph.
TRANSITION_MS = 175


class TransitionHandle:
    """A pending callback that can be cancelled before it fires."""

    def __init__(self, callback: Callable[[], None]) -> None:
        self._callback = callback
        self._cancelled = False
        self._fired = False

    @property
    def pending(self) -> bool:
        return not (self._cancelled or self._fired)

    def cancel(self) -> None:
        self._cancelled = True

    def fire(self) -> None:
        """Run the callback once, unless cancelled."""
        if not self.pending:
            return
        self._fired = True
        self._callback()


class Scheduler(Protocol):
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TransitionHandle:
        ...


class VirtualScheduler:
    """Scheduler driven by :meth:`advance` instead of a clock."""

    def __init__(self) -> None:
        self._now = 0
        self._queue: List[Tuple[int, int, TransitionHandle]] = []
        self._counter = itertools.count()

    @property
    def now(self) -> int:
        return self._now

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TransitionHandle:
        handle = TransitionHandle(callback)
        heapq.heappush(self._queue, (self._now + max(0, int(delay_ms)), next(self._counter), handle))
        return handle

    def pending_count(self) -> int:
        return sum(1 for _, _, handle in self._queue if handle.pending)

    def advance(self, ms: int) -> None:
        """Move virtual time forward, firing everything that falls due in order."""
        target = self._now + ms
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            self._now = due
            handle.fire()
        self._now = target

    def run_pending(self) -> None:
        """Fire every queued callback, including ones scheduled while running."""
        while self._queue:
            due, _, handle = heapq.heappop(self._queue)
            self._now = max(self._now, due)
            handle.fire()


def run_deferred(scheduler: Scheduler, task: Callable[[], None], description: str) -> TransitionHandle:
    """Run ``task`` after the current handler returns.

    Failures are logged so they cannot abort the initialisation that
    scheduled the task.
    """

    def _guarded() -> None:
        try:
            task()
        except Exception:
            logger.exception("Deferred task failed: %s", description)

    return scheduler.call_later(0, _guarded)
