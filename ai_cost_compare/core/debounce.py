"""
Cancellable delayed callbacks.

A Debouncer keeps at most one pending callback; arming it again cancels
whatever was pending. Schedulers only need call_later(delay, callback)
returning a handle with cancel(). An asyncio event loop qualifies, and
runs the callback on the loop's own thread. ManualClock is a virtual
clock for synchronous callers and tests.
"""

import heapq
import itertools
from typing import Any, Callable, List, Optional, Protocol, Tuple

DEFAULT_DELAY_SECONDS = 0.65


class TimerHandle(Protocol):
    def cancel(self) -> Any:
        ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        ...

class _ManualHandle:
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualClock:
    """Virtual clock whose callbacks only run when advance() is called."""

    def __init__(self) -> None:
        self.now = 0.0
        self._counter = itertools.count()
        self._queue: List[Tuple[float, int, _ManualHandle, Callable[[], None]]] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> _ManualHandle:
        handle = _ManualHandle()
        heapq.heappush(self._queue, (self.now + delay, next(self._counter), handle, callback))
        return handle

    @property
    def pending(self) -> int:
        """Number of scheduled callbacks that have not been cancelled."""
        return sum(1 for _, _, handle, _ in self._queue if not handle.cancelled)

    def advance(self, seconds: float) -> int:
        """Move time forward, running every callback that falls due.

        Returns:
            Number of callbacks run
        """
        deadline = self.now + seconds
        ran = 0
        while self._queue and self._queue[0][0] <= deadline:
            due, _, handle, callback = heapq.heappop(self._queue)
            self.now = due
            if handle.cancelled:
                continue
            callback()
            ran += 1
        self.now = deadline
        return ran


class Debouncer:
    """Delays a callback until no new arm() arrives within the delay."""

    def __init__(self, scheduler: Scheduler, delay: float = DEFAULT_DELAY_SECONDS):
        if delay <= 0:
            raise ValueError("delay must be > 0")
        self.scheduler = scheduler
        self.delay = delay
        self._handle: Optional[TimerHandle] = None
        self._generation = 0

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def arm(self, callback: Callable[[], None]) -> None:
        """Schedule callback, replacing any pending one."""
        self.cancel()
        generation = self._generation

        def _fire() -> None:
            # Skip a superseded call the scheduler could not cancel
            if generation != self._generation:
                return
            self._generation += 1
            self._handle = None
            callback()

        self._handle = self.scheduler.call_later(self.delay, _fire)

    def cancel(self) -> None:
        """Cancel the pending callback, if any."""
        self._generation += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
