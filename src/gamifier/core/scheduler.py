"""Scheduler — the host's time-slicing facility.

Timers and deferred continuations never block: they hand callbacks to a
scheduler.  Any ``asyncio`` event loop satisfies :class:`Scheduler`; the
:class:`ManualScheduler` below is a deterministic virtual-time loop for
headless hosts and tests.
"""

from __future__ import annotations

import heapq
import itertools
from typing import Any, Callable, Protocol


class Handle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Cooperative, single-threaded callback scheduler."""

    def time(self) -> float:
        """Return monotonic seconds."""

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> Handle: ...

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> Handle: ...


class ManualHandle:
    """Cancellable entry in a :class:`ManualScheduler` queue."""

    def __init__(self, when: float, callback: Callable[..., Any], args: tuple) -> None:
        self.when = when
        self._callback = callback
        self._args = args
        self._cancelled = False

    def cancel(self) -> None:
        """Drop the callback if it has not run yet."""
        self._cancelled = True

    def cancelled(self) -> bool:
        """Return whether :meth:`cancel` was called."""
        return self._cancelled

    def _run(self) -> None:
        self._callback(*self._args)


class ManualScheduler:
    """Virtual-time scheduler advanced explicitly by its owner.

    Callbacks run in (due time, insertion order) order; ``call_soon``
    callbacks are due at the current time.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = float(start)
        self._queue: list[tuple[float, int, ManualHandle]] = []
        self._seq = itertools.count()

    # -- Scheduler protocol --------------------------------------------------

    def time(self) -> float:
        """Return the virtual clock in seconds."""
        return self._now

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> ManualHandle:
        """Queue *callback* at the current time."""
        return self._push(self._now, callback, args)

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> ManualHandle:
        """Queue *callback* *delay* seconds from now."""
        if delay < 0:
            delay = 0.0
        return self._push(self._now + delay, callback, args)

    # -- driving -------------------------------------------------------------

    def run_pending(self) -> int:
        """Run every callback due at the current time.  Returns how many ran."""
        return self._run_until(self._now)

    def advance(self, seconds: float) -> int:
        """Move the clock forward by *seconds*, running callbacks as they fall due."""
        if seconds < 0:
            raise ValueError(f"cannot advance by a negative amount, got {seconds}")
        return self._run_until(self._now + seconds)

    def pending(self) -> int:
        """Return the number of live (not cancelled) callbacks."""
        return sum(1 for _, _, handle in self._queue if not handle.cancelled())

    # -- private helpers -----------------------------------------------------

    def _push(self, when: float, callback: Callable[..., Any], args: tuple) -> ManualHandle:
        handle = ManualHandle(when, callback, args)
        heapq.heappush(self._queue, (when, next(self._seq), handle))
        return handle

    def _run_until(self, deadline: float) -> int:
        ran = 0
        while self._queue and self._queue[0][0] <= deadline:
            when, _, handle = heapq.heappop(self._queue)
            if handle.cancelled():
                continue
            self._now = max(self._now, when)
            handle._run()
            ran += 1
        self._now = max(self._now, deadline)
        return ran
