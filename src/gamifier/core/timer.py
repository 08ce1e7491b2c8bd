"""Timer core — an interval-driven countdown timer."""

from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Callable

from gamifier.core.scheduler import Handle, Scheduler

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MS = 500
DISPLAY_INFINITY = "∞"


class TimerState(Enum):
    """Possible states of the timer."""

    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"
    EXPIRED = "expired"


def to_timecode(ms: float) -> str:
    """Format *ms* as ``M:SS`` (``H:MM:SS`` from one hour), infinity as ``∞``."""
    if ms == math.inf:
        return DISPLAY_INFINITY
    total = int(math.ceil(max(ms, 0.0) / 1000.0))
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


class CountdownTimer:
    """Countdown that ticks on the host scheduler.

    Remaining time is computed from ``scheduler.time()`` rather than by
    counting ticks, so a late tick never makes the countdown drift.  The
    timer never goes below zero and reports expiration exactly once per
    start.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        interval_ms: float = DEFAULT_INTERVAL_MS,
        on_tick: Callable[[float], None] | None = None,
        on_expired: Callable[[], None] | None = None,
    ) -> None:
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        self._scheduler = scheduler
        self._interval_ms = float(interval_ms)
        self._on_tick = on_tick or (lambda remaining: None)
        self._on_expired = on_expired or (lambda: None)

        self._state: TimerState = TimerState.IDLE
        self._duration_ms: float = 0.0
        self._started_at: float = 0.0
        self._remaining_at_stop: float = 0.0
        self._handle: Handle | None = None

    # -- public interface ----------------------------------------------------

    def start(self, initial_ms: float) -> None:
        """Count down from *initial_ms*; restarts if already running."""
        if initial_ms == math.inf or initial_ms != initial_ms:
            raise ValueError("cannot start a countdown for an unbounded duration")
        if initial_ms < 0:
            raise ValueError(f"initial_ms must be >= 0, got {initial_ms}")

        self._cancel_tick()
        self._duration_ms = float(initial_ms)
        self._started_at = self._scheduler.time()
        self._state = TimerState.RUNNING
        self._schedule_tick()

    def stop(self) -> None:
        """Halt ticking, keeping the remaining time for a later start."""
        if self._state != TimerState.RUNNING:
            return
        self._remaining_at_stop = self._live_remaining()
        self._cancel_tick()
        self._state = TimerState.STOPPED

    def get_remaining(self) -> float:
        """Return the remaining milliseconds, running or not."""
        if self._state == TimerState.RUNNING:
            return self._live_remaining()
        if self._state == TimerState.STOPPED:
            return self._remaining_at_stop
        # IDLE or EXPIRED
        return 0.0

    def get_state(self) -> TimerState:
        """Return the current :class:`TimerState`."""
        return self._state

    def is_running(self) -> bool:
        """Return whether the countdown is ticking."""
        return self._state == TimerState.RUNNING

    @property
    def interval_ms(self) -> float:
        """Milliseconds between ticks."""
        return self._interval_ms

    # -- private helpers -----------------------------------------------------

    def _live_remaining(self) -> float:
        elapsed_ms = (self._scheduler.time() - self._started_at) * 1000.0
        return max(self._duration_ms - elapsed_ms, 0.0)

    def _schedule_tick(self) -> None:
        self._handle = self._scheduler.call_later(self._interval_ms / 1000.0, self._tick)

    def _cancel_tick(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _tick(self) -> None:
        self._handle = None
        if self._state != TimerState.RUNNING:
            return

        remaining = self._live_remaining()
        if remaining <= 0.0:
            self._state = TimerState.EXPIRED
            self._remaining_at_stop = 0.0
            logger.debug("countdown expired")
            self._on_expired()
            return

        self._schedule_tick()
        self._on_tick(remaining)
