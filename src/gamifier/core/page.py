"""Page Session — one navigable page with its attempts and time budget."""

from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Any, Callable

from gamifier.core.codec import PageState
from gamifier.core.context import ActivityContext
from gamifier.core.exercise import ICON_CLOCK, ICON_HEART, ExerciseHandle, Placeholder
from gamifier.core.timer import DEFAULT_INTERVAL_MS, CountdownTimer, to_timecode

logger = logging.getLogger(__name__)


class DisplayMode(Enum):
    NORMAL = "normal"
    TIME_EXPIRED = "time_expired"
    ATTEMPTS_EXCEEDED = "attempts_exceeded"


def _noop(*args: Any) -> None:
    return None


class PageSession:
    """Wraps one exercise and owns its attempts left, time left and timer.

    Attempts only go down, and only on failed scoring events.  Time only
    goes down while the page is showing: a tick that arrives after the page
    has been moved away stops the page's own timer without consuming time.
    Once the display mode leaves ``NORMAL`` only :meth:`reset` brings it
    back.
    """

    def __init__(
        self,
        index: int,
        exercise: ExerciseHandle,
        context: ActivityContext,
        attempts_max: float = math.inf,
        time_max_s: float = math.inf,
        previous: PageState | None = None,
        on_timer_tick: Callable[[int], None] = _noop,
        on_time_expired: Callable[[int], None] = _noop,
        on_score_changed: Callable[[int, float, float], None] = _noop,
        on_attempts_exceeded: Callable[[int], None] = _noop,
        interval_ms: float = DEFAULT_INTERVAL_MS,
    ) -> None:
        if attempts_max != math.inf and (not isinstance(attempts_max, int) or attempts_max < 1):
            raise ValueError(f"attempts_max must be an integer >= 1, got {attempts_max!r}")
        if time_max_s < 0:
            raise ValueError(f"time_max_s must be >= 0, got {time_max_s!r}")

        self.index = index
        self.exercise = exercise
        self._context = context
        self._attempts_max = attempts_max
        self._time_max_ms = time_max_s * 1000.0
        self._interval_ms = interval_ms

        self._on_timer_tick = on_timer_tick
        self._on_time_expired = on_time_expired
        self._on_score_changed = on_score_changed
        self._on_attempts_exceeded = on_attempts_exceeded

        previous = previous or PageState()
        self.attempts_left: float = (
            previous.attempts_left if previous.attempts_left is not None else attempts_max
        )
        self.time_left_ms: float = (
            previous.time_left_ms if previous.time_left_ms is not None else self._time_max_ms
        )

        self.display_mode = DisplayMode.NORMAL
        self.placeholder: Placeholder | None = None
        self._expired_notified = False
        self._exceeded_notified = False

        # Presentation state read by the renderer.
        self.visible = True
        self.position = 1  # future, so the first page can slide in
        self._transition_callbacks: list[Callable[[], None]] = []

        self.timer: CountdownTimer | None = None
        self._ensure_timer()

        exercise.on_scored(self.record_score_event)
        self.title = exercise.get_title()

    # -- scoring -------------------------------------------------------------

    def record_score_event(self, success: bool) -> None:
        """Count a scoring event; failures cost one attempt."""
        before = self.attempts_left
        if not success:
            self.attempts_left = max(self.attempts_left - 1, 0)

        self._on_score_changed(self.index, before, self.attempts_left)

        if before > 0 and self.attempts_left == 0 and not self._exceeded_notified:
            self._exceeded_notified = True
            logger.debug("Page %d: attempts exceeded", self.index)
            self._on_attempts_exceeded(self.index)

    def get_attempts_left(self) -> float:
        """Return the attempts left, ``math.inf`` when unbounded."""
        return self.attempts_left

    def get_score(self) -> float:
        """Return the exercise's score, 0 if it cannot tell."""
        return self.exercise.get_score()

    def get_max_score(self) -> float:
        """Return the exercise's max score, 0 if it cannot tell."""
        return self.exercise.get_max_score()

    def get_answer_given(self) -> bool:
        """Return whether the learner has answered the exercise."""
        return self.exercise.get_answer_given()

    def get_xapi_data(self) -> Any:
        """Return the exercise's xAPI statement data, if any."""
        return self.exercise.get_xapi_data()

    def show_solutions(self) -> None:
        """Ask the exercise to reveal its solutions."""
        self.exercise.show_solutions()

    # -- timing --------------------------------------------------------------

    def get_time_left(self) -> float:
        """Return the time left in milliseconds, ``math.inf`` when unbounded."""
        return self.time_left_ms

    def get_time_left_timecode(self) -> str:
        """Return the time left formatted for display."""
        return to_timecode(self.time_left_ms)

    def start_timer(self) -> None:
        """Resume the countdown if the page has a timer and time left."""
        if self.timer is None or self.timer.is_running() or self.time_left_ms <= 0:
            return
        self.timer.start(self.time_left_ms)

    def stop_timer(self) -> None:
        """Pause the countdown, keeping the time left."""
        if self.timer is None or not self.timer.is_running():
            return
        self.timer.stop()
        self.time_left_ms = self.timer.get_remaining()

    def is_timer_running(self) -> bool:
        """Return whether the page's countdown is running."""
        return self.timer is not None and self.timer.is_running()

    # -- terminal displays ---------------------------------------------------

    def show_time_expired(self, message: str = "") -> None:
        """Replace the exercise with the out-of-time placeholder."""
        self._show_placeholder(DisplayMode.TIME_EXPIRED, Placeholder(ICON_CLOCK, message))

    def show_attempts_exceeded(self, message: str = "") -> None:
        """Replace the exercise with the out-of-attempts placeholder."""
        self._show_placeholder(DisplayMode.ATTEMPTS_EXCEEDED, Placeholder(ICON_HEART, message))

    def reset(self) -> None:
        """Restore the configured budgets and bring the exercise back."""
        if self.timer is not None:
            self.timer.stop()
        self.exercise.reset()
        self.exercise.show()
        self.placeholder = None

        self.attempts_left = self._attempts_max
        self.time_left_ms = self._time_max_ms
        self.display_mode = DisplayMode.NORMAL
        self._expired_notified = False
        self._exceeded_notified = False
        self._ensure_timer()

    def get_current_state(self) -> dict[str, Any]:
        """Return the page's persisted progress."""
        return {
            "content": self.exercise.get_current_state(),
            "attemptsLeft": self.attempts_left,
            "timeLeft": self.time_left_ms,
        }

    # -- presentation --------------------------------------------------------

    def set_visible(self, visible: bool) -> None:
        """Show or hide the page."""
        self.visible = visible

    def set_position(self, position: int) -> None:
        """Negative = before the current page, 0 = current, positive = after."""
        self.position = position

    def is_showing(self) -> bool:
        """Return whether this is the page in view."""
        return self.position == 0

    def focus_first_child(self) -> bool:
        """Focus the exercise's first focusable element; ``False`` if none."""
        return self.exercise.focus_first_child()

    def register_transition_end(self, callback: Callable[[], None]) -> None:
        """Call *callback* once, when the next transition on this page ends."""
        self._transition_callbacks.append(callback)

    def end_transition(self) -> None:
        """Transition-completion signal, fired by the renderer."""
        callbacks, self._transition_callbacks = self._transition_callbacks, []
        for callback in callbacks:
            callback()

    def has_pending_transition(self) -> bool:
        """Return whether a transition-end callback is waiting."""
        return bool(self._transition_callbacks)

    # -- private helpers -----------------------------------------------------

    def _ensure_timer(self) -> None:
        if self.timer is not None:
            return
        if self.time_left_ms == math.inf or self.time_left_ms <= 0:
            return
        self.timer = CountdownTimer(
            self._context.scheduler,
            interval_ms=self._interval_ms,
            on_tick=self._handle_tick,
            on_expired=self._handle_expired,
        )

    def _handle_tick(self, remaining: float) -> None:
        if not self.is_showing():
            self.timer.stop()
            return
        self.time_left_ms = remaining
        self._on_timer_tick(self.index)

    def _handle_expired(self) -> None:
        if not self.is_showing():
            # Hidden pages keep their last time left until shown again.
            return
        self.time_left_ms = 0.0
        self.display_mode = DisplayMode.TIME_EXPIRED
        if self._expired_notified:
            return
        self._expired_notified = True
        logger.debug("Page %d: time expired", self.index)
        self._on_time_expired(self.index)

    def _show_placeholder(self, mode: DisplayMode, placeholder: Placeholder) -> None:
        changed = self.display_mode != mode or self.placeholder != placeholder
        self.display_mode = mode
        self.exercise.hide()
        self.placeholder = placeholder
        if changed:
            self._context.request_resize()
