"""Navigation Controller — page position, transitions and session timing."""

from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Any, Sequence

from gamifier.core import codec
from gamifier.core.context import ActivityContext
from gamifier.core.events import EventDispatcher
from gamifier.core.exercise import ExerciseHandle
from gamifier.core.page import DisplayMode, PageSession
from gamifier.core.status import StatusDisplayCoordinator
from gamifier.core.timer import DEFAULT_INTERVAL_MS, CountdownTimer, to_timecode

logger = logging.getLogger(__name__)


class NavigationState(Enum):
    IDLE = "idle"
    TRANSITIONING = "transitioning"


class NavigationController(EventDispatcher):
    """Owns the pages, the current index, the global timer and transitions.

    At most one transition is in flight.  ``current_index`` changes when a
    transition starts, so queries made mid-transition already see the
    destination.  Requests that arrive while transitioning are dropped, not
    queued.  The destination page ends a transition by firing its
    transition-completion signal (:meth:`PageSession.end_transition`).

    Notification channels: ``progressed`` (``index``) after every
    transition, ``cue`` (``name``) for sound cues.
    """

    def __init__(
        self,
        context: ActivityContext,
        instances: Sequence[Any] = (),
        interval_ms: float = DEFAULT_INTERVAL_MS,
    ) -> None:
        super().__init__()
        config = context.config
        if not config.pages:
            raise ValueError("an activity needs at least one page")

        self._context = context
        self._behaviour = config.behaviour
        self._messages = config.messages

        self.state = NavigationState.IDLE
        self.current_index = -1
        self.previous_enabled = False
        self.next_enabled = False
        self.announcement: str | None = None

        self.pages: list[PageSession] = []
        for index, page_config in enumerate(config.pages):
            instance = instances[index] if index < len(instances) else None
            exercise = ExerciseHandle(
                instance, index, title=page_config.title, default_title=self._messages.no_title
            )
            exercise.relay_resize(context.root)
            self.pages.append(
                PageSession(
                    index,
                    exercise,
                    context,
                    attempts_max=page_config.attempts_max,
                    time_max_s=page_config.time_max_s,
                    previous=context.previous_state.page(index),
                    on_timer_tick=self._handle_page_tick,
                    on_time_expired=self._handle_page_time_expired,
                    on_score_changed=self._handle_score_changed,
                    on_attempts_exceeded=self._handle_attempts_exceeded,
                    interval_ms=interval_ms,
                )
            )

        for page in self.pages:
            if page.get_time_left() <= 0:
                page.show_time_expired(self._messages.time_expired_exercise)
            if page.get_attempts_left() <= 0:
                page.show_attempts_exceeded(self._messages.attempts_exceeded)

        self.global_status = StatusDisplayCoordinator()
        self.global_status.add_indicator("time")
        if self.get_max_score() > 0:
            self.global_status.add_indicator(
                "score", has_max_value=True, value=self.get_score(), max_value=self.get_max_score()
            )
        self.page_status = StatusDisplayCoordinator()
        self.page_status.add_indicator("time")
        self.page_status.add_indicator("attempts")

        restored = context.previous_state.time_left_ms
        self.time_left_ms: float = restored if restored is not None else self._time_budget_ms()
        self.timer = CountdownTimer(
            context.scheduler,
            interval_ms=interval_ms,
            on_tick=self._handle_global_tick,
            on_expired=self._handle_global_time_expired,
        )
        self._update_global_time()

        if self.time_left_ms == 0:
            self._handle_global_time_expired()

    # -- navigation ----------------------------------------------------------

    @property
    def is_transitioning(self) -> bool:
        """Whether a transition is in flight."""
        return self.state is NavigationState.TRANSITIONING

    @property
    def cyclic(self) -> bool:
        """Whether navigation wraps around at either end."""
        return self._behaviour.cycle

    def get_current_page_index(self) -> int:
        """Return the current page index, -1 before the first navigation."""
        return self.current_index

    def navigate(self, to: int, silent: bool = False, skip_focus: bool = False) -> bool:
        """Start a transition to page *to*.  Returns ``False`` if dropped.

        *silent* skips the move announcement and the focus change;
        *skip_focus* only the focus change.
        """
        if self.is_transitioning:
            logger.debug("Dropping navigation to %d: transition in flight", to)
            return False

        total = len(self.pages)
        if not self.cyclic and not 0 <= to < total:
            logger.debug("Dropping navigation to %d: out of range", to)
            return False
        to %= total

        origin = self.current_index
        self.state = NavigationState.TRANSITIONING
        self.current_index = to
        logger.debug("Transition %d -> %d", origin, to)

        if not silent:
            self._context.host.announce(self._moved_to_text(to))

        self.previous_enabled = False
        self.next_enabled = False

        low, high = min(origin, to), max(origin, to)
        for index, page in enumerate(self.pages):
            page.set_visible(low <= index <= high)

        self._context.request_resize()
        self._context.scheduler.call_soon(self._assign_positions)
        self._cue("goto")

        skip_focus = skip_focus or silent
        if origin == to:
            self._finish_transition(skip_focus)
        else:
            self.pages[to].register_transition_end(lambda: self._finish_transition(skip_focus))
        return True

    def navigate_by(self, delta: int) -> bool:
        """Move *delta* pages from the current one."""
        return self.navigate(self.current_index + delta)

    def next_page(self) -> bool:
        """Move to the following page."""
        return self.navigate_by(1)

    def previous_page(self) -> bool:
        """Move to the preceding page."""
        return self.navigate_by(-1)

    # -- timing --------------------------------------------------------------

    def start_timer(self) -> None:
        """Start (or resume) the global countdown if the budget is finite."""
        if self.time_left_ms == math.inf or self.time_left_ms <= 0:
            return
        self.timer.start(self.time_left_ms)
        self._update_global_time()

    # -- session -------------------------------------------------------------

    def reset(self) -> None:
        """Restore every budget and go back to the first page silently."""
        if self.is_transitioning:
            self.pages[self.current_index].end_transition()

        self.timer.stop()
        self.time_left_ms = self._time_budget_ms()
        for page in self.pages:
            page.reset()
        self.start_timer()

        self.navigate(0, silent=True)
        self._start_page_timer(0)

        if not self.is_transitioning:
            self._update_navigation_buttons()
        self._update_status()
        logger.info("Session reset")

    def get_score(self) -> float:
        """Return the summed score of every page."""
        return sum(page.get_score() for page in self.pages)

    def get_max_score(self) -> float:
        """Return the summed max score of every page."""
        return sum(page.get_max_score() for page in self.pages)

    def get_answer_given(self) -> bool:
        """Return whether any page has been answered."""
        return any(page.get_answer_given() for page in self.pages)

    def show_solutions(self) -> None:
        """Reveal the solutions on every page."""
        for page in self.pages:
            page.show_solutions()

    def get_xapi_data(self) -> list[Any]:
        """Return the xAPI data of every page that has some."""
        return [data for data in (page.get_xapi_data() for page in self.pages) if data]

    def get_current_state(self) -> dict[str, Any]:
        """Return the encoded session progress."""
        return codec.encode(self)

    # -- transition steps ----------------------------------------------------

    def _assign_positions(self) -> None:
        for index, page in enumerate(self.pages):
            page.set_position(index - self.current_index)

    def _finish_transition(self, skip_focus: bool) -> None:
        current = self.pages[self.current_index]
        for page in self.pages:
            if page is not current:
                page.set_visible(False)

        if not skip_focus and not current.focus_first_child():
            self._context.host.refocus()

        self.state = NavigationState.IDLE

        self._update_announcement()
        self._update_navigation_buttons()
        self._update_status()
        self._context.request_resize()

        self._start_page_timer(self.current_index)

        self._context.host.progressed(self.current_index)
        self.trigger("progressed", {"index": self.current_index})

    def _start_page_timer(self, index: int) -> None:
        page = self.pages[index]
        if self.time_left_ms <= 0 or page.display_mode is not DisplayMode.NORMAL:
            return
        page.start_timer()

    def _moved_to_text(self, index: int) -> str:
        moved = self._messages.page_text(self._messages.moved_to, index + 1, len(self.pages))
        title = self.pages[index].title
        return f"{moved}. {title}" if moved else title

    def _update_announcement(self) -> None:
        announcement = None
        if self._behaviour.display_page_announcement:
            announcement = self._messages.page_text(
                self._messages.page_announcement, self.current_index + 1, len(self.pages)
            )
        if self._behaviour.display_content_announcement:
            title = self.pages[self.current_index].title
            announcement = f"{announcement}: {title}" if announcement else title
        if announcement:
            self.announcement = announcement

    def _update_navigation_buttons(self) -> None:
        if self.cyclic:
            self.previous_enabled = True
            self.next_enabled = True
            return
        self.previous_enabled = self.current_index > 0
        self.next_enabled = self.current_index < len(self.pages) - 1

    # -- status indicators ---------------------------------------------------

    def _update_status(self) -> None:
        self._update_page_time()
        self._update_page_attempts()
        self._update_score()
        self._update_global_time()

    def _update_page_time(self) -> None:
        if self.current_index < 0:
            return
        page = self.pages[self.current_index]
        self.page_status.set_status("time", value=page.get_time_left_timecode())

    def _update_page_attempts(self) -> None:
        if self.current_index < 0:
            return
        self.page_status.set_status("attempts", value=self.pages[self.current_index].get_attempts_left())

    def _update_score(self) -> None:
        self.global_status.set_status("score", value=self.get_score(), max_value=self.get_max_score())

    def _update_global_time(self) -> None:
        self.global_status.set_status("time", value=to_timecode(self.time_left_ms))

    # -- event handlers ------------------------------------------------------

    def _handle_page_tick(self, index: int) -> None:
        if index == self.current_index:
            self._update_page_time()

    def _handle_page_time_expired(self, index: int) -> None:
        self._cue("timeExpired")
        self.pages[index].show_time_expired(self._messages.time_expired_exercise)
        if index == self.current_index:
            self._update_page_time()

    def _handle_score_changed(self, index: int, before: float, after: float) -> None:
        if after < before:
            self._cue("lostLife")
        if index == self.current_index:
            self._update_page_attempts()
        self._update_score()

    def _handle_attempts_exceeded(self, index: int) -> None:
        page = self.pages[index]
        page.stop_timer()
        page.show_attempts_exceeded(self._messages.attempts_exceeded)
        self._cue("attemptsExceeded")

    def _handle_global_tick(self, remaining: float) -> None:
        self.time_left_ms = remaining
        self._update_global_time()

    def _handle_global_time_expired(self) -> None:
        self.time_left_ms = 0.0
        self.timer.stop()
        for page in self.pages:
            page.stop_timer()
            page.show_time_expired(self._messages.time_expired_global)
        self._update_global_time()
        self._cue("timeExpiredTotal")
        logger.info("Global time budget exhausted")

    # -- private helpers -----------------------------------------------------

    def _time_budget_ms(self) -> float:
        return self._behaviour.global_time_limit_s * 1000.0

    def _cue(self, name: str) -> None:
        self.trigger("cue", {"name": name})
