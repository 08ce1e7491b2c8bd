"""Exercise handle — a failure-proof wrapper around one sub-activity."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from gamifier.core.events import Event, EventDispatcher, bubble_down, bubble_up

logger = logging.getLogger(__name__)

ICON_CLOCK = "clock"
ICON_HEART = "heart"

_MISSING = object()


@dataclass(frozen=True)
class Placeholder:
    """Substitute view shown instead of an exhausted sub-activity."""

    icon: str
    text: str


class ExerciseHandle:
    """Delegates to a sub-activity instance, swallowing its failures.

    The instance may implement any subset of ``get_score``,
    ``get_max_score``, ``get_answer_given``, ``get_current_state``,
    ``reset_task``, ``show_solutions``, ``get_title``, ``get_xapi_data``
    and ``focus_first_child``.  A missing method, a raised exception or a
    ``None`` result all yield the documented default.  Instances that are
    :class:`EventDispatcher` objects may emit ``scored`` and ``resize``.
    """

    def __init__(
        self,
        instance: Any,
        index: int,
        title: str | None = None,
        default_title: str = "",
    ) -> None:
        self.instance = instance
        self.index = index
        self.visible = True
        self._title = title
        self._default_title = default_title
        self._on_scored: Callable[[bool], None] = lambda success: None

        if isinstance(instance, EventDispatcher):
            instance.on("scored", self._handle_scored)

    def on_scored(self, callback: Callable[[bool], None]) -> None:
        """Call *callback* with the success flag of each scoring event."""
        self._on_scored = callback

    def relay_resize(self, parent: EventDispatcher) -> None:
        """Keep *parent* and the instance in sync on ``resize``."""
        if not isinstance(self.instance, EventDispatcher):
            return
        bubble_up(self.instance, "resize", parent)
        bubble_down(parent, "resize", [self.instance])

    # -- queries -------------------------------------------------------------

    def get_title(self) -> str:
        """Return the exercise title, falling back to the configured one."""
        title = self._call("get_title", None)
        if isinstance(title, str) and title:
            return title
        return self._title or self._default_title

    def get_score(self) -> float:
        """Return the exercise score, 0 if it cannot tell."""
        return self._number("get_score")

    def get_max_score(self) -> float:
        """Return the exercise max score, 0 if it cannot tell."""
        return self._number("get_max_score")

    def get_answer_given(self) -> bool:
        """Return whether the exercise has been answered."""
        return bool(self._call("get_answer_given", False))

    def get_current_state(self) -> Any:
        """Return the exercise's own state, ``{}`` if it keeps none."""
        return self._call("get_current_state", {})

    def get_xapi_data(self) -> Any:
        """Return the exercise's xAPI data, or ``None``."""
        return self._call("get_xapi_data", None)

    # -- commands ------------------------------------------------------------

    def reset(self) -> None:
        """Ask the exercise to start over."""
        self._call("reset_task", None)

    def show_solutions(self) -> None:
        """Ask the exercise to reveal its solutions."""
        self._call("show_solutions", None)

    def focus_first_child(self) -> bool:
        """Focus the first focusable element; ``True`` only if it worked."""
        return self._call("focus_first_child", False) is True

    def show(self) -> None:
        """Make the exercise visible."""
        self.visible = True

    def hide(self) -> None:
        """Hide the exercise behind a placeholder."""
        self.visible = False

    # -- private helpers -----------------------------------------------------

    def _call(self, name: str, default: Any, *args: Any) -> Any:
        method = getattr(self.instance, name, _MISSING)
        if method is _MISSING or not callable(method):
            return default
        try:
            result = method(*args)
        except Exception:
            logger.warning("Exercise %d: %s() failed", self.index, name, exc_info=True)
            return default
        return default if result is None else result

    def _number(self, name: str) -> float:
        value = self._call(name, 0)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value != value:
            logger.warning("Exercise %d: %s() returned %r", self.index, name, value)
            return 0
        return value

    def _handle_scored(self, event: Event) -> None:
        score = event.data.get("score")
        if score is None:
            return

        success = event.data.get("success") is True
        if not success and isinstance(score, (int, float)):
            success = score >= self.get_max_score()
        self._on_scored(success)
