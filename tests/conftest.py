"""Shared fixtures: a fake exercise, a recording host and a controller builder."""

from __future__ import annotations

from typing import Any, Callable

import pytest

from gamifier.core.codec import decode
from gamifier.core.config import ActivityConfig
from gamifier.core.context import ActivityContext, Host
from gamifier.core.events import EventDispatcher
from gamifier.core.navigation import NavigationController
from gamifier.core.scheduler import ManualScheduler


class FakeExercise(EventDispatcher):
    """Sub-activity double implementing the whole optional contract."""

    def __init__(self, title: str = "Exercise", score: float = 0, max_score: float = 1) -> None:
        super().__init__()
        self.title = title
        self.score = score
        self.max_score = max_score
        self.answer_given = False
        self.focusable = True
        self.state: dict[str, Any] = {"answer": None}
        self.resets = 0
        self.solutions_shown = 0

    def get_title(self) -> str:
        return self.title

    def get_score(self) -> float:
        return self.score

    def get_max_score(self) -> float:
        return self.max_score

    def get_answer_given(self) -> bool:
        return self.answer_given

    def get_current_state(self) -> dict[str, Any]:
        return dict(self.state)

    def reset_task(self) -> None:
        self.resets += 1
        self.score = 0
        self.answer_given = False

    def show_solutions(self) -> None:
        self.solutions_shown += 1

    def focus_first_child(self) -> bool:
        return self.focusable

    def get_xapi_data(self) -> dict[str, Any]:
        return {"statement": {"object": {"id": self.title}}}

    # -- test helpers --------------------------------------------------------

    def fail(self) -> None:
        self.answer_given = True
        self.trigger("scored", {"score": 0, "success": False})

    def succeed(self) -> None:
        self.answer_given = True
        self.score = self.max_score
        self.trigger("scored", {"score": self.max_score, "success": True})


class RecordingHost(Host):
    """Host double that records every service call."""

    def __init__(self, previous: Any = None) -> None:
        self.previous = previous
        self.announcements: list[str] = []
        self.resizes = 0
        self.refocuses = 0
        self.progress: list[int] = []

    def request_resize(self) -> None:
        self.resizes += 1

    def announce(self, text: str) -> None:
        self.announcements.append(text)

    def refocus(self) -> None:
        self.refocuses += 1

    def progressed(self, index: int) -> None:
        self.progress.append(index)

    def previous_state(self) -> Any:
        return self.previous


def build_params(
    pages: int = 3,
    attempts: int | None = None,
    time_limit: float | None = None,
    global_limit: float | None = None,
    cycle: bool = False,
) -> dict[str, Any]:
    return {
        "behaviour": {"globalTimeLimit": global_limit, "cycle": cycle},
        "content": [
            {"title": f"Page {index + 1}", "attempts": attempts, "timeLimit": time_limit}
            for index in range(pages)
        ],
    }


@pytest.fixture()
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture()
def host() -> RecordingHost:
    return RecordingHost()


@pytest.fixture()
def context(scheduler: ManualScheduler, host: RecordingHost) -> ActivityContext:
    return ActivityContext(ActivityConfig.from_dict(build_params(pages=1)), scheduler, host)


@pytest.fixture()
def make_exercise() -> Callable[..., FakeExercise]:
    return FakeExercise


@pytest.fixture()
def make_controller(
    scheduler: ManualScheduler, host: RecordingHost
) -> Callable[..., tuple[NavigationController, list[FakeExercise]]]:
    """Return a builder for controllers over fake exercises.

    Keyword arguments are those of :func:`build_params`, plus ``previous``
    (a persisted state document) and ``exercises``.
    """

    def build(
        previous: Any = None,
        exercises: list[Any] | None = None,
        **params: Any,
    ) -> tuple[NavigationController, list[FakeExercise]]:
        config = ActivityConfig.from_dict(build_params(**params))
        if exercises is None:
            exercises = [FakeExercise(title=f"Exercise {i + 1}") for i in range(len(config.pages))]
        context = ActivityContext(config, scheduler, host, previous_state=decode(previous))
        return NavigationController(context, exercises), exercises

    return build


@pytest.fixture()
def finish(scheduler: ManualScheduler) -> Callable[[NavigationController], None]:
    """Run deferred layout work and fire the destination's completion signal."""

    def complete(controller: NavigationController) -> None:
        scheduler.run_pending()
        if controller.is_transitioning:
            controller.pages[controller.current_index].end_transition()

    return complete
