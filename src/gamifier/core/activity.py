"""Activity — the top-level content contract around the navigation core."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable

from gamifier.core import codec
from gamifier.core.config import ActivityConfig, PageConfig
from gamifier.core.context import ActivityContext, Host
from gamifier.core.events import Event
from gamifier.core.navigation import NavigationController
from gamifier.core.scheduler import Scheduler
from gamifier.core.timer import DEFAULT_INTERVAL_MS

logger = logging.getLogger(__name__)

ExerciseFactory = Callable[[PageConfig, Any], Any]


class StoredHost(Host):
    """Host whose previous state comes from a :class:`codec.StateStore`."""

    def __init__(self, store: codec.StateStore) -> None:
        self.store = store

    def previous_state(self) -> Any:
        """Return the stored session document, or ``None``."""
        return self.store.load()


class Activity:
    """Builds the pages from a config and exposes the host-facing contract.

    *factory* creates one sub-activity instance per page from its
    :class:`PageConfig` and its restored content state; without a factory
    every page wraps an empty exercise (no score, default title).
    """

    def __init__(
        self,
        config: ActivityConfig,
        scheduler: Scheduler,
        host: Host | None = None,
        factory: ExerciseFactory | None = None,
        interval_ms: float = DEFAULT_INTERVAL_MS,
    ) -> None:
        host = host if host is not None else Host()
        previous = codec.decode(host.previous_state())
        self.context = ActivityContext(config, scheduler, host, previous_state=previous)

        instances = []
        if factory is not None:
            for index, page_config in enumerate(config.pages):
                page_state = previous.page(index)
                instances.append(factory(page_config, page_state.content if page_state else None))

        self.controller = NavigationController(self.context, instances, interval_ms=interval_ms)
        self.controller.on("progressed", self._log_progress)

    def start(self) -> None:
        """Show the first (or restored) page and start the global countdown."""
        index = self.context.previous_state.page_index
        if index is None or index >= len(self.controller.pages):
            index = 0
        logger.info("Starting activity at page %d", index)
        self.controller.navigate(index, skip_focus=True)
        self.controller.start_timer()

    def get_context(self) -> dict[str, Any]:
        """Return the learner's position as a 1-based page context."""
        return {"type": "page", "value": self.controller.get_current_page_index() + 1}

    def get_score(self) -> float:
        """Return the summed score of every page."""
        return self.controller.get_score()

    def get_max_score(self) -> float:
        """Return the summed max score of every page."""
        return self.controller.get_max_score()

    def get_answer_given(self) -> bool:
        """Return whether any page has been answered."""
        return self.controller.get_answer_given()

    def show_solutions(self) -> None:
        """Reveal the solutions on every page."""
        self.controller.show_solutions()

    def reset_task(self) -> None:
        """Start the session over with fresh budgets."""
        self.controller.reset()

    def get_xapi_data(self) -> list[Any]:
        """Return the xAPI data of every page that has some."""
        return self.controller.get_xapi_data()

    def get_current_state(self) -> dict[str, Any]:
        """Return the session progress document."""
        return self.controller.get_current_state()

    def save(self, store: codec.StateStore) -> Path:
        """Persist the session progress to *store*; returns the file written."""
        store.save(self.get_current_state())
        return store.path

    def _log_progress(self, event: Event) -> None:
        logger.debug("Progressed to page %d", event.data["index"])
