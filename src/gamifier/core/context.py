"""Host services and the shared context handed to every component."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from gamifier.core.codec import SessionState
from gamifier.core.config import ActivityConfig
from gamifier.core.events import Event, EventDispatcher
from gamifier.core.scheduler import Scheduler


class Host:
    """Services the embedding environment provides.

    Every method is a no-op here; hosts override what they support.
    """

    def request_resize(self) -> None:
        """Lay out the activity again."""

    def announce(self, text: str) -> None:
        """Read *text* on the polite assistive-technology channel."""

    def refocus(self) -> None:
        """Blur and re-focus the focused element so it is announced again."""

    def progressed(self, index: int) -> None:
        """The learner moved to page *index*."""

    def previous_state(self) -> Any:
        """Return the persisted state document, or ``None``."""
        return None


@dataclass
class ActivityContext:
    """Explicit replacement for shared global services."""

    config: ActivityConfig
    scheduler: Scheduler
    host: Host = field(default_factory=Host)
    root: EventDispatcher = field(default_factory=EventDispatcher)
    previous_state: SessionState = field(default_factory=SessionState)

    def __post_init__(self) -> None:
        self.root.on("resize", self._forward_resize)

    def request_resize(self) -> None:
        """Ask the host to lay the activity out again."""
        self.root.trigger("resize")

    def _forward_resize(self, event: Event) -> None:
        self.host.request_resize()
