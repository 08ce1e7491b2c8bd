"""Named notification channels and parent/child event relays."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

logger = logging.getLogger(__name__)

Listener = Callable[["Event"], None]


@dataclass
class Event:
    """A notification delivered to listeners of one channel."""

    name: str
    data: dict[str, Any] = field(default_factory=dict)


class EventDispatcher:
    """Explicit observer registry: one listener list per channel name."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[tuple[Listener, bool]]] = {}
        self.bubbling_upwards = False
        self.bubbling_downwards = False

    def on(self, name: str, listener: Listener) -> None:
        """Call *listener* on every *name* event."""
        self._listeners.setdefault(name, []).append((listener, False))

    def once(self, name: str, listener: Listener) -> None:
        """Call *listener* on the next *name* event only."""
        self._listeners.setdefault(name, []).append((listener, True))

    def off(self, name: str, listener: Listener) -> None:
        """Stop calling *listener* for *name* events."""
        entries = self._listeners.get(name, [])
        self._listeners[name] = [entry for entry in entries if entry[0] != listener]

    def has_listeners(self, name: str) -> bool:
        """Return whether anything listens on *name*."""
        return bool(self._listeners.get(name))

    def trigger(self, name: str, data: dict[str, Any] | None = None) -> Event:
        """Deliver an event to every listener of *name*, in registration order."""
        event = Event(name, dict(data or {}))
        entries = self._listeners.get(name, [])
        if not entries:
            return event

        # Drop one-shot listeners before calling so re-entrant triggers skip them.
        self._listeners[name] = [entry for entry in entries if not entry[1]]
        for listener, _ in entries:
            listener(event)
        return event


def bubble_up(origin: EventDispatcher, name: str, target: EventDispatcher) -> None:
    """Re-trigger *name* events from a child on its parent.

    While the parent dispatches, its ``bubbling_upwards`` flag is raised so a
    :func:`bubble_down` relay on the same parent does not send the event
    straight back to the children.  Events the child received from its
    parent are not relayed back up.
    """

    def relay(event: Event) -> None:
        if origin.bubbling_downwards:
            return
        target.bubbling_upwards = True
        try:
            target.trigger(name, event.data)
        finally:
            target.bubbling_upwards = False

    origin.on(name, relay)


def bubble_down(origin: EventDispatcher, name: str, targets: Iterable[EventDispatcher]) -> None:
    """Re-trigger *name* events from a parent on each of its children."""
    children = list(targets)

    def relay(event: Event) -> None:
        if origin.bubbling_upwards:
            return
        for child in children:
            child.bubbling_downwards = True
            try:
                child.trigger(name, event.data)
            finally:
                child.bubbling_downwards = False

    origin.on(name, relay)
