"""Status Display Coordinator — named indicators and their current values."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Any

from gamifier.core.timer import DISPLAY_INFINITY


@dataclass(frozen=True)
class StatusValue:
    """What one indicator currently shows."""

    text: str
    value: Any = None
    max_value: Any = None
    has_max_value: bool = False
    hidden: bool = False

    def render(self) -> str:
        """Return the text, followed by ``/max`` when the indicator has a max."""
        if self.has_max_value and self.max_value is not None:
            return f"{self.text}/{format_value(self.max_value)}"
        return self.text


def format_value(value: Any) -> str:
    """Render an indicator value: ``∞`` for infinity, whole floats without a fraction."""
    if value == math.inf or value == "Infinity":
        return DISPLAY_INFINITY
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class StatusDisplayCoordinator:
    """Maps indicator ids (``time``, ``attempts``, ``score``) to values.

    Purely presentational: the last write wins and unknown ids are ignored.
    """

    def __init__(self) -> None:
        self._indicators: dict[str, StatusValue] = {}

    def add_indicator(
        self,
        id: str,
        has_max_value: bool = False,
        value: Any = None,
        max_value: Any = None,
        hidden: bool = False,
    ) -> None:
        """Register indicator *id*; a missing *value* shows as ``∞``."""
        if not isinstance(id, str):
            return
        shown = DISPLAY_INFINITY if value is None else format_value(value)
        self._indicators[id] = StatusValue(
            text=shown,
            value=math.inf if value is None else value,
            max_value=max_value if has_max_value else None,
            has_max_value=has_max_value,
            hidden=hidden,
        )

    def set_status(self, id: str, value: Any = None, max_value: Any = None) -> None:
        """Update an indicator; ``None`` leaves a field as it is."""
        current = self._indicators.get(id)
        if current is None:
            return
        if value is not None:
            current = replace(current, text=format_value(value), value=value)
        if max_value is not None and current.has_max_value:
            current = replace(current, max_value=max_value)
        self._indicators[id] = current

    def get_status(self, id: str) -> StatusValue | None:
        """Return the indicator *id*, or ``None`` if unknown."""
        return self._indicators.get(id)

    def show(self, id: str) -> None:
        """Unhide indicator *id*."""
        if id in self._indicators:
            self._indicators[id] = replace(self._indicators[id], hidden=False)

    def hide(self, id: str) -> None:
        """Hide indicator *id*."""
        if id in self._indicators:
            self._indicators[id] = replace(self._indicators[id], hidden=True)

    def ids(self) -> list[str]:
        """Return the indicator ids in insertion order."""
        return list(self._indicators)

    def __contains__(self, id: object) -> bool:
        return id in self._indicators
