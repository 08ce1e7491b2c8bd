"""Session State Codec — session progress to and from a plain document.

The document shape is::

    {"pageIndex": 1, "timeLeft": 52000,
     "children": [{"content": {...}, "attemptsLeft": 2, "timeLeft": 9000}]}

``pageIndex`` is omitted until the first navigation.  Unbounded values are
written as ``None`` (``null`` in JSON) and read back as "not restored", so
the configured maxima apply again.
"""

from __future__ import annotations

import fcntl
import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from gamifier.core.navigation import NavigationController

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG_DIR = Path.home() / ".config" / "gamifier"
_STATE_FILE = "state.json"


@dataclass(frozen=True)
class PageState:
    content: Any = None
    attempts_left: float | None = None
    time_left_ms: float | None = None


@dataclass(frozen=True)
class SessionState:
    page_index: int | None = None
    time_left_ms: float | None = None
    children: tuple[PageState, ...] = field(default_factory=tuple)

    def page(self, index: int) -> PageState | None:
        """Return the snapshot of page *index*, or ``None`` if absent."""
        if 0 <= index < len(self.children):
            return self.children[index]
        return None


def _number(value: Any) -> float | None:
    """Return *value* if it is a usable non-negative number, else ``None``."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if value != value or value < 0:
        return None
    return value


def _finite(value: float) -> float | None:
    return None if value == math.inf else value


def encode(controller: "NavigationController") -> dict[str, Any]:
    """Serialize the controller's session progress."""
    state: dict[str, Any] = {}
    if controller.current_index >= 0:
        state["pageIndex"] = controller.current_index
    state["timeLeft"] = _finite(controller.time_left_ms)
    state["children"] = [
        {
            "content": page.get_current_state()["content"],
            "attemptsLeft": _finite(page.attempts_left),
            "timeLeft": _finite(page.time_left_ms),
        }
        for page in controller.pages
    ]
    return state


def decode(raw: Any) -> SessionState:
    """Parse a persisted document, ignoring anything unusable."""
    if not isinstance(raw, dict):
        return SessionState()

    page_index = raw.get("pageIndex")
    if isinstance(page_index, bool) or not isinstance(page_index, int) or page_index < 0:
        page_index = None

    children = raw.get("children")
    if not isinstance(children, list):
        children = []

    return SessionState(
        page_index=page_index,
        time_left_ms=_number(raw.get("timeLeft")),
        children=tuple(_decode_page(child) for child in children),
    )


def _decode_page(raw: Any) -> PageState:
    if not isinstance(raw, dict):
        return PageState()
    attempts = _number(raw.get("attemptsLeft"))
    if attempts is not None:
        attempts = int(attempts)
    return PageState(
        content=raw.get("content"),
        attempts_left=attempts,
        time_left_ms=_number(raw.get("timeLeft")),
    )


class StateStore:
    """JSON file persistence for session documents.

    State lives in ``<config_dir>/state.json``; reads and writes hold
    ``fcntl`` locks so concurrent invocations never see a half-written file.
    """

    def __init__(self, config_dir: Path | None = None) -> None:
        self._config_dir: Path = config_dir if config_dir is not None else _DEFAULT_CONFIG_DIR

    @property
    def path(self) -> Path:
        """Location of the state file."""
        return self._config_dir / _STATE_FILE

    def save(self, state: dict[str, Any]) -> None:
        """Write *state* to the JSON file with file locking."""
        self._config_dir.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            fcntl.flock(f, fcntl.LOCK_EX)
            json.dump(state, f)

    def load(self) -> dict[str, Any] | None:
        """Load the stored document, or ``None`` if there is none."""
        if not self.path.exists():
            return None

        with open(self.path) as f:
            fcntl.flock(f, fcntl.LOCK_SH)
            try:
                data = json.load(f)
            except json.JSONDecodeError as exc:
                logger.warning("Ignoring corrupt state file %s: %s", self.path, exc.msg)
                return None

        if not isinstance(data, dict):
            logger.warning("Ignoring state file %s: not a JSON object", self.path)
            return None
        return data

    def clear(self) -> bool:
        """Delete the stored document.  Returns ``True`` if one existed."""
        if not self.path.exists():
            return False
        self.path.unlink()
        return True
