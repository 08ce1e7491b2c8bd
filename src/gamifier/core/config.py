"""Activity configuration parsed from the content parameter document."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


class ConfigError(ValueError):
    """Raised when the content parameter document is unusable."""


@dataclass(frozen=True)
class Messages:
    """Texts the player hands to presentation and announcement channels.

    ``@current`` and ``@total`` are replaced by the 1-based page number and
    the page count.
    """

    moved_to: str = "Moved to page @current of @total"
    page_announcement: str = "Page @current of @total"
    time_expired_exercise: str = "You ran out of time for this exercise."
    time_expired_global: str = "You ran out of time."
    attempts_exceeded: str = "You have exceeded the maximum number of attempts for this exercise."
    no_title: str = "Untitled exercise"

    def page_text(self, template: str, current: int, total: int) -> str:
        """Fill *template* with the page number and count."""
        return template.replace("@current", str(current)).replace("@total", str(total))


@dataclass(frozen=True)
class Behaviour:
    global_time_limit_s: float = math.inf
    cycle: bool = False
    display_page_announcement: bool = True
    display_content_announcement: bool = True


@dataclass(frozen=True)
class PageConfig:
    attempts_max: float = math.inf
    time_max_s: float = math.inf
    title: str | None = None
    library_params: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ActivityConfig:
    pages: tuple[PageConfig, ...]
    behaviour: Behaviour = field(default_factory=Behaviour)
    messages: Messages = field(default_factory=Messages)

    @classmethod
    def from_dict(cls, raw: Any) -> "ActivityConfig":
        """Build a config from the (camelCase) content parameter document."""
        if not isinstance(raw, dict):
            raise ConfigError(f"content parameters must be an object, got {type(raw).__name__}")

        raw_pages = raw.get("content", [])
        if not isinstance(raw_pages, list) or not raw_pages:
            raise ConfigError("content must be a non-empty list of pages")

        pages = tuple(_parse_page(index, item) for index, item in enumerate(raw_pages))
        return cls(
            pages=pages,
            behaviour=_parse_behaviour(raw.get("behaviour") or {}),
            messages=_parse_messages(raw.get("l10n") or {}, raw.get("a11y") or {}),
        )


def load_config(path: Path) -> ActivityConfig:
    """Read a JSON content parameter document from *path*."""
    try:
        raw = json.loads(Path(path).read_text())
    except OSError as exc:
        raise ConfigError(f"cannot read {path}: {exc.strerror}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"{path} is not valid JSON: {exc.msg}") from exc
    return ActivityConfig.from_dict(raw)


# -- parsing helpers ---------------------------------------------------------


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_behaviour(raw: dict[str, Any]) -> Behaviour:
    limit = raw.get("globalTimeLimit")
    if limit is None or limit == 0:
        limit_s = math.inf
    elif _is_number(limit) and limit > 0:
        limit_s = float(limit)
    else:
        raise ConfigError(f"behaviour.globalTimeLimit must be a positive number, got {limit!r}")

    return Behaviour(
        global_time_limit_s=limit_s,
        cycle=bool(raw.get("cycle", False)),
        display_page_announcement=bool(raw.get("displayPageAnnouncement", True)),
        display_content_announcement=bool(raw.get("displayContentAnnouncement", True)),
    )


def _parse_page(index: int, raw: Any) -> PageConfig:
    if not isinstance(raw, dict):
        raise ConfigError(f"content[{index}] must be an object")

    attempts = raw.get("attempts")
    if attempts is None:
        attempts_max = math.inf
    elif isinstance(attempts, int) and not isinstance(attempts, bool) and attempts >= 1:
        attempts_max = attempts
    else:
        raise ConfigError(f"content[{index}].attempts must be an integer >= 1, got {attempts!r}")

    limit = raw.get("timeLimit")
    if limit is None:
        time_max_s = math.inf
    elif _is_number(limit) and limit >= 0:
        time_max_s = float(limit)
    else:
        raise ConfigError(f"content[{index}].timeLimit must be a number >= 0, got {limit!r}")

    library_params = raw.get("libraryParams") or {}
    title = raw.get("title")
    if title is None:
        title = (library_params.get("metadata") or {}).get("title")

    return PageConfig(
        attempts_max=attempts_max,
        time_max_s=time_max_s,
        title=title,
        library_params=library_params,
    )


_L10N_KEYS = {
    "pageAnnouncement": "page_announcement",
    "timeExpiredExercise": "time_expired_exercise",
    "timeExpiredGlobal": "time_expired_global",
    "attemptsExceeded": "attempts_exceeded",
    "noTitle": "no_title",
}


def _parse_messages(l10n: dict[str, Any], a11y: dict[str, Any]) -> Messages:
    overrides = {
        attr: l10n[key] for key, attr in _L10N_KEYS.items() if isinstance(l10n.get(key), str)
    }
    if isinstance(a11y.get("movedTo"), str):
        overrides["moved_to"] = a11y["movedTo"]
    return Messages(**overrides)
