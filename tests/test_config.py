"""Tests for parsing the content parameter document."""

from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Any

import pytest

from gamifier.core.config import ActivityConfig, ConfigError, Messages, load_config


def _params(**overrides: Any) -> dict[str, Any]:
    params: dict[str, Any] = {"content": [{"title": "Intro"}]}
    params.update(overrides)
    return params


class TestFromDict:
    def test_defaults(self) -> None:
        config = ActivityConfig.from_dict(_params())
        page = config.pages[0]
        assert page.attempts_max == math.inf
        assert page.time_max_s == math.inf
        assert page.title == "Intro"
        assert config.behaviour.global_time_limit_s == math.inf
        assert not config.behaviour.cycle
        assert config.messages == Messages()

    def test_limits(self) -> None:
        config = ActivityConfig.from_dict(
            {
                "behaviour": {"globalTimeLimit": 120, "cycle": True},
                "content": [{"attempts": 3, "timeLimit": 45}],
            }
        )
        assert config.pages[0].attempts_max == 3
        assert config.pages[0].time_max_s == 45.0
        assert config.behaviour.global_time_limit_s == 120.0
        assert config.behaviour.cycle

    def test_zero_global_limit_is_unbounded(self) -> None:
        config = ActivityConfig.from_dict(_params(behaviour={"globalTimeLimit": 0}))
        assert config.behaviour.global_time_limit_s == math.inf

    def test_title_falls_back_to_metadata(self) -> None:
        config = ActivityConfig.from_dict(
            {"content": [{"libraryParams": {"metadata": {"title": "Quiz"}}}]}
        )
        assert config.pages[0].title == "Quiz"

    def test_localized_messages(self) -> None:
        config = ActivityConfig.from_dict(
            _params(
                l10n={"timeExpiredGlobal": "Zeit abgelaufen", "noTitle": 7},
                a11y={"movedTo": "Seite @current von @total"},
            )
        )
        assert config.messages.time_expired_global == "Zeit abgelaufen"
        assert config.messages.no_title == Messages().no_title
        assert config.messages.page_text(config.messages.moved_to, 2, 5) == "Seite 2 von 5"

    @pytest.mark.parametrize(
        "raw",
        [
            [],
            {"content": []},
            {"content": "pages"},
            {"content": [3]},
            {"content": [{"attempts": 0}]},
            {"content": [{"attempts": 1.5}]},
            {"content": [{"attempts": True}]},
            {"content": [{"timeLimit": -1}]},
            {"content": [{}], "behaviour": {"globalTimeLimit": "soon"}},
        ],
    )
    def test_invalid_documents(self, raw: Any) -> None:
        with pytest.raises(ConfigError):
            ActivityConfig.from_dict(raw)


class TestLoadConfig:
    def test_reads_json_file(self, tmp_path: Path) -> None:
        path = tmp_path / "activity.json"
        path.write_text(json.dumps(_params()))
        assert load_config(path).pages[0].title == "Intro"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="cannot read"):
            load_config(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "activity.json"
        path.write_text("{")
        with pytest.raises(ConfigError, match="not valid JSON"):
            load_config(path)
