"""Tests for the session state codec and its JSON file store."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Callable

import pytest

from gamifier.core.codec import PageState, SessionState, StateStore, decode, encode
from gamifier.core.scheduler import ManualScheduler


# ---------------------------------------------------------------------------
# encode
# ---------------------------------------------------------------------------


class TestEncode:
    """Controller progress becomes a plain JSON-ready document."""

    def test_fresh_session_has_no_page_index(self, make_controller: Callable) -> None:
        controller, _ = make_controller(pages=2)
        state = encode(controller)
        assert "pageIndex" not in state
        assert state["timeLeft"] is None
        assert state["children"] == [
            {"content": {"answer": None}, "attemptsLeft": None, "timeLeft": None},
            {"content": {"answer": None}, "attemptsLeft": None, "timeLeft": None},
        ]

    def test_progress_is_written(
        self,
        make_controller: Callable,
        finish: Callable,
        scheduler: ManualScheduler,
    ) -> None:
        controller, exercises = make_controller(pages=2, attempts=3, time_limit=30, global_limit=60)
        controller.navigate(1)
        finish(controller)
        controller.start_timer()
        exercises[1].state = {"answer": "c"}
        exercises[1].fail()
        scheduler.advance(2.0)

        state = encode(controller)

        assert state["pageIndex"] == 1
        assert state["timeLeft"] == 58_000
        assert state["children"][1] == {
            "content": {"answer": "c"},
            "attemptsLeft": 2,
            "timeLeft": 28_000,
        }
        assert state["children"][0]["timeLeft"] == 30_000

    def test_document_is_json_serializable(self, make_controller: Callable) -> None:
        controller, _ = make_controller(attempts=2)
        assert json.loads(json.dumps(controller.get_current_state())) == encode(controller)


# ---------------------------------------------------------------------------
# decode
# ---------------------------------------------------------------------------


class TestDecode:
    """Unusable values are dropped rather than rejected."""

    def test_full_document(self) -> None:
        state = decode(
            {
                "pageIndex": 2,
                "timeLeft": 12_000,
                "children": [{"content": {"a": 1}, "attemptsLeft": 1, "timeLeft": 500}],
            }
        )
        assert state == SessionState(
            page_index=2,
            time_left_ms=12_000,
            children=(PageState(content={"a": 1}, attempts_left=1, time_left_ms=500),),
        )

    @pytest.mark.parametrize("raw", [None, [], "state", 3])
    def test_non_object_is_empty_state(self, raw: object) -> None:
        assert decode(raw) == SessionState()

    @pytest.mark.parametrize("value", [None, -1, True, "10", float("nan")])
    def test_bad_numbers_are_not_restored(self, value: object) -> None:
        state = decode({"timeLeft": value, "children": [{"attemptsLeft": value, "timeLeft": value}]})
        assert state.time_left_ms is None
        assert state.children[0].attempts_left is None
        assert state.children[0].time_left_ms is None

    @pytest.mark.parametrize("value", [-1, True, 1.5, "0"])
    def test_bad_page_index_is_dropped(self, value: object) -> None:
        assert decode({"pageIndex": value}).page_index is None

    def test_attempts_become_integers(self) -> None:
        assert decode({"children": [{"attemptsLeft": 2.0}]}).children[0].attempts_left == 2

    def test_malformed_children(self) -> None:
        state = decode({"children": [None, {"timeLeft": 5}]})
        assert state.page(0) == PageState()
        assert state.page(1).time_left_ms == 5
        assert state.page(2) is None
        assert decode({"children": "nope"}).children == ()

    def test_restores_encoded_session(
        self, make_controller: Callable, finish: Callable
    ) -> None:
        controller, exercises = make_controller(attempts=3, time_limit=30)
        controller.navigate(2)
        finish(controller)
        exercises[2].fail()

        restored, _ = make_controller(previous=encode(controller), attempts=3, time_limit=30)

        assert restored.pages[2].get_attempts_left() == 2
        assert restored.pages[0].get_time_left() == 30_000
        assert restored.time_left_ms == controller.time_left_ms


# ---------------------------------------------------------------------------
# StateStore
# ---------------------------------------------------------------------------


class TestStateStore:
    """state.json persistence under the configured directory."""

    def test_save_then_load(self, tmp_path: Path) -> None:
        store = StateStore(config_dir=tmp_path / "nested")
        store.save({"pageIndex": 1, "children": []})
        assert store.path == tmp_path / "nested" / "state.json"
        assert store.load() == {"pageIndex": 1, "children": []}

    def test_load_missing_file(self, tmp_path: Path) -> None:
        assert StateStore(config_dir=tmp_path).load() is None

    def test_corrupt_file_is_ignored(self, tmp_path: Path) -> None:
        store = StateStore(config_dir=tmp_path)
        store.path.write_text("{not json")
        assert store.load() is None

    def test_non_object_file_is_ignored(self, tmp_path: Path) -> None:
        store = StateStore(config_dir=tmp_path)
        store.path.write_text("[1, 2]")
        assert store.load() is None

    def test_clear(self, tmp_path: Path) -> None:
        store = StateStore(config_dir=tmp_path)
        store.save({})
        assert store.clear()
        assert not store.path.exists()
        assert not store.clear()
