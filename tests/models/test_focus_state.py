"""Unit tests for focustimer.models.focus.state.

``TimerStateStore`` is constructed with a *tmp_path* directory so every
test is filesystem-isolated and no platform directories are touched.
"""

from __future__ import annotations

import json

import pytest

from focustimer.models.focus.state import FocusTask, TimerState, TimerStateStore


# ---------------------------------------------------------------------------
# TimerState
# ---------------------------------------------------------------------------


class TestTimerState:
    def test_status(self):
        assert TimerState().status == "idle"
        assert TimerState(is_active=True).status == "running"
        assert TimerState(is_active=True, is_paused=True).status == "paused"

    def test_minutes_and_seconds(self):
        state = TimerState(remaining_seconds=754)
        assert state.minutes == 12
        assert state.seconds == 34
        assert state.total_seconds == 1500

    def test_round_trip_keeps_tasks(self):
        state = TimerState(
            selected_duration=45,
            remaining_seconds=100,
            current_tasks=[FocusTask(id="t1", text="Write", completed=True)],
            current_notes="notes",
        )
        restored = TimerState.from_dict(state.to_dict())
        assert restored == state

    def test_from_dict_ignores_unknown_keys(self):
        state = TimerState.from_dict({"selected_duration": 15, "legacy": "x"})
        assert state.selected_duration == 15

    def test_normalize_clamps_values(self):
        state = TimerState.from_dict(
            {"selected_duration": 999, "remaining_seconds": 99999}
        )
        assert state.selected_duration == 180
        assert state.remaining_seconds == 180 * 60

    def test_normalize_drops_stray_flags(self):
        state = TimerState.from_dict(
            {"is_active": False, "is_paused": True, "run_started_at": "2024-01-01"}
        )
        assert state.is_paused is False
        assert state.run_started_at is None

    @pytest.mark.parametrize(
        "anchor", [None, "", "not-a-date", "2024-03-01T09:00:00", 1709283600]
    )
    def test_running_without_usable_anchor_becomes_paused(self, anchor):
        state = TimerState.from_dict(
            {"is_active": True, "is_paused": False, "run_started_at": anchor}
        )
        assert state.status == "paused"
        assert state.run_started_at is None
        assert state.run_started_datetime is None

    def test_running_with_anchor_stays_running(self):
        state = TimerState.from_dict(
            {"is_active": True, "run_started_at": "2024-03-01T09:00:00+00:00"}
        )
        assert state.status == "running"

    def test_run_started_datetime_accepts_z_suffix(self):
        state = TimerState(is_active=True, run_started_at="2024-03-01T09:00:00Z")
        assert state.run_started_datetime.utcoffset().total_seconds() == 0


# ---------------------------------------------------------------------------
# TimerStateStore
# ---------------------------------------------------------------------------


class TestTimerStateStore:
    def test_load_missing_returns_none(self, tmp_path):
        assert TimerStateStore(tmp_path).load() is None

    def test_save_and_load(self, tmp_path):
        store = TimerStateStore(tmp_path)
        store.save(TimerState(selected_duration=60, remaining_seconds=3000))

        loaded = store.load()
        assert loaded.selected_duration == 60
        assert loaded.remaining_seconds == 3000
        assert (store.state_file.stat().st_mode & 0o777) == 0o600

    def test_corrupt_file_returns_none(self, tmp_path):
        store = TimerStateStore(tmp_path)
        store.state_file.write_text("{not json")
        assert store.load() is None

    def test_wrong_shape_returns_none(self, tmp_path):
        store = TimerStateStore(tmp_path)
        store.state_file.write_text(json.dumps(["a", "list"]))
        assert store.load() is None

    def test_save_returns_written_text(self, tmp_path):
        store = TimerStateStore(tmp_path)
        text = store.save(TimerState(current_notes="n"))

        assert store.read_text() == text
        assert [p.name for p in tmp_path.iterdir()] == ["timer_state.json"]

    def test_read_text_missing_returns_none(self, tmp_path):
        assert TimerStateStore(tmp_path).read_text() is None

    def test_delete(self, tmp_path):
        store = TimerStateStore(tmp_path)
        store.save(TimerState())
        store.delete()
        store.delete()
        assert not store.state_file.exists()


class TestFocusTask:
    def test_create_assigns_id(self):
        a = FocusTask.create(" one ")
        b = FocusTask.create("two")
        assert a.text == "one"
        assert a.id != b.id
        assert a.completed is False

    def test_from_dict_coerces_id(self):
        task = FocusTask.from_dict({"id": 7, "text": "x"})
        assert task.id == "7"
