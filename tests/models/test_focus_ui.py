"""Tests for the timer surfaces and the console notifier.

The Live loop is driven with a scripted key source and a no-op sleep, so
each frame advances the fake clock by exactly one second.
"""

from __future__ import annotations

from io import StringIO
from unittest.mock import patch

import pytest
from rich.console import Console

from focustimer.models.focus.effects import ConsoleNotifier
from focustimer.models.focus.keyboard import KeyboardHandler
from focustimer.models.focus.scheduler import CooperativeScheduler
from focustimer.models.focus.ui import TimerDisplay, progress_bar


class ScriptedKeys:
    """Key source yielding a fixed sequence, then nothing."""

    def __init__(self, keys=()):
        self.keys = list(keys)
        self.stopped = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()

    def get_key(self):
        return self.keys.pop(0) if self.keys else None

    def stop(self):
        self.stopped = True


def _console() -> Console:
    return Console(file=StringIO(), force_terminal=False, width=100)


def _display(engine, clock, keys=(), compact=True):
    source = ScriptedKeys(keys)
    display = TimerDisplay(
        engine,
        _console(),
        compact=compact,
        keyboard_factory=lambda: source,
        sleep=lambda _: clock.advance(1),
    )
    return display, source


def _text(renderable) -> str:
    console = _console()
    console.print(renderable)
    return console.file.getvalue()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def test_progress_bar_bounds():
    assert progress_bar(0, 10) == "░" * 10
    assert progress_bar(1, 10) == "▓" * 10
    assert progress_bar(2, 4) == "▓" * 4
    assert progress_bar(0.5, 4) == "▓▓░░"


# ---------------------------------------------------------------------------
# Mounting
# ---------------------------------------------------------------------------


class TestMount:
    def test_mount_restores_ticking(self, engine, scheduler, clock):
        engine.start()
        engine._stop_ticker()  # as after a process restart
        display, _ = _display(engine, clock)

        display.mount()
        assert engine.is_ticking
        assert len(scheduler.active_jobs) == 1

    def test_two_surfaces_share_one_job(self, engine, scheduler, clock):
        engine.start()
        widget, _ = _display(engine, clock, compact=True)
        page, _ = _display(engine, clock, compact=False)
        widget.mount()
        page.mount()

        assert len(scheduler.active_jobs) == 1

    def test_two_surfaces_count_down_at_one_rate(self, engine, scheduler, clock):
        engine.start()
        for compact in (True, False):
            display, _ = _display(engine, clock, compact=compact)
            display.mount()
        before = engine.snapshot().remaining_seconds

        for _ in range(5):
            clock.advance(1)
            scheduler.run_pending()

        assert engine.snapshot().remaining_seconds == before - 5
        assert len(scheduler.active_jobs) == 1

    def test_repeated_mounts_keep_one_job(self, engine, scheduler, clock):
        engine.start()
        display, _ = _display(engine, clock)
        for _ in range(3):
            display.mount()
            engine.ensure_ticking_if_needed()
        assert len(scheduler.active_jobs) == 1

    def test_unmount_keeps_timer_running(self, engine, clock):
        engine.start()
        display, _ = _display(engine, clock)
        display.mount()
        display.unmount()
        assert engine.status == "running"
        assert engine.is_ticking


# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------


class TestKeys:
    def test_toggle_cycles_states(self, engine, clock):
        display, _ = _display(engine, clock)
        display.handle_key(" ")
        assert engine.status == "running"
        display.handle_key("p")
        assert engine.status == "paused"
        display.handle_key("p")
        assert engine.status == "running"

    def test_reset_and_sound(self, engine, clock):
        display, _ = _display(engine, clock)
        display.handle_key("p")
        display.handle_key("r")
        display.handle_key("s")
        snap = engine.snapshot()
        assert snap.status == "idle"
        assert snap.sound_enabled is False

    def test_quit_key(self, engine, clock):
        display, _ = _display(engine, clock)
        assert display.handle_key("q") is False

    def test_presets_only_on_full_page(self, engine, clock):
        widget, _ = _display(engine, clock, compact=True)
        widget.handle_key("3")
        assert engine.snapshot().selected_duration == 25

        page, _ = _display(engine, clock, compact=False)
        page.handle_key("3")
        assert engine.snapshot().selected_duration == 45
        page.handle_key("")
        assert engine.snapshot().selected_duration == 45


# ---------------------------------------------------------------------------
# Main loop
# ---------------------------------------------------------------------------


class TestRun:
    def test_quit_leaves_timer_running(self, engine, clock):
        display, source = _display(engine, clock, keys=["p", None, "q"])
        assert display.run() == "quit"
        assert engine.status == "running"
        assert source.stopped

    def test_exit_on_complete(self, engine, clock, notifier):
        engine.set_duration(1)
        display, _ = _display(engine, clock, keys=["p"])
        assert display.run(exit_on_complete=True, max_frames=200) == "completed"
        assert notifier.toasts[0][0] == "Timer completed!"

    def test_max_frames_stops_loop(self, engine, clock):
        display, _ = _display(engine, clock)
        assert display.run(max_frames=3) == "quit"
        assert engine.status == "idle"

    def test_frame_delay_wakes_for_next_tick(self, engine, clock):
        display, _ = _display(engine, clock)
        assert display.frame_delay() == pytest.approx(0.25)

        engine.start()
        clock.advance(0.9)
        assert display.frame_delay() == pytest.approx(0.1)

    def test_pause_from_other_process_stops_countdown(
        self, engine, make_engine, clock
    ):
        engine.start()
        other = make_engine(scheduler=CooperativeScheduler(clock=clock.monotonic))
        other.pause()

        display, _ = _display(engine, clock, compact=False)
        assert display.run(max_frames=5) == "quit"
        assert engine.status == "paused"
        assert engine.snapshot().remaining_seconds == 1500
        assert "PAUSED" in _text(display.render())

    def test_resume_from_other_process_restarts_countdown(
        self, engine, make_engine, clock
    ):
        engine.start()
        engine.pause()
        make_engine(scheduler=CooperativeScheduler(clock=clock.monotonic)).resume()

        display, _ = _display(engine, clock)
        display.run(max_frames=4)
        assert engine.status == "running"
        assert engine.snapshot().remaining_seconds < 1500


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class TestRender:
    def test_widget_shows_countdown_and_controls(self, engine, clock):
        display, _ = _display(engine, clock, compact=True)
        output = _text(display.render())
        assert "25:00" in output
        assert "'p' start" in output
        assert "duration" not in output

    def test_page_shows_presets_tasks_and_notes(self, engine, clock):
        engine.add_task("Outline chapter")
        engine.set_current_notes("quiet room")
        display, _ = _display(engine, clock, compact=False)
        output = _text(display.render_page(engine.snapshot()))
        assert "Outline chapter" in output
        assert "quiet room" in output
        assert "[1] 15m" in output
        assert "Ready" in output

    def test_page_hides_presets_while_running(self, engine, clock):
        engine.start()
        display, _ = _display(engine, clock, compact=False)
        output = _text(display.render_page(engine.snapshot()))
        assert "Focus Mode" in output
        assert "[1] 15m" not in output


# ---------------------------------------------------------------------------
# KeyboardHandler
# ---------------------------------------------------------------------------


class TestKeyboardHandler:
    def test_without_tty_returns_no_keys(self):
        with patch("sys.stdin") as stdin:
            stdin.isatty.return_value = False
            with KeyboardHandler() as keyboard:
                assert keyboard.get_key() is None
        assert keyboard.fd is None


# ---------------------------------------------------------------------------
# ConsoleNotifier
# ---------------------------------------------------------------------------


class TestConsoleNotifier:
    def test_toast_prints_title_and_description(self):
        console = _console()
        ConsoleNotifier(console).show_toast("Timer completed!", "Well done.")
        output = console.file.getvalue()
        assert "Timer completed!" in output
        assert "Well done." in output

    def test_sound_and_titles_do_not_raise(self):
        notifier = ConsoleNotifier(_console(), host_title="focus")
        notifier.play_sound()
        notifier.set_host_title("24:59 - Focus")
        notifier.restore_host_title()
