"""Shared test fixtures and configuration.

Provides a controllable clock, a recording notifier and filesystem
isolation so no test touches real platform directories.
"""

from __future__ import annotations

import logging
import logging.handlers
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from focustimer.models.focus.engine import TimerEngine
from focustimer.models.focus.history import LocalHistoryStore, SessionHistory
from focustimer.models.focus.scheduler import CooperativeScheduler
from focustimer.models.focus.state import TimerStateStore


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class FakeClock:
    """Drives both the scheduler's monotonic clock and the engine's wall clock."""

    def __init__(self, start: datetime | None = None):
        self.start = start or datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)
        self.elapsed = 0.0

    def monotonic(self) -> float:
        return self.elapsed

    def now(self) -> datetime:
        return self.start + timedelta(seconds=self.elapsed)

    def advance(self, seconds: float) -> None:
        self.elapsed += seconds


class RecordingNotifier:
    """Notification sink that remembers every effect."""

    def __init__(self):
        self.sounds = 0
        self.toasts: list[tuple[str, str]] = []
        self.titles: list[str] = []
        self.restored = 0

    def play_sound(self) -> None:
        self.sounds += 1

    def show_toast(self, title: str, description: str) -> None:
        self.toasts.append((title, description))

    def set_host_title(self, text: str) -> None:
        self.titles.append(text)

    def restore_host_title(self) -> None:
        self.restored += 1


def run_for(engine: TimerEngine, clock: FakeClock, seconds: int, step: float = 1.0):
    """Advance time in ``step`` increments, polling the scheduler each time."""
    steps = int(seconds / step)
    for _ in range(steps):
        clock.advance(step)
        engine.scheduler.run_pending()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _drop_file_handlers() -> None:
    app_logger = logging.getLogger("focustimer")
    for handler in list(app_logger.handlers):
        if isinstance(handler, logging.handlers.RotatingFileHandler):
            app_logger.removeHandler(handler)
            handler.close()


@pytest.fixture(autouse=True)
def isolated_logger(tmp_path):
    """Send log output to a temp directory and reset the logger singleton."""
    import focustimer.utils.logger as logger_mod

    original = logger_mod._logger
    logger_mod._logger = None
    _drop_file_handlers()

    with patch(
        "focustimer.utils.logger.user_log_dir", return_value=str(tmp_path / "logs")
    ):
        yield

    _drop_file_handlers()
    logger_mod._logger = original


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def scheduler(clock):
    return CooperativeScheduler(clock=clock.monotonic)


@pytest.fixture()
def history(tmp_path):
    return SessionHistory(local=LocalHistoryStore(tmp_path / "history.json"))


@pytest.fixture()
def store(tmp_path):
    return TimerStateStore(tmp_path / "state")


@pytest.fixture()
def make_engine(scheduler, notifier, history, store, clock):
    """Factory for engines sharing the test's clock, history and state file."""

    def _make(**kwargs) -> TimerEngine:
        kwargs.setdefault("scheduler", scheduler)
        kwargs.setdefault("notifier", notifier)
        kwargs.setdefault("history", history)
        kwargs.setdefault("store", store)
        kwargs.setdefault("now", clock.now)
        return TimerEngine(**kwargs)

    return _make


@pytest.fixture()
def engine(make_engine):
    return make_engine()


@pytest.fixture()
def tmp_config(tmp_path):
    """Provide a real ConfigService backed by a temporary directory.

    Patches platform dirs so config/data files land in *tmp_path* only.
    Also clears the lru_caches so each test gets a fresh service and engine.
    """
    from focustimer.services.config_service import ConfigService, get_config_service
    from focustimer.services.timer_service import get_timer_engine

    get_config_service.cache_clear()
    get_timer_engine.cache_clear()
    with patch(
        "focustimer.services.config_service.user_config_dir",
        return_value=str(tmp_path / "config"),
    ), patch(
        "focustimer.services.config_service.user_data_dir",
        return_value=str(tmp_path / "data"),
    ), patch.dict("os.environ", clear=False) as env:
        env.pop("FOCUSTIMER_API_ENDPOINT", None)
        env.pop("FOCUSTIMER_API_KEY", None)
        yield ConfigService()
    get_config_service.cache_clear()
    get_timer_engine.cache_clear()
