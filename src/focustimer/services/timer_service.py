"""Application wiring for the timer engine.

``build_engine`` assembles one engine from configuration; surfaces obtain
the shared instance through ``get_timer_engine`` and never construct their
own, so a process has exactly one countdown and one tick job.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from rich.console import Console

from focustimer.models.config_models import AppConfig
from focustimer.models.focus.effects import ConsoleNotifier, NotificationSink
from focustimer.models.focus.engine import TimerEngine
from focustimer.models.focus.history import LocalHistoryStore, SessionHistory
from focustimer.models.focus.scheduler import CooperativeScheduler
from focustimer.models.focus.state import TimerStateStore
from focustimer.services.api.client import get_client
from focustimer.services.api.sessions import RemoteHistoryStore
from focustimer.services.config_service import get_config_service
from focustimer.utils.ui.console import get_console


def build_history(config: AppConfig, data_dir: Path | None = None) -> SessionHistory:
    """Local cache plus, when an endpoint is configured, the remote store."""
    local = LocalHistoryStore(
        path=data_dir / "history.json" if data_dir else None,
        limit=config.history.local_limit,
    )
    remote = None
    if config.api.enabled:
        api_config = config.api
        remote = RemoteHistoryStore(lambda: get_client(api_config))
    return SessionHistory(
        local=local, remote=remote, retention_ratio=config.history.retention_ratio
    )


def build_engine(
    config: AppConfig,
    *,
    data_dir: Path | None = None,
    notifier: NotificationSink | None = None,
    scheduler: CooperativeScheduler | None = None,
    console: Console | None = None,
) -> TimerEngine:
    """Create a fully wired engine from configuration."""
    timer = config.timer
    if notifier is None:
        notifier = ConsoleNotifier(
            console or get_console(color=config.output.color),
            host_title=timer.host_title,
        )
    store = TimerStateStore(data_dir / "state" if data_dir else None)
    return TimerEngine(
        scheduler=scheduler or CooperativeScheduler(),
        notifier=notifier,
        history=build_history(config, data_dir),
        store=store,
        default_duration=timer.default_duration,
        sound_enabled=timer.sound_enabled,
        anchor_to_wall_clock=timer.anchor_to_wall_clock,
        tick_interval=timer.tick_interval,
    )


@lru_cache(maxsize=1)
def get_timer_engine() -> TimerEngine:
    """Return the process-wide engine."""
    service = get_config_service()
    return build_engine(service.config, data_dir=service.data_dir)
