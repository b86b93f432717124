"""Focus timer engine, history and terminal surfaces."""

from .effects import ConsoleNotifier, NotificationSink
from .engine import PRESET_DURATIONS, TimerEngine, TimerSnapshot
from .history import LocalHistoryStore, SessionHistory, SessionRecord, is_visible
from .scheduler import CooperativeScheduler, ScheduledJob
from .state import FocusTask, TimerState, TimerStateStore
from .ui import TimerDisplay

__all__ = [
    "ConsoleNotifier",
    "CooperativeScheduler",
    "FocusTask",
    "LocalHistoryStore",
    "NotificationSink",
    "PRESET_DURATIONS",
    "ScheduledJob",
    "SessionHistory",
    "SessionRecord",
    "TimerDisplay",
    "TimerEngine",
    "TimerSnapshot",
    "TimerState",
    "TimerStateStore",
    "is_visible",
]
