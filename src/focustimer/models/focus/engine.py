"""Focus timer engine.

One :class:`TimerEngine` exists per application. It owns the countdown
state, the single repeating tick job, persistence of the state between
runs and the completion side effects. Surfaces (the dashboard widget and
the full focus page) subscribe to it and call
:meth:`TimerEngine.ensure_ticking_if_needed` when they mount; that is the
only place a surface may (re)start ticking.

Every operation is a no-op returning ``False`` when called from a state
where it does not apply, so surfaces never need to guard calls.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from focustimer.models.config_models import MAX_DURATION, MIN_DURATION
from focustimer.utils.logger import get_logger

from .effects import NotificationSink
from .exceptions import HistoryError, StateStoreError
from .history import SessionHistory, SessionRecord, whole_minutes
from .scheduler import CooperativeScheduler, ScheduledJob
from .state import FocusTask, TimerState, TimerStateStore, TimerStatus

PRESET_DURATIONS = (15, 25, 45, 60)

Listener = Callable[["TimerSnapshot"], None]


def _local_now() -> datetime:
    return datetime.now().astimezone()


@dataclass(frozen=True)
class TimerSnapshot:
    """Read-only view of the timer handed to subscribers."""

    selected_duration: int
    remaining_seconds: int
    status: TimerStatus
    sound_enabled: bool
    current_tasks: tuple[FocusTask, ...]
    current_notes: str

    @property
    def is_active(self) -> bool:
        return self.status != "idle"

    @property
    def is_paused(self) -> bool:
        return self.status == "paused"

    @property
    def minutes(self) -> int:
        return self.remaining_seconds // 60

    @property
    def seconds(self) -> int:
        return self.remaining_seconds % 60

    @property
    def formatted(self) -> str:
        return f"{self.minutes:02d}:{self.seconds:02d}"

    @property
    def progress(self) -> float:
        """Fraction of the session elapsed, 0.0 to 1.0."""
        total = self.selected_duration * 60
        if total <= 0:
            return 0.0
        return min(1.0, max(0.0, (total - self.remaining_seconds) / total))


class TimerEngine:
    """Countdown state machine: idle -> running <-> paused -> idle."""

    def __init__(
        self,
        scheduler: CooperativeScheduler,
        notifier: NotificationSink,
        history: SessionHistory | None = None,
        store: TimerStateStore | None = None,
        *,
        state: TimerState | None = None,
        default_duration: int = 25,
        sound_enabled: bool = True,
        anchor_to_wall_clock: bool = True,
        tick_interval: float = 1.0,
        now: Callable[[], datetime] | None = None,
    ):
        self.scheduler = scheduler
        self.notifier = notifier
        self.history = history
        self.store = store
        self.anchor_to_wall_clock = anchor_to_wall_clock
        self.tick_interval = tick_interval
        self.now = now or _local_now
        self.logger = get_logger("engine")

        # Raw state file text as of this engine's last load or save
        self._synced_text: str | None = None
        if store is not None:
            self._synced_text = store.read_text()
            if state is None and self._synced_text is not None:
                state = store.parse(self._synced_text)
        if state is None:
            duration = _clamp(default_duration)
            state = TimerState(
                selected_duration=duration,
                remaining_seconds=duration * 60,
                sound_enabled=sound_enabled,
            )
        self.state = state
        self._job: ScheduledJob | None = None
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def status(self) -> TimerStatus:
        return self.state.status

    @property
    def is_ticking(self) -> bool:
        """True while this engine holds a live tick job."""
        return self._job is not None and not self._job.cancelled

    def snapshot(self) -> TimerSnapshot:
        s = self.state
        return TimerSnapshot(
            selected_duration=s.selected_duration,
            remaining_seconds=s.remaining_seconds,
            status=s.status,
            sound_enabled=s.sound_enabled,
            current_tasks=tuple(
                FocusTask(t.id, t.text, t.completed) for t in s.current_tasks
            ),
            current_notes=s.current_notes,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for state changes; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def reload_if_changed(self) -> bool:
        """Adopt state another process wrote since this engine last saw the file.

        A ``watch`` surface keeps ticking while one-shot commands pause or
        reset the timer from another terminal; the file is the shared truth.
        A session that stopped elsewhere loses its tick job here. A session
        started or resumed elsewhere gets one from
        :meth:`ensure_ticking_if_needed`. Every operation calls this first.
        """
        if self.store is None:
            return False
        try:
            text = self.store.read_text()
        except StateStoreError as e:
            self.logger.warning("%s", e)
            return False
        if text is None or text == self._synced_text:
            return False

        self._synced_text = text
        state = self.store.parse(text)
        if state is None:
            return False

        before = (self.state.session_id, self.status)
        self.state = state
        after = (state.session_id, self.status)
        if after == before:
            self._notify()
            return True

        self.logger.info(
            "timer state changed elsewhere: %s %s -> %s %s", *before, *after
        )
        if self.status == "running":
            self._show_countdown_title()
        elif self.status == "paused":
            self._stop_ticker()
            self.notifier.set_host_title(f"Paused - {self.snapshot().formatted}")
        else:
            self._stop_ticker()
            self.notifier.restore_host_title()
        self._notify()
        return True

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def set_duration(self, minutes: int) -> bool:
        """Choose the session length. Ignored while a session is active."""
        self.reload_if_changed()
        if self.state.is_active:
            self.logger.debug("set_duration ignored: timer is %s", self.status)
            return False
        try:
            minutes = _clamp(int(minutes))
        except (TypeError, ValueError):
            self.logger.debug("set_duration ignored: invalid value %r", minutes)
            return False

        self.state.selected_duration = minutes
        self.state.remaining_seconds = minutes * 60
        self._commit()
        return True

    def start(self) -> bool:
        """Begin a session from idle."""
        self.reload_if_changed()
        s = self.state
        if s.is_active:
            self.logger.debug("start ignored: timer is %s", self.status)
            return False

        if not 0 < s.remaining_seconds <= s.total_seconds:
            s.remaining_seconds = s.total_seconds

        now = self.now()
        s.active_elapsed_seconds = float(s.total_seconds - s.remaining_seconds)
        s.is_active = True
        s.is_paused = False
        s.session_id = str(uuid.uuid4())
        s.session_started_at = now.isoformat()
        s.run_started_at = now.isoformat()

        self._restart_ticker()
        self._show_countdown_title()
        self.logger.info(
            "session %s started (%d min)", s.session_id, s.selected_duration
        )
        self._commit()
        return True

    def pause(self) -> bool:
        """Freeze a running session and cancel the tick job."""
        self.reload_if_changed()
        s = self.state
        if s.status != "running":
            self.logger.debug("pause ignored: timer is %s", self.status)
            return False

        if self._sync_remaining() <= 0:
            self._complete()
            return False

        s.active_elapsed_seconds = self._active_elapsed()
        s.run_started_at = None
        s.is_paused = True
        self._stop_ticker()

        self.notifier.set_host_title(f"Paused - {self.snapshot().formatted}")
        self.logger.info("session %s paused", s.session_id)
        self._commit()
        return True

    def resume(self) -> bool:
        """Continue a paused session."""
        self.reload_if_changed()
        s = self.state
        if s.status != "paused":
            self.logger.debug("resume ignored: timer is %s", self.status)
            return False

        s.is_paused = False
        s.run_started_at = self.now().isoformat()
        self._restart_ticker()
        self._show_countdown_title()
        self.logger.info("session %s resumed", s.session_id)
        self._commit()
        return True

    def reset(self) -> bool:
        """Stop any session and return to a full idle countdown.

        A session that made progress is recorded as abandoned.
        """
        self.reload_if_changed()
        s = self.state
        was_active = s.is_active
        if s.status == "running":
            self._sync_remaining()
        elapsed = s.total_seconds - s.remaining_seconds
        tasks = list(s.current_tasks)
        notes = s.current_notes
        session_id = s.session_id

        self._stop_ticker()
        self._go_idle(remaining=s.total_seconds)
        self.notifier.restore_host_title()
        self._commit()

        if was_active and elapsed > 0:
            self.logger.info(
                "session %s reset after %ds of %ds",
                session_id,
                elapsed,
                s.total_seconds,
            )
            self._record(
                SessionRecord.create(
                    planned_duration=s.selected_duration,
                    actual_duration=whole_minutes(elapsed),
                    completed=False,
                    tasks=tasks,
                    notes=notes,
                    now=self.now(),
                )
            )
        return True

    def tick(self) -> None:
        """Advance the countdown; scheduled once per interval while running."""
        self.reload_if_changed()
        s = self.state
        if s.status != "running":
            return

        if self.anchor_to_wall_clock:
            self._sync_remaining()
        else:
            s.remaining_seconds = max(0, s.remaining_seconds - 1)

        if s.remaining_seconds <= 0:
            self._complete()
            return

        self._show_countdown_title()
        self._commit()

    def toggle_sound(self) -> bool:
        """Flip the completion sound preference; returns the new value."""
        self.reload_if_changed()
        self.state.sound_enabled = not self.state.sound_enabled
        self._commit()
        return self.state.sound_enabled

    def ensure_ticking_if_needed(self) -> bool:
        """Make sure a running session has exactly one tick job.

        Called by every surface on mount. After a restart the persisted
        state can say "running" while no job exists; this schedules one and
        catches the countdown up with the wall clock. Returns True only when
        a job was created.
        """
        self.reload_if_changed()
        s = self.state
        if s.status != "running" or self.is_ticking:
            return False

        if self._sync_remaining() <= 0:
            self._complete()
            return False

        self._job = self.scheduler.schedule_repeating(self.tick_interval, self.tick)
        self.logger.info("tick job restored for session %s", s.session_id)
        self._show_countdown_title()
        self._commit()
        return True

    def refresh(self) -> TimerSnapshot:
        """Reconcile a running session with the wall clock without scheduling."""
        self.reload_if_changed()
        s = self.state
        if s.status == "running" and self.anchor_to_wall_clock:
            if self._sync_remaining() <= 0:
                self._complete()
            else:
                self._commit()
        return self.snapshot()

    # ------------------------------------------------------------------
    # Session tasks and notes
    # ------------------------------------------------------------------

    def set_current_tasks(self, tasks: list[FocusTask]) -> None:
        self.reload_if_changed()
        self.state.current_tasks = list(tasks)
        self._commit()

    def add_task(self, text: str) -> FocusTask | None:
        self.reload_if_changed()
        if not text or not text.strip():
            return None
        task = FocusTask.create(text)
        self.state.current_tasks.append(task)
        self._commit()
        return task

    def match_tasks(self, task_id: str) -> list[FocusTask]:
        """Tasks whose id is ``task_id`` or starts with it.

        An exact id always wins, so the result is a single task whenever
        ``task_id`` is a full id.
        """
        self.reload_if_changed()
        if not task_id:
            return []
        tasks = self.state.current_tasks
        exact = [t for t in tasks if t.id == task_id]
        if exact:
            return exact
        return [t for t in tasks if t.id.startswith(task_id)]

    def toggle_task(self, task_id: str) -> bool:
        """Flip the completed mark of the one task ``task_id`` names.

        An unknown or ambiguous prefix changes nothing.
        """
        matches = self.match_tasks(task_id)
        if len(matches) != 1:
            return False
        matches[0].completed = not matches[0].completed
        self._commit()
        return True

    def remove_task(self, task_id: str) -> bool:
        matches = self.match_tasks(task_id)
        if len(matches) != 1:
            return False
        self.state.current_tasks = [
            t for t in self.state.current_tasks if t is not matches[0]
        ]
        self._commit()
        return True

    def set_current_notes(self, notes: str) -> None:
        self.reload_if_changed()
        self.state.current_notes = notes
        self._commit()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _complete(self) -> None:
        s = self.state
        session_id = s.session_id
        record = SessionRecord.create(
            planned_duration=s.selected_duration,
            actual_duration=s.selected_duration,
            completed=True,
            tasks=list(s.current_tasks),
            notes=s.current_notes,
            now=self.now(),
        )

        self._stop_ticker()
        self._go_idle(remaining=0)
        self._commit()
        self.logger.info("session %s completed", session_id)

        self._record(record)
        if s.sound_enabled:
            self.notifier.play_sound()
        self.notifier.show_toast(
            "Timer completed!",
            f"You completed a {s.selected_duration} minute focus session.",
        )
        self.notifier.restore_host_title()

    def _go_idle(self, remaining: int) -> None:
        s = self.state
        s.is_active = False
        s.is_paused = False
        s.remaining_seconds = remaining
        s.session_id = None
        s.session_started_at = None
        s.run_started_at = None
        s.active_elapsed_seconds = 0.0

    def _active_elapsed(self) -> float:
        s = self.state
        elapsed = s.active_elapsed_seconds
        started = s.run_started_datetime
        if s.status == "running" and started is not None:
            elapsed += max(0.0, (self.now() - started).total_seconds())
        return elapsed

    def _sync_remaining(self) -> int:
        """Recompute remaining time from the wall clock (anchored mode only)."""
        s = self.state
        if self.anchor_to_wall_clock and s.status == "running":
            remaining = s.total_seconds - int(self._active_elapsed())
            s.remaining_seconds = max(0, min(s.total_seconds, remaining))
        return s.remaining_seconds

    def _restart_ticker(self) -> None:
        self._stop_ticker()
        self._job = self.scheduler.schedule_repeating(self.tick_interval, self.tick)

    def _stop_ticker(self) -> None:
        if self._job is not None:
            self._job.cancel()
            self._job = None

    def _show_countdown_title(self) -> None:
        self.notifier.set_host_title(f"{self.snapshot().formatted} - Focus")

    def _record(self, record: SessionRecord) -> None:
        if self.history is None:
            return
        try:
            self.history.append(record)
        except HistoryError as e:
            self.logger.warning("could not save session record %s: %s", record.id, e)
            self.notifier.show_toast(
                "Error saving session",
                "There was a problem saving your focus session. Please try again.",
            )

    def _commit(self) -> None:
        if self.store is not None:
            try:
                self._synced_text = self.store.save(self.state)
            except StateStoreError as e:
                self.logger.warning("%s", e)
        self._notify()

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)


def _clamp(minutes: int) -> int:
    return max(MIN_DURATION, min(MAX_DURATION, minutes))
