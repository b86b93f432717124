"""Timer state with persistent storage."""

from __future__ import annotations

import json
import os
import uuid
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime
from pathlib import Path
from typing import Literal

from focustimer.utils.logger import get_logger

from .exceptions import StateStoreError

TimerStatus = Literal["idle", "running", "paused"]

DEFAULT_DURATION = 25


@dataclass
class FocusTask:
    """A work item attached to the session in progress."""

    id: str
    text: str
    completed: bool = False

    @classmethod
    def create(cls, text: str) -> "FocusTask":
        return cls(id=str(uuid.uuid4()), text=text.strip())

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "FocusTask":
        return cls(
            id=str(data["id"]),
            text=data.get("text", ""),
            completed=bool(data.get("completed", False)),
        )


@dataclass
class TimerState:
    """Countdown state shared by every surface of the application."""

    selected_duration: int = DEFAULT_DURATION
    remaining_seconds: int = DEFAULT_DURATION * 60
    is_active: bool = False
    is_paused: bool = False
    sound_enabled: bool = True
    current_tasks: list[FocusTask] = field(default_factory=list)
    current_notes: str = ""
    session_id: str | None = None
    session_started_at: str | None = None  # ISO 8601
    run_started_at: str | None = None  # ISO 8601, None unless running
    active_elapsed_seconds: float = 0.0

    @property
    def total_seconds(self) -> int:
        return self.selected_duration * 60

    @property
    def minutes(self) -> int:
        return self.remaining_seconds // 60

    @property
    def seconds(self) -> int:
        return self.remaining_seconds % 60

    @property
    def status(self) -> TimerStatus:
        if not self.is_active:
            return "idle"
        return "paused" if self.is_paused else "running"

    @property
    def run_started_datetime(self) -> datetime | None:
        if self.run_started_at:
            return datetime.fromisoformat(self.run_started_at.replace("Z", "+00:00"))
        return None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "TimerState":
        """Create from dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        values["current_tasks"] = [
            FocusTask.from_dict(t) for t in values.get("current_tasks", [])
        ]
        state = cls(**values)
        state.normalize()
        return state

    def normalize(self) -> None:
        """Repair values that would break the engine invariants."""
        self.selected_duration = max(1, min(180, int(self.selected_duration)))
        self.remaining_seconds = max(
            0, min(self.total_seconds, int(self.remaining_seconds))
        )
        if not self.is_active:
            self.is_paused = False
            self.run_started_at = None
        elif self.is_paused:
            self.run_started_at = None
        elif not _is_timestamp(self.run_started_at):
            # A running session needs its anchor; without one it can only be
            # resumed, which sets a fresh anchor.
            self.is_paused = True
            self.run_started_at = None


def _is_timestamp(value: object) -> bool:
    if not isinstance(value, str):
        return False
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return False
    return parsed.tzinfo is not None


class TimerStateStore:
    """Persists :class:`TimerState` to a JSON file between runs.

    Several processes may share the file (a ``watch`` surface and one-shot
    commands), so writes replace the file atomically and readers can compare
    the raw text to notice changes made elsewhere.
    """

    def __init__(self, state_dir: Path | None = None):
        if state_dir is None:
            from platformdirs import user_data_dir

            state_dir = Path(user_data_dir("focustimer")) / "state"

        self.state_dir = state_dir
        self.state_dir.mkdir(parents=True, exist_ok=True)
        self.state_file = self.state_dir / "timer_state.json"

    def save(self, state: TimerState) -> str:
        """Write the state file and return the text written."""
        text = json.dumps(state.to_dict(), indent=2)
        tmp = self.state_file.with_name(f".{self.state_file.name}.{os.getpid()}")
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                f.write(text)
            tmp.chmod(0o600)
            os.replace(tmp, self.state_file)
        except OSError as e:
            raise StateStoreError(f"Could not save timer state: {e}") from e
        return text

    def read_text(self) -> str | None:
        """Raw contents of the state file, or None if there is none."""
        try:
            return self.state_file.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StateStoreError(f"Could not read timer state: {e}") from e

    def parse(self, text: str) -> TimerState | None:
        """Parse state file text. Returns None if it is invalid."""
        try:
            return TimerState.from_dict(json.loads(text))
        except (
            json.JSONDecodeError,
            AttributeError,
            TypeError,
            KeyError,
            ValueError,
        ) as e:
            get_logger("state").warning(
                "Ignoring unreadable timer state %s: %s", self.state_file, e
            )
            return None

    def load(self) -> TimerState | None:
        """Load the state file. Returns None if the file is missing or invalid."""
        text = self.read_text()
        if text is None:
            return None
        return self.parse(text)

    def delete(self) -> None:
        """Delete the state file."""
        if self.state_file.exists():
            self.state_file.unlink()
