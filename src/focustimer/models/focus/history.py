"""Focus session history.

Records are appended when a session completes or is abandoned and are never
edited afterwards. Whether a record is *shown* is decided on every read by
:func:`is_visible`; the filter never deletes anything.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from focustimer.utils.logger import get_logger

from .exceptions import HistoryError
from .state import FocusTask

DEFAULT_RETENTION_RATIO = 0.5
DEFAULT_LOCAL_LIMIT = 10
LOCAL_STORAGE_KEY = "timerSessions"
PENDING_KEY = "pendingSessionIds"


def whole_minutes(seconds: float) -> int:
    """Round seconds to the nearest whole minute, halves rounding up."""
    return int(max(0.0, seconds) / 60 + 0.5)


@dataclass
class SessionRecord:
    """One completed or abandoned focus attempt."""

    id: str
    date: str  # ISO 8601 creation time
    planned_duration: int
    actual_duration: int
    completed: bool
    tasks: list[FocusTask] = field(default_factory=list)
    notes: str | None = None

    @classmethod
    def create(
        cls,
        planned_duration: int,
        actual_duration: int,
        completed: bool,
        tasks: list[FocusTask] | None = None,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> "SessionRecord":
        now = now or datetime.now().astimezone()
        return cls(
            id=str(uuid.uuid4()),
            date=now.isoformat(),
            planned_duration=planned_duration,
            actual_duration=actual_duration,
            completed=completed,
            tasks=[FocusTask(t.id, t.text, t.completed) for t in tasks or []],
            notes=notes or None,
        )

    @property
    def date_datetime(self) -> datetime:
        value = datetime.fromisoformat(self.date.replace("Z", "+00:00"))
        return value if value.tzinfo else value.astimezone()

    @property
    def completion_ratio(self) -> float:
        if self.planned_duration <= 0:
            return 0.0
        return self.actual_duration / self.planned_duration

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SessionRecord":
        # Older local entries only carried {date, duration, completed}
        planned = data.get("planned_duration", data.get("duration", 0))
        return cls(
            id=str(data.get("id") or uuid.uuid4()),
            date=data["date"],
            planned_duration=int(planned),
            actual_duration=int(data.get("actual_duration", 0)),
            completed=bool(data.get("completed", False)),
            tasks=[FocusTask.from_dict(t) for t in data.get("tasks") or []],
            notes=data.get("notes") or None,
        )

    def to_row(self) -> dict[str, Any]:
        """Column mapping for the remote ``focus_sessions`` table."""
        return {
            "id": self.id,
            "duration": self.planned_duration,
            "actual_duration": self.actual_duration,
            "completed": self.completed,
            "notes": self.notes,
            "created_at": self.date,
        }

    @classmethod
    def from_row(
        cls, row: dict[str, Any], tasks: list[FocusTask] | None = None
    ) -> "SessionRecord":
        return cls(
            id=str(row["id"]),
            date=row["created_at"],
            planned_duration=int(row.get("duration") or 0),
            actual_duration=int(row.get("actual_duration") or 0),
            completed=bool(row.get("completed")),
            tasks=tasks or [],
            notes=row.get("notes") or None,
        )


def is_visible(record: SessionRecord, ratio: float = DEFAULT_RETENTION_RATIO) -> bool:
    """Completed sessions always show; abandoned ones need ``ratio`` progress."""
    if record.completed:
        return True
    if record.planned_duration <= 0:
        return False
    return record.completion_ratio >= ratio


class HistoryStore(Protocol):
    """Storage boundary shared by the local and remote stores."""

    def append(self, record: SessionRecord) -> None: ...

    def list(self) -> list[SessionRecord]: ...

    def delete(self, record_id: str) -> bool: ...


class LocalHistoryStore:
    """Device-local history: a capped JSON list under a fixed key.

    The file also remembers which records have not reached the remote store
    yet. Those are kept past the cap until they are synced.
    """

    def __init__(self, path: Path | None = None, limit: int = DEFAULT_LOCAL_LIMIT):
        if path is None:
            from platformdirs import user_data_dir

            path = Path(user_data_dir("focustimer")) / "history.json"

        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.limit = limit

    def _read(self) -> tuple[list[SessionRecord], list[str]]:
        if not self.path.exists():
            return [], []
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
            records = [
                SessionRecord.from_dict(item) for item in data[LOCAL_STORAGE_KEY]
            ]
            pending = [str(i) for i in data.get(PENDING_KEY, [])]
            return records, pending
        except (
            json.JSONDecodeError,
            AttributeError,
            KeyError,
            TypeError,
            ValueError,
        ) as e:
            get_logger("history").warning(
                "Ignoring unreadable history file %s: %s", self.path, e
            )
            return [], []
        except OSError as e:
            raise HistoryError(f"Could not read session history: {e}") from e

    def _write(self, records: list[SessionRecord], pending: list[str]) -> None:
        kept = records[: self.limit] + [
            r for r in records[self.limit :] if r.id in pending
        ]
        kept_ids = {r.id for r in kept}
        payload: dict[str, Any] = {LOCAL_STORAGE_KEY: [r.to_dict() for r in kept]}
        pending = [i for i in pending if i in kept_ids]
        if pending:
            payload[PENDING_KEY] = pending
        try:
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
        except OSError as e:
            raise HistoryError(f"Could not write session history: {e}") from e

    def append(self, record: SessionRecord) -> None:
        records, pending = self._read()
        records = [r for r in records if r.id != record.id]
        self._write([record, *records], pending)

    def list(self) -> list[SessionRecord]:
        return self._read()[0]

    def delete(self, record_id: str) -> bool:
        records, pending = self._read()
        kept = [r for r in records if r.id != record_id]
        if len(kept) == len(records):
            return False
        self._write(kept, [i for i in pending if i != record_id])
        return True

    def replace(self, records: list[SessionRecord]) -> None:
        """Overwrite the cache with a fresh listing, newest first.

        Records still waiting for the remote store are carried over.
        """
        current, pending = self._read()
        ids = {r.id for r in records}
        waiting = [r for r in current if r.id in pending and r.id not in ids]
        records = [*records, *waiting]
        self._write(
            sorted(records, key=lambda r: r.date_datetime, reverse=True), pending
        )

    def pending(self) -> list[SessionRecord]:
        """Records the remote store has not accepted yet, oldest first."""
        records, pending = self._read()
        waiting = [r for r in records if r.id in pending]
        return sorted(waiting, key=lambda r: r.date_datetime)

    def mark_pending(self, record_id: str) -> None:
        records, pending = self._read()
        if record_id not in pending:
            self._write(records, [*pending, record_id])

    def clear_pending(self, record_id: str) -> None:
        records, pending = self._read()
        if record_id in pending:
            self._write(records, [i for i in pending if i != record_id])


class SessionHistory:
    """Single history with an optional remote source of truth.

    Without a remote store the local file is the history (capped at
    ``local.limit``). With one, writes go to both and reads come from the
    remote store, refreshing the local cache. A record the remote store
    rejected stays in the cache and is sent again on the next read.
    """

    def __init__(
        self,
        local: LocalHistoryStore,
        remote: HistoryStore | None = None,
        retention_ratio: float = DEFAULT_RETENTION_RATIO,
    ):
        self.local = local
        self.remote = remote
        self.retention_ratio = retention_ratio
        self.logger = get_logger("history")

    def append(self, record: SessionRecord) -> None:
        """Save a record. Raises HistoryError if any store fails."""
        self.local.append(record)
        if self.remote is None:
            return
        try:
            self.remote.append(record)
        except HistoryError:
            self.local.mark_pending(record.id)
            raise

    def list(
        self, include_hidden: bool = False, limit: int | None = None
    ) -> list[SessionRecord]:
        """Visible records, newest first."""
        if self.remote is None:
            return self._select(self.local.list(), include_hidden, limit)

        records = self.remote.list()
        records.extend(self._sync_pending({r.id for r in records}))
        try:
            self.local.replace(records)
        except HistoryError as e:
            self.logger.warning("Could not refresh history cache: %s", e)
        return self._select(records, include_hidden, limit)

    def _sync_pending(self, remote_ids: set[str]) -> list[SessionRecord]:
        """Send cached records the remote store is missing.

        Returns the ones not in ``remote_ids``, whether or not they could be
        sent; they stay pending until a later read succeeds.
        """
        missing = []
        failed = False
        for record in self.local.pending():
            if record.id in remote_ids:
                self.local.clear_pending(record.id)
                continue
            missing.append(record)
            if failed:
                continue
            try:
                self.remote.append(record)
            except HistoryError as e:
                # Likely still offline; leave the rest for the next read
                self.logger.warning("Session %s not synced: %s", record.id, e)
                failed = True
            else:
                self.local.clear_pending(record.id)
                self.logger.info("Session %s synced to remote history", record.id)
        return missing

    def cached(
        self, include_hidden: bool = False, limit: int | None = None
    ) -> list[SessionRecord]:
        """Visible records from the local cache only."""
        return self._select(self.local.list(), include_hidden, limit)

    def delete(self, record_id: str) -> bool:
        """Remove a record everywhere. Returns False if no store had it."""
        removed = False
        if self.remote is not None:
            removed = self.remote.delete(record_id)
        return self.local.delete(record_id) or removed

    def _select(
        self, records: list[SessionRecord], include_hidden: bool, limit: int | None
    ) -> list[SessionRecord]:
        records = sorted(records, key=lambda r: r.date_datetime, reverse=True)
        if not include_hidden:
            records = [r for r in records if is_visible(r, self.retention_ratio)]
        if limit is not None:
            records = records[:limit]
        return records

