"""Focus session endpoints on the remote row store."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import httpx

from focustimer.models.focus.exceptions import RemoteHistoryError
from focustimer.models.focus.history import SessionRecord
from focustimer.models.focus.state import FocusTask

from .client import APIClient

RETURN_REPRESENTATION = {"Prefer": "return=representation"}
MERGE_DUPLICATES = {"Prefer": "resolution=merge-duplicates,return=minimal"}


def _in_filter(values: list[str]) -> str:
    return "in.(" + ",".join(values) + ")"


class FocusSessionsAPI:
    """focus_sessions, focus_tasks and the focus_session_tasks junction."""

    def __init__(self, client: APIClient):
        self.client = client

    async def create_session(self, record: SessionRecord) -> dict[str, Any]:
        """Insert a session row and link its task snapshots."""
        response = await self.client.post(
            "/focus_sessions", json=[record.to_row()], headers=RETURN_REPRESENTATION
        )
        rows = response.json()
        row = rows[0] if isinstance(rows, list) and rows else record.to_row()

        if record.tasks:
            await self.client.post(
                "/focus_tasks",
                json=[task.to_dict() for task in record.tasks],
                headers=MERGE_DUPLICATES,
            )
            await self.client.post(
                "/focus_session_tasks",
                json=[
                    {"session_id": record.id, "task_id": task.id}
                    for task in record.tasks
                ],
            )
        return row

    async def list_sessions(self) -> list[SessionRecord]:
        """All sessions, newest first, with their tasks joined in."""
        response = await self.client.get(
            "/focus_sessions",
            params={"select": "*", "order": "created_at.desc"},
        )
        rows: list[dict[str, Any]] = response.json()
        if not rows:
            return []

        session_ids = [str(row["id"]) for row in rows]
        response = await self.client.get(
            "/focus_session_tasks",
            params={
                "select": "session_id,task_id",
                "session_id": _in_filter(session_ids),
            },
        )
        links: list[dict[str, Any]] = response.json()

        tasks_by_id: dict[str, FocusTask] = {}
        task_ids = sorted({str(link["task_id"]) for link in links})
        if task_ids:
            response = await self.client.get(
                "/focus_tasks", params={"select": "*", "id": _in_filter(task_ids)}
            )
            tasks_by_id = {
                str(item["id"]): FocusTask.from_dict(item) for item in response.json()
            }

        tasks_by_session: dict[str, list[FocusTask]] = {}
        for link in links:
            task = tasks_by_id.get(str(link["task_id"]))
            if task is not None:
                tasks_by_session.setdefault(str(link["session_id"]), []).append(task)

        return [
            SessionRecord.from_row(row, tasks_by_session.get(str(row["id"]), []))
            for row in rows
        ]

    async def delete_session(self, session_id: str) -> bool:
        """Delete a session row; returns False if nothing matched."""
        response = await self.client.delete(
            "/focus_sessions",
            params={"id": f"eq.{session_id}"},
            headers=RETURN_REPRESENTATION,
        )
        if not response.content:
            return True
        return bool(response.json())


class RemoteHistoryStore:
    """Synchronous history boundary over :class:`FocusSessionsAPI`.

    Each call opens and closes its own client inside ``asyncio.run`` so the
    store can be used from the engine's tick callback.
    """

    def __init__(self, client_factory: Callable[[], APIClient]):
        self.client_factory = client_factory

    def append(self, record: SessionRecord) -> None:
        self._run(lambda api: api.create_session(record), "save session")

    def list(self) -> list[SessionRecord]:
        return self._run(lambda api: api.list_sessions(), "load sessions")

    def delete(self, record_id: str) -> bool:
        return self._run(lambda api: api.delete_session(record_id), "delete session")

    def _run(self, call, action: str):
        async def _go():
            async with self.client_factory() as client:
                return await call(FocusSessionsAPI(client))

        try:
            return asyncio.run(_go())
        except httpx.HTTPError as e:
            raise RemoteHistoryError(f"Could not {action}: {e}") from e
        except (KeyError, TypeError, ValueError) as e:
            raise RemoteHistoryError(
                f"Unexpected response while trying to {action}: {e}"
            ) from e
