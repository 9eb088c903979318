"""
REST client for the dashboard backend.

Talks to the same ``/api/tasks``, ``/api/events`` and ``/api/projects``
endpoints the CRUD UI uses.  The backend speaks snake_case JSON whose keys
match the entity dataclass fields, except that event times live in
``start_time`` and ``end_time``.  Extra columns (timestamps, AI notes) are
ignored.

Dependencies: ``httpx``.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, fields
from typing import Any

import httpx

from orchestria.errors import StoreError
from orchestria.store.base import CalendarEvent, DomainStore, Project, Task

logger = logging.getLogger(__name__)


def _from_row(cls: type, row: dict) -> Any:
    """Build an entity from a backend row, ignoring unknown keys."""
    valid = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in row.items() if k in valid and v is not None})


def _task_from_row(row: dict) -> Task:
    task = _from_row(Task, row)
    # The backend stores priorities upper-cased.
    task.priority = str(task.priority).lower()
    return task


# Event fields whose database column has a different name.
_EVENT_COLUMNS = {"start": "start_time", "end": "end_time"}


def _event_from_row(row: dict) -> CalendarEvent:
    renamed = {k: row[v] for k, v in _EVENT_COLUMNS.items() if v in row}
    return _from_row(CalendarEvent, {**row, **renamed})


def _event_to_columns(patch: dict) -> dict:
    return {_EVENT_COLUMNS.get(k, k): v for k, v in patch.items()}


class HttpStore(DomainStore):
    """
    Domain store backed by the dashboard's REST API.

    Parameters
    ----------
    base_url:
        Backend root, e.g. ``"http://localhost:3001"``.
    timeout:
        Per-request timeout in seconds.
    client:
        Pre-built ``httpx.AsyncClient`` (tests inject one with a
        ``MockTransport``).  When given, ``base_url`` is ignored.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3001",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"), timeout=timeout
        )

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # DomainStore interface
    # ------------------------------------------------------------------

    async def list_tasks(self) -> list[Task]:
        rows = await self._request("GET", "/api/tasks")
        return [_task_from_row(r) for r in rows]

    async def list_events(self) -> list[CalendarEvent]:
        rows = await self._request("GET", "/api/events")
        return [_event_from_row(r) for r in rows]

    async def list_projects(self) -> list[Project]:
        rows = await self._request("GET", "/api/projects")
        return [_from_row(Project, r) for r in rows]

    async def update_task(self, task_id: str, patch: dict) -> Task:
        row = await self._request("PATCH", f"/api/tasks/{task_id}", json=patch)
        return _task_from_row(row)

    async def create_task(self, task: Task) -> Task:
        body = {k: v for k, v in asdict(task).items() if v is not None}
        row = await self._request("POST", "/api/tasks", json=body)
        return _task_from_row(row)

    async def update_event(self, event_id: str, patch: dict) -> CalendarEvent:
        row = await self._request(
            "PATCH", f"/api/events/{event_id}", json=_event_to_columns(patch)
        )
        return _event_from_row(row)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _request(self, method: str, path: str, json: dict | None = None) -> Any:
        try:
            resp = await self._client.request(method, path, json=json)
        except httpx.TransportError as exc:
            raise StoreError(f"Store unreachable: {exc}", code="unreachable") from exc

        if resp.status_code >= 400:
            message = resp.reason_phrase
            try:
                body = resp.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and body.get("error"):
                message = str(body["error"])
            code = "not_found" if resp.status_code == 404 else f"http_{resp.status_code}"
            logger.warning("%s %s failed: %d %s", method, path, resp.status_code, message)
            raise StoreError(message, code=code)

        return resp.json()
