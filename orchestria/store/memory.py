"""In-process domain store, seeded with demo data for offline use."""

from __future__ import annotations

import asyncio
import copy
from dataclasses import fields, replace
from datetime import datetime, time, timezone

from orchestria.errors import StoreError
from orchestria.store.base import CalendarEvent, DomainStore, Project, Task
from orchestria.types import TaskStatus


def _today_at(hour: int, minute: int) -> str:
    today = datetime.now(timezone.utc).date()
    return datetime.combine(today, time(hour, minute), tzinfo=timezone.utc).isoformat()


def demo_tasks() -> list[Task]:
    return [
        Task("t1", "Review Q2 Financial Forecast", source="EMAIL", priority="critical",
             estimated_minutes=45, project="Corporate Strategy"),
        Task("t2", "Fix API Rate Limiting Bug", source="JIRA", priority="high",
             estimated_minutes=120, status=TaskStatus.IN_PROGRESS, project="Project Apollo"),
        Task("t3", "Prepare Slide Deck for All-Hands", source="SLACK", priority="medium",
             estimated_minutes=60),
        Task("t4", "Approve Design Assets for Campaign", source="EMAIL", priority="low",
             estimated_minutes=15, project="Mobile App Refresh"),
    ]


def demo_events() -> list[CalendarEvent]:
    return [
        CalendarEvent("e1", "Daily Standup", _today_at(9, 30), _today_at(10, 0)),
        CalendarEvent("e2", "Deep Work: API Architecture", _today_at(10, 30), _today_at(12, 30),
                      type="focus"),
        CalendarEvent("e3", "Vendor Sync", _today_at(14, 0), _today_at(14, 30)),
    ]


def demo_projects() -> list[Project]:
    return [
        Project("p1", "Project Apollo", "on_track", 75, "Beta Launch", tasks_completed=15, total_tasks=20),
        Project("p2", "Platform Migration", "at_risk", 40, "Database Switchover", tasks_completed=8, total_tasks=20),
        Project("p3", "Mobile App Refresh", "delayed", 20, "Design Approval", tasks_completed=3, total_tasks=15),
    ]


def _apply_patch(obj, patch: dict, kind: str):
    allowed = {f.name for f in fields(obj)} - {"id"}
    unknown = set(patch) - allowed
    if unknown:
        raise StoreError(
            f"Unknown {kind} field(s): {', '.join(sorted(unknown))}",
            code="invalid_patch",
        )
    return replace(obj, **patch)


class MemoryStore(DomainStore):
    """
    A dictionary-backed store.

    Returned entities are copies, so callers can't mutate the store by
    accident.  A lock serializes writes the way a database would.
    """

    def __init__(
        self,
        tasks: list[Task] | None = None,
        events: list[CalendarEvent] | None = None,
        projects: list[Project] | None = None,
    ) -> None:
        self._tasks: dict[str, Task] = {t.id: t for t in (tasks or [])}
        self._events: dict[str, CalendarEvent] = {e.id: e for e in (events or [])}
        self._projects: dict[str, Project] = {p.id: p for p in (projects or [])}
        self._lock = asyncio.Lock()

    @classmethod
    def with_demo_data(cls) -> "MemoryStore":
        return cls(demo_tasks(), demo_events(), demo_projects())

    async def list_tasks(self) -> list[Task]:
        return [copy.deepcopy(t) for t in self._tasks.values()]

    async def list_events(self) -> list[CalendarEvent]:
        return [copy.deepcopy(e) for e in self._events.values()]

    async def list_projects(self) -> list[Project]:
        return [copy.deepcopy(p) for p in self._projects.values()]

    async def update_task(self, task_id: str, patch: dict) -> Task:
        async with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                raise StoreError(f"Task not found: {task_id}", code="not_found")
            updated = _apply_patch(task, patch, "task")
            self._tasks[task_id] = updated
            return copy.deepcopy(updated)

    async def create_task(self, task: Task) -> Task:
        async with self._lock:
            if task.id in self._tasks:
                raise StoreError(f"Task already exists: {task.id}", code="conflict")
            self._tasks[task.id] = copy.deepcopy(task)
            return copy.deepcopy(task)

    async def update_event(self, event_id: str, patch: dict) -> CalendarEvent:
        async with self._lock:
            event = self._events.get(event_id)
            if event is None:
                raise StoreError(f"Event not found: {event_id}", code="not_found")
            updated = _apply_patch(event, patch, "event")
            self._events[event_id] = updated
            return copy.deepcopy(updated)
