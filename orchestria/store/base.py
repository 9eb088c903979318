"""Domain store interface (abstract) and the entities it serves."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from orchestria.types import TaskStatus


@dataclass
class Task:
    id: str
    title: str
    description: str = ""
    source: str = "MANUAL"
    priority: str = "medium"
    estimated_minutes: int = 30
    status: str = TaskStatus.TODO
    due_date: str | None = None
    project: str | None = None
    assignee: str | None = None


@dataclass
class CalendarEvent:
    id: str
    title: str
    start: str  # ISO-8601
    end: str  # ISO-8601
    type: str = "meeting"
    attendees: list[str] = field(default_factory=list)


@dataclass
class Project:
    id: str
    name: str
    status: str = "on_track"
    progress: int = 0
    next_milestone: str = ""
    milestone_date: str = ""
    tasks_completed: int = 0
    total_tasks: int = 0


class DomainStore(ABC):
    """
    Task/event/project store shared with the rest of the dashboard.

    Every method may raise ``StoreError``.  Callers must not assume their
    own view is authoritative: the CRUD UI edits the same records.
    """

    @abstractmethod
    async def list_tasks(self) -> list[Task]: ...

    @abstractmethod
    async def list_events(self) -> list[CalendarEvent]: ...

    @abstractmethod
    async def update_task(self, task_id: str, patch: dict) -> Task: ...

    @abstractmethod
    async def create_task(self, task: Task) -> Task: ...

    @abstractmethod
    async def update_event(self, event_id: str, patch: dict) -> CalendarEvent: ...

    async def list_projects(self) -> list[Project]:
        """Optional; stores without projects report none."""
        return []

    async def close(self) -> None:
        """Release any underlying resources."""
