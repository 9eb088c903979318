"""
Task and calendar tools exposed to the model.

The set is closed: ``build_registry`` registers exactly these three, and
each one parses its arguments into a frozen dataclass before touching the
store.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from orchestria.errors import ToolArgumentError
from orchestria.store.adapter import StoreAdapter
from orchestria.tools.base import Tool
from orchestria.tools.registry import ToolRegistry
from orchestria.types import Priority, TaskStatus

DEFAULT_ESTIMATE_MINUTES = 30


@dataclass(frozen=True)
class UpdateTaskStatusArgs:
    task_id: str
    status: str


@dataclass(frozen=True)
class CreateTaskArgs:
    title: str
    priority: str
    estimated_minutes: int = DEFAULT_ESTIMATE_MINUTES
    description: str = "Created via AI"


@dataclass(frozen=True)
class RescheduleEventArgs:
    event_id: str
    new_start: str
    new_end: str


def _parse_iso(value: str, field_name: str) -> datetime:
    try:
        # fromisoformat only learned the "Z" suffix in 3.11.
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ToolArgumentError(f"{field_name} must be an ISO-8601 datetime") from exc


class UpdateTaskStatusTool(Tool):
    """Move a task between todo, in-progress and completed."""

    def __init__(self, adapter: StoreAdapter) -> None:
        self._adapter = adapter

    @property
    def name(self) -> str:
        return "updateTaskStatus"

    @property
    def description(self) -> str:
        return "Update the status of a task"

    @property
    def parameters(self) -> dict:
        return {
            "type": "object",
            "properties": {
                "taskId": {"type": "string", "description": "The ID of the task to update"},
                "status": {
                    "type": "string",
                    "enum": list(TaskStatus.ALL),
                    "description": "The new status for the task",
                },
            },
            "required": ["taskId", "status"],
        }

    def parse(self, arguments: dict) -> UpdateTaskStatusArgs:
        return UpdateTaskStatusArgs(task_id=arguments["taskId"], status=arguments["status"])

    async def execute(self, args: UpdateTaskStatusArgs) -> str:
        task = await self._adapter.set_task_status(args.task_id, args.status)
        return f"Task {task.id} status updated to {task.status}"


class CreateTaskTool(Tool):
    """Create a task; the new id goes back to the model for later reference."""

    def __init__(self, adapter: StoreAdapter) -> None:
        self._adapter = adapter

    @property
    def name(self) -> str:
        return "createTask"

    @property
    def description(self) -> str:
        return "Create a new task"

    @property
    def parameters(self) -> dict:
        return {
            "type": "object",
            "properties": {
                "title": {"type": "string", "minLength": 1, "description": "The title of the task"},
                "description": {"type": "string", "description": "Detailed description of the task"},
                "priority": {
                    "type": "string",
                    "enum": list(Priority.ASSIGNABLE),
                    "description": "Priority level of the task",
                },
                "estimatedMinutes": {
                    "type": "number",
                    "exclusiveMinimum": 0,
                    "description": "Estimated time to complete in minutes",
                },
            },
            "required": ["title", "priority"],
        }

    def parse(self, arguments: dict) -> CreateTaskArgs:
        title = arguments["title"].strip()
        if not title:
            raise ToolArgumentError("title must not be blank")
        minutes = arguments.get("estimatedMinutes", DEFAULT_ESTIMATE_MINUTES)
        return CreateTaskArgs(
            title=title,
            priority=arguments["priority"],
            estimated_minutes=max(1, round(minutes)),
            description=arguments.get("description") or "Created via AI",
        )

    async def execute(self, args: CreateTaskArgs) -> str:
        task = await self._adapter.add_task(
            title=args.title,
            priority=args.priority,
            estimated_minutes=args.estimated_minutes,
            description=args.description,
        )
        return f"Created task: {task.title} (ID: {task.id})"


class RescheduleEventTool(Tool):
    """Move a calendar event to a new time window."""

    def __init__(self, adapter: StoreAdapter) -> None:
        self._adapter = adapter

    @property
    def name(self) -> str:
        return "rescheduleEvent"

    @property
    def description(self) -> str:
        return "Reschedule a calendar event"

    @property
    def parameters(self) -> dict:
        return {
            "type": "object",
            "properties": {
                "eventId": {"type": "string", "description": "The ID of the event to reschedule"},
                "newStartTime": {"type": "string", "description": "New start time in ISO format"},
                "newEndTime": {"type": "string", "description": "New end time in ISO format"},
            },
            "required": ["eventId", "newStartTime", "newEndTime"],
        }

    def parse(self, arguments: dict) -> RescheduleEventArgs:
        start = _parse_iso(arguments["newStartTime"], "newStartTime")
        end = _parse_iso(arguments["newEndTime"], "newEndTime")
        if (start.tzinfo is None) != (end.tzinfo is None):
            raise ToolArgumentError("newStartTime and newEndTime must both carry a timezone or neither")
        if end < start:
            raise ToolArgumentError("newEndTime must not be before newStartTime")
        return RescheduleEventArgs(
            event_id=arguments["eventId"],
            new_start=arguments["newStartTime"],
            new_end=arguments["newEndTime"],
        )

    async def execute(self, args: RescheduleEventArgs) -> str:
        event = await self._adapter.move_event(args.event_id, args.new_start, args.new_end)
        return f"Event {event.id} moved to {event.start}"


def build_registry(adapter: StoreAdapter, tool_timeout: float = 15.0) -> ToolRegistry:
    """Registry holding the assistant's full tool set."""
    registry = ToolRegistry(tool_timeout=tool_timeout)
    registry.register(UpdateTaskStatusTool(adapter))
    registry.register(CreateTaskTool(adapter))
    registry.register(RescheduleEventTool(adapter))
    return registry
