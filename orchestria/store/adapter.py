"""Thin call-through from tools to the domain store."""

from __future__ import annotations

import logging
import secrets
import time

from orchestria.store.base import CalendarEvent, DomainStore, Task

logger = logging.getLogger(__name__)


def new_task_id() -> str:
    """Fresh task identifier in the dashboard's ``t<millis>`` style."""
    return f"t{int(time.time() * 1000)}{secrets.token_hex(4)}"


class StoreAdapter:
    """
    The only path through which the assistant touches the domain store.

    Methods take already-validated arguments and raise ``StoreError`` on
    failure; the tool registry turns that into a tool error payload.
    """

    def __init__(self, store: DomainStore) -> None:
        self.store = store

    async def snapshot(self) -> tuple[list[Task], list[CalendarEvent]]:
        """Fetch current tasks and events.  Never cached."""
        tasks = await self.store.list_tasks()
        events = await self.store.list_events()
        return tasks, events

    async def set_task_status(self, task_id: str, status: str) -> Task:
        logger.info("Setting task %s status to %s", task_id, status)
        return await self.store.update_task(task_id, {"status": status})

    async def add_task(
        self,
        title: str,
        priority: str,
        estimated_minutes: int,
        description: str = "Created via AI",
    ) -> Task:
        task = Task(
            id=new_task_id(),
            title=title,
            description=description,
            source="MANUAL",
            priority=priority,
            estimated_minutes=estimated_minutes,
        )
        logger.info("Creating task %s (%s)", task.id, title)
        return await self.store.create_task(task)

    async def move_event(self, event_id: str, start: str, end: str) -> CalendarEvent:
        logger.info("Moving event %s to %s - %s", event_id, start, end)
        return await self.store.update_event(event_id, {"start": start, "end": end})
