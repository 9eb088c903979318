"""
Context snapshot prepended to outgoing user messages.

The model can only reference tasks and events it has seen, so every send
carries a fresh, bounded listing of their identifiers.
"""

from __future__ import annotations

import json
from typing import Iterable

from orchestria.store.base import CalendarEvent, Task

MAX_TITLE_CHARS = 120


def _clip(text: str) -> str:
    if len(text) <= MAX_TITLE_CHARS:
        return text
    return text[: MAX_TITLE_CHARS - 1] + "…"


def _bounded(rows: list[dict], max_items: int) -> str:
    shown = json.dumps(rows[:max_items], ensure_ascii=False, separators=(",", ":"))
    omitted = len(rows) - max_items
    if omitted > 0:
        shown += f" (+{omitted} more not shown)"
    return shown


def build_context_snapshot(
    tasks: Iterable[Task],
    events: Iterable[CalendarEvent],
    *,
    max_items: int = 50,
) -> str:
    task_rows = [
        {"id": t.id, "title": _clip(t.title), "status": t.status} for t in tasks
    ]
    event_rows = [
        {"id": e.id, "title": _clip(e.title), "start": e.start} for e in events
    ]
    return (
        "[System Context]:\n"
        f"Current Tasks: {_bounded(task_rows, max_items)}\n"
        f"Current Events: {_bounded(event_rows, max_items)}"
    )


def compose_prompt(context: str | None, user_text: str) -> str:
    """Join the context block and the user's words into one message."""
    if not context:
        return user_text
    return f"{context}\n\nUser Request: {user_text}"
