"""Morning briefing: a short, tool-free summary of the day."""

from __future__ import annotations

import logging
from datetime import date, datetime

from orchestria.llm.providers.base import Provider
from orchestria.llm.types import ChatMessage
from orchestria.store.base import CalendarEvent, Project, Task

logger = logging.getLogger(__name__)

UNAVAILABLE_BRIEFING = "AI briefing unavailable. Please configure your Gemini API key."
FALLBACK_BRIEFING = "Good morning! Your tasks and schedule are ready for review."


def _event_time(start: str) -> str:
    try:
        return datetime.fromisoformat(start.replace("Z", "+00:00")).strftime("%H:%M")
    except ValueError:
        return start


def build_briefing_prompt(
    tasks: list[Task],
    events: list[CalendarEvent],
    projects: list[Project],
    today: date,
) -> str:
    task_summary = "\n".join(
        f"- {t.title} ({t.status}, priority: {t.priority})" for t in tasks[:5]
    )
    event_summary = "\n".join(
        f"- {e.title} at {_event_time(e.start)}" for e in events[:5]
    )
    project_summary = "\n".join(
        f"- {p.name}: {p.tasks_completed}/{p.total_tasks} tasks completed"
        for p in projects[:3]
    )
    return (
        f"Generate a concise, professional morning briefing for {today:%A, %B} {today.day}.\n\n"
        "Keep it under 3 sentences. Focus on:\n"
        "1. What needs attention today\n"
        "2. Key meetings or deadlines\n"
        "3. Overall workload assessment\n\n"
        f"Current Tasks:\n{task_summary or 'No active tasks'}\n\n"
        f"Today's Events:\n{event_summary or 'No events scheduled'}\n\n"
        f"Active Projects:\n{project_summary or 'No active projects'}\n\n"
        "Write in a calm, executive assistant tone. Be specific but brief."
    )


async def generate_briefing(
    provider: Provider | None,
    tasks: list[Task],
    events: list[CalendarEvent],
    projects: list[Project],
    *,
    today: date | None = None,
) -> str:
    """
    Return the briefing text.

    Never raises: without a provider, or when the model call fails, a
    fixed fallback sentence is returned instead.
    """
    if provider is None:
        return UNAVAILABLE_BRIEFING

    prompt = build_briefing_prompt(tasks, events, projects, today or date.today())
    parts: list[str] = []
    try:
        async for chunk in provider.chat([ChatMessage(role="user", content=prompt)]):
            if chunk.delta:
                parts.append(chunk.delta)
    except Exception:
        logger.exception("Error generating morning briefing")
        return FALLBACK_BRIEFING

    text = "".join(parts).strip()
    return text or FALLBACK_BRIEFING
