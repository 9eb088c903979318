"""System prompt builder."""

from __future__ import annotations

from datetime import datetime, timezone

from orchestria.tools.base import Tool

PERSONA_SECTION = (
    "You are OrchestrIA, an AI assistant for project and task management. "
    "Your goal is to help users manage tasks, schedule, and projects."
)

DATA_SECTION = (
    "## Data Context\n\n"
    "You have access to tools to modify tasks and calendar events. "
    "Each user message starts with a [System Context] block listing the current "
    "tasks and events with their IDs; only use IDs from that block or IDs returned "
    "by your own tool calls.\n"
    "Always use tools when the user implies an action "
    '(e.g., "mark that done", "move the meeting").'
)

CONFIRMATION_SECTION = (
    "When you call a tool, provide a short confirmation message to the user after "
    "the tool execution result is returned to you. If a tool returns an error, "
    "explain it briefly and suggest what the user can do."
)


def build_system_prompt(
    tools: list[Tool] | None = None,
    now: datetime | None = None,
    extra_sections: list[str] | None = None,
) -> str:
    """
    Build the system instruction for a chat session.

    Assembles the persona, tool usage rules, the available tools and the
    current date into a single prompt string.
    """
    sections: list[str] = [PERSONA_SECTION, DATA_SECTION, CONFIRMATION_SECTION]

    if tools:
        tool_lines = [f"- **{t.name}**: {t.description}" for t in tools]
        sections.append("## Available Tools\n\n" + "\n".join(tool_lines))

    now = now or datetime.now(timezone.utc)
    sections.append(f"Current Date: {now.isoformat()}")

    if extra_sections:
        sections.extend(extra_sections)

    return "\n\n".join(sections)
