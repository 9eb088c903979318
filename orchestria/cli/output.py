"""Output formatting utilities for the CLI."""

from __future__ import annotations

import json

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from orchestria.store.base import CalendarEvent, Project, Task
from orchestria.tools.base import Tool

STATUS_COLORS = {
    "todo": "white",
    "in-progress": "yellow",
    "completed": "green",
}

PRIORITY_COLORS = {
    "low": "dim",
    "medium": "white",
    "high": "yellow",
    "critical": "bold red",
}


class OutputFormatter:
    """Rich-based output formatting for the orchestria CLI."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def format_tool_list(self, tools: list[Tool]) -> None:
        table = Table(title="Registered Tools", show_lines=True)
        table.add_column("Name", style="cyan", no_wrap=True)
        table.add_column("Parameters", no_wrap=True)
        table.add_column("Description")

        for t in tools:
            params = ", ".join(t.parameters.get("properties", {}))
            table.add_row(t.name, params, t.description)

        self.console.print(table)

    def format_tool_info(self, tool: Tool) -> None:
        required = tool.parameters.get("required", [])
        self.console.print(Panel(
            f"[bold]{tool.name}[/bold]\n\n"
            f"[dim]Required:[/dim] {', '.join(required) or 'none'}\n\n"
            f"{tool.description}",
            title=f"Tool: {tool.name}",
        ))
        schema_json = json.dumps(tool.parameters, indent=2)
        self.console.print(Syntax(schema_json, "json", theme="monokai"))

    def format_task_list(self, tasks: list[Task]) -> None:
        if not tasks:
            self.console.print("[dim]No tasks.[/dim]")
            return

        table = Table(title="Tasks")
        table.add_column("ID", style="cyan", no_wrap=True)
        table.add_column("Title")
        table.add_column("Status", no_wrap=True)
        table.add_column("Priority", no_wrap=True)
        table.add_column("Est.", justify="right", no_wrap=True)
        table.add_column("Project")

        for t in tasks:
            table.add_row(
                t.id,
                t.title,
                Text(t.status, style=STATUS_COLORS.get(t.status, "white")),
                Text(t.priority, style=PRIORITY_COLORS.get(t.priority, "white")),
                f"{t.estimated_minutes}m",
                t.project or "",
            )

        self.console.print(table)

    def format_event_list(self, events: list[CalendarEvent]) -> None:
        if not events:
            self.console.print("[dim]No events.[/dim]")
            return

        table = Table(title="Events")
        table.add_column("ID", style="cyan", no_wrap=True)
        table.add_column("Title")
        table.add_column("Start", no_wrap=True)
        table.add_column("End", no_wrap=True)
        table.add_column("Type", no_wrap=True)
        table.add_column("Attendees")

        for e in events:
            table.add_row(e.id, e.title, e.start, e.end, e.type, ", ".join(e.attendees))

        self.console.print(table)

    def format_project_list(self, projects: list[Project]) -> None:
        if not projects:
            return

        table = Table(title="Projects")
        table.add_column("Name", style="cyan")
        table.add_column("Status", no_wrap=True)
        table.add_column("Progress", justify="right", no_wrap=True)
        table.add_column("Next milestone")

        for p in projects:
            table.add_row(
                p.name,
                p.status,
                f"{p.progress}%",
                f"{p.next_milestone} ({p.milestone_date})" if p.next_milestone else "",
            )

        self.console.print(table)

    def format_briefing(self, text: str) -> None:
        self.console.print(Panel(text, title="Morning Briefing", border_style="green"))

    def format_config(self, config: dict) -> None:
        config_json = json.dumps(config, indent=2, default=str)
        self.console.print(Syntax(config_json, "json", theme="monokai"))
