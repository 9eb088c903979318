"""Interactive chat session handler."""

from __future__ import annotations

import asyncio

from rich.console import Console

from orchestria.chat.log import MessageRole, MessageUpdate
from orchestria.chat.session import SessionManager
from orchestria.cli.output import OutputFormatter
from orchestria.errors import StoreError


class ChatHandler:
    """
    Manages the interactive chat loop.

    Renders ``MessageUpdate`` objects as they arrive: assistant entries
    print their new suffix on each update, so streamed text shows up
    incrementally.  User entries are not echoed back.
    """

    def __init__(
        self,
        session: SessionManager,
        console: Console | None = None,
    ) -> None:
        self.session = session
        self.console = console or Console()
        self.formatter = OutputFormatter(self.console)
        self._running = True
        self._printed: dict[str, int] = {}

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self, update: MessageUpdate) -> None:
        message = update.message
        if message.role is not MessageRole.ASSISTANT:
            return

        seen = self._printed.get(message.id)
        if seen is None:
            self.console.print("[dim]assistant>[/dim] ", end="")
            seen = 0

        new_text = message.text[seen:]
        if new_text:
            self.console.print(new_text, end="", markup=False, highlight=False)
        self._printed[message.id] = len(message.text)

        if not message.streaming:
            self.console.print()
            self.console.print()

    def render_history(self) -> None:
        for message in self.session.log.messages:
            self.render(MessageUpdate(message))

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def handle_command(self, command: str) -> bool:
        """
        Handle inline commands. Returns True if the command was handled.
        """
        cmd = command.strip().split(None, 1)[0].lower()

        if cmd == "/quit":
            self._running = False
            self.console.print("[dim]Goodbye.[/dim]")
            return True

        if cmd in ("/tasks", "/events"):
            try:
                tasks, events = await self.session.adapter.snapshot()
            except StoreError as e:
                self.console.print(f"  [red]Store error:[/red] {e}")
                return True
            if cmd == "/tasks":
                self.formatter.format_task_list(tasks)
            else:
                self.formatter.format_event_list(events)
            return True

        if cmd == "/tools":
            self.formatter.format_tool_list(self.session.registry.list())
            return True

        if cmd == "/reset":
            self.session.reset()
            self.console.print("  [dim]Conversation reset.[/dim]")
            return True

        if cmd == "/help":
            self.console.print(
                "  [bold]Commands:[/bold]\n"
                "  /tasks    - Show current tasks\n"
                "  /events   - Show calendar events\n"
                "  /tools    - List available tools\n"
                "  /reset    - Start a fresh conversation\n"
                "  /quit     - Exit the chat\n"
                "  /help     - Show this help\n"
            )
            return True

        return False

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    async def handle_input(self, user_input: str) -> None:
        """Send user input through the session and stream the reply."""
        async for update in self.session.send(user_input):
            self.render(update)

    async def run_loop(self) -> None:
        """Main interactive loop."""
        self.console.print(
            "[bold]OrchestrIA[/bold] - Task & Schedule Assistant\n"
            "[dim]Type /help for commands, /quit to exit.[/dim]\n"
        )
        self.render_history()

        loop = asyncio.get_running_loop()
        while self._running:
            try:
                user_input = await loop.run_in_executor(
                    None, lambda: input("you> ").strip()
                )
            except (EOFError, KeyboardInterrupt):
                self.console.print("\n[dim]Goodbye.[/dim]")
                break

            if not user_input:
                continue

            if user_input.startswith("/"):
                handled = await self.handle_command(user_input)
                if handled:
                    continue

            await self.handle_input(user_input)
