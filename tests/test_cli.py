"""Tests for the typer app and the chat renderer."""

from io import StringIO

from rich.console import Console
from typer.testing import CliRunner

from orchestria.assistant import build_session
from orchestria.chat.log import MessageLog
from orchestria.cli.app import app
from orchestria.cli.chat import ChatHandler
from orchestria.config import OrchestriaConfig
from orchestria.errors import SessionUnavailable
from orchestria.store.memory import MemoryStore
from tests.mock_providers import make_text_provider

runner = CliRunner()


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "orchestria v0.1.0" in result.stdout


def test_tools_list_and_info():
    result = runner.invoke(app, ["tools", "list"])
    assert result.exit_code == 0
    assert "createTask" in result.stdout

    result = runner.invoke(app, ["tools", "info", "rescheduleEvent"])
    assert result.exit_code == 0
    assert "newStartTime" in result.stdout

    result = runner.invoke(app, ["tools", "info", "deleteEverything"])
    assert result.exit_code == 1


def _handler(provider_factory):
    console = Console(file=StringIO(), width=120, color_system=None)
    session = build_session(OrchestriaConfig(), MemoryStore.with_demo_data(), provider_factory)
    return ChatHandler(session, console=console), console


async def test_chat_handler_streams_reply():
    handler, console = _handler(lambda cfg: make_text_provider("Your day looks clear"))
    await handler.handle_input("what's next?")
    output = console.file.getvalue()
    assert "assistant>" in output
    assert "Your day looks clear" in output
    assert "what's next?" not in output


async def test_chat_handler_without_key():
    def no_key(cfg):
        raise SessionUnavailable("GEMINI_API_KEY is not set")

    handler, console = _handler(no_key)
    await handler.handle_input("hello")
    assert "AI capabilities are currently unavailable" in console.file.getvalue()


async def test_inline_commands():
    handler, console = _handler(lambda cfg: make_text_provider("unused"))
    assert await handler.handle_command("/tasks")
    assert await handler.handle_command("/events")
    assert await handler.handle_command("/tools")
    assert await handler.handle_command("/reset")
    assert not await handler.handle_command("/unknown")
    output = console.file.getvalue()
    assert "Review Q2 Financial Forecast" in output
    assert "Daily Standup" in output
    assert "updateTaskStatus" in output

    assert await handler.handle_command("/quit")
    assert not handler._running


def test_greeting_comes_first():
    session = build_session(OrchestriaConfig(), MemoryStore(), lambda cfg: make_text_provider("x"))
    assert isinstance(session.log, MessageLog)
    assert session.log.messages[0].text.startswith("Hello. I'm OrchestrIA.")
