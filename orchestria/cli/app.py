"""
Main CLI application for orchestria.

Usage:
    orchestria chat [--profile NAME] [--store memory|http] [--verbose]
    orchestria briefing [--profile NAME] [--store memory|http]
    orchestria tools list|info
    orchestria config show|validate
    orchestria version
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from orchestria.config import OrchestriaConfig, find_config_path, load_config

__version__ = "0.1.0"

app = typer.Typer(name="orchestria", help="OrchestrIA - Task & Schedule Assistant")
tools_app = typer.Typer(help="Tool management")
config_app = typer.Typer(help="Configuration management")

app.add_typer(tools_app, name="tools")
app.add_typer(config_app, name="config")

console = Console()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )


def _load(profile: str | None = None, store: str | None = None) -> OrchestriaConfig:
    try:
        return load_config(
            find_config_path(),
            profile=profile,
            cli_overrides={"store.backend": store},
        )
    except (ValueError, KeyError) as e:
        console.print(f"[red]Config error:[/red] {e}")
        raise typer.Exit(1)


def _tool_registry():
    """Registry over the demo store; enough to describe the tools."""
    from orchestria.store.adapter import StoreAdapter
    from orchestria.store.memory import MemoryStore
    from orchestria.tools.domain import build_registry

    return build_registry(StoreAdapter(MemoryStore.with_demo_data()))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@app.command()
def chat(
    profile: Optional[str] = typer.Option(None, help="Config profile name"),
    store: Optional[str] = typer.Option(None, help="Store backend: memory or http"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
):
    """Start an interactive chat session."""
    from orchestria.assistant import build_session, build_store
    from orchestria.cli.chat import ChatHandler

    _setup_logging(verbose)
    cfg = _load(profile, store)

    async def _run():
        domain_store = build_store(cfg)
        try:
            handler = ChatHandler(build_session(cfg, domain_store), console=console)
            await handler.run_loop()
        finally:
            await domain_store.close()

    asyncio.run(_run())


@app.command()
def briefing(
    profile: Optional[str] = typer.Option(None, help="Config profile name"),
    store: Optional[str] = typer.Option(None, help="Store backend: memory or http"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
):
    """Print a short AI briefing of today's tasks and schedule."""
    from orchestria.assistant import build_provider, build_store
    from orchestria.briefing import generate_briefing
    from orchestria.cli.output import OutputFormatter
    from orchestria.errors import SessionUnavailable, StoreError

    _setup_logging(verbose)
    cfg = _load(profile, store)

    async def _run() -> str:
        domain_store = build_store(cfg)
        try:
            tasks = await domain_store.list_tasks()
            events = await domain_store.list_events()
            projects = await domain_store.list_projects()
        except StoreError as e:
            console.print(f"[red]Store error:[/red] {e}")
            raise typer.Exit(1)
        finally:
            await domain_store.close()

        try:
            provider = build_provider(cfg)
        except SessionUnavailable:
            provider = None
        return await generate_briefing(provider, tasks, events, projects)

    OutputFormatter(console).format_briefing(asyncio.run(_run()))


@tools_app.command("list")
def tools_list():
    """List registered tools."""
    from orchestria.cli.output import OutputFormatter

    OutputFormatter(console).format_tool_list(_tool_registry().list())


@tools_app.command("info")
def tools_info(tool_name: str = typer.Argument(..., help="Tool name")):
    """Show tool details and schema."""
    from orchestria.cli.output import OutputFormatter

    tool = _tool_registry().get(tool_name)
    if not tool:
        console.print(f"[red]Tool not found:[/red] {tool_name}")
        raise typer.Exit(1)

    OutputFormatter(console).format_tool_info(tool)


@config_app.command("show")
def config_show(
    profile: Optional[str] = typer.Option(None, help="Config profile name"),
):
    """Show effective config."""
    from orchestria.cli.output import OutputFormatter

    cfg = _load(profile)
    OutputFormatter(console).format_config(cfg.to_dict())


@config_app.command("validate")
def config_validate():
    """Validate config and show the effective essentials."""
    config_path = find_config_path()
    try:
        cfg = load_config(config_path)
    except Exception as e:
        console.print(f"[red]Config validation failed:[/red] {e}")
        raise typer.Exit(1)

    console.print("[green]Config is valid.[/green]")
    if config_path:
        console.print(f"  Loaded from: {config_path}")
    else:
        console.print("  [dim]No config file found, using defaults.[/dim]")
    console.print(f"  LLM provider: {cfg.llm.name} ({cfg.llm.model})")
    key_state = "set" if cfg.api_key() else "[yellow]not set[/yellow]"
    console.print(f"  API key ({cfg.llm.api_key_env}): {key_state}")
    console.print(f"  Store backend: {cfg.store.backend}")


@app.command()
def version():
    """Show version."""
    console.print(f"orchestria v{__version__}")


def main():
    app()


if __name__ == "__main__":
    main()
