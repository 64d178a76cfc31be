"""
Main CLI application for narrator-core.

Usage:
    narrator play [--world FILE] [--model NAME] [--max-rounds N]
    narrator ask PROMPT
    narrator roll
    narrator tools list|schema
    narrator config show|validate
    narrator version
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from narrator import __version__
from narrator.config import NarratorConfig, load_config

app = typer.Typer(name="narrator", help="Narrator - streaming LLM roleplaying engine")
tools_app = typer.Typer(help="Tool management")
config_app = typer.Typer(help="Configuration management")

app.add_typer(tools_app, name="tools")
app.add_typer(config_app, name="config")

console = Console()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _get_config_path() -> Path | None:
    """Find config file in standard locations."""
    candidates = [
        Path.cwd() / "narrator.yaml",
        Path.cwd() / "narrator.yml",
        Path.home() / ".config" / "narrator" / "config.yaml",
    ]
    for p in candidates:
        if p.is_file():
            return p
    return None


def _setup_logging(cfg: NarratorConfig, verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else getattr(logging, cfg.logging.level.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load(
    model: str | None = None,
    max_rounds: int | None = None,
    verbose: bool = False,
) -> NarratorConfig:
    try:
        cfg = load_config(
            _get_config_path(),
            cli_overrides={"llm.model": model, "inference.max_rounds": max_rounds},
        )
    except ValueError as e:
        console.print(f"[red]Invalid configuration:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    _setup_logging(cfg, verbose)
    return cfg


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@app.command()
def play(
    world: Optional[Path] = typer.Option(None, help="Markdown file describing the setting"),
    intro: Optional[str] = typer.Option(None, help="Opening narration shown before the first turn"),
    model: Optional[str] = typer.Option(None, help="Override the configured model"),
    max_rounds: Optional[int] = typer.Option(None, help="Max tool rounds per turn"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Start an interactive game."""
    from narrator.cli.chat import PlayHandler
    from narrator.orchestrator.core import InferenceLoop
    from narrator.prompts.system import build_system_prompt
    from narrator.tools.registry import build_default_registry

    cfg = _load(model, max_rounds, verbose)
    missing = cfg.llm.missing()
    if missing:
        console.print(f"[red]Missing configuration:[/red] {', '.join(missing)}")
        raise typer.Exit(1)

    world_text = world.read_text(encoding="utf-8") if world else None
    registry = build_default_registry()
    loop = InferenceLoop.from_config(
        cfg,
        registry=registry,
        system_prompt=build_system_prompt(tools=registry.list(), world=world_text),
    )
    handler = PlayHandler(loop, console=console)
    asyncio.run(handler.run_loop(intro=intro))


@app.command()
def ask(
    prompt: str = typer.Argument(..., help="What the player says or does"),
    model: Optional[str] = typer.Option(None, help="Override the configured model"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """One-shot narration without streaming or tools."""
    from narrator.cli.output import OutputFormatter
    from narrator.errors import NarratorError
    from narrator.llm.providers.openai_compat import OpenAICompatProvider
    from narrator.llm.types import ChatMessage
    from narrator.prompts.system import build_system_prompt

    cfg = _load(model, None, verbose)
    provider = OpenAICompatProvider.from_config(cfg.llm)
    messages = [ChatMessage.system(build_system_prompt()), ChatMessage.user(prompt)]
    try:
        text = asyncio.run(provider.complete(messages))
    except NarratorError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    OutputFormatter(console).format_narration(text)


@app.command()
def roll():
    """Roll a d6 with the built-in tool."""
    from narrator.tools.dice import RollD6Tool

    payload = asyncio.run(RollD6Tool().execute())
    console.print_json(json.dumps(payload))


@tools_app.command("list")
def tools_list():
    """List registered tools."""
    from narrator.cli.output import OutputFormatter
    from narrator.tools.registry import build_default_registry

    OutputFormatter(console).format_tool_list(build_default_registry().list())


@tools_app.command("schema")
def tools_schema():
    """Print the tool catalogue exactly as it is sent to the model."""
    from narrator.tools.registry import build_default_registry

    console.print_json(json.dumps(build_default_registry().to_openai_schema()))


@config_app.command("show")
def config_show():
    """Show effective config (API key redacted)."""
    from narrator.cli.output import OutputFormatter

    cfg = _load()
    OutputFormatter(console).format_config(cfg.to_dict())


@config_app.command("validate")
def config_validate():
    """Check that everything needed to reach the LLM is set."""
    config_path = _get_config_path()
    try:
        cfg = load_config(config_path)
    except Exception as e:
        console.print(f"[red]Config validation failed:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    missing = cfg.llm.missing()
    if missing:
        console.print(f"[red]Missing configuration:[/red] {', '.join(missing)}")
        raise typer.Exit(1)

    console.print("[green]Config is valid.[/green]")
    if config_path:
        console.print(f"  Loaded from: {config_path}")
    else:
        console.print("  [dim]No config file found, using defaults and environment.[/dim]")
    console.print(f"  Endpoint: {cfg.llm.api_url} ({cfg.llm.model})")
    console.print(f"  Max tool rounds: {cfg.inference.max_rounds}")


@app.command()
def version():
    """Show version."""
    console.print(f"narrator-core v{__version__}")


def main():
    app()


if __name__ == "__main__":
    main()
