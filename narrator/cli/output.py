"""Output formatting utilities for the CLI."""

from __future__ import annotations

import json

from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from narrator.llm.types import ChatMessage
from narrator.tools.base import Tool
from narrator.types import FinalResult

ROLE_COLORS = {
    "system": "dim",
    "user": "blue",
    "assistant": "green",
    "tool": "cyan",
}


class OutputFormatter:
    """Rich-based output formatting for the narrator CLI."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def format_narration(self, text: str) -> None:
        self.console.print(Markdown(text))

    def format_tool_list(self, tools: list[Tool]) -> None:
        table = Table(title="Registered Tools", show_lines=True)
        table.add_column("Name", style="cyan", no_wrap=True)
        table.add_column("Description")

        for t in tools:
            table.add_row(t.name, t.description)

        self.console.print(table)

    def format_history(self, messages: list[ChatMessage]) -> None:
        if not messages:
            self.console.print("[dim]No messages yet.[/dim]")
            return

        for msg in messages:
            color = ROLE_COLORS.get(msg.role, "white")
            if msg.tool_calls:
                content = ", ".join(
                    f"{tc.name}({tc.arguments_json})" for tc in msg.tool_calls
                )
                content = f"requests {content}"
            elif msg.role == "tool":
                content = f"{msg.name} -> {msg.content}"
            else:
                content = (msg.content or "")[:100]
            self.console.print(f"  [{color}]{msg.role:>9s}[/{color}]  {escape(content)}")

    def format_error(self, result: FinalResult) -> None:
        self.console.print(Panel(
            escape(result.error or ""),
            title=f"[red]{result.error_code or 'error'}[/red]",
            border_style="red",
        ))

    def format_config(self, config: dict) -> None:
        config_json = json.dumps(config, indent=2, default=str)
        self.console.print(Syntax(config_json, "json", theme="monokai"))
