"""Interactive play session handler."""

from __future__ import annotations

import asyncio

from rich.console import Console

from narrator.cli.output import OutputFormatter
from narrator.llm.types import ChatMessage
from narrator.orchestrator.core import InferenceLoop
from narrator.types import FinalResult, NarrationChunk


class PlayHandler:
    """
    Manages the interactive play loop.

    Keeps the conversation in memory between turns and streams narration to
    the console as it arrives.
    """

    def __init__(
        self,
        loop: InferenceLoop,
        console: Console | None = None,
        history: list[ChatMessage] | None = None,
    ) -> None:
        self.loop = loop
        self.console = console or Console()
        self.formatter = OutputFormatter(self.console)
        self.history: list[ChatMessage] = list(history or [])
        self._running = True

    async def handle_command(self, command: str) -> bool:
        """
        Handle inline commands. Returns True if the command was handled.
        """
        cmd = command.strip().split(None, 1)[0].lower()

        if cmd == "/quit":
            self._running = False
            self.console.print("[dim]Goodbye.[/dim]")
            return True

        if cmd == "/history":
            self.formatter.format_history(self.history)
            return True

        if cmd == "/tools":
            self.formatter.format_tool_list(self.loop.registry.list())
            return True

        if cmd == "/help":
            self.console.print(
                "  [bold]Commands:[/bold]\n"
                "  /quit     - Leave the game\n"
                "  /history  - Show the conversation so far\n"
                "  /tools    - List tools the narrator can use\n"
                "  /help     - Show this help\n"
            )
            return True

        return False

    async def handle_input(self, user_input: str) -> FinalResult | None:
        """Run one player turn and stream the narration."""
        result: FinalResult | None = None

        async for item in self.loop.run(self.history, user_input):
            if isinstance(item, NarrationChunk):
                self.console.print(item.delta, end="", markup=False)
            elif isinstance(item, FinalResult):
                result = item

        # Newline after streaming
        self.console.print()

        if result is None:
            return None
        if result.ok:
            self.history = list(result.conversation)
        else:
            self.formatter.format_error(result)
        return result

    async def run_loop(self, intro: str | None = None) -> None:
        """Main interactive loop."""
        self.console.print(
            "[bold]Narrator[/bold] - text roleplaying\n"
            "[dim]Type /help for commands, /quit to exit.[/dim]\n"
        )
        if intro:
            self.history.append(ChatMessage.assistant(intro))
            self.formatter.format_narration(intro)

        while self._running:
            try:
                user_input = await asyncio.get_running_loop().run_in_executor(
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

            self.console.print("[dim]narrator>[/dim] ", end="")
            await self.handle_input(user_input)
