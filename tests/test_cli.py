"""Tests for the narrator CLI and the interactive play handler."""

from __future__ import annotations

import io
import json

import pytest
from rich.console import Console
from typer.testing import CliRunner

from narrator import __version__
from narrator.cli.app import app
from narrator.cli.chat import PlayHandler
from narrator.errors import ProviderError
from narrator.llm.types import ChatMessage
from narrator.orchestrator.core import InferenceLoop
from narrator.prompts.system import build_system_prompt
from narrator.tools.registry import build_default_registry
from tests.mock_providers import ScriptedProvider, text_events, tool_call_events
from tests.mock_tools import FixedRandom

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """No config file and no LLM settings leak in from the host."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for var in ("API_KEY", "API_URL", "MODEL", "NARRATOR_MAX_ROUNDS", "NARRATOR_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)


def _console() -> Console:
    return Console(file=io.StringIO(), width=120, color_system=None)


class TestCommands:
    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_roll(self):
        result = runner.invoke(app, ["roll"])
        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["die"] == 6
        assert 1 <= payload["value"] <= 6

    def test_tools_list(self):
        result = runner.invoke(app, ["tools", "list"])
        assert result.exit_code == 0
        assert "roll_d6" in result.stdout

    def test_tools_schema(self):
        result = runner.invoke(app, ["tools", "schema"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)[0]["function"]["name"] == "roll_d6"

    def test_config_validate_reports_missing(self):
        result = runner.invoke(app, ["config", "validate"])
        assert result.exit_code == 1
        assert "API_KEY" in result.stdout

    def test_config_validate_with_env(self):
        env = {"API_KEY": "sk-test", "API_URL": "http://llm.test/v1", "MODEL": "m"}
        result = runner.invoke(app, ["config", "validate"], env=env)
        assert result.exit_code == 0
        assert "Config is valid" in result.stdout

    def test_config_show_redacts_key(self, tmp_path):
        (tmp_path / "narrator.yaml").write_text("llm:\n  api_key: sk-very-secret\n", encoding="utf-8")
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "sk-v..." in result.stdout
        assert "very-secret" not in result.stdout

    def test_play_refuses_without_settings(self):
        result = runner.invoke(app, ["play"])
        assert result.exit_code == 1
        assert "Missing configuration" in result.stdout

    def test_play_rejects_zero_rounds(self):
        result = runner.invoke(app, ["play", "--max-rounds", "0"])
        assert result.exit_code == 1
        assert "Invalid configuration" in result.stdout


class TestPlayHandler:
    async def test_turn_streams_and_keeps_history(self):
        provider = ScriptedProvider([tool_call_events("roll_d6"), text_events("A clean landing.")])
        loop = InferenceLoop(provider, build_default_registry(rng=FixedRandom(5)))
        console = _console()
        handler = PlayHandler(loop, console=console)

        result = await handler.handle_input("I leap.")

        assert result.ok
        assert "A clean landing." in console.file.getvalue()
        assert [m.role for m in handler.history] == ["user", "assistant", "tool", "assistant"]

    async def test_failed_turn_leaves_history_alone(self):
        provider = ScriptedProvider([ProviderError(429, "slow down")])
        loop = InferenceLoop(provider, build_default_registry())
        console = _console()
        handler = PlayHandler(loop, console=console, history=[ChatMessage.assistant("Welcome.")])

        result = await handler.handle_input("Hello?")

        assert not result.ok
        assert handler.history == [ChatMessage.assistant("Welcome.")]
        assert "slow down" in console.file.getvalue()

    async def test_commands(self):
        loop = InferenceLoop(ScriptedProvider([text_events("x")]), build_default_registry())
        console = _console()
        handler = PlayHandler(loop, console=console)

        assert await handler.handle_command("/tools")
        assert "roll_d6" in console.file.getvalue()
        assert await handler.handle_command("/history")
        assert not await handler.handle_command("/dance")
        assert await handler.handle_command("/quit")
        assert not handler._running


class TestSystemPrompt:
    def test_world_and_tools_included(self):
        registry = build_default_registry()
        prompt = build_system_prompt(tools=registry.list(), world="A drowned city.")
        assert "A drowned city." in prompt
        assert "**roll_d6**" in prompt
        assert "Rules for the Narrator" in prompt

    def test_without_world(self):
        prompt = build_system_prompt()
        assert "No setting was provided" in prompt
        assert "Available Tools" not in prompt
