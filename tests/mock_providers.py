"""
Mock LLM providers for testing.

Provides scripted event sequences so tests can exercise the inference loop
without hitting real APIs, plus helpers that render SSE bodies for the
``httpx.MockTransport``-based provider tests.
"""

from __future__ import annotations

import asyncio
import json
from typing import AsyncIterator

import httpx

from narrator.llm.providers.base import Provider
from narrator.llm.types import (
    ChatMessage,
    ContentDelta,
    StreamEvent,
    ToolCallDelta,
    ToolCallFragment,
    TurnFinished,
)


class ScriptedProvider(Provider):
    """
    A provider that plays back one scripted round per request.

    Usage::

        provider = ScriptedProvider([
            tool_call_events("roll_d6"),
            text_events("You rolled a 6!"),
        ])

    A round may be an exception instance, which is raised when that round is
    requested.  Once the script runs out the last round repeats.

    Parameters
    ----------
    rounds:
        One list of ``StreamEvent`` objects (or an exception) per request.
    """

    def __init__(self, rounds: list[list[StreamEvent] | Exception]) -> None:
        self._rounds = rounds
        self.requests: list[list[ChatMessage]] = []
        self.last_tools: list[dict] | None = None

    @property
    def name(self) -> str:
        return "scripted"

    @property
    def call_count(self) -> int:
        return len(self.requests)

    async def stream(
        self,
        messages: list[ChatMessage],
        tools: list[dict] | None = None,
    ) -> AsyncIterator[StreamEvent]:
        self.requests.append(list(messages))
        self.last_tools = tools
        script = self._rounds[min(len(self.requests), len(self._rounds)) - 1]
        if isinstance(script, Exception):
            raise script
        for event in script:
            yield event


class HangingProvider(Provider):
    """Streams one piece of text and then waits forever."""

    def __init__(self, text: str = "Once upon") -> None:
        self.text = text
        self.closed = False

    @property
    def name(self) -> str:
        return "hanging"

    async def stream(self, messages, tools=None) -> AsyncIterator[StreamEvent]:
        try:
            yield ContentDelta(text=self.text)
            await asyncio.Event().wait()
        finally:
            self.closed = True


def text_events(text: str, reason: str = "stop") -> list[StreamEvent]:
    """Stream *text* one word at a time, then finish."""
    words = text.split(" ")
    events: list[StreamEvent] = []
    for i, word in enumerate(words):
        suffix = " " if i < len(words) - 1 else ""
        events.append(ContentDelta(text=word + suffix))
    events.append(TurnFinished(reason=reason))
    return events


def tool_call_events(
    tool_name: str,
    arguments_json: str = "{}",
    call_id: str | None = "call_abc123",
    index: int = 0,
    finish: bool = True,
) -> list[StreamEvent]:
    """
    Stream a tool call with its arguments split in half across two
    fragments, then ``finish_reason="tool_calls"``.
    """
    half = len(arguments_json) // 2
    events: list[StreamEvent] = [
        ToolCallDelta(ToolCallFragment(index=index, id_part=call_id, name_part=tool_name)),
        ToolCallDelta(ToolCallFragment(index=index, arguments_part=arguments_json[:half])),
        ToolCallDelta(ToolCallFragment(index=index, arguments_part=arguments_json[half:])),
    ]
    if finish:
        events.append(TurnFinished(reason="tool_calls"))
    return events


# ---------------------------------------------------------------------------
# SSE wire helpers
# ---------------------------------------------------------------------------


def sse_body(payloads: list[dict | str], done: bool = True) -> bytes:
    """Render payloads as ``data:`` events; strings are sent verbatim."""
    lines = []
    for p in payloads:
        data = p if isinstance(p, str) else json.dumps(p, ensure_ascii=False)
        lines.append(f"data: {data}\n\n")
    if done:
        lines.append("data: [DONE]\n\n")
    return "".join(lines).encode("utf-8")


def content_payload(text: str, finish_reason: str | None = None) -> dict:
    return {"choices": [{"delta": {"content": text}, "finish_reason": finish_reason}]}


def tool_payload(
    index: int | None = 0,
    call_id: str | None = None,
    name: str | None = None,
    arguments: str | None = None,
    finish_reason: str | None = None,
) -> dict:
    call: dict = {"function": {}}
    if index is not None:
        call["index"] = index
    if call_id is not None:
        call["id"] = call_id
    if name is not None:
        call["function"]["name"] = name
    if arguments is not None:
        call["function"]["arguments"] = arguments
    return {"choices": [{"delta": {"tool_calls": [call]}, "finish_reason": finish_reason}]}


def finish_payload(reason: str) -> dict:
    return {"choices": [{"delta": {}, "finish_reason": reason}]}


class ChunkedStream(httpx.AsyncByteStream):
    """Response body delivered in caller-chosen pieces; records closing."""

    def __init__(self, pieces: list[bytes], hang: bool = False) -> None:
        self.pieces = pieces
        self.hang = hang
        self.closed = False

    async def __aiter__(self):
        for piece in self.pieces:
            yield piece
        if self.hang:
            await asyncio.Event().wait()

    async def aclose(self) -> None:
        self.closed = True


def split_every(data: bytes, size: int) -> list[bytes]:
    return [data[i:i + size] for i in range(0, len(data), size)]
