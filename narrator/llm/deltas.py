"""Classification of chat-completion stream payloads into ``StreamEvent``s."""

from __future__ import annotations

import logging

from narrator.llm.types import (
    ContentDelta,
    StreamError,
    StreamEvent,
    ToolCallDelta,
    ToolCallFragment,
    TurnFinished,
)

logger = logging.getLogger(__name__)


def interpret_payload(payload: dict) -> list[StreamEvent]:
    """
    Convert one parsed ``data:`` payload into zero or more events.

    Only the first choice is considered.  Text wins over tool-call deltas
    when a payload carries both; a ``finish_reason`` is reported in addition
    to either.  Heartbeat payloads yield nothing, and so do payloads that do
    not have the chat-completions shape.
    """
    if not isinstance(payload, dict):
        logger.warning("Ignoring non-object payload: %r", payload)
        return []

    error = payload.get("error")
    if error:
        message = error.get("message") if isinstance(error, dict) else str(error)
        return [StreamError(message=str(message or "provider reported an error"))]

    choices = payload.get("choices")
    if not choices:
        return []
    if not isinstance(choices, list) or not isinstance(choices[0], dict):
        logger.warning("Ignoring payload with malformed choices: %r", choices)
        return []

    choice = choices[0]
    delta = choice.get("delta") or {}
    if not isinstance(delta, dict):
        logger.warning("Ignoring payload with malformed delta: %r", delta)
        return []

    events: list[StreamEvent] = []

    content = delta.get("content")
    raw_calls = delta.get("tool_calls")
    if isinstance(content, str) and content:
        events.append(ContentDelta(text=content))
    elif isinstance(raw_calls, list):
        for position, raw in enumerate(raw_calls):
            fragment = _fragment(raw, position)
            if fragment is not None:
                events.append(ToolCallDelta(fragment=fragment))
    elif raw_calls:
        logger.warning("Ignoring malformed tool_calls: %r", raw_calls)

    finish_reason = choice.get("finish_reason")
    if finish_reason is not None:
        events.append(TurnFinished(reason=str(finish_reason)))

    return events


def _text(value) -> str | None:
    return value if isinstance(value, str) else None


def _fragment(raw, position: int) -> ToolCallFragment | None:
    if not isinstance(raw, dict):
        logger.warning("Ignoring malformed tool-call delta: %r", raw)
        return None
    index = raw.get("index")
    if index is None:
        index = position
    elif isinstance(index, bool) or not isinstance(index, int):
        logger.warning("Ignoring tool-call delta with bad index: %r", index)
        return None
    func = raw.get("function")
    if not isinstance(func, dict):
        func = {}
    return ToolCallFragment(
        index=index,
        id_part=_text(raw.get("id")),
        name_part=_text(func.get("name")),
        arguments_part=_text(func.get("arguments")),
    )
