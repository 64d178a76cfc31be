"""LLM subsystem -- SSE decoding, delta interpretation and tool-call assembly."""

from narrator.llm.deltas import interpret_payload
from narrator.llm.sse import SSELineDecoder, iter_sse_payloads
from narrator.llm.tool_call_assembler import ToolCallAssembler
from narrator.llm.types import (
    ChatMessage,
    ContentDelta,
    StreamError,
    StreamEvent,
    ToolCall,
    ToolCallDelta,
    ToolCallFragment,
    TurnFinished,
)

__all__ = [
    "ChatMessage",
    "ContentDelta",
    "SSELineDecoder",
    "StreamError",
    "StreamEvent",
    "ToolCall",
    "ToolCallAssembler",
    "ToolCallDelta",
    "ToolCallFragment",
    "TurnFinished",
    "interpret_payload",
    "iter_sse_payloads",
]
