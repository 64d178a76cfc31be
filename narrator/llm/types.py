"""Core types for the LLM subsystem."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ToolCall:
    """A tool call whose fragments have all arrived.

    ``arguments_json`` is the raw concatenated argument string; it is parsed
    by the executor, not here.
    """

    name: str
    arguments_json: str = "{}"
    id: str | None = None

    def to_wire(self) -> dict:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments_json},
        }


@dataclass(frozen=True)
class ChatMessage:
    """A single message in a conversation."""

    role: str  # "system", "user", "assistant", "tool"
    content: str | None = None
    tool_calls: tuple[ToolCall, ...] = ()
    tool_call_id: str | None = None
    name: str | None = None

    @classmethod
    def system(cls, content: str) -> ChatMessage:
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> ChatMessage:
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str) -> ChatMessage:
        return cls(role="assistant", content=content)

    @classmethod
    def tool_request(
        cls, tool_calls: list[ToolCall], content: str | None = None
    ) -> ChatMessage:
        return cls(role="assistant", content=content, tool_calls=tuple(tool_calls))

    @classmethod
    def tool_result(
        cls, tool_call_id: str | None, name: str, content: str
    ) -> ChatMessage:
        return cls(role="tool", content=content, tool_call_id=tool_call_id, name=name)

    def to_wire(self) -> dict:
        """Serialize to the chat-completions ``messages`` entry shape."""
        if self.role == "tool":
            return {
                "role": "tool",
                "tool_call_id": self.tool_call_id,
                "name": self.name,
                "content": self.content or "",
            }
        if self.tool_calls:
            return {
                "role": "assistant",
                "content": self.content or None,
                "tool_calls": [tc.to_wire() for tc in self.tool_calls],
            }
        return {"role": self.role, "content": self.content or ""}


@dataclass
class ToolCallFragment:
    """
    One piece of a streamed tool call.

    Fragments sharing an ``index`` within a turn belong to the same call.
    """

    index: int
    id_part: str | None = None
    name_part: str | None = None
    arguments_part: str | None = None


# ---------------------------------------------------------------------------
# Stream events
# ---------------------------------------------------------------------------


@dataclass
class StreamEvent:
    """Base for everything a provider yields during one round."""


@dataclass
class ContentDelta(StreamEvent):
    text: str = ""


@dataclass
class ToolCallDelta(StreamEvent):
    fragment: ToolCallFragment = field(default_factory=lambda: ToolCallFragment(0))


@dataclass
class TurnFinished(StreamEvent):
    reason: str = "stop"


@dataclass
class StreamError(StreamEvent):
    message: str = ""
