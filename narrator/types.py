from __future__ import annotations

from dataclasses import dataclass

from narrator.llm.types import ChatMessage


class ErrorCode:
    CONFIG_ERROR = "config_error"
    PROVIDER_ERROR = "provider_error"
    PROTOCOL_ERROR = "protocol_error"
    ROUND_LIMIT = "round_limit"
    UNKNOWN_TOOL = "unknown_tool"
    INVALID_ARGUMENTS = "invalid_arguments"
    VALIDATION_ERROR = "validation_error"
    TOOL_EXCEPTION = "tool_exception"


@dataclass
class NarrationChunk:
    """A piece of narration surfaced while a round is still streaming."""

    delta: str


@dataclass
class FinalResult:
    """
    Last item yielded by the inference loop.

    Exactly one of ``content`` and ``error`` is set.  ``conversation`` is the
    full message sequence at the moment the loop stopped, for the caller to
    persist.
    """

    content: str | None = None
    error: str | None = None
    error_code: str | None = None
    conversation: tuple[ChatMessage, ...] = ()
    rounds_executed: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        if self.error is not None:
            return {"error": self.error}
        return {"content": self.content or ""}
