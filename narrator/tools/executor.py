"""
Tool execution boundary.

Every call produces exactly one tool-result message.  Lookup, argument,
handler and result-encoding failures are converted to ``{"error": ...}``
payloads here so that the model can recover conversationally; nothing
raises past ``execute``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from narrator.llm.types import ChatMessage, ToolCall
from narrator.tools.registry import ToolRegistry
from narrator.tools.validation import ToolValidator
from narrator.types import ErrorCode

logger = logging.getLogger(__name__)


@dataclass
class ToolOutcome:
    """The payload a tool produced, its JSON encoding and, on failure, why."""

    payload: dict[str, Any]
    content: str
    error_code: str | None = None

    @property
    def success(self) -> bool:
        return self.error_code is None


class ToolExecutor:
    """Runs ``ToolCall``s against a ``ToolRegistry``."""

    def __init__(self, registry: ToolRegistry) -> None:
        self.registry = registry

    async def execute(self, call: ToolCall) -> ChatMessage:
        """Run *call* and return the tool-result message for the conversation."""
        outcome = await self.run(call)
        return ChatMessage.tool_result(
            tool_call_id=call.id,
            name=call.name,
            content=outcome.content,
        )

    async def run(self, call: ToolCall) -> ToolOutcome:
        tool = self.registry.get(call.name)
        if tool is None:
            logger.warning("Unknown tool requested: %s", call.name)
            return _failure(f"Unknown tool: {call.name}", ErrorCode.UNKNOWN_TOOL)

        try:
            arguments = json.loads(call.arguments_json or "{}")
        except ValueError as exc:
            logger.warning(
                "Invalid JSON arguments for %s: %s", call.name, call.arguments_json[:200]
            )
            return _failure(
                f"Invalid JSON arguments for {call.name}: {exc}",
                ErrorCode.INVALID_ARGUMENTS,
            )
        if not isinstance(arguments, dict):
            return _failure(
                f"Arguments for {call.name} must be a JSON object",
                ErrorCode.INVALID_ARGUMENTS,
            )

        valid, error_msg = ToolValidator.validate(tool, arguments)
        if not valid:
            return _failure(f"Validation error: {error_msg}", ErrorCode.VALIDATION_ERROR)

        logger.info("Calling %s with %s", call.name, arguments)
        try:
            payload = await tool.execute(**arguments)
        except Exception as e:
            logger.exception("Tool %s raised", call.name)
            return _failure(str(e) or type(e).__name__, ErrorCode.TOOL_EXCEPTION)

        try:
            content = json.dumps(payload)
        except (TypeError, ValueError) as e:
            logger.warning("Tool %s returned a result that is not JSON: %s", call.name, e)
            return _failure(
                f"Tool {call.name} returned a result that is not JSON: {e}",
                ErrorCode.TOOL_EXCEPTION,
            )

        return ToolOutcome(payload=payload, content=content)


def _failure(message: str, code: str) -> ToolOutcome:
    payload = {"error": message}
    return ToolOutcome(payload=payload, content=json.dumps(payload), error_code=code)
