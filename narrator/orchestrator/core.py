"""
Inference loop -- drives request/stream/tool rounds until a final answer.

The loop:
1. Seeds a fresh ``InferenceRound`` with the prior history and the new
   user message
2. Streams one provider response, surfacing narration as it arrives and
   assembling tool-call fragments
3. On ``finish_reason == "tool_calls"`` records the assistant tool-call
   message, executes each call in order and appends the results
4. Repeats from 2 until the model stops or ``max_rounds`` tool rounds have
   run
5. Yields a single ``FinalResult`` as its last item
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, AsyncIterator

from narrator.errors import ConfigError, ProtocolError, ProviderError
from narrator.llm.providers.base import Provider
from narrator.llm.tool_call_assembler import ToolCallAssembler
from narrator.llm.types import (
    ChatMessage,
    ContentDelta,
    StreamError,
    ToolCallDelta,
    TurnFinished,
)
from narrator.tools.executor import ToolExecutor
from narrator.tools.registry import ToolRegistry
from narrator.types import ErrorCode, FinalResult, NarrationChunk

if TYPE_CHECKING:
    from narrator.config import NarratorConfig

logger = logging.getLogger(__name__)

DEFAULT_MAX_ROUNDS = 8
TOOL_CALLS = "tool_calls"


class LoopState(Enum):
    REQUESTING = "requesting"
    STREAMING = "streaming"
    ROUND_FINISHED = "round_finished"
    EXECUTING_TOOLS = "executing_tools"
    DONE = "done"


@dataclass
class InferenceRound:
    """
    State owned by one top-level inference call.

    ``conversation`` is only ever appended to; it is what every request of
    this call sends to the provider.
    """

    conversation: list[ChatMessage]
    assembler: ToolCallAssembler = field(default_factory=ToolCallAssembler)
    rounds_executed: int = 0
    state: LoopState = LoopState.REQUESTING

    def append(self, message: ChatMessage) -> None:
        self.conversation.append(message)

    def snapshot(self) -> tuple[ChatMessage, ...]:
        return tuple(self.conversation)


class InferenceLoop:
    """
    Streaming inference with tool execution.

    Parameters
    ----------
    provider : Provider
        Chat-completion endpoint.
    registry : ToolRegistry
        Tools offered to the model.
    system_prompt : str
        Sent ahead of the conversation on every request; never stored in it.
    max_rounds : int
        Max tool rounds before giving up with a ``round_limit`` result.
    """

    def __init__(
        self,
        provider: Provider,
        registry: ToolRegistry,
        system_prompt: str = "",
        max_rounds: int = DEFAULT_MAX_ROUNDS,
    ) -> None:
        if max_rounds < 1:
            raise ValueError(f"max_rounds must be at least 1, got {max_rounds}")
        self.provider = provider
        self.registry = registry
        self.executor = ToolExecutor(registry)
        self.system_prompt = system_prompt
        self.max_rounds = max_rounds

    @classmethod
    def from_config(
        cls,
        cfg: NarratorConfig,
        registry: ToolRegistry | None = None,
        system_prompt: str = "",
        transport=None,
    ) -> InferenceLoop:
        from narrator.llm.providers.openai_compat import OpenAICompatProvider
        from narrator.tools.registry import build_default_registry

        return cls(
            provider=OpenAICompatProvider.from_config(cfg.llm, transport=transport),
            registry=registry if registry is not None else build_default_registry(),
            system_prompt=system_prompt,
            max_rounds=cfg.inference.max_rounds,
        )

    async def run(
        self,
        history: list[ChatMessage],
        user_input: str | ChatMessage,
    ) -> AsyncIterator[NarrationChunk | FinalResult]:
        """
        Answer *user_input* given *history*.

        Yields ``NarrationChunk`` objects while text streams in, then exactly
        one ``FinalResult``.  *history* itself is not modified.
        """
        if isinstance(user_input, str):
            user_input = ChatMessage.user(user_input)
        current = InferenceRound(conversation=[*history, user_input])
        tools_schema = self.registry.to_openai_schema() or None

        while current.rounds_executed < self.max_rounds:
            current.state = LoopState.REQUESTING
            current.assembler.reset()
            parts: list[str] = []
            finish_reason: str | None = None

            try:
                events = self.provider.stream(
                    self._request_messages(current), tools=tools_schema
                )
                try:
                    async for event in events:
                        current.state = LoopState.STREAMING
                        if isinstance(event, ContentDelta):
                            parts.append(event.text)
                            yield NarrationChunk(delta=event.text)
                        elif isinstance(event, ToolCallDelta):
                            current.assembler.feed(event.fragment)
                        elif isinstance(event, TurnFinished):
                            finish_reason = event.reason
                            break
                        elif isinstance(event, StreamError):
                            raise ProviderError(200, event.message)
                finally:
                    await events.aclose()

                current.state = LoopState.ROUND_FINISHED
                finish_reason = self._resolve_finish(current, parts, finish_reason)
            except ConfigError as e:
                yield self._fail(current, str(e), ErrorCode.CONFIG_ERROR)
                return
            except ProviderError as e:
                logger.warning("Provider error: %s", e)
                yield self._fail(current, str(e), ErrorCode.PROVIDER_ERROR)
                return
            except ProtocolError as e:
                logger.warning("Protocol error: %s", e)
                yield self._fail(current, str(e), ErrorCode.PROTOCOL_ERROR)
                return
            except Exception as e:
                logger.exception("Unexpected failure while streaming a round")
                yield self._fail(
                    current,
                    f"Unexpected stream failure: {str(e) or type(e).__name__}",
                    ErrorCode.PROTOCOL_ERROR,
                )
                return

            narration = "".join(parts)
            calls = current.assembler.finalize() if finish_reason == TOOL_CALLS else []

            if not calls:
                if current.assembler.pending:
                    logger.warning(
                        "Discarding tool-call fragments from a round finished with %r",
                        finish_reason,
                    )
                current.append(ChatMessage.assistant(narration))
                current.state = LoopState.DONE
                yield FinalResult(
                    content=narration,
                    conversation=current.snapshot(),
                    rounds_executed=current.rounds_executed,
                )
                return

            if current.assembler.errors:
                logger.warning(
                    "Tool-call assembly errors: %s", current.assembler.errors
                )
            current.append(ChatMessage.tool_request(calls, content=narration or None))

            current.state = LoopState.EXECUTING_TOOLS
            for call in calls:
                current.append(await self.executor.execute(call))
            current.rounds_executed += 1

        logger.warning("Tool loop limit of %d rounds reached", self.max_rounds)
        yield self._fail(
            current,
            f"Tool loop limit reached after {self.max_rounds} rounds",
            ErrorCode.ROUND_LIMIT,
        )

    async def complete(
        self,
        history: list[ChatMessage],
        user_input: str | ChatMessage,
    ) -> FinalResult:
        """Run the loop to completion and return only the final result."""
        result: FinalResult | None = None
        async for item in self.run(history, user_input):
            if isinstance(item, FinalResult):
                result = item
        if result is None:
            raise RuntimeError("run() ended without a FinalResult")
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _request_messages(self, current: InferenceRound) -> list[ChatMessage]:
        messages = list(current.conversation)
        if self.system_prompt:
            messages.insert(0, ChatMessage.system(self.system_prompt))
        return messages

    @staticmethod
    def _resolve_finish(
        current: InferenceRound, parts: list[str], finish_reason: str | None
    ) -> str:
        if finish_reason is not None:
            return finish_reason
        # Stream closed without a finish_reason.
        if current.assembler.pending:
            return TOOL_CALLS
        if parts:
            return "stop"
        raise ProtocolError("Provider stream ended without a response")

    @staticmethod
    def _fail(current: InferenceRound, message: str, code: str) -> FinalResult:
        current.state = LoopState.DONE
        return FinalResult(
            error=message,
            error_code=code,
            conversation=current.snapshot(),
            rounds_executed=current.rounds_executed,
        )
