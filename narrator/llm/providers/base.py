"""Abstract base class for LLM providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncIterator

from narrator.llm.types import ChatMessage, StreamEvent


class Provider(ABC):
    """
    A provider encapsulates access to a single chat-completion endpoint.

    Implementations must support streaming one round of a conversation
    (``stream``) and reporting a human-readable ``name``.
    """

    @abstractmethod
    async def stream(
        self,
        messages: list[ChatMessage],
        tools: list[dict] | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """
        Issue one request and yield its ``StreamEvent`` objects.

        Raises ``ConfigError`` before any I/O when the provider is not
        configured, and ``ProviderError`` on a failed request.
        """
        ...
        # Make the method an async generator so sub-classes can ``yield``.
        # This line is unreachable but satisfies the type checker.
        if False:  # pragma: no cover
            yield StreamEvent()  # type: ignore[misc]

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable provider name (e.g. ``"openai-compat"``)."""
        ...
