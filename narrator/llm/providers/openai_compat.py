"""
OpenAI-compatible chat-completion provider.

Works with any endpoint that speaks the OpenAI ``/chat/completions`` wire
protocol with ``data: {...}`` / ``data: [DONE]`` event streams.

Dependencies: ``httpx`` (async HTTP client).  No ``openai`` SDK needed.
"""

from __future__ import annotations

import logging
from contextlib import aclosing
from typing import TYPE_CHECKING, AsyncIterator

import httpx

from narrator.errors import ConfigError, ProviderError
from narrator.llm.deltas import interpret_payload
from narrator.llm.providers.base import Provider
from narrator.llm.sse import iter_sse_payloads
from narrator.llm.types import ChatMessage, StreamEvent

if TYPE_CHECKING:
    from narrator.config import LLMConfig

logger = logging.getLogger(__name__)


class OpenAICompatProvider(Provider):
    """
    Stream-capable provider for any OpenAI-API-compatible endpoint.

    Parameters
    ----------
    url:
        Base URL of the API, e.g. ``"https://api.openai.com/v1"``.
    model:
        Model identifier sent in the ``model`` field.
    api_key:
        Bearer token.
    timeout:
        HTTP timeout in seconds, applied by ``httpx``.
    temperature:
        Sampling temperature; omitted from the request when ``None``.
    transport:
        Optional ``httpx`` transport, used by tests to script responses.
    """

    def __init__(
        self,
        url: str = "",
        model: str = "",
        api_key: str = "",
        timeout: float = 120.0,
        temperature: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url.rstrip("/")
        self._model = model
        self._api_key = api_key
        self._timeout = timeout
        self._temperature = temperature
        self._transport = transport

    @classmethod
    def from_config(
        cls,
        cfg: LLMConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> OpenAICompatProvider:
        return cls(
            url=cfg.api_url,
            model=cfg.model,
            api_key=cfg.api_key,
            timeout=float(cfg.timeout_seconds),
            temperature=cfg.temperature,
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Provider interface
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return "openai-compat"

    @property
    def model(self) -> str:
        return self._model

    def missing_settings(self) -> list[str]:
        """Names of the required settings that are empty."""
        missing = []
        if not self._api_key:
            missing.append("API_KEY")
        if not self._url:
            missing.append("API_URL")
        if not self._model:
            missing.append("MODEL")
        return missing

    async def stream(
        self,
        messages: list[ChatMessage],
        tools: list[dict] | None = None,
    ) -> AsyncIterator[StreamEvent]:
        self._require_config()
        body = self._build_body(messages, tools, stream=True)
        url = f"{self._url}/chat/completions"

        try:
            async with self._client() as client:
                async with client.stream(
                    "POST", url, json=body, headers=self._build_headers()
                ) as response:
                    if not response.is_success:
                        await response.aread()
                        raise ProviderError(response.status_code, response.text)

                    async with aclosing(
                        iter_sse_payloads(response.aiter_bytes())
                    ) as payloads:
                        async for payload in payloads:
                            for event in interpret_payload(payload):
                                yield event
        except httpx.TransportError as exc:
            raise ProviderError(0, str(exc) or type(exc).__name__) from exc

    async def complete(self, messages: list[ChatMessage]) -> str:
        """
        Non-streaming completion without tools.

        Returns the first choice's message content, or ``"(no response)"``.
        """
        self._require_config()
        body = self._build_body(messages, None, stream=False)
        url = f"{self._url}/chat/completions"

        try:
            async with self._client() as client:
                resp = await client.post(url, json=body, headers=self._build_headers())
        except httpx.TransportError as exc:
            raise ProviderError(0, str(exc) or type(exc).__name__) from exc

        if not resp.is_success:
            raise ProviderError(resp.status_code, resp.text)

        data = resp.json()
        choices = data.get("choices") or [{}]
        message = choices[0].get("message") or {}
        return message.get("content") or "(no response)"

    # ------------------------------------------------------------------
    # Request building
    # ------------------------------------------------------------------

    def _require_config(self) -> None:
        missing = self.missing_settings()
        if missing:
            raise ConfigError(missing)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    def _build_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "text/event-stream",
            "Authorization": f"Bearer {self._api_key}",
        }

    def _build_body(
        self,
        messages: list[ChatMessage],
        tools: list[dict] | None,
        stream: bool,
    ) -> dict:
        wire_messages = [m.to_wire() for m in messages]
        body: dict = {
            "model": self._model,
            "messages": wire_messages,
            "stream": stream,
        }
        if tools:
            body["tools"] = tools
            body["tool_choice"] = "auto"
        if self._temperature is not None:
            body["temperature"] = self._temperature
        logger.info(
            "REQUEST: model=%s tools=%d messages=%d stream=%s api_key=%s...",
            self._model,
            len(tools) if tools else 0,
            len(wire_messages),
            stream,
            self._api_key[:4],
        )
        return body
