"""Exceptions raised by the inference core."""

from __future__ import annotations

BODY_PREVIEW_CHARS = 512


class NarratorError(Exception):
    """Base class for all narrator errors."""


class ConfigError(NarratorError):
    """Required settings are missing; no request was issued."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"Missing configuration: {', '.join(self.missing)}")


class ProviderError(NarratorError):
    """
    The LLM endpoint answered with a non-success status or could not be
    reached (``status == 0``).
    """

    def __init__(self, status: int, body: str = "") -> None:
        self.status = status
        self.body = body[:BODY_PREVIEW_CHARS]
        if status:
            message = f"Error from provider ({status}): {self.body}"
        else:
            message = f"Request failed: {self.body}"
        super().__init__(message)


class ProtocolError(NarratorError):
    """The response stream violated the chat-completions protocol."""
