"""
Server-Sent Events decoding for chat-completion streams.

Only the OpenAI-compatible dialect is understood: each event carries a
single ``data: {json}`` line and the stream ends with ``data: [DONE]``.
"""

from __future__ import annotations

import codecs
import json
import logging
from typing import AsyncIterable, AsyncIterator, Iterable, Iterator

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class SSELineDecoder:
    """
    Turns raw byte buffers into complete text lines.

    A line split across buffers is held back until its terminator arrives,
    and multi-byte UTF-8 sequences split across buffers are reassembled by
    an incremental decoder.  Both ``\\n`` and ``\\r\\n`` terminate a line.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._carry = ""

    def feed(self, data: bytes) -> list[str]:
        """Decode *data* and return every line it completes."""
        text = self._carry + self._decoder.decode(data)
        *lines, self._carry = text.split("\n")
        return [line.rstrip("\r") for line in lines]

    def flush(self) -> list[str]:
        """Return whatever is left once the byte stream has ended."""
        tail = self._carry + self._decoder.decode(b"", final=True)
        self._carry = ""
        tail = tail.rstrip("\r")
        return [tail] if tail else []

    def decode_all(self, buffers: Iterable[bytes]) -> Iterator[str]:
        """Convenience generator over a synchronous sequence of buffers."""
        for buf in buffers:
            yield from self.feed(buf)
        yield from self.flush()


def payload_of(line: str) -> str | None:
    """
    Return the text after ``data: `` for an event line, or ``None`` when the
    line carries nothing (blank, ``:`` comment, or another field).
    """
    if not line or line.startswith(":"):
        return None
    if not line.startswith(DATA_PREFIX):
        return None
    return line[len(DATA_PREFIX):].strip()


async def iter_sse_payloads(chunks: AsyncIterable[bytes]) -> AsyncIterator[dict]:
    """
    Yield each JSON payload object from an SSE byte stream.

    Stops at ``[DONE]`` without reading the rest of the body.  Lines whose
    payload is not a JSON object are logged and skipped.
    """
    decoder = SSELineDecoder()

    async def _lines() -> AsyncIterator[str]:
        async for chunk in chunks:
            for line in decoder.feed(chunk):
                yield line
        for line in decoder.flush():
            yield line

    lines = _lines()
    try:
        async for line in lines:
            data = payload_of(line)
            if data is None:
                continue
            if data == DONE_SENTINEL:
                return
            try:
                payload = json.loads(data)
            except json.JSONDecodeError:
                logger.warning("Failed to parse SSE data: %s", data[:200])
                continue
            if not isinstance(payload, dict):
                logger.warning("Ignoring non-object SSE data: %s", data[:200])
                continue
            yield payload
    finally:
        await lines.aclose()
