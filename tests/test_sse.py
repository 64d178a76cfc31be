"""Tests for narrator.llm.sse."""

from __future__ import annotations

import logging

from narrator.llm.sse import SSELineDecoder, iter_sse_payloads, payload_of
from tests.mock_providers import content_payload, sse_body, split_every


async def _agen(pieces):
    for piece in pieces:
        yield piece


async def _collect(pieces) -> list[dict]:
    return [p async for p in iter_sse_payloads(_agen(pieces))]


class TestLineDecoder:
    def test_single_buffer(self):
        dec = SSELineDecoder()
        assert dec.feed(b"data: a\n\ndata: b\n") == ["data: a", "", "data: b"]
        assert dec.flush() == []

    def test_line_split_across_buffers_is_held_back(self):
        dec = SSELineDecoder()
        assert dec.feed(b"data: hel") == []
        assert dec.feed(b"lo\n") == ["data: hello"]

    def test_crlf_terminators(self):
        dec = SSELineDecoder()
        assert dec.feed(b"data: x\r\n\r\n") == ["data: x", ""]

    def test_cr_split_from_lf(self):
        dec = SSELineDecoder()
        assert dec.feed(b"data: x\r") == []
        assert dec.feed(b"\n") == ["data: x"]

    def test_flush_returns_unterminated_tail(self):
        dec = SSELineDecoder()
        dec.feed(b"data: tail")
        assert dec.flush() == ["data: tail"]
        assert dec.flush() == []

    def test_multibyte_character_split(self):
        raw = "data: You rolled a 6 — success!\n".encode("utf-8")
        dash = raw.index("—".encode("utf-8"))
        dec = SSELineDecoder()
        assert dec.feed(raw[: dash + 1]) == []
        assert dec.feed(raw[dash + 1:]) == ["data: You rolled a 6 — success!"]


class TestChunkBoundaryIndependence:
    """Any split of the byte stream decodes to the same lines."""

    BODY = sse_body([
        content_payload("The lantern gutters — "),
        content_payload("shadows stretch ✨ across the platform."),
        ": keep-alive",
        content_payload("日本語も大丈夫", finish_reason="stop"),
    ]) + b"event: ignored\r\ndata: trailing"

    def test_every_piece_size(self):
        expected = list(SSELineDecoder().decode_all([self.BODY]))
        for size in range(1, len(self.BODY) + 1):
            got = list(SSELineDecoder().decode_all(split_every(self.BODY, size)))
            assert got == expected, f"piece size {size}"

    def test_every_single_cut_point(self):
        expected = list(SSELineDecoder().decode_all([self.BODY]))
        for cut in range(len(self.BODY) + 1):
            pieces = [self.BODY[:cut], self.BODY[cut:]]
            assert list(SSELineDecoder().decode_all(pieces)) == expected

    async def test_payloads_identical_under_splitting(self):
        whole = await _collect([self.BODY])
        for size in (1, 2, 3, 7, 64):
            assert await _collect(split_every(self.BODY, size)) == whole


class TestPayloadOf:
    def test_data_line(self):
        assert payload_of('data: {"a": 1}') == '{"a": 1}'

    def test_blank_and_comment_discarded(self):
        assert payload_of("") is None
        assert payload_of(": ping") is None

    def test_other_fields_discarded(self):
        assert payload_of("event: message") is None
        assert payload_of("id: 7") is None

    def test_done_sentinel_passes_through(self):
        assert payload_of("data: [DONE]") == "[DONE]"


class TestIterPayloads:
    async def test_yields_json_objects(self):
        body = sse_body([content_payload("a"), content_payload("b")])
        payloads = await _collect([body])
        assert [p["choices"][0]["delta"]["content"] for p in payloads] == ["a", "b"]

    async def test_stops_at_done(self):
        body = sse_body([content_payload("before")]) + sse_body([content_payload("after")])
        payloads = await _collect([body])
        assert len(payloads) == 1

    async def test_stops_reading_body_at_done(self):
        consumed = []

        async def pieces():
            for piece in (sse_body([content_payload("x")]), b"data: never\n"):
                consumed.append(piece)
                yield piece

        payloads = [p async for p in iter_sse_payloads(pieces())]
        assert len(payloads) == 1
        assert len(consumed) == 1

    async def test_malformed_line_skipped_and_logged(self, caplog):
        body = sse_body(['{"choices": [', content_payload("ok")])
        with caplog.at_level(logging.WARNING, logger="narrator.llm.sse"):
            payloads = await _collect([body])
        assert len(payloads) == 1
        assert "Failed to parse SSE data" in caplog.text

    async def test_non_object_json_skipped(self):
        body = sse_body(["[1, 2]", "42", content_payload("ok")])
        assert len(await _collect([body])) == 1

    async def test_missing_done_ends_cleanly(self):
        body = sse_body([content_payload("a")], done=False)
        assert len(await _collect([body])) == 1

    async def test_unterminated_final_line_is_used(self):
        body = b'data: {"choices": [{"delta": {"content": "z"}}]}'
        payloads = await _collect([body])
        assert payloads[0]["choices"][0]["delta"]["content"] == "z"
