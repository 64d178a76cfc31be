"""
Assembles streamed tool-call fragments into complete ToolCall objects.

  - Fragments are buffered per ``index`` in arrival order.
  - ``finalize()`` returns one ``ToolCall`` per index, sorted by index.
  - Calls whose concatenated arguments are not valid JSON are still returned
    (the executor answers them with an error result) but are recorded in
    ``self.errors`` so the caller can log the protocol violation.
"""

from __future__ import annotations

import json

from narrator.llm.types import ToolCall, ToolCallFragment


class ToolCallAssembler:
    """Buffers tool-call fragments for a single round."""

    def __init__(self) -> None:
        self._buf: dict[int, dict] = {}
        self.errors: list[str] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def feed(self, fragment: ToolCallFragment) -> None:
        """Merge *fragment* into the buffer for its index."""
        buf = self._buf.setdefault(
            fragment.index, {"id": None, "name": "", "args": ""}
        )

        if fragment.id_part and not buf["id"]:
            buf["id"] = fragment.id_part

        if fragment.name_part:
            buf["name"] += fragment.name_part

        if fragment.arguments_part:
            buf["args"] += fragment.arguments_part

    @property
    def pending(self) -> bool:
        return bool(self._buf)

    def finalize(self) -> list[ToolCall]:
        """Return the assembled calls for this round, ordered by index."""
        calls: list[ToolCall] = []
        for idx in sorted(self._buf):
            buf = self._buf[idx]
            raw_args = buf["args"] or "{}"
            try:
                json.loads(raw_args)
            except ValueError as exc:
                self.errors.append(
                    f"tool_call_json_parse_failed idx={idx} err={exc}"
                )
            calls.append(
                ToolCall(
                    id=buf["id"] or f"call_{idx}",
                    name=buf["name"].strip(),
                    arguments_json=raw_args,
                )
            )
        return calls

    def reset(self) -> None:
        """Discard all accumulated state."""
        self._buf.clear()
        self.errors.clear()
