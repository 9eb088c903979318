"""
Assembles streaming tool-call deltas into complete ToolRequest objects.

Design goals:
  - Accumulate ``RawToolDelta`` fragments keyed by ``call_index``.
  - On ``done=True`` (or an explicit ``flush()``), attempt to JSON-parse the
    accumulated argument string.
  - If parsing fails the request is still emitted, with empty arguments and
    ``parse_error`` set, and the failure is recorded in ``self.errors``.
    Every call the model made must be answered, so nothing is dropped.
"""

from __future__ import annotations

import json

from orchestria.llm.types import RawToolDelta, ToolRequest


class ToolCallAssembler:
    """Buffers raw tool-call deltas and emits finished ``ToolRequest`` objects."""

    def __init__(self) -> None:
        self._buf: dict[int, dict] = {}
        self.errors: list[str] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def feed(self, delta: RawToolDelta) -> list[ToolRequest]:
        """
        Feed a single ``RawToolDelta`` into the assembler.

        Returns a (possibly empty) list of completed ``ToolRequest`` objects.
        A call is finalized when its delta has ``done=True``.
        """
        buf = self._buf.setdefault(
            delta.call_index, {"id": None, "name": "", "args": ""}
        )

        if delta.id and not buf["id"]:
            buf["id"] = delta.id

        if delta.name_delta:
            buf["name"] += delta.name_delta

        if delta.args_delta:
            buf["args"] += delta.args_delta

        if delta.done:
            return self._finalize(delta.call_index)

        return []

    def flush(self) -> list[ToolRequest]:
        """
        Finalize *all* remaining buffers, regardless of whether a ``done``
        delta was received.  Called at stream end.
        """
        return [request for _, request in self.flush_indexed()]

    def flush_indexed(self) -> list[tuple[int, ToolRequest]]:
        """Like ``flush``, but pairs each request with its ``call_index``."""
        pairs: list[tuple[int, ToolRequest]] = []
        for idx in sorted(self._buf.keys()):
            pairs.extend((idx, request) for request in self._finalize(idx))
        return pairs

    @property
    def pending(self) -> bool:
        return bool(self._buf)

    def reset(self) -> None:
        """Discard all accumulated state."""
        self._buf.clear()
        self.errors.clear()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _finalize(self, idx: int) -> list[ToolRequest]:
        buf = self._buf.pop(idx, None)
        if buf is None:
            return []

        name = buf["name"].strip()
        call_id = buf["id"] or f"call_{idx}"
        raw_args = buf["args"] or "{}"

        try:
            args = json.loads(raw_args)
        except (json.JSONDecodeError, ValueError) as exc:
            self.errors.append(
                f"tool_call_json_parse_failed idx={idx} err={exc}"
            )
            return [
                ToolRequest(
                    id=call_id,
                    name=name,
                    arguments={},
                    parse_error=f"Malformed arguments JSON: {exc}",
                )
            ]

        if not isinstance(args, dict):
            self.errors.append(
                f"tool_call_args_not_object idx={idx} type={type(args).__name__}"
            )
            return [
                ToolRequest(
                    id=call_id,
                    name=name,
                    arguments={},
                    parse_error="Arguments must be a JSON object",
                )
            ]

        return [ToolRequest(id=call_id, name=name, arguments=args)]
