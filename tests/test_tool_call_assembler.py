"""Tests for orchestria.llm.tool_call_assembler.ToolCallAssembler."""

from __future__ import annotations

import json

from orchestria.llm.tool_call_assembler import ToolCallAssembler
from orchestria.llm.types import RawToolDelta, ToolRequest


class TestSingleToolCall:
    """Assemble a single tool call from incremental deltas."""

    def test_basic_assembly(self):
        asm = ToolCallAssembler()

        assert asm.feed(RawToolDelta(call_index=0, id="call_1", name_delta="updateTask")) == []
        assert asm.feed(RawToolDelta(call_index=0, name_delta="Status")) == []
        assert asm.feed(RawToolDelta(call_index=0, args_delta='{"taskId": "t1", ')) == []
        assert asm.feed(RawToolDelta(call_index=0, args_delta='"status": "completed"}')) == []

        result = asm.feed(RawToolDelta(call_index=0, done=True))
        assert len(result) == 1

        req = result[0]
        assert req.id == "call_1"
        assert req.name == "updateTaskStatus"
        assert req.arguments == {"taskId": "t1", "status": "completed"}
        assert req.parse_error is None
        assert not asm.pending

    def test_single_delta_with_everything(self):
        """A provider may send all data in one delta with done=True."""
        asm = ToolCallAssembler()
        result = asm.feed(
            RawToolDelta(
                call_index=0,
                id="call_x",
                name_delta="createTask",
                args_delta='{"title": "Buy milk", "priority": "low"}',
                done=True,
            )
        )
        assert [r.name for r in result] == ["createTask"]
        assert result[0].arguments["title"] == "Buy milk"
        assert asm.errors == []


class TestMultipleConcurrentToolCalls:
    def test_two_parallel_calls(self):
        asm = ToolCallAssembler()
        asm.feed(RawToolDelta(call_index=0, id="c0", name_delta="updateTaskStatus"))
        asm.feed(RawToolDelta(call_index=1, id="c1", name_delta="rescheduleEvent"))
        asm.feed(RawToolDelta(call_index=0, args_delta='{"taskId": "t1"}'))
        asm.feed(RawToolDelta(call_index=1, args_delta='{"eventId": "e1"}'))
        assert asm.pending

        r1 = asm.feed(RawToolDelta(call_index=1, done=True))
        r0 = asm.feed(RawToolDelta(call_index=0, done=True))

        assert r1[0].name == "rescheduleEvent"
        assert r1[0].arguments == {"eventId": "e1"}
        assert r0[0].name == "updateTaskStatus"
        assert r0[0].arguments == {"taskId": "t1"}

    def test_flush_orders_by_call_index(self):
        asm = ToolCallAssembler()
        for idx in (2, 0, 1):
            asm.feed(RawToolDelta(call_index=idx, id=f"c{idx}", name_delta=f"tool_{idx}"))
            asm.feed(RawToolDelta(call_index=idx, args_delta=json.dumps({"idx": idx})))

        requests: list[ToolRequest] = asm.flush()
        assert [r.id for r in requests] == ["c0", "c1", "c2"]
        assert [r.arguments["idx"] for r in requests] == [0, 1, 2]

    def test_flush_indexed_pairs_requests_with_index(self):
        asm = ToolCallAssembler()
        for idx in (3, 1):
            asm.feed(RawToolDelta(call_index=idx, id=f"c{idx}", name_delta="noop"))

        pairs = asm.flush_indexed()
        assert [(idx, r.id) for idx, r in pairs] == [(1, "c1"), (3, "c3")]
        assert not asm.pending


class TestMalformedJSON:
    """Malformed arguments still yield a request, flagged with parse_error."""

    def test_invalid_json_on_done(self):
        asm = ToolCallAssembler()
        asm.feed(RawToolDelta(call_index=0, id="bad", name_delta="createTask"))
        asm.feed(RawToolDelta(call_index=0, args_delta="NOT VALID JSON {{{"))
        result = asm.feed(RawToolDelta(call_index=0, done=True))

        assert len(result) == 1
        assert result[0].id == "bad"
        assert result[0].name == "createTask"
        assert result[0].arguments == {}
        assert result[0].parse_error.startswith("Malformed arguments JSON")
        assert len(asm.errors) == 1
        assert "tool_call_json_parse_failed" in asm.errors[0]
        assert "idx=0" in asm.errors[0]

    def test_truncated_json_via_flush(self):
        asm = ToolCallAssembler()
        asm.feed(RawToolDelta(call_index=0, id="partial", name_delta="createTask"))
        asm.feed(RawToolDelta(call_index=0, args_delta='{"title": "val'))

        result = asm.flush()
        assert len(result) == 1
        assert result[0].parse_error is not None

    def test_non_object_arguments(self):
        asm = ToolCallAssembler()
        result = asm.feed(
            RawToolDelta(call_index=0, id="arr", name_delta="createTask", args_delta="[1, 2]", done=True)
        )
        assert result[0].parse_error == "Arguments must be a JSON object"
        assert "tool_call_args_not_object" in asm.errors[0]

    def test_malformed_does_not_block_valid_calls(self):
        asm = ToolCallAssembler()
        asm.feed(RawToolDelta(call_index=0, id="bad", name_delta="broken", args_delta="{BAD"))
        asm.feed(RawToolDelta(call_index=1, id="good", name_delta="ok", args_delta='{"a": 1}'))

        requests = asm.flush()
        assert [r.id for r in requests] == ["bad", "good"]
        assert requests[0].parse_error is not None
        assert requests[1].parse_error is None
        assert requests[1].arguments == {"a": 1}


class TestEdgeCases:
    def test_flush_on_empty_assembler(self):
        assert ToolCallAssembler().flush() == []

    def test_absent_arguments_default_to_empty_object(self):
        asm = ToolCallAssembler()
        result = asm.feed(RawToolDelta(call_index=0, id="no_args", name_delta="simple", done=True))
        assert result[0].arguments == {}
        assert result[0].parse_error is None

    def test_missing_id_uses_call_index(self):
        asm = ToolCallAssembler()
        result = asm.feed(RawToolDelta(call_index=7, name_delta="no_id", args_delta="{}", done=True))
        assert result[0].id == "call_7"

    def test_name_is_stripped(self):
        asm = ToolCallAssembler()
        asm.feed(RawToolDelta(call_index=0, id="ws", name_delta="  createTask "))
        result = asm.feed(RawToolDelta(call_index=0, args_delta="{}", done=True))
        assert result[0].name == "createTask"

    def test_reset_clears_buffers_and_errors(self):
        asm = ToolCallAssembler()
        asm.feed(RawToolDelta(call_index=0, id="x", name_delta="left_over"))
        asm.feed(RawToolDelta(call_index=1, id="y", name_delta="bad", args_delta="INVALID", done=True))
        assert len(asm.errors) == 1

        asm.reset()

        assert asm.errors == []
        assert asm.flush() == []
