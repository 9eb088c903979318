"""Tests for TurnCoordinator: the streaming tool-calling state machine."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from orchestria.chat.coordinator import TRANSPORT_ERROR_TEXT, TurnCoordinator, TurnState
from orchestria.chat.log import MessageLog, MessageRole
from orchestria.llm.conversation import Conversation
from orchestria.llm.types import Fragment, StreamChunk, ToolRequest
from orchestria.tools.registry import ToolRegistry
from tests.mock_providers import (
    MockProvider,
    make_malformed_tool_call_provider,
    make_text_provider,
    make_tool_call_provider,
    text_chunks,
    tool_call_chunks,
)
from tests.mock_tools import EchoTool, SlowTool


class ScriptedConversation:
    """Stands in for ``Conversation`` with a fixed fragment script per send."""

    def __init__(self, scripts: list[list[Fragment]]) -> None:
        self._scripts = scripts
        self.sent: list = []
        self.rewound_to: int | None = None

    def mark(self) -> int:
        return 0

    def rewind(self, mark: int) -> None:
        self.rewound_to = mark

    async def send(self, message):
        index = len(self.sent)
        self.sent.append(message)
        for fragment in self._scripts[index]:
            yield fragment


@pytest.fixture
def registry():
    reg = ToolRegistry()
    reg.register(EchoTool())
    return reg


@pytest.fixture
def log():
    return MessageLog()


async def _run(coord: TurnCoordinator, conversation, prompt: str = "hi"):
    return [u async for u in coord.run(conversation, prompt)]


class TestPlainText:
    async def test_final_text_is_concatenation_of_deltas(self, registry, log):
        coord = TurnCoordinator(registry, log)
        updates = await _run(coord, Conversation(make_text_provider("one two three four")))

        [message] = log.messages
        assert message.role is MessageRole.ASSISTANT
        assert message.text == "one two three four"
        assert not message.streaming
        assert updates[0].message.streaming
        assert updates[-1].message == message
        assert coord.last_report.state is TurnState.FINALIZED
        assert coord.last_report.round_trips == 0

    async def test_empty_reply_still_finalizes_an_entry(self, registry, log):
        coord = TurnCoordinator(registry, log)
        await _run(coord, Conversation(MockProvider(chunks=[StreamChunk(done=True)])))
        [message] = log.messages
        assert message.text == ""
        assert not message.streaming

    async def test_at_most_one_streaming_entry(self, registry, log):
        observed = []
        log.subscribe(lambda _u: observed.append(sum(m.streaming for m in log.messages)))
        provider = make_tool_call_provider("echo", {"message": "x"}, follow_up="All done now")
        await _run(TurnCoordinator(registry, log), Conversation(provider))
        assert observed
        assert max(observed) <= 1
        assert observed[-1] == 0


class TestToolRounds:
    async def test_tool_result_is_sent_back_and_follow_up_streamed(self, registry, log):
        provider = make_tool_call_provider("echo", {"message": "ping"}, call_id="c1", follow_up="Echoed ping")
        conversation = Conversation(provider)
        coord = TurnCoordinator(registry, log)

        await _run(coord, conversation)

        report = coord.last_report
        assert report.state is TurnState.FINALIZED
        assert report.round_trips == 1
        assert [(r.id, r.ok) for r in report.tool_results] == [("c1", True)]
        assert provider.call_count == 2
        tool_msg = [m for m in conversation.history if m.role == "tool"][0]
        assert tool_msg.tool_call_id == "c1"
        [message] = log.messages
        assert message.text == "Echoed ping"

    async def test_round_trips_equal_tool_bearing_fragments(self, registry, log):
        provider = MockProvider(
            scripts=[
                tool_call_chunks("echo", {"message": "a"}, call_id="c1"),
                tool_call_chunks("echo", {"message": "b"}, call_id="c2"),
                text_chunks("finished"),
            ]
        )
        coord = TurnCoordinator(registry, log)
        await _run(coord, Conversation(provider))

        assert coord.last_report.round_trips == 2
        assert [r.id for r in coord.last_report.tool_results] == ["c1", "c2"]
        assert log.messages[-1].text == "finished"

    async def test_every_request_in_a_fragment_gets_one_result_in_order(self, registry, log):
        requests = [
            ToolRequest("a", "echo", {"message": "1"}),
            ToolRequest("b", "nope", {}),
            ToolRequest("c", "echo", {"message": "3"}),
        ]
        conversation = ScriptedConversation([[Fragment(tool_requests=requests)], [Fragment(text="ok")]])
        coord = TurnCoordinator(registry, log)
        await _run(coord, conversation)

        results = conversation.sent[1]
        assert [r.id for r in results] == ["a", "b", "c"]
        assert [r.ok for r in results] == [True, False, True]
        assert coord.last_report.state is TurnState.FINALIZED

    async def test_text_with_tool_requests_is_shown_after_tools_run(self, registry, log):
        echo = registry.get("echo")
        seen_calls_at_narration = []

        def on_update(update):
            if update.message.text.startswith("Let me check."):
                seen_calls_at_narration.append(len(echo.calls))

        log.subscribe(on_update)
        conversation = ScriptedConversation(
            [
                [Fragment(text="Let me check. ", tool_requests=[ToolRequest("c1", "echo", {"message": "x"})])],
                [Fragment(text="Done.")],
            ]
        )
        await _run(TurnCoordinator(registry, log), conversation)

        assert log.messages[-1].text == "Let me check. Done."
        assert seen_calls_at_narration and seen_calls_at_narration[0] == 1

    async def test_tool_failure_does_not_fail_the_turn(self, registry, log):
        coord = TurnCoordinator(registry, log)
        await _run(coord, Conversation(make_malformed_tool_call_provider(follow_up="Sorry about that")))

        report = coord.last_report
        assert report.state is TurnState.FINALIZED
        [result] = report.tool_results
        assert not result.ok
        assert log.messages[-1].text == "Sorry about that"

    async def test_max_tool_rounds(self, registry, log):
        provider = MockProvider(scripts=[tool_call_chunks("echo", {"message": "again"})])
        conversation = Conversation(provider)
        coord = TurnCoordinator(registry, log, max_tool_rounds=2)

        await _run(coord, conversation)

        assert coord.last_report.state is TurnState.FAILED
        assert len(coord.last_report.tool_results) == 2
        assert [m.text for m in log.messages] == [TRANSPORT_ERROR_TEXT]
        assert conversation.history == []


class TestFailures:
    async def test_transport_fault_after_partial_text(self, registry, log):
        provider = MockProvider(
            chunks=[StreamChunk(delta="Sure, "), StreamChunk(delta="I'll")],
            error=httpx.RemoteProtocolError("peer closed connection"),
        )
        conversation = Conversation(provider)
        coord = TurnCoordinator(registry, log)

        updates = await _run(coord, conversation)

        partial, error = log.messages
        assert partial.text == "Sure, I'll"
        assert not partial.streaming
        assert error.text == TRANSPORT_ERROR_TEXT
        assert error.id != partial.id
        assert log.open_entry is None
        assert updates[-1].message.text == TRANSPORT_ERROR_TEXT
        assert coord.last_report.state is TurnState.FAILED
        assert "RemoteProtocolError" in coord.last_report.error
        assert conversation.history == []

    async def test_fault_before_any_text_gives_only_error(self, registry, log):
        provider = MockProvider(chunks=[], error=httpx.ConnectError("refused"))
        await _run(TurnCoordinator(registry, log), Conversation(provider))
        assert [m.text for m in log.messages] == [TRANSPORT_ERROR_TEXT]

    async def test_silent_stream_times_out(self, registry, log):
        provider = MockProvider(chunks=text_chunks("never"), hang_on_call=0)
        coord = TurnCoordinator(registry, log, turn_timeout=0.05)

        await _run(coord, Conversation(provider))

        assert coord.last_report.state is TurnState.FAILED
        assert "no response" in coord.last_report.error
        assert [m.text for m in log.messages] == [TRANSPORT_ERROR_TEXT]

    async def test_follow_up_timeout_rewinds_unanswered_calls(self, registry, log):
        provider = MockProvider(
            scripts=[tool_call_chunks("echo", {"message": "x"}), text_chunks("late")],
            hang_on_call=1,
        )
        conversation = Conversation(provider)
        coord = TurnCoordinator(registry, log, turn_timeout=0.05)

        await _run(coord, conversation)

        assert coord.last_report.state is TurnState.FAILED
        assert coord.last_report.round_trips == 1
        assert conversation.history == []


class TestAbandonment:
    async def test_closing_early_finalizes_partial_entry(self, registry, log):
        conversation = Conversation(make_text_provider("Hello there friend"))
        turn = TurnCoordinator(registry, log).run(conversation, "hi")

        opened = await anext(turn)
        assert opened.message.streaming
        delta = await anext(turn)
        assert delta.message.text == "Hello "
        await turn.aclose()

        [message] = log.messages
        assert message.text == "Hello "
        assert not message.streaming
        assert conversation.history == []

    async def test_cancel_during_tools_lets_them_finish(self, log):
        slow = SlowTool(seconds=0.1)
        reg = ToolRegistry()
        reg.register(slow)
        provider = make_tool_call_provider("slow", {})
        conversation = Conversation(provider)

        async def consume():
            async for _ in TurnCoordinator(reg, log).run(conversation, "go"):
                pass

        task = asyncio.create_task(consume())
        await asyncio.sleep(0.02)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert not slow.finished
        await asyncio.sleep(0.2)
        assert slow.finished
        assert conversation.history == []
        assert provider.call_count == 1
