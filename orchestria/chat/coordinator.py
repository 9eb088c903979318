"""
Streaming response coordinator -- drives one full assistant turn.

A turn starts with the user's prompt and may span several round-trips:
whenever the model asks for tools, the requests are executed, their
results are sent back on the same conversation, and the follow-up stream
is consumed before the interrupted one resumes.

The control flow is an explicit state machine::

    STREAMING --(tool fragment)--> AWAITING_TOOL_RESULTS --(results sent)--> STREAMING
    STREAMING --(all streams exhausted)--> FINALIZED
    any       --(transport error / timeout / round limit)--> FAILED

Open streams are kept on a stack: the top one is read, and a follow-up
stream opened for tool results is pushed above the stream that asked.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import AsyncIterator

from orchestria.chat.log import MessageLog, MessageUpdate, TurnHandle
from orchestria.llm.conversation import Conversation
from orchestria.llm.types import Fragment, ToolRequest
from orchestria.tools.registry import ToolRegistry
from orchestria.types import ToolResult

logger = logging.getLogger(__name__)

TRANSPORT_ERROR_TEXT = (
    "System error: the assistant service failed to respond. Please try again."
)


class TurnState(Enum):
    STREAMING = "streaming"
    AWAITING_TOOL_RESULTS = "awaiting_tool_results"
    FINALIZED = "finalized"
    FAILED = "failed"


@dataclass
class TurnReport:
    """What happened during the most recent turn."""

    state: TurnState = TurnState.STREAMING
    round_trips: int = 0
    tool_results: list[ToolResult] = field(default_factory=list)
    error: str | None = None


class TurnCoordinator:
    """
    Parameters
    ----------
    registry : ToolRegistry
        Dispatches tool requests; never raises.
    log : MessageLog
        Receives the user-visible assistant output.
    turn_timeout : float
        Max seconds to wait for each response fragment, including the
        first fragment of a follow-up stream after tool results.
    max_tool_rounds : int
        Max tool round-trips in one turn before giving up.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        log: MessageLog,
        turn_timeout: float = 60.0,
        max_tool_rounds: int = 8,
    ) -> None:
        self.registry = registry
        self.log = log
        self.turn_timeout = turn_timeout
        self.max_tool_rounds = max_tool_rounds
        self.last_report: TurnReport | None = None

    async def run(
        self, conversation: Conversation, prompt: str
    ) -> AsyncIterator[MessageUpdate]:
        """
        Run one turn and yield a ``MessageUpdate`` for every visible change.

        Transport failures and timeouts end the turn with an error message;
        they never propagate.  Closing the generator early abandons the
        turn: the open entry is finalized with whatever text it has.
        """
        report = TurnReport()
        self.last_report = report
        mark = conversation.mark()
        streams: list[AsyncIterator[Fragment]] = [conversation.send(prompt)]
        handle: TurnHandle | None = None
        pending: Fragment | None = None

        try:
            while report.state in (TurnState.STREAMING, TurnState.AWAITING_TOOL_RESULTS):
                if report.state is TurnState.STREAMING:
                    try:
                        async with asyncio.timeout(self.turn_timeout):
                            fragment = await anext(streams[-1])
                    except StopAsyncIteration:
                        streams.pop()
                        if not streams:
                            report.state = TurnState.FINALIZED
                        continue
                    except TimeoutError:
                        self._fail(report, f"no response within {self.turn_timeout}s")
                        continue
                    except Exception as exc:
                        self._fail(report, f"{type(exc).__name__}: {exc}")
                        continue

                    if fragment.has_tool_requests:
                        pending = fragment
                        report.state = TurnState.AWAITING_TOOL_RESULTS
                    elif fragment.text:
                        if handle is None:
                            handle, update = self.log.begin_assistant_turn()
                            yield update
                        yield self.log.append_delta(handle, fragment.text)

                else:
                    assert pending is not None and pending.tool_requests
                    report.round_trips += 1
                    if report.round_trips > self.max_tool_rounds:
                        self._fail(report, f"exceeded {self.max_tool_rounds} tool rounds")
                        continue

                    # Side effects that have started must finish even if
                    # the consumer goes away.
                    results = await asyncio.shield(self._dispatch(pending.tool_requests))
                    report.tool_results.extend(results)

                    if pending.text:
                        if handle is None:
                            handle, update = self.log.begin_assistant_turn()
                            yield update
                        yield self.log.append_delta(handle, pending.text)

                    streams.append(conversation.send(results))
                    pending = None
                    report.state = TurnState.STREAMING

            if report.state is TurnState.FAILED:
                if handle is not None:
                    final = self.log.finalize(handle)
                    handle = None
                    yield final
                yield self.log.append_assistant(TRANSPORT_ERROR_TEXT)
            else:
                if handle is None:
                    handle, update = self.log.begin_assistant_turn()
                    yield update
                final = self.log.finalize(handle)
                handle = None
                yield final
        finally:
            if handle is not None:
                logger.info("Turn abandoned; finalizing partial reply")
                self.log.finalize(handle)
            if report.state is not TurnState.FINALIZED:
                # Drop unanswered tool calls so the next turn starts clean.
                conversation.rewind(mark)
            for stream in reversed(streams):
                await stream.aclose()

    async def _dispatch(self, requests: list[ToolRequest]) -> list[ToolResult]:
        """Run requests one after another, in the order the model listed them."""
        results: list[ToolResult] = []
        for request in requests:
            results.append(await self.registry.execute(request))
        return results

    @staticmethod
    def _fail(report: TurnReport, reason: str) -> None:
        logger.error("Turn failed: %s", reason)
        report.state = TurnState.FAILED
        report.error = reason
