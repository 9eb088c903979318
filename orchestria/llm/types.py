"""Core types for the LLM subsystem."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ChatMessage:
    """A single message in the conversation history sent to the model."""

    role: str  # "system", "user", "assistant", "tool"
    content: str
    tool_calls: list[ToolRequest] | None = None
    tool_call_id: str | None = None


@dataclass
class ToolRequest:
    """
    A tool invocation requested by the model.

    *parse_error* is set when the streamed argument JSON could not be
    decoded; the request still gets a result so the model is never left
    waiting for one.
    """

    id: str
    name: str
    arguments: dict
    parse_error: str | None = None


@dataclass
class RawToolDelta:
    """
    An incremental delta for a streaming tool call.

    Providers emit these as tool-call fragments arrive.  The ToolCallAssembler
    accumulates them and produces finished ToolRequest objects.
    """

    call_index: int
    id: str | None = None
    name_delta: str = ""
    args_delta: str = ""
    done: bool = False


@dataclass
class StreamChunk:
    """
    A single chunk yielded by a provider while streaming a chat completion.

    *delta* carries new text content.
    *tool_deltas* carries incremental tool-call fragments.
    *done* is ``True`` on the final chunk.
    """

    delta: str = ""
    tool_deltas: list[RawToolDelta] | None = None
    done: bool = False


@dataclass
class Fragment:
    """
    One unit of a conversation's response stream.

    Carries a text delta, a batch of tool requests, or both.
    """

    text: str = ""
    tool_requests: list[ToolRequest] | None = None

    @property
    def has_tool_requests(self) -> bool:
        return bool(self.tool_requests)
