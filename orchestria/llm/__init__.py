"""LLM subsystem -- providers, conversations and streaming tool-call assembly."""

from orchestria.llm.types import (
    ChatMessage,
    Fragment,
    RawToolDelta,
    StreamChunk,
    ToolRequest,
)
from orchestria.llm.conversation import Conversation
from orchestria.llm.tool_call_assembler import ToolCallAssembler

__all__ = [
    "ChatMessage",
    "Conversation",
    "Fragment",
    "RawToolDelta",
    "StreamChunk",
    "ToolCallAssembler",
    "ToolRequest",
]
