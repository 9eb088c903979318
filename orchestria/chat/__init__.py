"""Chat engine: message log, context snapshots, turn coordination, sessions."""

from orchestria.chat.context import build_context_snapshot, compose_prompt
from orchestria.chat.coordinator import (
    TRANSPORT_ERROR_TEXT,
    TurnCoordinator,
    TurnReport,
    TurnState,
)
from orchestria.chat.log import Message, MessageLog, MessageRole, MessageUpdate, TurnHandle
from orchestria.chat.session import UNAVAILABLE_TEXT, SessionManager

__all__ = [
    "Message",
    "MessageLog",
    "MessageRole",
    "MessageUpdate",
    "SessionManager",
    "TRANSPORT_ERROR_TEXT",
    "TurnCoordinator",
    "TurnHandle",
    "TurnReport",
    "TurnState",
    "UNAVAILABLE_TEXT",
    "build_context_snapshot",
    "compose_prompt",
]
