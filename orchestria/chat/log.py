"""
UI-facing message log.

An append-only, ordered list of chat messages.  At most one assistant
entry is open (``streaming=True``) at a time; it grows by appended deltas
until ``finalize`` freezes it.  Everything handed out is a snapshot copy,
so renderers never observe an entry changing underneath them.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Callable

from orchestria.errors import MessageLogError

logger = logging.getLogger(__name__)


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Message:
    role: MessageRole
    text: str = ""
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    streaming: bool = False


@dataclass(frozen=True)
class MessageUpdate:
    """Emitted whenever an entry is appended or changes."""

    message: Message


@dataclass(frozen=True)
class TurnHandle:
    """Token for the open assistant entry."""

    message_id: str


Listener = Callable[[MessageUpdate], None]


class MessageLog:
    """
    Ordered message list with a single in-progress assistant entry.

    Parameters
    ----------
    greeting:
        Optional assistant message placed at the head of the log.
    """

    def __init__(self, greeting: str | None = None) -> None:
        self._entries: list[Message] = []
        self._open: Message | None = None
        self._listeners: list[Listener] = []
        if greeting:
            self.append_assistant(greeting)

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(replace(m) for m in self._entries)

    @property
    def open_entry(self) -> Message | None:
        return replace(self._open) if self._open else None

    def __len__(self) -> int:
        return len(self._entries)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener* for every update; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def append_user(self, text: str) -> MessageUpdate:
        return self._append(Message(role=MessageRole.USER, text=text))

    def append_assistant(self, text: str) -> MessageUpdate:
        """Append a complete (already final) assistant message."""
        return self._append(Message(role=MessageRole.ASSISTANT, text=text))

    def begin_assistant_turn(self) -> tuple[TurnHandle, MessageUpdate]:
        if self._open is not None:
            raise MessageLogError(
                f"Assistant turn {self._open.id} is still open"
            )
        message = Message(role=MessageRole.ASSISTANT, streaming=True)
        self._open = message
        update = self._append(message)
        return TurnHandle(message.id), update

    def append_delta(self, handle: TurnHandle, text: str) -> MessageUpdate:
        message = self._require_open(handle)
        message.text += text
        return self._emit(message)

    def finalize(self, handle: TurnHandle) -> MessageUpdate:
        message = self._require_open(handle)
        message.streaming = False
        self._open = None
        return self._emit(message)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_open(self, handle: TurnHandle) -> Message:
        if self._open is None or self._open.id != handle.message_id:
            raise MessageLogError(f"Turn handle {handle.message_id} is not open")
        return self._open

    def _append(self, message: Message) -> MessageUpdate:
        self._entries.append(message)
        return self._emit(message)

    def _emit(self, message: Message) -> MessageUpdate:
        update = MessageUpdate(replace(message))
        for listener in list(self._listeners):
            try:
                listener(update)
            except Exception:
                logger.exception("Message log listener failed")
        return update
