"""
Session manager -- owns the conversation handle and serializes sends.

``send`` is the single mutating entry point for a chat surface.  It
records the user's message, makes sure a conversation exists, prepends a
fresh context snapshot and hands the turn to the coordinator.  Whatever
happens, the caller receives well-formed ``MessageUpdate`` objects and
never an exception.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from contextlib import aclosing
from typing import AsyncIterator, Awaitable, Callable, Union

from orchestria.chat.context import build_context_snapshot, compose_prompt
from orchestria.chat.coordinator import TurnCoordinator
from orchestria.chat.log import MessageLog, MessageUpdate
from orchestria.errors import SessionUnavailable, StoreError
from orchestria.llm.conversation import Conversation
from orchestria.store.adapter import StoreAdapter
from orchestria.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

UNAVAILABLE_TEXT = (
    "AI capabilities are currently unavailable. Please check your API Key configuration."
)

ConversationFactory = Callable[[], Union[Conversation, Awaitable[Conversation]]]


class SessionManager:
    """
    Parameters
    ----------
    factory : callable
        Builds a new ``Conversation``; may be sync or async.  Raises
        ``SessionUnavailable`` when it can't (e.g. no API key yet).
    adapter : StoreAdapter
        Source of the per-send context snapshot.
    registry : ToolRegistry
        Tools the coordinator dispatches to.
    log : MessageLog
        The UI-facing log this session writes into.
    turn_timeout, max_tool_rounds :
        Passed through to ``TurnCoordinator``.
    context_max_items : int
        Cap on tasks and events listed in the context snapshot.
    """

    def __init__(
        self,
        factory: ConversationFactory,
        adapter: StoreAdapter,
        registry: ToolRegistry,
        log: MessageLog | None = None,
        turn_timeout: float = 60.0,
        max_tool_rounds: int = 8,
        context_max_items: int = 50,
    ) -> None:
        self._factory = factory
        self.adapter = adapter
        self.registry = registry
        self.log = log or MessageLog()
        self.context_max_items = context_max_items
        self.coordinator = TurnCoordinator(
            registry,
            self.log,
            turn_timeout=turn_timeout,
            max_tool_rounds=max_tool_rounds,
        )
        self._conversation: Conversation | None = None
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        """True while a turn is in flight."""
        return self._lock.locked()

    # ------------------------------------------------------------------
    # Conversation lifecycle
    # ------------------------------------------------------------------

    async def ensure_session(self) -> Conversation | None:
        """
        Return the conversation, creating it on first use.

        Failure is not remembered: the next call tries again, so a key
        added to the environment later is picked up.
        """
        if self._conversation is not None:
            return self._conversation
        try:
            conversation = self._factory()
            if inspect.isawaitable(conversation):
                conversation = await conversation
        except SessionUnavailable as e:
            logger.warning("Assistant unavailable: %s", e)
            return None
        except Exception:
            logger.exception("Error creating chat session")
            return None
        self._conversation = conversation
        logger.info("Chat session established")
        return conversation

    def reset(self) -> None:
        """Forget the conversation; the next send starts a fresh one."""
        self._conversation = None

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    async def send(self, user_text: str) -> AsyncIterator[MessageUpdate]:
        """
        Process one user message.

        Concurrent calls queue on a lock; turns never interleave.
        """
        async with self._lock:
            yield self.log.append_user(user_text)

            conversation = await self.ensure_session()
            if conversation is None:
                yield self.log.append_assistant(UNAVAILABLE_TEXT)
                return

            prompt = compose_prompt(await self._context(), user_text)
            turn = self.coordinator.run(conversation, prompt)
            async with aclosing(turn):
                async for update in turn:
                    yield update

    async def _context(self) -> str | None:
        try:
            tasks, events = await self.adapter.snapshot()
        except StoreError as e:
            logger.warning("Context snapshot unavailable: %s", e)
            return None
        return build_context_snapshot(tasks, events, max_items=self.context_max_items)
