"""
Conversation handle over a streaming provider.

A ``Conversation`` owns the message history the model sees.  Each ``send``
appends the outgoing message (a user prompt or a batch of tool results),
streams the provider's reply as ``Fragment`` objects, and records the
assistant message once the stream completes.

Tool requests are emitted in a single trailing fragment, after the
assistant message that carries them has been appended to the history.
Tool results are sent back against a history that already holds the
matching calls.
"""

from __future__ import annotations

import json
import logging
from typing import AsyncIterator

import httpx

from orchestria.errors import TransportError
from orchestria.llm.providers.base import Provider
from orchestria.llm.tool_call_assembler import ToolCallAssembler
from orchestria.llm.types import ChatMessage, Fragment, ToolRequest
from orchestria.types import ToolResult

logger = logging.getLogger(__name__)


class Conversation:
    """
    Accumulated exchange state with the remote model.

    Parameters
    ----------
    provider:
        Streaming LLM provider.
    system_prompt:
        Instruction prepended to every request.
    tools:
        OpenAI-style function schemas offered to the model.
    timeout:
        Per-request timeout passed to the provider.
    """

    def __init__(
        self,
        provider: Provider,
        system_prompt: str = "",
        tools: list[dict] | None = None,
        timeout: float | None = None,
    ) -> None:
        self.provider = provider
        self.system_prompt = system_prompt
        self.tools = tools or []
        self.timeout = timeout
        self._history: list[ChatMessage] = []

    @property
    def history(self) -> list[ChatMessage]:
        return list(self._history)

    # ------------------------------------------------------------------
    # Rewind support
    # ------------------------------------------------------------------

    def mark(self) -> int:
        """Return a position that ``rewind`` can restore."""
        return len(self._history)

    def rewind(self, mark: int) -> None:
        """Drop every message recorded after *mark*."""
        if mark < len(self._history):
            logger.info(
                "Rewinding conversation from %d to %d messages",
                len(self._history),
                mark,
            )
            del self._history[mark:]

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    async def send(self, message: str | list[ToolResult]) -> AsyncIterator[Fragment]:
        """
        Send a user prompt or tool results and stream the reply.

        Raises ``TransportError`` if the provider fails.  The outgoing
        message stays in the history; callers that abandon the turn use
        ``rewind`` to drop it.
        """
        self._history.extend(self._outgoing(message))

        assembler = ToolCallAssembler()
        content_parts: list[str] = []
        finished: dict[int, ToolRequest] = {}

        try:
            async for chunk in self.provider.chat(
                self._request_messages(), tools=self.tools or None, timeout=self.timeout
            ):
                if chunk.tool_deltas:
                    for td in chunk.tool_deltas:
                        for request in assembler.feed(td):
                            finished[td.call_index] = request
                if chunk.delta:
                    content_parts.append(chunk.delta)
                    yield Fragment(text=chunk.delta)
        except (httpx.HTTPError, httpx.StreamError) as exc:
            raise TransportError(f"{type(exc).__name__}: {exc}") from exc

        finished.update(assembler.flush_indexed())
        # Calls run in the order the model listed them, not completion order.
        requests = [finished[idx] for idx in sorted(finished)]
        if assembler.errors:
            logger.warning("Tool-call assembly errors: %s", assembler.errors)

        self._history.append(
            ChatMessage(
                role="assistant",
                content="".join(content_parts),
                tool_calls=requests or None,
            )
        )

        if requests:
            yield Fragment(tool_requests=requests)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _request_messages(self) -> list[ChatMessage]:
        if self.system_prompt:
            return [ChatMessage(role="system", content=self.system_prompt)] + self._history
        return list(self._history)

    @staticmethod
    def _outgoing(message: str | list[ToolResult]) -> list[ChatMessage]:
        if isinstance(message, str):
            return [ChatMessage(role="user", content=message)]
        return [
            ChatMessage(
                role="tool",
                content=json.dumps(result.payload),
                tool_call_id=result.id,
            )
            for result in message
        ]
