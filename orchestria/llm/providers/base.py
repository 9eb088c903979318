"""Abstract base class for LLM providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncIterator

from orchestria.llm.types import ChatMessage, StreamChunk


class Provider(ABC):
    """
    A provider encapsulates access to a single LLM endpoint.

    Implementations stream chat completions (``chat``) and report a
    human-readable name.
    """

    @abstractmethod
    async def chat(
        self,
        messages: list[ChatMessage],
        tools: list[dict] | None = None,
        timeout: float | None = None,
    ) -> AsyncIterator[StreamChunk]:
        """
        Start a streaming chat completion.

        Yields ``StreamChunk`` objects.  The last chunk has ``done=True``.
        """
        ...
        # Make the method an async generator so sub-classes can ``yield``.
        # This line is unreachable but satisfies the type checker.
        if False:  # pragma: no cover
            yield StreamChunk()  # type: ignore[misc]

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable provider name (e.g. ``"openai-compat"``)."""
        ...

    @property
    def model(self) -> str | None:
        """Model identifier, when the provider has one."""
        return None
