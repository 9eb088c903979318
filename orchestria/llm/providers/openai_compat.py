"""
OpenAI-compatible chat-completion provider.

Works with any endpoint that speaks the OpenAI ``/chat/completions`` wire
protocol.  The default points at Gemini's OpenAI-compatible endpoint, but
OpenAI itself, vLLM, LM Studio and LocalAI work the same way.

Dependencies: ``httpx`` (async HTTP client).  No vendor SDK needed.
"""

from __future__ import annotations

import json
import logging
from typing import AsyncIterator

import httpx

from orchestria.llm.providers.base import Provider
from orchestria.llm.types import ChatMessage, RawToolDelta, StreamChunk

logger = logging.getLogger(__name__)

GEMINI_OPENAI_BASE = "https://generativelanguage.googleapis.com/v1beta/openai"


class OpenAICompatProvider(Provider):
    """
    Stream-capable provider for any OpenAI-API-compatible endpoint.

    Parameters
    ----------
    url:
        Base URL of the API, e.g. ``"https://api.openai.com/v1"``.
    model:
        Model identifier sent in the ``model`` field.
    api_key:
        Bearer token.  Pass ``""`` for unauthenticated local endpoints.
    timeout:
        HTTP request timeout in seconds.
    max_retries:
        Number of automatic retries on transient HTTP errors (5xx, 429).
        A stream that already produced chunks is never retried.
    temperature:
        Sampling temperature.
    max_output:
        Maximum output tokens.
    """

    def __init__(
        self,
        url: str = GEMINI_OPENAI_BASE,
        model: str = "gemini-2.5-pro",
        api_key: str = "",
        timeout: float = 120.0,
        max_retries: int = 2,
        temperature: float = 0.7,
        max_output: int = 2048,
    ) -> None:
        self._url = url.rstrip("/")
        self._model = model
        self._api_key = api_key
        self._timeout = timeout
        self._max_retries = max_retries
        self._temperature = temperature
        self._max_output = max_output

    # ------------------------------------------------------------------
    # Provider interface
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return "openai-compat"

    @property
    def model(self) -> str:
        return self._model

    async def chat(
        self,
        messages: list[ChatMessage],
        tools: list[dict] | None = None,
        timeout: float | None = None,
    ) -> AsyncIterator[StreamChunk]:
        body = self._build_body(messages, tools)
        headers = self._build_headers()
        async for chunk in self._stream_request(body, headers, timeout or self._timeout):
            yield chunk

    # ------------------------------------------------------------------
    # Request building
    # ------------------------------------------------------------------

    def _build_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {
            "Content-Type": "application/json",
            "Accept": "text/event-stream",
        }
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _build_body(
        self,
        messages: list[ChatMessage],
        tools: list[dict] | None,
    ) -> dict:
        wire_messages = []
        for msg in messages:
            m: dict = {"role": msg.role, "content": msg.content}
            if msg.tool_calls:
                m["tool_calls"] = [
                    {
                        "id": tc.id,
                        "type": "function",
                        "function": {
                            "name": tc.name,
                            "arguments": json.dumps(tc.arguments),
                        },
                    }
                    for tc in msg.tool_calls
                ]
            if msg.tool_call_id:
                m["tool_call_id"] = msg.tool_call_id
            wire_messages.append(m)

        body: dict = {
            "model": self._model,
            "messages": wire_messages,
            "stream": True,
            "temperature": self._temperature,
            "max_tokens": self._max_output,
        }
        if tools:
            body["tools"] = tools
            body["tool_choice"] = "auto"
        logger.info(
            "REQUEST: model=%s tools=%d messages=%d api_key=%s...",
            self._model,
            len(tools) if tools else 0,
            len(wire_messages),
            self._api_key[:6] if self._api_key else "(none)",
        )
        return body

    # ------------------------------------------------------------------
    # Streaming request
    # ------------------------------------------------------------------

    async def _stream_request(
        self,
        body: dict,
        headers: dict[str, str],
        timeout: float,
    ) -> AsyncIterator[StreamChunk]:
        url = f"{self._url}/chat/completions"

        last_error: Exception | None = None
        for attempt in range(1 + self._max_retries):
            yielded = False
            try:
                async with httpx.AsyncClient(timeout=timeout) as client:
                    async with client.stream(
                        "POST", url, json=body, headers=headers
                    ) as response:
                        if response.status_code == 429 or response.status_code >= 500:
                            # Retryable -- read body so the connection is released.
                            await response.aread()
                            last_error = httpx.HTTPStatusError(
                                f"HTTP {response.status_code}",
                                request=response.request,
                                response=response,
                            )
                            logger.warning(
                                "Retryable status %d (attempt %d)",
                                response.status_code,
                                attempt + 1,
                            )
                            continue

                        if response.status_code >= 400:
                            await response.aread()
                        response.raise_for_status()

                        async for chunk in self._parse_sse_stream(response):
                            yielded = True
                            yield chunk
                        return  # success
            except httpx.TransportError as exc:
                last_error = exc
                if yielded or attempt >= self._max_retries:
                    raise
                logger.warning("Transport error (attempt %d): %s", attempt + 1, exc)

        if last_error is not None:
            raise last_error

    async def _parse_sse_stream(
        self, response: httpx.Response
    ) -> AsyncIterator[StreamChunk]:
        """
        Parse Server-Sent Events from the response line stream.

        Each SSE event has the form::

            data: {json}\\n\\n

        The sentinel ``data: [DONE]`` terminates the stream.
        """
        async for line in response.aiter_lines():
            line = line.rstrip("\r")

            if not line or not line.startswith("data:"):
                # Event boundaries, comments and keep-alives.
                continue

            data_str = line[len("data:"):].strip()

            if data_str == "[DONE]":
                yield StreamChunk(done=True)
                return

            try:
                data = json.loads(data_str)
            except json.JSONDecodeError:
                logger.warning("Failed to parse SSE data: %s", data_str[:200])
                continue

            if "error" in data and not data.get("choices"):
                raise httpx.StreamError(f"Upstream error: {data['error']}")

            chunk = self._sse_data_to_chunk(data)
            if chunk is not None:
                yield chunk

        # If the stream ends without [DONE], emit a final chunk.
        yield StreamChunk(done=True)

    def _sse_data_to_chunk(self, data: dict) -> StreamChunk | None:
        """Convert a parsed SSE ``data`` payload into a ``StreamChunk``."""
        choices = data.get("choices")
        if not choices:
            return None

        choice = choices[0]
        delta = choice.get("delta") or {}
        finish_reason = choice.get("finish_reason")

        text_delta = delta.get("content") or ""

        tool_deltas: list[RawToolDelta] | None = None
        raw_tcs = delta.get("tool_calls")
        if raw_tcs:
            tool_deltas = []
            for pos, raw_tc in enumerate(raw_tcs):
                func = raw_tc.get("function") or {}
                tool_deltas.append(
                    RawToolDelta(
                        call_index=raw_tc.get("index", pos),
                        id=raw_tc.get("id"),
                        name_delta=func.get("name") or "",
                        args_delta=func.get("arguments") or "",
                    )
                )

        done = finish_reason is not None
        if done and tool_deltas:
            # The assembler flushes whatever is still open at stream end;
            # deltas arriving with the finish reason are complete.
            for td in tool_deltas:
                td.done = True

        return StreamChunk(
            delta=text_delta,
            tool_deltas=tool_deltas,
            done=done,
        )
