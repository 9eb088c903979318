from __future__ import annotations

import asyncio
import logging
import time

from orchestria.errors import StoreError, ToolArgumentError
from orchestria.llm.types import ToolRequest
from orchestria.tools.base import Tool
from orchestria.tools.validation import ToolValidator
from orchestria.types import ErrorCode, ToolResult

logger = logging.getLogger(__name__)


class ToolRegistry:
    """
    Name -> tool table plus the single dispatch entry point.

    ``execute`` never raises: every outcome, including unknown tools and
    handler crashes, comes back as a ``ToolResult`` carrying the request id.
    """

    def __init__(self, tool_timeout: float = 15.0):
        self._tools: dict[str, Tool] = {}
        self.tool_timeout = tool_timeout
        # Executions that outlived their timeout and are still running.
        self._detached: set[asyncio.Task] = set()

    def register(self, tool: Tool, *, overwrite: bool = False) -> None:
        if tool.name in self._tools and not overwrite:
            raise ValueError(f"Tool already registered: {tool.name}")
        self._tools[tool.name] = tool

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def require(self, name: str) -> Tool:
        t = self.get(name)
        if not t:
            raise KeyError(name)
        return t

    def list(self) -> list[Tool]:
        return sorted(self._tools.values(), key=lambda t: t.name)

    def to_openai_schema(self) -> list[dict]:
        return [t.to_openai_schema() for t in self.list()]

    async def execute(self, request: ToolRequest) -> ToolResult:
        """
        Execute a single tool request through the full lifecycle.

        Steps:
        1. Registry lookup
        2. Assembler parse errors
        3. Schema validation and typed parsing
        4. Execute with timeout

        A timed-out execution is reported as ``TIMEOUT`` but is not
        cancelled: a store write that already started runs to completion
        in the background and its outcome is logged.
        """
        # 1. Registry lookup
        tool = self.get(request.name)
        if tool is None:
            logger.warning("Unknown tool requested: %r", request.name)
            return ToolResult.failure(
                request.id, request.name, "unknown tool", ErrorCode.UNKNOWN_TOOL
            )

        # 2. Arguments that never decoded
        if request.parse_error:
            return ToolResult.failure(
                request.id, request.name, request.parse_error, ErrorCode.LLM_PROTOCOL_ERROR
            )

        # 3. Validate and parse
        valid, error_msg = ToolValidator.validate(tool, request.arguments)
        if not valid:
            return ToolResult.failure(
                request.id,
                request.name,
                f"Validation error: {error_msg}",
                ErrorCode.VALIDATION_ERROR,
            )
        try:
            args = tool.parse(request.arguments)
        except ToolArgumentError as e:
            return ToolResult.failure(
                request.id, request.name, f"Validation error: {e}", ErrorCode.VALIDATION_ERROR
            )

        # 4. Execute with timeout
        start = time.monotonic()
        task = asyncio.ensure_future(tool.execute(args))
        try:
            text = await asyncio.wait_for(asyncio.shield(task), timeout=self.tool_timeout)
        except asyncio.TimeoutError:
            self._detach(task, request)
            logger.warning("Tool %s timed out after %ss", request.name, self.tool_timeout)
            return ToolResult.failure(
                request.id,
                request.name,
                f"Timeout after {self.tool_timeout}s",
                ErrorCode.TIMEOUT,
            )
        except StoreError as e:
            logger.warning("Tool %s rejected by store: %s", request.name, e)
            return ToolResult.failure(request.id, request.name, str(e), ErrorCode.STORE_ERROR)
        except Exception as e:
            logger.exception("Tool %s raised", request.name)
            return ToolResult.failure(request.id, request.name, str(e), ErrorCode.TOOL_EXCEPTION)

        duration_ms = int((time.monotonic() - start) * 1000)
        logger.info("Tool %s (%s) ok in %dms", request.name, request.id, duration_ms)
        return ToolResult.success(request.id, request.name, text)

    @property
    def detached(self) -> set[asyncio.Task]:
        return set(self._detached)

    def _detach(self, task: asyncio.Task, request: ToolRequest) -> None:
        self._detached.add(task)

        def done(t: asyncio.Task) -> None:
            self._detached.discard(t)
            if t.cancelled():
                logger.warning("Tool %s (%s) cancelled after timeout", request.name, request.id)
            elif t.exception() is not None:
                logger.warning(
                    "Tool %s (%s) failed after timeout: %s", request.name, request.id, t.exception()
                )
            else:
                logger.info("Tool %s (%s) completed after timeout", request.name, request.id)

        task.add_done_callback(done)
