"""Mock tools and stores for testing."""

from __future__ import annotations

import asyncio

from orchestria.errors import StoreError, ToolArgumentError
from orchestria.store.base import CalendarEvent, DomainStore, Task
from orchestria.tools.base import Tool


class EchoTool(Tool):
    def __init__(self) -> None:
        self.calls: list[dict] = []

    @property
    def name(self) -> str:
        return "echo"

    @property
    def description(self) -> str:
        return "Echoes the input message back."

    @property
    def parameters(self) -> dict:
        return {
            "type": "object",
            "properties": {
                "message": {"type": "string", "description": "Message to echo"},
            },
            "required": ["message"],
        }

    async def execute(self, args: dict) -> str:
        self.calls.append(args)
        return args["message"]


class PickyTool(Tool):
    """Schema accepts any string; ``parse`` rejects 'bad'."""

    @property
    def name(self) -> str:
        return "picky"

    @property
    def description(self) -> str:
        return "Rejects the word 'bad' after schema validation."

    @property
    def parameters(self) -> dict:
        return {
            "type": "object",
            "properties": {"word": {"type": "string"}},
            "required": ["word"],
        }

    def parse(self, arguments: dict) -> str:
        if arguments["word"] == "bad":
            raise ToolArgumentError("word must not be 'bad'")
        return arguments["word"]

    async def execute(self, args: str) -> str:
        return args.upper()


class ExtraKeysTool(Tool):
    @property
    def name(self) -> str:
        return "extra_keys"

    @property
    def description(self) -> str:
        return "Allows additional properties."

    @property
    def parameters(self) -> dict:
        return {
            "type": "object",
            "properties": {"base_param": {"type": "string"}},
            "required": ["base_param"],
            "additionalProperties": True,
        }

    async def execute(self, args: dict) -> str:
        return "ok"


class SlowTool(Tool):
    def __init__(self, seconds: float = 1.0) -> None:
        self.seconds = seconds
        self.finished = False

    @property
    def name(self) -> str:
        return "slow"

    @property
    def description(self) -> str:
        return "Sleeps before answering."

    @property
    def parameters(self) -> dict:
        return {"type": "object", "properties": {}}

    async def execute(self, args: dict) -> str:
        await asyncio.sleep(self.seconds)
        self.finished = True
        return "slow done"


class CrashTool(Tool):
    @property
    def name(self) -> str:
        return "crash"

    @property
    def description(self) -> str:
        return "Always raises."

    @property
    def parameters(self) -> dict:
        return {"type": "object", "properties": {}}

    async def execute(self, args: dict) -> str:
        raise RuntimeError("kaboom")


class StoreFailTool(Tool):
    @property
    def name(self) -> str:
        return "store_fail"

    @property
    def description(self) -> str:
        return "Raises a store error."

    @property
    def parameters(self) -> dict:
        return {"type": "object", "properties": {}}

    async def execute(self, args: dict) -> str:
        raise StoreError("Task not found: t99", code="not_found")


class FailingStore(DomainStore):
    """Every operation raises ``StoreError('unreachable')``."""

    def _fail(self):
        raise StoreError("Store unreachable: connection refused", code="unreachable")

    async def list_tasks(self) -> list[Task]:
        self._fail()

    async def list_events(self) -> list[CalendarEvent]:
        self._fail()

    async def update_task(self, task_id: str, patch: dict) -> Task:
        self._fail()

    async def create_task(self, task: Task) -> Task:
        self._fail()

    async def update_event(self, event_id: str, patch: dict) -> CalendarEvent:
        self._fail()
