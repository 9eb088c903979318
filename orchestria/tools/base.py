from abc import ABC, abstractmethod
from typing import Any


def normalize_schema(schema: dict) -> dict:
    s = dict(schema or {})
    s.setdefault("type", "object")
    s.setdefault("additionalProperties", False)
    return s


class Tool(ABC):
    """
    A side-effecting action the model may request.

    ``parse`` turns schema-valid arguments into the tool's typed argument
    object (raising ``ToolArgumentError`` for semantic problems the schema
    can't express); ``execute`` receives that object and returns the result
    text handed back to the model.
    """

    @property
    @abstractmethod
    def name(self) -> str: ...

    @property
    @abstractmethod
    def description(self) -> str: ...

    @property
    @abstractmethod
    def parameters(self) -> dict: ...

    def parse(self, arguments: dict) -> Any:
        return arguments

    @abstractmethod
    async def execute(self, args: Any) -> str: ...

    def to_openai_schema(self) -> dict:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": normalize_schema(self.parameters),
            },
        }
