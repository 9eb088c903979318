from dataclasses import dataclass


@dataclass
class ToolResult:
    """Outcome of one tool invocation, paired with its request by ``id``."""

    id: str
    name: str
    ok: bool
    result: str | None = None
    error: str | None = None
    error_code: str | None = None

    @property
    def payload(self) -> dict:
        if self.ok:
            return {"result": self.result or ""}
        return {"error": self.error or "unknown error"}

    @classmethod
    def success(cls, id: str, name: str, result: str) -> "ToolResult":
        return cls(id=id, name=name, ok=True, result=result)

    @classmethod
    def failure(cls, id: str, name: str, error: str, code: str) -> "ToolResult":
        return cls(id=id, name=name, ok=False, error=error, error_code=code)


class ErrorCode:
    VALIDATION_ERROR = "validation_error"
    TIMEOUT = "timeout"
    TOOL_EXCEPTION = "tool_exception"
    UNKNOWN_TOOL = "unknown_tool"
    STORE_ERROR = "store_error"
    LLM_PROTOCOL_ERROR = "llm_protocol_error"


class TaskStatus:
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"

    ALL = (TODO, IN_PROGRESS, COMPLETED)


class Priority:
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    # Priorities the assistant may assign; ``critical`` is reserved for
    # tasks created elsewhere in the dashboard.
    ASSIGNABLE = (LOW, MEDIUM, HIGH)
