"""ToolExecutor Protocol — runs tools the model asks for."""

from typing import Protocol

from pydantic import BaseModel


class ToolExecutionResult(BaseModel, frozen=True):
    """Result of one tool execution. Exactly one of result/error is meaningful."""

    success: bool
    result: object | None = None
    error: str | None = None


class ToolExecutor(Protocol):
    """Executes a named tool with the parameters the model supplied.

    Implementations may either return a failed ToolExecutionResult or raise;
    the conversation driver treats both as a tool failure.
    """

    async def execute(
        self, tool_name: str, parameters: dict[str, object]
    ) -> ToolExecutionResult: ...
