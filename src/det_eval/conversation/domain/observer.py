"""Observer port for the conversation domain."""

from typing import Protocol


class ConversationObserver(Protocol):
    """Observer port emitting structured events during a tool conversation.

    Implementations may log to structlog, record for tests, or emit metrics.
    """

    def conversation_started(self, max_iterations: int, tool_count: int) -> None: ...

    def conversation_iteration_started(self, iteration: int) -> None: ...

    def conversation_tool_executed(
        self, tool_name: str, call_id: str, iteration: int, duration_ms: int
    ) -> None: ...

    def conversation_tool_failed(
        self, tool_name: str, call_id: str, iteration: int, error: str
    ) -> None: ...

    def conversation_finished(
        self, status: str, iterations: int, tool_calls: int
    ) -> None: ...
