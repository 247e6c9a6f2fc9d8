"""StructlogConversationObserver — production observer that delegates to structlog."""

import structlog


class StructlogConversationObserver:
    """Logs conversation domain events to structlog.

    Does NOT inherit from ConversationObserver (structural typing via Protocol).
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def conversation_started(self, max_iterations: int, tool_count: int) -> None:
        self._log.debug(
            "conversation.started",
            max_iterations=max_iterations,
            tool_count=tool_count,
        )

    def conversation_iteration_started(self, iteration: int) -> None:
        self._log.debug("conversation.iteration.started", iteration=iteration)

    def conversation_tool_executed(
        self, tool_name: str, call_id: str, iteration: int, duration_ms: int
    ) -> None:
        self._log.info(
            "conversation.tool.executed",
            tool_name=tool_name,
            call_id=call_id,
            iteration=iteration,
            duration_ms=duration_ms,
        )

    def conversation_tool_failed(
        self, tool_name: str, call_id: str, iteration: int, error: str
    ) -> None:
        self._log.warning(
            "conversation.tool.failed",
            tool_name=tool_name,
            call_id=call_id,
            iteration=iteration,
            error=error,
        )

    def conversation_finished(
        self, status: str, iterations: int, tool_calls: int
    ) -> None:
        self._log.info(
            "conversation.finished",
            status=status,
            iterations=iterations,
            tool_calls=tool_calls,
        )
