"""FakeToolExecutor — canned ToolExecutor implementation for use in tests."""

from det_eval.conversation.domain.executor import ToolExecutionResult


class FakeToolExecutor:
    """Satisfies the ToolExecutor protocol.

    ``outcomes`` maps tool names to a result value, a ToolExecutionResult or an
    exception to raise. Unknown names raise KeyError. Every call is recorded.
    """

    def __init__(self, outcomes: dict[str, object] | None = None) -> None:
        self._outcomes = outcomes or {}
        self.calls: list[tuple[str, dict[str, object]]] = []

    async def execute(
        self, tool_name: str, parameters: dict[str, object]
    ) -> ToolExecutionResult:
        self.calls.append((tool_name, parameters))
        outcome = self._outcomes[tool_name]
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, ToolExecutionResult):
            return outcome
        return ToolExecutionResult(success=True, result=outcome)
