"""Observer port for the grading domain."""

from typing import Protocol


class GradingObserver(Protocol):
    """Observer port emitting structured events while a response set is graded.

    Implementations may log to structlog, record for tests, or emit metrics.
    """

    def grading_started(self, valid: int, excluded: int) -> None: ...

    def grading_insufficient_data(self, valid: int, required: int) -> None: ...

    def grading_tier_failed(self, tier: str, reason: str) -> None: ...

    def grading_completed(self, grade: str | None, score: int, method: str) -> None: ...
