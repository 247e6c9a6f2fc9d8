"""Observer port for the evaluation domain — defines events in domain language."""

from typing import Protocol


class EvaluationObserver(Protocol):
    """Observer port emitting structured events during an evaluation.

    Listeners are called synchronously, in registration order, on every
    transition. Implementations may log to structlog, render progress, or
    record for tests.
    """

    def evaluation_started(
        self,
        evaluation_id: str,
        config_name: str,
        total_requests: int,
        tool_mode: str,
        max_concurrent: int,
    ) -> None: ...

    def evaluation_progress(
        self,
        evaluation_id: str,
        phase: str,
        completed: int,
        failed: int,
        throttled: int,
        total: int,
    ) -> None: ...

    def request_throttled(
        self,
        evaluation_id: str,
        request_index: int,
        attempt: int,
        backoff_seconds: float,
        error: str,
    ) -> None: ...

    def tool_executed(
        self,
        evaluation_id: str,
        request_index: int,
        tool_name: str,
        success: bool,
        iteration: int,
    ) -> None: ...

    def evaluation_phase_changed(self, evaluation_id: str, phase: str) -> None: ...

    def evaluation_completed(
        self,
        evaluation_id: str,
        grade: str | None,
        score: int,
        method: str,
        partial: bool,
        elapsed_seconds: float,
    ) -> None: ...

    def evaluation_cancelled(
        self, evaluation_id: str, completed: int, total: int
    ) -> None: ...

    def evaluation_failed(self, evaluation_id: str, reason: str) -> None: ...
