"""FakeEvaluationObserver — records evaluation domain events for assertion in tests."""

from dataclasses import dataclass


@dataclass(frozen=True)
class EvaluationStartedEvent:
    evaluation_id: str
    config_name: str
    total_requests: int
    tool_mode: str
    max_concurrent: int


@dataclass(frozen=True)
class EvaluationProgressEvent:
    evaluation_id: str
    phase: str
    completed: int
    failed: int
    throttled: int
    total: int


@dataclass(frozen=True)
class RequestThrottledEvent:
    evaluation_id: str
    request_index: int
    attempt: int
    backoff_seconds: float
    error: str


@dataclass(frozen=True)
class ToolExecutedEvent:
    evaluation_id: str
    request_index: int
    tool_name: str
    success: bool
    iteration: int


@dataclass(frozen=True)
class PhaseChangedEvent:
    evaluation_id: str
    phase: str


@dataclass(frozen=True)
class EvaluationCompletedEvent:
    evaluation_id: str
    grade: str | None
    score: int
    method: str
    partial: bool
    elapsed_seconds: float


@dataclass(frozen=True)
class EvaluationCancelledEvent:
    evaluation_id: str
    completed: int
    total: int


@dataclass(frozen=True)
class EvaluationFailedEvent:
    evaluation_id: str
    reason: str


class FakeEvaluationObserver:
    """Records all emitted evaluation events as typed frozen dataclasses.

    Event lists use a leading underscore + public property pattern to avoid
    name collision between the list attributes and the Protocol method names.
    """

    def __init__(self) -> None:
        self._started: list[EvaluationStartedEvent] = []
        self._progress: list[EvaluationProgressEvent] = []
        self._throttled: list[RequestThrottledEvent] = []
        self._tools: list[ToolExecutedEvent] = []
        self._phases: list[PhaseChangedEvent] = []
        self._completed: list[EvaluationCompletedEvent] = []
        self._cancelled: list[EvaluationCancelledEvent] = []
        self._failed: list[EvaluationFailedEvent] = []

    @property
    def started(self) -> list[EvaluationStartedEvent]:
        return self._started

    @property
    def progress(self) -> list[EvaluationProgressEvent]:
        return self._progress

    @property
    def throttled(self) -> list[RequestThrottledEvent]:
        return self._throttled

    @property
    def tools(self) -> list[ToolExecutedEvent]:
        return self._tools

    @property
    def phases(self) -> list[PhaseChangedEvent]:
        return self._phases

    @property
    def completed(self) -> list[EvaluationCompletedEvent]:
        return self._completed

    @property
    def cancelled(self) -> list[EvaluationCancelledEvent]:
        return self._cancelled

    @property
    def failed(self) -> list[EvaluationFailedEvent]:
        return self._failed

    def evaluation_started(
        self,
        evaluation_id: str,
        config_name: str,
        total_requests: int,
        tool_mode: str,
        max_concurrent: int,
    ) -> None:
        self._started.append(
            EvaluationStartedEvent(
                evaluation_id=evaluation_id,
                config_name=config_name,
                total_requests=total_requests,
                tool_mode=tool_mode,
                max_concurrent=max_concurrent,
            )
        )

    def evaluation_progress(
        self,
        evaluation_id: str,
        phase: str,
        completed: int,
        failed: int,
        throttled: int,
        total: int,
    ) -> None:
        self._progress.append(
            EvaluationProgressEvent(
                evaluation_id=evaluation_id,
                phase=phase,
                completed=completed,
                failed=failed,
                throttled=throttled,
                total=total,
            )
        )

    def request_throttled(
        self,
        evaluation_id: str,
        request_index: int,
        attempt: int,
        backoff_seconds: float,
        error: str,
    ) -> None:
        self._throttled.append(
            RequestThrottledEvent(
                evaluation_id=evaluation_id,
                request_index=request_index,
                attempt=attempt,
                backoff_seconds=backoff_seconds,
                error=error,
            )
        )

    def tool_executed(
        self,
        evaluation_id: str,
        request_index: int,
        tool_name: str,
        success: bool,
        iteration: int,
    ) -> None:
        self._tools.append(
            ToolExecutedEvent(
                evaluation_id=evaluation_id,
                request_index=request_index,
                tool_name=tool_name,
                success=success,
                iteration=iteration,
            )
        )

    def evaluation_phase_changed(self, evaluation_id: str, phase: str) -> None:
        self._phases.append(PhaseChangedEvent(evaluation_id=evaluation_id, phase=phase))

    def evaluation_completed(
        self,
        evaluation_id: str,
        grade: str | None,
        score: int,
        method: str,
        partial: bool,
        elapsed_seconds: float,
    ) -> None:
        self._completed.append(
            EvaluationCompletedEvent(
                evaluation_id=evaluation_id,
                grade=grade,
                score=score,
                method=method,
                partial=partial,
                elapsed_seconds=elapsed_seconds,
            )
        )

    def evaluation_cancelled(
        self, evaluation_id: str, completed: int, total: int
    ) -> None:
        self._cancelled.append(
            EvaluationCancelledEvent(
                evaluation_id=evaluation_id, completed=completed, total=total
            )
        )

    def evaluation_failed(self, evaluation_id: str, reason: str) -> None:
        self._failed.append(EvaluationFailedEvent(evaluation_id=evaluation_id, reason=reason))
