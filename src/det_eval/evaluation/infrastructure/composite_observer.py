"""CompositeEvaluationObserver — fans out all events to a list of observers."""

from det_eval.evaluation.domain.observer import EvaluationObserver


class CompositeEvaluationObserver:
    """Delegates every observer event to each observer in registration order.

    Does NOT inherit from EvaluationObserver (structural typing via Protocol).
    """

    def __init__(self, observers: list[EvaluationObserver]) -> None:
        self._observers = list(observers)

    def add(self, observer: EvaluationObserver) -> None:
        self._observers.append(observer)

    def evaluation_started(
        self,
        evaluation_id: str,
        config_name: str,
        total_requests: int,
        tool_mode: str,
        max_concurrent: int,
    ) -> None:
        for obs in self._observers:
            obs.evaluation_started(
                evaluation_id=evaluation_id,
                config_name=config_name,
                total_requests=total_requests,
                tool_mode=tool_mode,
                max_concurrent=max_concurrent,
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
        for obs in self._observers:
            obs.evaluation_progress(
                evaluation_id=evaluation_id,
                phase=phase,
                completed=completed,
                failed=failed,
                throttled=throttled,
                total=total,
            )

    def request_throttled(
        self,
        evaluation_id: str,
        request_index: int,
        attempt: int,
        backoff_seconds: float,
        error: str,
    ) -> None:
        for obs in self._observers:
            obs.request_throttled(
                evaluation_id=evaluation_id,
                request_index=request_index,
                attempt=attempt,
                backoff_seconds=backoff_seconds,
                error=error,
            )

    def tool_executed(
        self,
        evaluation_id: str,
        request_index: int,
        tool_name: str,
        success: bool,
        iteration: int,
    ) -> None:
        for obs in self._observers:
            obs.tool_executed(
                evaluation_id=evaluation_id,
                request_index=request_index,
                tool_name=tool_name,
                success=success,
                iteration=iteration,
            )

    def evaluation_phase_changed(self, evaluation_id: str, phase: str) -> None:
        for obs in self._observers:
            obs.evaluation_phase_changed(evaluation_id=evaluation_id, phase=phase)

    def evaluation_completed(
        self,
        evaluation_id: str,
        grade: str | None,
        score: int,
        method: str,
        partial: bool,
        elapsed_seconds: float,
    ) -> None:
        for obs in self._observers:
            obs.evaluation_completed(
                evaluation_id=evaluation_id,
                grade=grade,
                score=score,
                method=method,
                partial=partial,
                elapsed_seconds=elapsed_seconds,
            )

    def evaluation_cancelled(
        self, evaluation_id: str, completed: int, total: int
    ) -> None:
        for obs in self._observers:
            obs.evaluation_cancelled(
                evaluation_id=evaluation_id, completed=completed, total=total
            )

    def evaluation_failed(self, evaluation_id: str, reason: str) -> None:
        for obs in self._observers:
            obs.evaluation_failed(evaluation_id=evaluation_id, reason=reason)
