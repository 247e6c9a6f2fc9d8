"""StructlogEvaluationObserver — production observer that delegates to structlog."""

import structlog


class StructlogEvaluationObserver:
    """Logs evaluation domain events to structlog.

    Does NOT inherit from EvaluationObserver (structural typing via Protocol).
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def evaluation_started(
        self,
        evaluation_id: str,
        config_name: str,
        total_requests: int,
        tool_mode: str,
        max_concurrent: int,
    ) -> None:
        self._log.info(
            "evaluation.started",
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
        resolved = completed + failed
        self._log.info(
            "evaluation.progress",
            evaluation_id=evaluation_id,
            phase=phase,
            completed=completed,
            failed=failed,
            throttled=throttled,
            total=total,
            percent=round(100.0 * resolved / total, 1) if total else 0.0,
        )

    def request_throttled(
        self,
        evaluation_id: str,
        request_index: int,
        attempt: int,
        backoff_seconds: float,
        error: str,
    ) -> None:
        self._log.warning(
            "evaluation.request.throttled",
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
        self._log.info(
            "evaluation.tool.executed",
            evaluation_id=evaluation_id,
            request_index=request_index,
            tool_name=tool_name,
            success=success,
            iteration=iteration,
        )

    def evaluation_phase_changed(self, evaluation_id: str, phase: str) -> None:
        self._log.info(
            "evaluation.phase_changed", evaluation_id=evaluation_id, phase=phase
        )

    def evaluation_completed(
        self,
        evaluation_id: str,
        grade: str | None,
        score: int,
        method: str,
        partial: bool,
        elapsed_seconds: float,
    ) -> None:
        self._log.info(
            "evaluation.completed",
            evaluation_id=evaluation_id,
            grade=grade,
            score=score,
            method=method,
            partial=partial,
            elapsed_seconds=round(elapsed_seconds, 2),
        )

    def evaluation_cancelled(
        self, evaluation_id: str, completed: int, total: int
    ) -> None:
        self._log.warning(
            "evaluation.cancelled",
            evaluation_id=evaluation_id,
            completed=completed,
            total=total,
        )

    def evaluation_failed(self, evaluation_id: str, reason: str) -> None:
        self._log.error("evaluation.failed", evaluation_id=evaluation_id, reason=reason)
