"""StructlogSchedulingObserver — production observer that delegates to structlog."""

import structlog


class StructlogSchedulingObserver:
    """Logs scheduling domain events to structlog.

    Does NOT inherit from SchedulingObserver (structural typing via Protocol).
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def batch_started(self, total: int, max_concurrent: int) -> None:
        self._log.info(
            "scheduler.batch.started", total=total, max_concurrent=max_concurrent
        )

    def request_started(self, request_index: int, attempt: int) -> None:
        self._log.debug(
            "scheduler.request.started", request_index=request_index, attempt=attempt
        )

    def request_completed(self, request_index: int, attempts: int) -> None:
        self._log.info(
            "scheduler.request.completed",
            request_index=request_index,
            attempts=attempts,
        )

    def request_throttled(
        self, request_index: int, attempt: int, backoff_seconds: float, error: str
    ) -> None:
        self._log.warning(
            "scheduler.request.throttled",
            request_index=request_index,
            attempt=attempt,
            backoff_seconds=backoff_seconds,
            error=error,
        )

    def request_timed_out(
        self, request_index: int, attempt: int, backoff_seconds: float
    ) -> None:
        self._log.warning(
            "scheduler.request.timed_out",
            request_index=request_index,
            attempt=attempt,
            backoff_seconds=backoff_seconds,
        )

    def request_abandoned(self, request_index: int, reason: str, attempts: int) -> None:
        self._log.error(
            "scheduler.request.abandoned",
            request_index=request_index,
            reason=reason,
            attempts=attempts,
        )

    def request_failed(self, request_index: int, reason: str) -> None:
        self._log.error(
            "scheduler.request.failed", request_index=request_index, reason=reason
        )

    def backoff_tick(self, request_index: int, remaining_seconds: float) -> None:
        self._log.debug(
            "scheduler.backoff.tick",
            request_index=request_index,
            remaining_seconds=round(remaining_seconds, 1),
        )

    def batch_cancelled(self, completed: int, total: int) -> None:
        self._log.warning("scheduler.batch.cancelled", completed=completed, total=total)

    def batch_completed(
        self, completed: int, failed: int, abandoned: int, elapsed_seconds: float
    ) -> None:
        self._log.info(
            "scheduler.batch.completed",
            completed=completed,
            failed=failed,
            abandoned=abandoned,
            elapsed_seconds=round(elapsed_seconds, 2),
        )
