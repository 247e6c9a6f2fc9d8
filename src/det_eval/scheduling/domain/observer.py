"""Observer port for the scheduling domain."""

from typing import Protocol


class SchedulingObserver(Protocol):
    """Observer port emitting structured events while a batch runs.

    Implementations may log to structlog, record for tests, or emit metrics.
    """

    def batch_started(self, total: int, max_concurrent: int) -> None: ...

    def request_started(self, request_index: int, attempt: int) -> None: ...

    def request_completed(self, request_index: int, attempts: int) -> None: ...

    def request_throttled(
        self, request_index: int, attempt: int, backoff_seconds: float, error: str
    ) -> None: ...

    def request_timed_out(
        self, request_index: int, attempt: int, backoff_seconds: float
    ) -> None: ...

    def request_abandoned(
        self, request_index: int, reason: str, attempts: int
    ) -> None: ...

    def request_failed(self, request_index: int, reason: str) -> None: ...

    def backoff_tick(self, request_index: int, remaining_seconds: float) -> None: ...

    def batch_cancelled(self, completed: int, total: int) -> None: ...

    def batch_completed(
        self, completed: int, failed: int, abandoned: int, elapsed_seconds: float
    ) -> None: ...
