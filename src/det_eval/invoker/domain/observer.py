"""InvokerObserver port — domain events emitted around model invocations."""

from typing import Protocol


class InvokerObserver(Protocol):
    """Observer port for invoker domain events.

    Implementations may log to structlog, record for tests, or emit metrics.
    """

    def invocation_started(self, model: str, message_count: int) -> None: ...

    def invocation_completed(
        self, model: str, duration_ms: int, stop_reason: str
    ) -> None: ...

    def invocation_failed(self, model: str, reason: str, retriable: bool) -> None: ...

    def cache_hit(self, model: str, key: str, age_seconds: float) -> None: ...

    def cache_evicted(self, key: str, reason: str) -> None: ...
