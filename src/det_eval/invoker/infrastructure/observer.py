"""StructlogInvokerObserver — production observer that delegates to structlog."""

import structlog


class StructlogInvokerObserver:
    """Logs invoker domain events to structlog.

    Does NOT inherit from InvokerObserver (structural typing via Protocol).
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def invocation_started(self, model: str, message_count: int) -> None:
        self._log.debug(
            "invoker.invocation.started", model=model, message_count=message_count
        )

    def invocation_completed(
        self, model: str, duration_ms: int, stop_reason: str
    ) -> None:
        self._log.debug(
            "invoker.invocation.completed",
            model=model,
            duration_ms=duration_ms,
            stop_reason=stop_reason,
        )

    def invocation_failed(self, model: str, reason: str, retriable: bool) -> None:
        self._log.warning(
            "invoker.invocation.failed",
            model=model,
            reason=reason,
            retriable=retriable,
        )

    def cache_hit(self, model: str, key: str, age_seconds: float) -> None:
        self._log.debug(
            "invoker.cache.hit",
            model=model,
            key=key,
            age_seconds=round(age_seconds, 2),
        )

    def cache_evicted(self, key: str, reason: str) -> None:
        self._log.debug("invoker.cache.evicted", key=key, reason=reason)
