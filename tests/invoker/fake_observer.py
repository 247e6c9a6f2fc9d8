"""FakeInvokerObserver — records invoker domain events for assertion in tests."""

from dataclasses import dataclass


@dataclass(frozen=True)
class InvocationStartedEvent:
    model: str
    message_count: int


@dataclass(frozen=True)
class InvocationCompletedEvent:
    model: str
    duration_ms: int
    stop_reason: str


@dataclass(frozen=True)
class InvocationFailedEvent:
    model: str
    reason: str
    retriable: bool


@dataclass(frozen=True)
class CacheHitEvent:
    model: str
    key: str
    age_seconds: float


@dataclass(frozen=True)
class CacheEvictedEvent:
    key: str
    reason: str


class FakeInvokerObserver:
    """Records all emitted invoker events as typed frozen dataclasses."""

    def __init__(self) -> None:
        self.started: list[InvocationStartedEvent] = []
        self.completed: list[InvocationCompletedEvent] = []
        self.failed: list[InvocationFailedEvent] = []
        self.cache_hits: list[CacheHitEvent] = []
        self.cache_evictions: list[CacheEvictedEvent] = []

    def invocation_started(self, model: str, message_count: int) -> None:
        self.started.append(
            InvocationStartedEvent(model=model, message_count=message_count)
        )

    def invocation_completed(
        self, model: str, duration_ms: int, stop_reason: str
    ) -> None:
        self.completed.append(
            InvocationCompletedEvent(
                model=model, duration_ms=duration_ms, stop_reason=stop_reason
            )
        )

    def invocation_failed(self, model: str, reason: str, retriable: bool) -> None:
        self.failed.append(
            InvocationFailedEvent(model=model, reason=reason, retriable=retriable)
        )

    def cache_hit(self, model: str, key: str, age_seconds: float) -> None:
        self.cache_hits.append(
            CacheHitEvent(model=model, key=key, age_seconds=age_seconds)
        )

    def cache_evicted(self, key: str, reason: str) -> None:
        self.cache_evictions.append(CacheEvictedEvent(key=key, reason=reason))
