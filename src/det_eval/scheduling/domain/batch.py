"""Batch policy, progress snapshots and results."""

from typing import Literal, Protocol, TypeAlias

from pydantic import BaseModel, Field

from det_eval.config.domain.settings import EvaluationSettings
from det_eval.scheduling.domain.response import StructuredResponse
from det_eval.scheduling.domain.throttling import ThrottlingEvent, ThrottlingStats

BatchPhase: TypeAlias = Literal["collecting", "cancelled", "completed"]


class SchedulingPolicy(BaseModel, frozen=True):
    """Concurrency, pacing and retry rules for one batch."""

    max_concurrent: int = Field(default=1, ge=1)
    request_delay_seconds: float = Field(default=2.0, ge=0.0)
    # None when the sender enforces its own per-call timeout.
    request_timeout_seconds: float | None = Field(default=60.0, gt=0.0)
    max_retry_attempts: int = Field(default=3, ge=1)
    throttle_backoff_seconds: list[float] = Field(
        default_factory=lambda: [5.0, 10.0, 20.0], min_length=1
    )
    timeout_backoff_seconds: float = Field(default=5.0, ge=0.0)
    enable_throttling_alerts: bool = True

    @classmethod
    def from_settings(cls, settings: EvaluationSettings) -> "SchedulingPolicy":
        return cls(
            max_concurrent=settings.max_concurrent,
            request_delay_seconds=settings.request_delay_seconds,
            request_timeout_seconds=settings.request_timeout_seconds,
            max_retry_attempts=settings.max_retry_attempts,
            throttle_backoff_seconds=settings.throttle_backoff_seconds,
            timeout_backoff_seconds=settings.timeout_backoff_seconds,
            enable_throttling_alerts=settings.enable_throttling_alerts,
        )

    def throttle_backoff(self, attempt: int) -> float:
        """Backoff after the given failed attempt, capped at the last entry."""
        schedule = self.throttle_backoff_seconds
        return schedule[min(attempt - 1, len(schedule) - 1)]

    def timeout_backoff(self, attempt: int) -> float:
        return self.timeout_backoff_seconds * attempt


class BatchProgress(BaseModel, frozen=True):
    completed: int
    failed: int
    throttled: int
    total: int
    phase: BatchPhase = "collecting"

    @property
    def resolved(self) -> int:
        return self.completed + self.failed


class BatchSummary(BaseModel, frozen=True):
    """Counts for a finished (or cancelled) batch."""

    requested: int
    completed: int
    failed: int
    abandoned: int
    throttled: int
    cancelled: bool = False
    requests_with_tool_use: int = 0
    total_tool_calls: int = 0
    unique_tool_names: list[str] = Field(default_factory=list)
    elapsed_seconds: float = 0.0


class BatchResult(BaseModel, frozen=True):
    """Responses in submission order plus summary and throttling statistics."""

    responses: list[StructuredResponse]
    summary: BatchSummary
    throttling_stats: ThrottlingStats


class RequestSender(Protocol):
    """Issues the request under evaluation once.

    The return value may be any shape normalize_response accepts.
    """

    async def send(self, request_index: int) -> object: ...


class BatchListener(Protocol):
    """Receives live batch updates in the order they happen."""

    def on_response(self, response: StructuredResponse) -> None: ...

    def on_progress(self, progress: BatchProgress) -> None: ...

    def on_throttling(self, event: ThrottlingEvent) -> None: ...
