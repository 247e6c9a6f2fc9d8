"""Evaluation settings — read once at evaluation start."""

from pydantic import BaseModel, Field


class EvaluationSettings(BaseModel, frozen=True):
    """Settings snapshot for one determinism evaluation.

    The defaults favour staying under provider rate limits over throughput:
    one request in flight, a fixed pause between requests, and a short
    exponential schedule for throttled retries.
    """

    test_count: int = Field(default=10, ge=1)
    max_retry_attempts: int = Field(default=3, ge=1)
    enable_throttling_alerts: bool = True
    max_concurrent: int = Field(default=1, ge=1)
    request_delay_seconds: float = Field(default=2.0, ge=0.0)
    request_timeout_seconds: float = Field(default=60.0, gt=0.0)
    throttle_backoff_seconds: list[float] = Field(
        default_factory=lambda: [5.0, 10.0, 20.0], min_length=1
    )
    timeout_backoff_seconds: float = Field(default=5.0, ge=0.0)
    min_responses_for_grading: int = Field(default=2, ge=1)
    max_tool_iterations: int = Field(default=10, ge=1)
