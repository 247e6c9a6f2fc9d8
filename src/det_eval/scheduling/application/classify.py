"""Failure classification for the scheduler's retry loop."""

from typing import Literal, TypeAlias

from det_eval.core.errors import DetEvalError
from det_eval.invoker.infrastructure.errors import (
    NonRetryableError,
    RequestTimeoutError,
    ThrottlingError,
    looks_like_throttling,
)

FailureKind: TypeAlias = Literal["throttling", "timeout", "non_retryable"]


def classify_failure(exc: BaseException) -> FailureKind:
    """Map any exception raised by a request onto a retry category.

    Typed invoker errors are trusted as-is. Foreign exceptions are inspected
    for rate-limit wording; everything unrecognised is non-retryable.
    """
    if isinstance(exc, ThrottlingError):
        return "throttling"
    if isinstance(exc, (RequestTimeoutError, TimeoutError)):
        return "timeout"
    if isinstance(exc, NonRetryableError):
        return "non_retryable"
    if isinstance(exc, DetEvalError) and not exc.retriable:
        return "non_retryable"
    if looks_like_throttling(exc):
        return "throttling"
    return "non_retryable"
