"""Error types raised by invoker infrastructure."""

from det_eval.core.errors import DetEvalError

_THROTTLING_MARKERS = ("throttl", "rate limit", "ratelimit", "too many requests")
_THROTTLING_CODES = ("throttlingexception", "toomanyrequestsexception", "429")


class ModelInvocationError(DetEvalError):
    """Raised when the model endpoint cannot be invoked."""

    def __init__(self, reason: str, retriable: bool = False) -> None:
        self.reason = reason
        super().__init__(f"Failed to invoke model: {reason}", retriable=retriable)


class ThrottlingError(ModelInvocationError):
    """The endpoint rejected the request for exceeding its allowed call rate."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason=reason, retriable=True)


class RequestTimeoutError(ModelInvocationError):
    """The call exceeded its hard timeout."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason=reason, retriable=True)


class NonRetryableError(ModelInvocationError):
    """Authentication, validation or any other failure that retrying cannot fix."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason=reason, retriable=False)


def looks_like_throttling(exc: BaseException) -> bool:
    """Return True if a foreign exception reads like a rate-limit rejection.

    Checks the message, the ``code`` attribute and the class name, because
    provider SDKs disagree on where they put the signal.
    """
    message = str(exc).lower()
    code = str(getattr(exc, "code", "") or "").lower()
    name = type(exc).__name__.lower()
    if any(marker in message for marker in _THROTTLING_MARKERS):
        return True
    if any(marker in code for marker in ("throttl",)) or code in _THROTTLING_CODES:
        return True
    return "throttl" in name or name in _THROTTLING_CODES
