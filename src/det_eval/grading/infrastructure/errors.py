"""Error types raised while grading."""

from det_eval.core.errors import DetEvalError


class GradingError(DetEvalError):
    """Raised when a grading tier cannot produce a result."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Failed to grade responses: {reason}")


class InsufficientDataError(DetEvalError):
    """Raised when too few valid responses exist to grade."""

    def __init__(self, valid: int, required: int, detail: str = "") -> None:
        self.valid = valid
        self.required = required
        message = (
            f"Failed to grade responses: {valid} valid responses, "
            f"at least {required} required"
        )
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
