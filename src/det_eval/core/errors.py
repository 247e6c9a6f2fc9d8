"""Base exception class for all det-eval-specific errors."""


class DetEvalError(Exception):
    """Base class for all det-eval errors."""

    def __init__(self, message: str, retriable: bool = False) -> None:
        super().__init__(message)
        self.retriable = retriable
