"""Error types raised by the evaluation coordinator and export I/O."""

from pathlib import Path

from det_eval.core.errors import DetEvalError


class EvaluationNotFoundError(DetEvalError):
    """Raised when no evaluation is registered under the given id."""

    def __init__(self, evaluation_id: str) -> None:
        super().__init__(f"Failed to find evaluation: '{evaluation_id}' is not registered")


class EvaluationStateError(DetEvalError):
    """Raised when an operation is not allowed in the evaluation's current phase."""

    def __init__(self, evaluation_id: str, phase: str, action: str) -> None:
        self.phase = phase
        super().__init__(
            f"Failed to {action}: evaluation '{evaluation_id}' is in phase '{phase}'"
        )


class ExportReadError(DetEvalError):
    """Raised when an export file cannot be read or does not validate."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Failed to read export '{path}': {reason}")
