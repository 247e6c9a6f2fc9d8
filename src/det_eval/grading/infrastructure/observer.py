"""StructlogGradingObserver — production observer that delegates to structlog."""

import structlog


class StructlogGradingObserver:
    """Logs grading domain events to structlog.

    Does NOT inherit from GradingObserver (structural typing via Protocol).
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def grading_started(self, valid: int, excluded: int) -> None:
        self._log.info("grading.started", valid=valid, excluded=excluded)

    def grading_insufficient_data(self, valid: int, required: int) -> None:
        self._log.warning("grading.insufficient_data", valid=valid, required=required)

    def grading_tier_failed(self, tier: str, reason: str) -> None:
        self._log.warning("grading.tier_failed", tier=tier, reason=reason)

    def grading_completed(self, grade: str | None, score: int, method: str) -> None:
        self._log.info("grading.completed", grade=grade, score=score, method=method)
