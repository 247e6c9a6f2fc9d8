"""EvaluationState — the single mutable record of one determinism evaluation."""

from datetime import UTC, datetime
from typing import Literal, TypeAlias

from pydantic import BaseModel, Field

from det_eval.config.domain.config import EvalConfig
from det_eval.config.domain.settings import EvaluationSettings
from det_eval.grading.domain.report import ConsistencyReport
from det_eval.scheduling.domain.batch import BatchSummary
from det_eval.scheduling.domain.response import StructuredResponse
from det_eval.scheduling.domain.throttling import ThrottlingStats

EvaluationPhase: TypeAlias = Literal["collecting", "evaluating", "completed", "cancelled", "error"]

TERMINAL_PHASES: frozenset[str] = frozenset({"completed", "cancelled", "error"})


def _now() -> datetime:
    return datetime.now(UTC)


class EvaluationState(BaseModel):
    """Owned and mutated only by the EvaluationCoordinator.

    responses is append-only; abandoned and failed responses stay in it and
    are filtered out only when grading.
    """

    id: str
    config: EvalConfig
    settings: EvaluationSettings
    responses: list[StructuredResponse] = Field(default_factory=list)
    throttling_stats: ThrottlingStats = Field(default_factory=ThrottlingStats)
    phase: EvaluationPhase = "collecting"
    progress: float = Field(default=0.0, ge=0.0, le=100.0)
    completed_requests: int = 0
    total_requests: int = 0
    started_at: datetime = Field(default_factory=_now)
    ended_at: datetime | None = None
    error_message: str | None = None
    report: ConsistencyReport | None = None
    batch_summary: BatchSummary | None = None

    @property
    def is_terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES

    @property
    def valid_responses(self) -> list[StructuredResponse]:
        return [response for response in self.responses if response.is_valid]

    def append_response(self, response: StructuredResponse) -> None:
        self.responses.append(response)
        self.completed_requests = len(self.responses)
