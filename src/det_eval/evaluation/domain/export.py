"""EvaluationExport — the replayable JSON artifact of an evaluation."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from det_eval.config.domain.config import EvalConfig
from det_eval.config.domain.settings import EvaluationSettings
from det_eval.evaluation.domain.state import EvaluationPhase, EvaluationState
from det_eval.grading.domain.report import ConsistencyReport
from det_eval.scheduling.domain.batch import BatchSummary
from det_eval.scheduling.domain.response import StructuredResponse
from det_eval.scheduling.domain.throttling import ThrottlingStats

EXPORT_SCHEMA_VERSION = "1.0"


class EvaluationExport(BaseModel, frozen=True):
    """Everything needed to re-grade or inspect an evaluation later."""

    schema_version: Literal["1.0"] = EXPORT_SCHEMA_VERSION
    evaluation_id: str
    config: EvalConfig
    settings: EvaluationSettings
    phase: EvaluationPhase
    progress: float
    completed_requests: int
    total_requests: int
    responses: list[StructuredResponse] = Field(default_factory=list)
    throttling_stats: ThrottlingStats
    batch_summary: BatchSummary | None = None
    report: ConsistencyReport | None = None
    error_message: str | None = None
    started_at: datetime
    ended_at: datetime | None = None

    @classmethod
    def from_state(cls, state: EvaluationState) -> "EvaluationExport":
        """Snapshot a state; responses are in submission order even mid-collection."""
        return cls(
            evaluation_id=state.id,
            config=state.config,
            settings=state.settings,
            phase=state.phase,
            progress=state.progress,
            completed_requests=state.completed_requests,
            total_requests=state.total_requests,
            responses=sorted(
                state.responses, key=lambda response: response.request_index
            ),
            throttling_stats=state.throttling_stats.model_copy(deep=True),
            batch_summary=state.batch_summary,
            report=state.report,
            error_message=state.error_message,
            started_at=state.started_at,
            ended_at=state.ended_at,
        )

    def to_state(self) -> EvaluationState:
        return EvaluationState(
            id=self.evaluation_id,
            config=self.config,
            settings=self.settings,
            responses=list(self.responses),
            throttling_stats=self.throttling_stats.model_copy(deep=True),
            phase=self.phase,
            progress=self.progress,
            completed_requests=self.completed_requests,
            total_requests=self.total_requests,
            started_at=self.started_at,
            ended_at=self.ended_at,
            error_message=self.error_message,
            report=self.report,
            batch_summary=self.batch_summary,
        )
