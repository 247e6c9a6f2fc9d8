"""ConsistencyReport — the graded outcome of a determinism evaluation."""

from typing import Literal, TypeAlias

from pydantic import BaseModel, Field

Grade: TypeAlias = Literal["A", "B", "C", "D", "F"]
AnalysisMethod: TypeAlias = Literal[
    "grader_json", "grader_heuristic", "local_statistical", "insufficient_data"
]

# (minimum score, grade), checked in order.
GRADE_THRESHOLDS: list[tuple[int, Grade]] = [(90, "A"), (70, "B"), (50, "C"), (30, "D")]


def score_to_grade(score: float) -> Grade:
    """Map a 0-100 consistency score to a letter grade."""
    for minimum, grade in GRADE_THRESHOLDS:
        if score >= minimum:
            return grade
    return "F"


class ConsistencyMetrics(BaseModel, frozen=True):
    """Per-dimension consistency, each in [0, 1], plus exact-match counts."""

    tool_usage_consistency: float = Field(ge=0.0, le=1.0)
    decision_consistency: float = Field(ge=0.0, le=1.0)
    semantic_similarity: float = Field(ge=0.0, le=1.0)
    structural_similarity: float = Field(ge=0.0, le=1.0)
    exact_match_count: int = Field(ge=0)
    unique_response_count: int = Field(ge=0)


class VarianceStats(BaseModel, frozen=True):
    response_count: int
    unique_responses: int
    exact_matches: int
    average_length: int
    length_std_dev: float


class PartialResultInfo(BaseModel, frozen=True):
    """Describes a report produced from fewer responses than requested."""

    completed: int
    target: int
    completion_rate: float
    quality: str
    confidence: str


class ConsistencyReport(BaseModel, frozen=True):
    """Grade, score and supporting evidence for one response set.

    grade is None only when analysis_method is "insufficient_data".
    """

    grade: Grade | None
    score: int = Field(ge=0, le=100)
    metrics: ConsistencyMetrics | None = None
    variance: VarianceStats | None = None
    notable_variations: list[str] = Field(default_factory=list)
    notes: str = ""
    analysis_method: AnalysisMethod
    responses_analyzed: int = 0
    responses_excluded: int = 0
    grader_model: str | None = None
    grader_error: str | None = None
    partial: PartialResultInfo | None = None
