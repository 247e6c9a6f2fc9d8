"""Extraction of a verdict from the grading model's free-text answer."""

import json
import re
from collections.abc import Iterator

from pydantic import BaseModel, Field, ValidationError, field_validator

from det_eval.grading.domain.report import Grade
from det_eval.grading.infrastructure.errors import GradingError

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```", re.I)
_OUTER_BRACES = re.compile(r"\{[\s\S]*\}")
_GRADE_TOKEN = re.compile(r"grade[\"'\s:]*([A-F])\b", re.I)
_SCORE_TOKEN = re.compile(r"score[\"'\s:]*(\d{1,3})\b", re.I)


class GraderMetrics(BaseModel, frozen=True):
    decision_consistency_rate: float | None = Field(default=None, ge=0.0, le=1.0)
    structure_consistency_rate: float | None = Field(default=None, ge=0.0, le=1.0)
    semantic_equivalence_rate: float | None = Field(default=None, ge=0.0, le=1.0)
    exact_text_rate: float | None = Field(default=None, ge=0.0, le=1.0)
    n_runs: int | None = None


class GraderVerdict(BaseModel, frozen=True):
    """The grading model's JSON answer. Invalid grade or score become None."""

    grade: Grade | None = None
    score: int | None = None
    metrics: GraderMetrics | None = None
    notable_variations: list[str] = Field(default_factory=list)
    notes: str | None = None
    reasoning: str | None = None

    @field_validator("grade", mode="before")
    @classmethod
    def _normalise_grade(cls, value: object) -> str | None:
        if isinstance(value, str) and value.strip().upper() in {"A", "B", "C", "D", "F"}:
            return value.strip().upper()
        return None

    @field_validator("score", mode="before")
    @classmethod
    def _normalise_score(cls, value: object) -> int | None:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        if 0 <= value <= 100:
            return round(value)
        return None

    @field_validator("notable_variations", mode="before")
    @classmethod
    def _drop_blank_variations(cls, value: object) -> list[str]:
        if not isinstance(value, list):
            return []
        return [item.strip() for item in value if isinstance(item, str) and item.strip()]

    @property
    def summary_notes(self) -> str:
        return (self.notes or self.reasoning or "").strip()


class HeuristicVerdict(BaseModel, frozen=True):
    grade: Grade | None = None
    score: int | None = None


def extract_json(text: str) -> str | None:
    """Find the JSON object in a model answer.

    Candidates are tried in order: a fenced code block, the outermost braces,
    then every brace-balanced block starting on a line that opens with "{".
    The first candidate that decodes to a JSON object wins.
    """
    for candidate in _json_candidates(text):
        try:
            decoded = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(decoded, dict):
            return candidate
    return None


def _json_candidates(text: str) -> Iterator[str]:
    fenced = _FENCED_JSON.search(text)
    if fenced:
        yield fenced.group(1)
    outer = _OUTER_BRACES.search(text)
    if outer:
        yield outer.group(0)
    yield from _balanced_blocks(lines=text.splitlines())


def _balanced_blocks(lines: list[str]) -> Iterator[str]:
    for start, line in enumerate(lines):
        if not line.strip().startswith("{"):
            continue
        depth = 0
        for end in range(start, len(lines)):
            stripped = lines[end].strip()
            depth += stripped.count("{") - stripped.count("}")
            if depth <= 0:
                yield "\n".join(lines[start : end + 1]).strip()
                break


def parse_grader_json(text: str) -> GraderVerdict:
    """Parse and validate the JSON verdict.

    Raises:
        GradingError: if no JSON is found, it does not validate, or it carries
            neither a grade nor a score.
    """
    if not text or not text.strip():
        raise GradingError(reason="grader returned an empty response")
    raw = extract_json(text)
    if raw is None:
        raise GradingError(reason="no JSON object found in grader response")
    try:
        verdict = GraderVerdict.model_validate_json(raw)
    except ValidationError as exc:
        raise GradingError(reason=f"invalid grader JSON: {exc.errors()[0]['msg']}") from exc
    if verdict.grade is None and verdict.score is None:
        raise GradingError(reason="grader JSON has neither a grade nor a score")
    return verdict


def parse_grader_heuristic(text: str) -> HeuristicVerdict:
    """Pick ``grade: X`` and ``score: N`` tokens out of free text.

    Raises:
        GradingError: if neither token is present.
    """
    grade_match = _GRADE_TOKEN.search(text or "")
    score_match = _SCORE_TOKEN.search(text or "")
    score = int(score_match.group(1)) if score_match else None
    if score is not None and score > 100:
        score = None
    grade = grade_match.group(1).upper() if grade_match else None
    if grade is None and score is None:
        raise GradingError(reason="no grade or score found in grader response")
    return HeuristicVerdict(grade=grade, score=score)
