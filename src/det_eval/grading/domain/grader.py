"""Grader Protocol and the context handed to it."""

from typing import Protocol

from pydantic import BaseModel, Field

from det_eval.grading.domain.report import ConsistencyReport, PartialResultInfo


class GradingContext(BaseModel, frozen=True):
    """What the grader needs to know about the request that was repeated."""

    user_prompt: str = ""
    system_prompt: str = ""
    tool_mode: str = "none"
    min_responses: int = Field(default=2, ge=1)
    prefer_local_for_small_sets: bool = True
    local_only: bool = False
    partial: PartialResultInfo | None = None


class Grader(Protocol):
    """Grades how consistent a set of responses is.

    Never raises for analysis failures; returns an "insufficient_data"
    report when too few valid responses are supplied.
    """

    async def grade(
        self, responses: list[object], context: GradingContext
    ) -> ConsistencyReport: ...
