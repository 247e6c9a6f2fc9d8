"""Tests for grade thresholds and the grader prompt."""

import pytest

from det_eval.grading.application.prompt import MAX_PROMPT_CHARS, build_grader_prompt
from det_eval.grading.domain.grader import GradingContext
from det_eval.grading.domain.report import score_to_grade
from det_eval.invoker.domain.message import ToolUse
from det_eval.scheduling.domain.response import StructuredResponse


class TestScoreToGrade:
    @pytest.mark.parametrize(
        ("score", "grade"),
        [(100, "A"), (90, "A"), (89, "B"), (70, "B"), (69, "C"), (50, "C"), (30, "D"), (29, "F"), (0, "F")],
    )
    def test_thresholds(self, score: int, grade: str) -> None:
        assert score_to_grade(score) == grade


class TestBuildGraderPrompt:
    def test_embeds_every_response_and_tool_call(self) -> None:
        responses = [
            StructuredResponse(text="Yes"),
            StructuredResponse(
                text="Checking",
                tool_calls=[ToolUse(id="c1", name="lookup_order", input={"id": 7})],
            ),
        ]

        prompt = build_grader_prompt(
            responses=responses,
            context=GradingContext(user_prompt="Refund?", tool_mode="detect"),
        )

        assert "Refund?" in prompt
        assert "Tool mode: detect" in prompt
        assert "these 2 responses" in prompt
        assert "--- Response 1 ---\nYes" in prompt
        assert '- lookup_order({"id": 7})' in prompt

    def test_truncated_to_limit(self) -> None:
        responses = [StructuredResponse(text="x" * 60_000) for _ in range(3)]

        prompt = build_grader_prompt(responses=responses, context=GradingContext())

        assert len(prompt) == MAX_PROMPT_CHARS
