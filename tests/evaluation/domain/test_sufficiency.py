"""Tests for partial-data sufficiency assessment."""

import pytest

from det_eval.evaluation.domain.sufficiency import assess_partial_data
from det_eval.scheduling.domain.response import StructuredResponse


def _valid(count: int, distinct: bool = False) -> list[StructuredResponse]:
    return [
        StructuredResponse(text=f"answer {i}" if distinct else "Yes", request_index=i)
        for i in range(count)
    ]


class TestAssessPartialData:
    @pytest.mark.parametrize(
        ("count", "quality", "confidence"),
        [
            (8, "excellent", "high"),
            (6, "good", "high"),
            (4, "fair", "medium"),
            (3, "limited", "low"),
        ],
    )
    def test_quality_bands(self, count: int, quality: str, confidence: str) -> None:
        assessment = assess_partial_data(responses=_valid(count), target=10)

        assert assessment.sufficient is True
        assert assessment.quality == quality
        assert assessment.confidence == confidence
        assert assessment.completion_rate == count / 10

    def test_two_responses_insufficient(self) -> None:
        assessment = assess_partial_data(responses=_valid(2), target=10)

        assert assessment.sufficient is False
        assert assessment.min_recommended == 3

    def test_no_responses(self) -> None:
        assessment = assess_partial_data(responses=[], target=10)

        assert assessment.sufficient is False
        assert assessment.completion_rate == 0.0

    def test_invalid_responses_do_not_count(self) -> None:
        responses = [*_valid(2), StructuredResponse(was_abandoned=True, request_index=5)]

        assert assess_partial_data(responses=responses, target=10).sufficient is False

    def test_min_recommended_scales_with_target(self) -> None:
        assert assess_partial_data(responses=[], target=50).min_recommended == 15

    def test_diversity_recommendations(self) -> None:
        low = assess_partial_data(responses=_valid(5), target=10)
        high = assess_partial_data(responses=_valid(5, distinct=True), target=10)

        assert any("Low response diversity" in r for r in low.recommendations)
        assert any("High response diversity" in r for r in high.recommendations)
