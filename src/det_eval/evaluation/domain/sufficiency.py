"""Whether a partially collected response set is worth grading."""

import math

from pydantic import BaseModel, Field

from det_eval.scheduling.domain.response import StructuredResponse


class SufficiencyAssessment(BaseModel, frozen=True):
    sufficient: bool
    quality: str
    confidence: str
    completion_rate: float
    min_recommended: int
    recommendations: list[str] = Field(default_factory=list)


def assess_partial_data(
    responses: list[StructuredResponse], target: int
) -> SufficiencyAssessment:
    """Classify coverage of valid responses against the requested count.

    >= 80% excellent, >= 60% good, >= 40% fair, and at least 3 responses
    limited. Anything less is insufficient.
    """
    valid = [response for response in responses if response.is_valid]
    count = len(valid)
    min_recommended = max(3, math.ceil(target * 0.3))
    completion_rate = round(count / target, 4) if target else 0.0

    def result(
        sufficient: bool, quality: str, confidence: str, recommendation: str
    ) -> SufficiencyAssessment:
        recommendations = [recommendation]
        if count:
            diversity = len({r.text.strip() for r in valid}) / count
            if diversity > 0.8:
                recommendations.append(
                    "High response diversity detected; useful for determinism analysis"
                )
            elif diversity < 0.3:
                recommendations.append(
                    "Low response diversity; may indicate high determinism"
                )
        return SufficiencyAssessment(
            sufficient=sufficient,
            quality=quality,
            confidence=confidence,
            completion_rate=completion_rate,
            min_recommended=min_recommended,
            recommendations=recommendations,
        )

    if count == 0:
        return result(False, "insufficient", "low", "No responses collected; retry the evaluation")
    if count >= target * 0.8:
        return result(True, "excellent", "high", "Sufficient data for reliable determinism analysis")
    if count >= target * 0.6:
        return result(True, "good", "high", "Good data coverage for determinism analysis")
    if count >= target * 0.4:
        return result(True, "fair", "medium", "Fair data coverage; analysis will be less precise")
    if count >= 3:
        return result(True, "limited", "low", "Limited data; analysis shows basic patterns only")
    return result(
        False,
        "insufficient",
        "low",
        f"Need at least {min_recommended} responses for meaningful analysis",
    )
