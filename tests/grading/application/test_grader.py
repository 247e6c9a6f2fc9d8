"""Tests for ConsistencyGrader and its three-tier fallback."""

import json

from det_eval.config.domain.model import GraderConfig
from det_eval.grading.application.grader import ConsistencyGrader
from det_eval.grading.domain.grader import GradingContext
from det_eval.grading.domain.report import PartialResultInfo
from det_eval.invoker.domain.request import InvocationResult
from det_eval.invoker.infrastructure.errors import ThrottlingError
from det_eval.scheduling.domain.response import StructuredResponse
from tests.grading.fake_observer import FakeGradingObserver
from tests.invoker.fake_invoker import FakeModelInvoker


def _responses(count: int = 5, text: str = "Yes") -> list[object]:
    return [StructuredResponse(text=text, request_index=i) for i in range(count)]


def _context(**overrides: object) -> GradingContext:
    return GradingContext(user_prompt="Approve refund?", **overrides)


def _make_grader(
    answer: InvocationResult | Exception | None = None,
    enabled: bool = True,
) -> tuple[ConsistencyGrader, FakeModelInvoker, FakeGradingObserver]:
    observer = FakeGradingObserver()
    invoker = FakeModelInvoker(side_effects=[answer] if answer is not None else [])
    grader = ConsistencyGrader(
        observer=observer,
        invoker=invoker,
        config=GraderConfig(model="gpt-4o", enabled=enabled),
    )
    return grader, invoker, observer


class TestInsufficientData:
    """Too few valid responses produce an ungraded report, not an exception."""

    async def test_below_minimum(self) -> None:
        grader, invoker, observer = _make_grader()

        report = await grader.grade(responses=_responses(count=1), context=_context())

        assert report.grade is None
        assert report.analysis_method == "insufficient_data"
        assert report.responses_analyzed == 1
        assert invoker.call_count == 0
        assert observer.insufficient == [(1, 2)]

    async def test_invalid_responses_excluded_and_counted(self) -> None:
        grader, _, _ = _make_grader()
        responses = [
            *_responses(count=1),
            StructuredResponse(was_abandoned=True, request_index=1),
            StructuredResponse(was_failed=True, request_index=2),
        ]

        report = await grader.grade(responses=responses, context=_context())

        assert report.analysis_method == "insufficient_data"
        assert report.responses_excluded == 2


class TestLocalTier:
    async def test_small_set_stays_local(self) -> None:
        grader, invoker, _ = _make_grader()

        report = await grader.grade(responses=_responses(count=3), context=_context())

        assert report.analysis_method == "local_statistical"
        assert report.grade == "A"
        assert invoker.call_count == 0

    async def test_local_only_skips_model(self) -> None:
        grader, invoker, _ = _make_grader()

        report = await grader.grade(
            responses=_responses(count=8), context=_context(local_only=True)
        )

        assert report.analysis_method == "local_statistical"
        assert invoker.call_count == 0

    async def test_disabled_grader_stays_local(self) -> None:
        grader, invoker, _ = _make_grader(enabled=False)

        report = await grader.grade(responses=_responses(count=8), context=_context())

        assert report.analysis_method == "local_statistical"
        assert invoker.call_count == 0

    async def test_no_invoker_stays_local(self) -> None:
        grader = ConsistencyGrader(observer=FakeGradingObserver())

        report = await grader.grade(responses=_responses(count=8), context=_context())

        assert report.analysis_method == "local_statistical"
        assert report.score == 100

    async def test_mixed_text_and_structured_inputs(self) -> None:
        grader = ConsistencyGrader(observer=FakeGradingObserver())

        report = await grader.grade(
            responses=["Yes", {"text": "Yes"}, StructuredResponse(text="Yes")],
            context=_context(),
        )

        assert report.responses_analyzed == 3
        assert report.metrics is not None
        assert report.metrics.exact_match_count == 3


class TestDelegation:
    """Larger sets go to the grading model, with fallback on every failure."""

    async def test_json_verdict(self) -> None:
        answer = json.dumps(
            {
                "grade": "B",
                "score": 84,
                "metrics": {"decision_consistency_rate": 0.9},
                "notable_variations": ["wording differs"],
                "notes": "Same decision, varied phrasing.",
            }
        )
        grader, invoker, _ = _make_grader(answer=InvocationResult(text=answer))

        report = await grader.grade(responses=_responses(count=5), context=_context())

        assert report.analysis_method == "grader_json"
        assert report.grade == "B"
        assert report.score == 84
        assert report.grader_model == "gpt-4o"
        assert report.notable_variations == ["wording differs"]
        assert report.metrics is not None
        assert report.metrics.decision_consistency == 0.9
        assert report.metrics.tool_usage_consistency == 1.0
        request = invoker.requests[0]
        assert request.model_id == "gpt-4o"
        assert "--- Response 5 ---" in (request.messages[0].text or "")

    async def test_json_without_score_uses_local_score(self) -> None:
        grader, _, _ = _make_grader(answer=InvocationResult(text='{"grade": "C"}'))

        report = await grader.grade(responses=_responses(count=5), context=_context())

        assert report.grade == "C"
        assert report.score == 100

    async def test_heuristic_fallback(self) -> None:
        grader, _, observer = _make_grader(
            answer=InvocationResult(text="I would say grade: B with score: 75")
        )

        report = await grader.grade(responses=_responses(count=5), context=_context())

        assert report.analysis_method == "grader_heuristic"
        assert report.grade == "B"
        assert report.score == 75
        assert observer.tier_failures[0].tier == "grader_json"

    async def test_unparseable_answer_falls_back_to_local(self) -> None:
        grader, _, observer = _make_grader(
            answer=InvocationResult(text="These look fairly consistent to me.")
        )

        report = await grader.grade(responses=_responses(count=5), context=_context())

        assert report.analysis_method == "local_statistical"
        assert report.grader_error is not None
        assert [f.tier for f in observer.tier_failures] == [
            "grader_json",
            "grader_heuristic",
        ]

    async def test_model_error_falls_back_to_local(self) -> None:
        grader, _, observer = _make_grader(answer=ThrottlingError(reason="429"))

        report = await grader.grade(responses=_responses(count=5), context=_context())

        assert report.analysis_method == "local_statistical"
        assert report.grade == "A"
        assert "429" in (report.grader_error or "")
        assert observer.tier_failures[0].tier == "grader_call"

    async def test_small_set_delegates_when_preference_off(self) -> None:
        grader, invoker, _ = _make_grader(answer=InvocationResult(text='{"grade": "A"}'))

        report = await grader.grade(
            responses=_responses(count=2),
            context=_context(prefer_local_for_small_sets=False),
        )

        assert report.analysis_method == "grader_json"
        assert invoker.call_count == 1


class TestPartialContext:
    async def test_partial_info_carried_into_report(self) -> None:
        partial = PartialResultInfo(
            completed=4, target=10, completion_rate=0.4, quality="fair", confidence="medium"
        )
        grader = ConsistencyGrader(observer=FakeGradingObserver())

        report = await grader.grade(
            responses=_responses(count=4), context=_context(partial=partial, min_responses=1)
        )

        assert report.partial == partial

    async def test_completed_event_emitted(self) -> None:
        observer = FakeGradingObserver()
        grader = ConsistencyGrader(observer=observer)

        await grader.grade(responses=_responses(count=4), context=_context())

        assert observer.completed[0].method == "local_statistical"
        assert observer.completed[0].grade == "A"
