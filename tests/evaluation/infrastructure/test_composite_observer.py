"""Tests for CompositeEvaluationObserver."""

from det_eval.evaluation.infrastructure.composite_observer import (
    CompositeEvaluationObserver,
)
from tests.evaluation.fake_observer import FakeEvaluationObserver


def _make_composite(
    *observers: FakeEvaluationObserver,
) -> CompositeEvaluationObserver:
    return CompositeEvaluationObserver(observers=list(observers))


class TestCompositeEvaluationObserverFanOut:
    """Every event is forwarded to all observers in order."""

    def test_evaluation_started_forwarded_to_all(self) -> None:
        obs_a = FakeEvaluationObserver()
        obs_b = FakeEvaluationObserver()
        composite = _make_composite(obs_a, obs_b)

        composite.evaluation_started(
            evaluation_id="eval-1",
            config_name="refund-policy",
            total_requests=10,
            tool_mode="none",
            max_concurrent=2,
        )

        assert obs_a.started[0].config_name == "refund-policy"
        assert obs_b.started[0].max_concurrent == 2

    def test_progress_forwarded_with_all_fields(self) -> None:
        obs = FakeEvaluationObserver()
        composite = _make_composite(obs)

        composite.evaluation_progress(
            evaluation_id="eval-1",
            phase="collecting",
            completed=3,
            failed=1,
            throttled=2,
            total=10,
        )

        event = obs.progress[0]
        assert (event.completed, event.failed, event.throttled, event.total) == (3, 1, 2, 10)

    def test_throttling_and_tool_events_forwarded(self) -> None:
        obs = FakeEvaluationObserver()
        composite = _make_composite(obs)

        composite.request_throttled(
            evaluation_id="eval-1",
            request_index=4,
            attempt=2,
            backoff_seconds=10.0,
            error="429",
        )
        composite.tool_executed(
            evaluation_id="eval-1",
            request_index=4,
            tool_name="lookup_order",
            success=False,
            iteration=1,
        )

        assert obs.throttled[0].backoff_seconds == 10.0
        assert obs.tools[0].success is False

    def test_terminal_events_forwarded(self) -> None:
        obs_a = FakeEvaluationObserver()
        obs_b = FakeEvaluationObserver()
        composite = _make_composite(obs_a, obs_b)

        composite.evaluation_phase_changed(evaluation_id="eval-1", phase="evaluating")
        composite.evaluation_completed(
            evaluation_id="eval-1",
            grade="A",
            score=97,
            method="local_statistical",
            partial=False,
            elapsed_seconds=1.5,
        )
        composite.evaluation_cancelled(evaluation_id="eval-2", completed=3, total=10)
        composite.evaluation_failed(evaluation_id="eval-3", reason="boom")

        for obs in (obs_a, obs_b):
            assert obs.phases[0].phase == "evaluating"
            assert obs.completed[0].score == 97
            assert obs.cancelled[0].completed == 3
            assert obs.failed[0].reason == "boom"

    def test_added_observer_receives_later_events(self) -> None:
        first = FakeEvaluationObserver()
        late = FakeEvaluationObserver()
        composite = _make_composite(first)

        composite.evaluation_failed(evaluation_id="eval-1", reason="early")
        composite.add(observer=late)
        composite.evaluation_failed(evaluation_id="eval-1", reason="late")

        assert len(first.failed) == 2
        assert [e.reason for e in late.failed] == ["late"]
