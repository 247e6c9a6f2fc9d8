"""Tests for recovery options of unfinished evaluations."""

from det_eval.config.domain.config import EvalConfig
from det_eval.config.domain.model import ModelConfig
from det_eval.config.domain.request import RequestConfig
from det_eval.evaluation.domain.recovery import can_recover, recovery_options
from det_eval.evaluation.domain.state import EvaluationState
from det_eval.scheduling.domain.response import StructuredResponse


def _make_state(valid: int = 0, abandoned: int = 0, phase: str = "cancelled") -> EvaluationState:
    config = EvalConfig(
        name="refund-policy",
        version="1",
        model=ModelConfig(model="gpt-4o-mini"),
        request=RequestConfig(user_prompt="Refund?"),
    )
    state = EvaluationState(
        id="abcdef0123456789", config=config, settings=config.settings, total_requests=10
    )
    for index in range(valid):
        state.append_response(StructuredResponse(text="Yes", request_index=index))
    for index in range(valid, valid + abandoned):
        state.append_response(
            StructuredResponse(
                request_index=index, was_abandoned=True, abandon_reason="timeout"
            )
        )
    state.phase = phase  # type: ignore[assignment]
    return state


class TestRecoveryOptions:
    def test_nothing_collected(self) -> None:
        actions = [option.action for option in recovery_options(state=_make_state())]

        assert actions == ["retry", "modify_settings"]

    def test_partial_completion_offered_from_three_valid(self) -> None:
        options = recovery_options(state=_make_state(valid=3))

        assert [option.action for option in options] == [
            "retry",
            "complete_partial",
            "modify_settings",
            "export_data",
        ]
        assert options[1].priority == "high"
        assert options[1].label == "Complete with 3 responses"

    def test_abandoned_responses_do_not_count_toward_partial(self) -> None:
        """Two valid plus four abandoned still falls short of partial completion."""
        actions = [
            option.action
            for option in recovery_options(state=_make_state(valid=2, abandoned=4))
        ]

        assert "complete_partial" not in actions
        assert actions[-1] == "export_data"


class TestCanRecover:
    def test_cancelled_with_nothing_collected(self) -> None:
        assert can_recover(state=_make_state()) is False

    def test_cancelled_with_responses(self) -> None:
        assert can_recover(state=_make_state(valid=1)) is True

    def test_failed_with_nothing_collected(self) -> None:
        assert can_recover(state=_make_state(phase="error")) is True
