"""Tests for the config domain models and the mode compatibility matrix."""

import pytest
from pydantic import ValidationError

from det_eval.config.domain.config import EvalConfig
from det_eval.config.domain.mode import ModeCompatibilityError, check_mode_compatibility
from det_eval.config.domain.model import GraderConfig, ModelConfig
from det_eval.config.domain.request import RequestConfig, ToolSpecConfig
from det_eval.config.domain.settings import EvaluationSettings


def _make_config(
    tool_mode: str = "none",
    streaming: bool = False,
    tools: list[ToolSpecConfig] | None = None,
) -> EvalConfig:
    return EvalConfig(
        name="refund-policy",
        version="1",
        model=ModelConfig(model="gpt-4o-mini"),
        request=RequestConfig(
            user_prompt="Should this refund be approved?",
            tool_mode=tool_mode,
            streaming=streaming,
            tools=tools or [],
        ),
    )


class TestEvaluationSettingsDefaults:
    """Defaults favour staying under provider rate limits."""

    def test_defaults(self) -> None:
        settings = EvaluationSettings()

        assert settings.test_count == 10
        assert settings.max_retry_attempts == 3
        assert settings.max_concurrent == 1
        assert settings.request_delay_seconds == 2.0
        assert settings.throttle_backoff_seconds == [5.0, 10.0, 20.0]
        assert settings.min_responses_for_grading == 2

    def test_rejects_zero_test_count(self) -> None:
        with pytest.raises(ValidationError):
            EvaluationSettings(test_count=0)

    def test_rejects_empty_backoff_schedule(self) -> None:
        with pytest.raises(ValidationError):
            EvaluationSettings(throttle_backoff_seconds=[])

    def test_is_frozen(self) -> None:
        settings = EvaluationSettings()
        with pytest.raises(ValidationError):
            settings.test_count = 5  # type: ignore[misc]


class TestGraderConfig:
    def test_cache_disabled_by_default(self) -> None:
        assert GraderConfig(model="gpt-4o").cache_ttl_seconds == 0.0

    def test_rejects_empty_model(self) -> None:
        with pytest.raises(ValidationError):
            GraderConfig(model="")


class TestModeCompatibility:
    """Only the supported tool_mode x streaming combinations are accepted."""

    @pytest.mark.parametrize(
        ("tool_mode", "streaming", "tool_count"),
        [
            ("none", False, 0),
            ("none", True, 0),
            ("detect", False, 1),
            ("detect", True, 2),
            ("execute", False, 1),
        ],
    )
    def test_supported_combinations(
        self, tool_mode: str, streaming: bool, tool_count: int
    ) -> None:
        check_mode_compatibility(
            tool_mode=tool_mode, streaming=streaming, tool_count=tool_count
        )

    def test_execute_with_streaming_rejected(self) -> None:
        with pytest.raises(ModeCompatibilityError, match="streaming"):
            check_mode_compatibility(tool_mode="execute", streaming=True, tool_count=1)

    @pytest.mark.parametrize("tool_mode", ["detect", "execute"])
    def test_tool_modes_require_a_catalog(self, tool_mode: str) -> None:
        with pytest.raises(ModeCompatibilityError, match="at least one tool"):
            check_mode_compatibility(tool_mode=tool_mode, streaming=False, tool_count=0)

    def test_eval_config_rejects_incompatible_mode(self) -> None:
        with pytest.raises(ModeCompatibilityError):
            _make_config(
                tool_mode="execute",
                streaming=True,
                tools=[ToolSpecConfig(name="lookup_order")],
            )

    def test_eval_config_accepts_detect_with_tools(self) -> None:
        config = _make_config(
            tool_mode="detect", tools=[ToolSpecConfig(name="lookup_order")]
        )
        assert config.request.tool_mode == "detect"


class TestToolSpecConfig:
    def test_rejects_invalid_name(self) -> None:
        with pytest.raises(ValidationError):
            ToolSpecConfig(name="not a name")

    def test_default_schema_is_empty_object(self) -> None:
        spec = ToolSpecConfig(name="lookup_order")
        assert spec.input_schema == {"type": "object", "properties": {}}
