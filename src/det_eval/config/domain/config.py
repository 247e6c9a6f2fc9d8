"""Top-level EvalConfig aggregate — the root configuration object."""

from pydantic import BaseModel, Field, model_validator

from det_eval.config.domain.mode import check_mode_compatibility
from det_eval.config.domain.model import GraderConfig, ModelConfig
from det_eval.config.domain.request import RequestConfig
from det_eval.config.domain.settings import EvaluationSettings


class EvalConfig(BaseModel, frozen=True):
    """Root configuration aggregate for a det-eval evaluation run.

    Raises:
        ModeCompatibilityError: on construction, if the request's tool mode,
            streaming flag and tool catalog fall outside the supported matrix.
    """

    name: str = Field(min_length=1)
    version: str = Field(min_length=1)
    model: ModelConfig
    grader: GraderConfig | None = None
    request: RequestConfig
    settings: EvaluationSettings = Field(default_factory=EvaluationSettings)
    tools_module: str | None = None

    @model_validator(mode="after")
    def _check_mode(self) -> "EvalConfig":
        check_mode_compatibility(
            tool_mode=self.request.tool_mode,
            streaming=self.request.streaming,
            tool_count=len(self.request.tools),
        )
        return self
