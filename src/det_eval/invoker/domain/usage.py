"""UsageMetrics value object — token usage from a model invocation."""

from pydantic import BaseModel, ConfigDict


class UsageMetrics(BaseModel, frozen=True):
    """Immutable value object capturing token usage from a single invocation."""

    model_config = ConfigDict(frozen=True)

    input_tokens: int | None
    output_tokens: int | None
    total_tokens: int | None = None
