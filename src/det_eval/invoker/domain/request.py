"""InvocationRequest and InvocationResult — the ModelInvoker contract types."""

from pydantic import BaseModel, Field

from det_eval.invoker.domain.message import ChatMessage, ToolSpec, ToolUse
from det_eval.invoker.domain.usage import UsageMetrics

# Stop reasons are normalised by adapters to this vocabulary. Anything else is
# passed through verbatim and treated as unrecognised by the conversation driver.
STOP_END_TURN = "end_turn"
STOP_TOOL_USE = "tool_use"
STOP_MAX_TOKENS = "max_tokens"
STOP_SEQUENCE = "stop_sequence"

NORMAL_COMPLETION_STOP_REASONS = frozenset(
    {STOP_END_TURN, STOP_MAX_TOKENS, STOP_SEQUENCE}
)


class InvocationRequest(BaseModel, frozen=True):
    """Everything needed for one request/response call to the endpoint."""

    model_id: str
    system_prompt: str = ""
    messages: list[ChatMessage] = Field(min_length=1)
    tool_catalog: list[ToolSpec] = Field(default_factory=list)
    temperature: float = 0.7
    max_tokens: int = 4000


class InvocationResult(BaseModel, frozen=True):
    """The endpoint's answer to one InvocationRequest."""

    text: str
    usage: UsageMetrics | None = None
    stop_reason: str = STOP_END_TURN
    tool_calls: list[ToolUse] = Field(default_factory=list)
