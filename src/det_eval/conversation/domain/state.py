"""Conversation state, tool-call records and the driver's final result."""

from typing import Literal, TypeAlias

from pydantic import BaseModel, Field

from det_eval.invoker.domain.message import ChatMessage, ToolUse
from det_eval.invoker.domain.usage import UsageMetrics

ConversationStatus: TypeAlias = Literal[
    "awaiting_model",
    "executing_tools",
    "completed",
    "max_iterations_reached",
    "failed",
]


class ToolCallRecord(BaseModel, frozen=True):
    """Outcome of executing one tool call requested by the model."""

    tool_name: str
    call_id: str
    input: dict[str, object] = Field(default_factory=dict)
    success: bool
    result: object | None = None
    error: str | None = None
    iteration: int = Field(ge=1)
    duration_ms: int = Field(default=0, ge=0)


class ConversationState(BaseModel):
    """Mutable state of a single conversation, owned by one driver run."""

    messages: list[ChatMessage] = Field(default_factory=list)
    iteration: int = 0
    max_iterations: int = Field(ge=1)
    pending_tool_calls: list[ToolUse] = Field(default_factory=list)
    completed_tool_calls: list[ToolCallRecord] = Field(default_factory=list)
    status: ConversationStatus = "awaiting_model"
    last_text: str = ""
    input_tokens: int = 0
    output_tokens: int = 0

    def add_usage(self, usage: UsageMetrics | None) -> None:
        if usage is None:
            return
        self.input_tokens += usage.input_tokens or 0
        self.output_tokens += usage.output_tokens or 0


class ConversationResult(BaseModel, frozen=True):
    """What a conversation produced: final text plus every tool call made."""

    text: str
    stop_reason: str
    tool_call_records: list[ToolCallRecord] = Field(default_factory=list)
    iterations: int
    status: ConversationStatus
    usage: UsageMetrics | None = None
