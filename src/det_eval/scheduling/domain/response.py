"""ResponseRecord — one collected answer, tagged by shape.

Raw values arrive from the endpoint in several shapes. ``normalize_response``
converts all of them into ``StructuredResponse`` at the ingestion boundary so
downstream code never branches on shape.
"""

from datetime import UTC, datetime
from typing import Annotated, Literal, TypeAlias

from pydantic import BaseModel, Field

from det_eval.conversation.domain.state import ConversationResult, ToolCallRecord
from det_eval.invoker.domain.message import ToolUse
from det_eval.invoker.domain.request import InvocationResult
from det_eval.invoker.domain.usage import UsageMetrics

ABANDON_PERSISTENT_THROTTLING = "persistent_throttling"
ABANDON_TIMEOUT = "timeout"

AbandonReason: TypeAlias = Literal["persistent_throttling", "timeout"]


def _now() -> datetime:
    return datetime.now(UTC)


class TextResponse(BaseModel, frozen=True):
    """A bare text answer with no metadata."""

    kind: Literal["text"] = "text"
    text: str


class StructuredResponse(BaseModel, frozen=True):
    """A collected answer with its tool usage and retry history.

    tool_calls lists what the model asked for; tool_call_records lists what
    was actually executed, and is empty unless tools ran.
    """

    kind: Literal["structured"] = "structured"
    text: str = ""
    usage: UsageMetrics | None = None
    tool_calls: list[ToolUse] = Field(default_factory=list)
    tool_call_records: list[ToolCallRecord] = Field(default_factory=list)
    was_throttled: bool = False
    was_abandoned: bool = False
    was_failed: bool = False
    abandon_reason: AbandonReason | None = None
    last_error: str | None = None
    retry_count: int = Field(default=0, ge=0)
    request_index: int = Field(default=0, ge=0)
    timestamp: datetime = Field(default_factory=_now)
    stop_reason: str | None = None
    iterations: int | None = None

    @property
    def is_valid(self) -> bool:
        """True when the response is usable as grading input."""
        return not (self.was_abandoned or self.was_failed)

    @property
    def uses_tools(self) -> bool:
        return bool(self.tool_calls)


ResponseRecord: TypeAlias = Annotated[
    TextResponse | StructuredResponse, Field(discriminator="kind")
]


def normalize_response(raw: object, request_index: int = 0) -> StructuredResponse:
    """Convert any raw response value into a StructuredResponse.

    Accepts plain strings, dicts, TextResponse, StructuredResponse,
    InvocationResult and ConversationResult.

    Raises:
        TypeError: if raw is none of the accepted shapes.
    """
    if isinstance(raw, StructuredResponse):
        return raw
    if isinstance(raw, TextResponse):
        return StructuredResponse(text=raw.text, request_index=request_index)
    if isinstance(raw, str):
        return StructuredResponse(text=raw, request_index=request_index)
    if isinstance(raw, InvocationResult):
        return StructuredResponse(
            text=raw.text,
            usage=raw.usage,
            tool_calls=raw.tool_calls,
            stop_reason=raw.stop_reason,
            request_index=request_index,
        )
    if isinstance(raw, ConversationResult):
        return StructuredResponse(
            text=raw.text,
            usage=raw.usage,
            tool_calls=[
                ToolUse(id=record.call_id, name=record.tool_name, input=record.input)
                for record in raw.tool_call_records
            ],
            tool_call_records=raw.tool_call_records,
            stop_reason=raw.stop_reason,
            iterations=raw.iterations,
            request_index=request_index,
        )
    if isinstance(raw, dict):
        data = dict(raw)
        data.pop("kind", None)
        if "text" not in data:
            data["text"] = str(data.pop("content", data.pop("response", "")) or "")
        data.setdefault("request_index", request_index)
        return StructuredResponse.model_validate(data)
    raise TypeError(f"cannot normalise response of type {type(raw).__name__}")
