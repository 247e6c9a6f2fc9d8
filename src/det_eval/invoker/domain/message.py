"""Provider-neutral conversation messages, tool specs and tool-use requests."""

from typing import Literal

from pydantic import BaseModel, Field


class ToolSpec(BaseModel, frozen=True):
    """A tool offered to the model: name, description and JSON-schema input."""

    name: str
    description: str = ""
    input_schema: dict[str, object] = Field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )


class ToolUse(BaseModel, frozen=True):
    """One tool invocation requested by the model."""

    id: str
    name: str
    input: dict[str, object] = Field(default_factory=dict)


class ChatMessage(BaseModel, frozen=True):
    """One turn of conversation history.

    For role="assistant": text and/or tool_uses.
    For role="tool": tool_use_id names the request being answered; text holds
    the serialized result (or error payload); is_error flags failures.
    """

    role: Literal["user", "assistant", "tool"]
    text: str | None = None
    tool_uses: list[ToolUse] = Field(default_factory=list)
    tool_use_id: str | None = None
    is_error: bool = False


def compose_user_prompt(user_prompt: str, content: str) -> str:
    """Join the user prompt with optional data to analyze."""
    if content:
        return f"{user_prompt}\n\nData to analyze:\n{content}"
    return user_prompt
