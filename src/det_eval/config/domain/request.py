"""Request configuration — the single input submitted repeatedly."""

from typing import Literal, TypeAlias

from pydantic import BaseModel, Field

ToolMode: TypeAlias = Literal["none", "detect", "execute"]


class ToolSpecConfig(BaseModel, frozen=True):
    """One tool offered to the model, in JSON-schema form."""

    name: str = Field(min_length=1, pattern=r"^[A-Za-z_][A-Za-z0-9_\-]*$")
    description: str = ""
    input_schema: dict[str, object] = Field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )


class RequestConfig(BaseModel, frozen=True):
    system_prompt: str = ""
    user_prompt: str = Field(min_length=1)
    content: str = ""
    tool_mode: ToolMode = "none"
    streaming: bool = False
    tools: list[ToolSpecConfig] = Field(default_factory=list)
