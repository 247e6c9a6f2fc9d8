"""Model and grader configuration models."""

from pydantic import BaseModel, Field


class ModelConfig(BaseModel, frozen=True):
    """The model under evaluation."""

    model: str = Field(min_length=1)
    temperature: float = Field(default=0.7, ge=0.0)
    max_tokens: int = Field(default=4000, ge=1)


class GraderConfig(BaseModel, frozen=True):
    """The model that grades the collected responses."""

    model: str = Field(min_length=1)
    temperature: float = Field(default=0.0, ge=0.0)
    enabled: bool = True
    cache_ttl_seconds: float = Field(default=0.0, ge=0.0)
    cache_capacity: int = Field(default=100, ge=1)
