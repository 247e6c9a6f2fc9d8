"""Throttling events and the running statistics kept across a batch."""

from datetime import UTC, datetime

from pydantic import BaseModel, Field, computed_field


class ThrottlingEvent(BaseModel, frozen=True):
    """One throttled attempt."""

    request_index: int
    attempt: int
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    error: str
    backoff_seconds: float = 0.0


class ThrottlingStats(BaseModel):
    """Throttled and abandoned request indices plus every throttling event."""

    throttled_requests: list[int] = Field(default_factory=list)
    abandoned_requests: list[int] = Field(default_factory=list)
    events: list[ThrottlingEvent] = Field(default_factory=list)
    total_throttling_attempts: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def throttled_count(self) -> int:
        return len(self.throttled_requests)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def abandoned_count(self) -> int:
        return len(self.abandoned_requests)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_throttling(self) -> bool:
        return self.total_throttling_attempts > 0

    def record(self, event: ThrottlingEvent) -> None:
        self.events.append(event)
        self.total_throttling_attempts += 1
        if event.request_index not in self.throttled_requests:
            self.throttled_requests.append(event.request_index)

    def mark_abandoned(self, request_index: int) -> None:
        if request_index not in self.abandoned_requests:
            self.abandoned_requests.append(request_index)
