"""FakeModelInvoker — scripted ModelInvoker implementation for use in tests."""

import asyncio

from det_eval.invoker.domain.invoker import TokenCallback
from det_eval.invoker.domain.request import InvocationRequest, InvocationResult


class FakeModelInvoker:
    """Satisfies the ModelInvoker protocol with canned outcomes.

    Each call consumes the next entry of side_effects: an InvocationResult is
    returned, an exception is raised. When the list runs out, ``default`` is
    returned for every further call. Every request is recorded. With
    delay_seconds set, each call sleeps that long before answering.
    """

    def __init__(
        self,
        side_effects: list[InvocationResult | Exception] | None = None,
        default: InvocationResult | None = None,
        delay_seconds: float = 0.0,
    ) -> None:
        self._side_effects = list(side_effects or [])
        self._default = default or InvocationResult(text="Yes")
        self._delay_seconds = delay_seconds
        self.requests: list[InvocationRequest] = []

    @property
    def call_count(self) -> int:
        return len(self.requests)

    async def invoke(self, request: InvocationRequest) -> InvocationResult:
        self.requests.append(request)
        if self._delay_seconds:
            await asyncio.sleep(self._delay_seconds)
        if self._side_effects:
            outcome = self._side_effects.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        return self._default


class FakeStreamingModelInvoker(FakeModelInvoker):
    """FakeModelInvoker that also streams its text one word at a time."""

    def __init__(
        self,
        side_effects: list[InvocationResult | Exception] | None = None,
        default: InvocationResult | None = None,
    ) -> None:
        super().__init__(side_effects=side_effects, default=default)
        self.stream_calls = 0

    async def invoke_stream(
        self, request: InvocationRequest, on_token: TokenCallback
    ) -> InvocationResult:
        self.stream_calls += 1
        result = await self.invoke(request=request)
        for word in result.text.split(" "):
            on_token(word)
        return result
