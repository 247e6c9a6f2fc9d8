"""ModelInvoker Protocol — structural interface for inference endpoints."""

from collections.abc import Callable
from typing import Protocol, TypeAlias, runtime_checkable

from det_eval.invoker.domain.request import InvocationRequest, InvocationResult

TokenCallback: TypeAlias = Callable[[str], None]


class ModelInvoker(Protocol):
    """Single request/response call to a hosted model.

    Implementations raise ThrottlingError, RequestTimeoutError or
    NonRetryableError so callers can classify failures without inspecting
    provider-specific exceptions.
    """

    async def invoke(self, request: InvocationRequest) -> InvocationResult: ...


@runtime_checkable
class StreamingModelInvoker(ModelInvoker, Protocol):
    """A ModelInvoker that can also stream tokens as they arrive."""

    async def invoke_stream(
        self, request: InvocationRequest, on_token: TokenCallback
    ) -> InvocationResult: ...
