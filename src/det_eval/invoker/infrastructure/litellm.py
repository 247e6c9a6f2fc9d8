"""LiteLLMModelInvoker — ModelInvoker implementation using LiteLLM."""

import json
import time
from typing import Any, TypeAlias

import litellm

from det_eval.invoker.domain.invoker import TokenCallback
from det_eval.invoker.domain.message import ChatMessage, ToolSpec, ToolUse
from det_eval.invoker.domain.observer import InvokerObserver
from det_eval.invoker.domain.request import (
    STOP_END_TURN,
    STOP_MAX_TOKENS,
    STOP_TOOL_USE,
    InvocationRequest,
    InvocationResult,
)
from det_eval.invoker.domain.usage import UsageMetrics
from det_eval.invoker.infrastructure.errors import (
    ModelInvocationError,
    NonRetryableError,
    RequestTimeoutError,
    ThrottlingError,
    looks_like_throttling,
)

JsonDict: TypeAlias = dict[str, Any]

_FINISH_REASON_MAP: dict[str, str] = {
    "stop": STOP_END_TURN,
    "end_turn": STOP_END_TURN,
    "tool_calls": STOP_TOOL_USE,
    "function_call": STOP_TOOL_USE,
    "tool_use": STOP_TOOL_USE,
    "length": STOP_MAX_TOKENS,
    "max_tokens": STOP_MAX_TOKENS,
}


class LiteLLMModelInvoker:
    """ModelInvoker that delegates to any provider LiteLLM supports.

    Provider exceptions are translated into ThrottlingError,
    RequestTimeoutError or NonRetryableError at this boundary; nothing
    provider-specific escapes.
    """

    def __init__(self, observer: InvokerObserver) -> None:
        litellm.suppress_debug_info = True
        self._observer = observer

    async def invoke(self, request: InvocationRequest) -> InvocationResult:
        """Invoke the model once and return the normalised result.

        Raises:
            ThrottlingError: the provider rate-limited the call.
            RequestTimeoutError: the provider call timed out.
            NonRetryableError: any other failure, including unparseable output.
        """
        self._observer.invocation_started(
            model=request.model_id, message_count=len(request.messages)
        )
        start = time.monotonic()
        try:
            response = await litellm.acompletion(**_completion_kwargs(request))
        except Exception as exc:
            raise self._translate(request=request, exc=exc) from exc

        result = self._parse(request=request, response=response)
        self._observer.invocation_completed(
            model=request.model_id,
            duration_ms=int((time.monotonic() - start) * 1000),
            stop_reason=result.stop_reason,
        )
        return result

    async def invoke_stream(
        self, request: InvocationRequest, on_token: TokenCallback
    ) -> InvocationResult:
        """Stream the response, calling on_token for each text delta.

        The chunks are reassembled with litellm.stream_chunk_builder so the
        returned result has the same shape as invoke().
        """
        self._observer.invocation_started(
            model=request.model_id, message_count=len(request.messages)
        )
        start = time.monotonic()
        chunks: list[Any] = []
        try:
            stream = await litellm.acompletion(
                **_completion_kwargs(request), stream=True
            )
            async for chunk in stream:
                chunks.append(chunk)
                delta = chunk.choices[0].delta if chunk.choices else None
                token = getattr(delta, "content", None) if delta else None
                if token:
                    on_token(token)
        except Exception as exc:
            raise self._translate(request=request, exc=exc) from exc

        response = litellm.stream_chunk_builder(chunks)
        if response is None:
            error = NonRetryableError(reason="stream produced no chunks")
            self._observer.invocation_failed(
                model=request.model_id, reason=error.reason, retriable=False
            )
            raise error

        result = self._parse(request=request, response=response)
        self._observer.invocation_completed(
            model=request.model_id,
            duration_ms=int((time.monotonic() - start) * 1000),
            stop_reason=result.stop_reason,
        )
        return result

    def _translate(
        self, request: InvocationRequest, exc: Exception
    ) -> ModelInvocationError:
        """Map a provider exception onto the invoker error taxonomy."""
        reason = str(exc) or type(exc).__name__
        error: ModelInvocationError
        if isinstance(exc, (litellm.Timeout, TimeoutError)) or (
            "timeout" in type(exc).__name__.lower()
        ):
            error = RequestTimeoutError(reason=reason)
        elif isinstance(exc, litellm.RateLimitError) or looks_like_throttling(exc):
            error = ThrottlingError(reason=reason)
        else:
            error = NonRetryableError(reason=reason)
        self._observer.invocation_failed(
            model=request.model_id, reason=reason, retriable=error.retriable
        )
        return error

    def _parse(self, request: InvocationRequest, response: Any) -> InvocationResult:
        try:
            choice = response.choices[0]
            message = choice.message
            tool_calls = [
                _parse_tool_call(raw) for raw in (getattr(message, "tool_calls", None) or [])
            ]
            finish_reason = str(getattr(choice, "finish_reason", None) or "stop")
            stop_reason = _FINISH_REASON_MAP.get(finish_reason, finish_reason)
            # Some providers report "stop" even when tool calls are present.
            if tool_calls and stop_reason == STOP_END_TURN:
                stop_reason = STOP_TOOL_USE
            return InvocationResult(
                text=getattr(message, "content", None) or "",
                usage=_parse_usage(getattr(response, "usage", None)),
                stop_reason=stop_reason,
                tool_calls=tool_calls,
            )
        except (AttributeError, IndexError, TypeError, ValueError) as exc:
            reason = f"unparseable model response: {exc}"
            self._observer.invocation_failed(
                model=request.model_id, reason=reason, retriable=False
            )
            raise NonRetryableError(reason=reason) from exc


def _completion_kwargs(request: InvocationRequest) -> JsonDict:
    kwargs: JsonDict = {
        "model": request.model_id,
        "messages": _to_openai_messages(request),
        "temperature": request.temperature,
        "max_tokens": request.max_tokens,
    }
    if request.tool_catalog:
        kwargs["tools"] = [_to_openai_tool(spec) for spec in request.tool_catalog]
    return kwargs


def _to_openai_messages(request: InvocationRequest) -> list[JsonDict]:
    messages: list[JsonDict] = []
    if request.system_prompt.strip():
        messages.append({"role": "system", "content": request.system_prompt})
    for message in request.messages:
        messages.append(_to_openai_message(message))
    return messages


def _to_openai_message(message: ChatMessage) -> JsonDict:
    if message.role == "tool":
        return {
            "role": "tool",
            "tool_call_id": message.tool_use_id,
            "content": message.text or "",
        }
    if message.role == "assistant" and message.tool_uses:
        return {
            "role": "assistant",
            "content": message.text,
            "tool_calls": [
                {
                    "id": use.id,
                    "type": "function",
                    "function": {
                        "name": use.name,
                        "arguments": json.dumps(use.input),
                    },
                }
                for use in message.tool_uses
            ],
        }
    return {"role": message.role, "content": message.text or ""}


def _to_openai_tool(spec: ToolSpec) -> JsonDict:
    return {
        "type": "function",
        "function": {
            "name": spec.name,
            "description": spec.description,
            "parameters": spec.input_schema,
        },
    }


def _parse_tool_call(raw: Any) -> ToolUse:
    function = raw.function
    arguments = function.arguments
    if isinstance(arguments, str):
        parsed = json.loads(arguments) if arguments.strip() else {}
    else:
        parsed = dict(arguments or {})
    if not isinstance(parsed, dict):
        raise ValueError(f"tool arguments for '{function.name}' are not an object")
    return ToolUse(id=str(raw.id), name=str(function.name), input=parsed)


def _parse_usage(raw: Any) -> UsageMetrics | None:
    if raw is None:
        return None
    return UsageMetrics(
        input_tokens=getattr(raw, "prompt_tokens", None),
        output_tokens=getattr(raw, "completion_tokens", None),
        total_tokens=getattr(raw, "total_tokens", None),
    )
