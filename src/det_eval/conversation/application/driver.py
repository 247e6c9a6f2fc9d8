"""ToolConversationDriver — runs a multi-turn tool-calling conversation."""

import asyncio
import json
import time

from det_eval.conversation.domain.executor import ToolExecutor
from det_eval.conversation.domain.observer import ConversationObserver
from det_eval.conversation.domain.state import (
    ConversationResult,
    ConversationState,
    ToolCallRecord,
)
from det_eval.invoker.domain.invoker import ModelInvoker
from det_eval.invoker.domain.message import ChatMessage, ToolSpec, ToolUse
from det_eval.invoker.domain.request import (
    NORMAL_COMPLETION_STOP_REASONS,
    STOP_TOOL_USE,
    InvocationRequest,
    InvocationResult,
)
from det_eval.invoker.domain.usage import UsageMetrics
from det_eval.invoker.infrastructure.errors import RequestTimeoutError

STOP_MAX_ITERATIONS = "max_iterations"


def truncation_marker(max_iterations: int) -> str:
    return f"[Conversation truncated after reaching the maximum of {max_iterations} iterations]"


class ToolConversationDriver:
    """Drives one conversation until the model stops asking for tools.

    Each iteration sends the full history and the tool catalog to the
    invoker; with call_timeout_seconds set, every model call gets its own hard
    timeout. Tool requests are executed through the injected ToolExecutor and
    their results, including failures, are fed back as tool turns. Invoker
    errors propagate and abort the conversation; tool errors never do.
    """

    def __init__(
        self,
        invoker: ModelInvoker,
        executor: ToolExecutor,
        observer: ConversationObserver,
        model_id: str,
        system_prompt: str = "",
        temperature: float = 0.7,
        max_tokens: int = 4000,
        call_timeout_seconds: float | None = None,
    ) -> None:
        self._invoker = invoker
        self._executor = executor
        self._observer = observer
        self._model_id = model_id
        self._system_prompt = system_prompt
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._call_timeout_seconds = call_timeout_seconds

    async def run(
        self,
        initial_prompt: str,
        tool_catalog: list[ToolSpec],
        max_iterations: int,
    ) -> ConversationResult:
        """Run the conversation and return its final text and tool-call records.

        Reaching max_iterations is not an error: the best partial text is
        returned with a truncation marker and status "max_iterations_reached".

        Raises:
            ModelInvocationError: propagated unchanged from the invoker.
            RequestTimeoutError: a single model call exceeded call_timeout_seconds.
        """
        state = ConversationState(
            messages=[ChatMessage(role="user", text=initial_prompt)],
            max_iterations=max_iterations,
        )
        self._observer.conversation_started(
            max_iterations=max_iterations, tool_count=len(tool_catalog)
        )

        try:
            while state.iteration < state.max_iterations:
                state.iteration += 1
                state.status = "awaiting_model"
                self._observer.conversation_iteration_started(iteration=state.iteration)

                result = await self._invoke(
                    request=InvocationRequest(
                        model_id=self._model_id,
                        system_prompt=self._system_prompt,
                        messages=list(state.messages),
                        tool_catalog=tool_catalog,
                        temperature=self._temperature,
                        max_tokens=self._max_tokens,
                    )
                )
                state.add_usage(usage=result.usage)
                if result.text.strip():
                    state.last_text = result.text

                if result.stop_reason in NORMAL_COMPLETION_STOP_REASONS:
                    state.status = "completed"
                    return self._finish(
                        state=state, text=result.text, stop_reason=result.stop_reason
                    )

                if result.stop_reason != STOP_TOOL_USE or not result.tool_calls:
                    state.status = "failed"
                    return self._finish(
                        state=state,
                        text=state.last_text,
                        stop_reason=result.stop_reason,
                    )

                state.status = "executing_tools"
                state.pending_tool_calls = list(result.tool_calls)
                state.messages.append(
                    ChatMessage(
                        role="assistant",
                        text=result.text or None,
                        tool_uses=result.tool_calls,
                    )
                )
                while state.pending_tool_calls:
                    use = state.pending_tool_calls.pop(0)
                    record = await self._execute_tool(use=use, iteration=state.iteration)
                    state.completed_tool_calls.append(record)
                    state.messages.append(
                        ChatMessage(
                            role="tool",
                            tool_use_id=use.id,
                            text=_tool_result_content(record=record),
                            is_error=not record.success,
                        )
                    )
        except Exception:
            state.status = "failed"
            self._observer.conversation_finished(
                status=state.status,
                iterations=state.iteration,
                tool_calls=len(state.completed_tool_calls),
            )
            raise

        state.status = "max_iterations_reached"
        marker = truncation_marker(max_iterations=state.max_iterations)
        text = f"{state.last_text}\n\n{marker}" if state.last_text else marker
        return self._finish(state=state, text=text, stop_reason=STOP_MAX_ITERATIONS)

    async def _invoke(self, request: InvocationRequest) -> InvocationResult:
        try:
            async with asyncio.timeout(self._call_timeout_seconds):
                return await self._invoker.invoke(request=request)
        except TimeoutError as exc:
            raise RequestTimeoutError(
                reason=f"model call exceeded {self._call_timeout_seconds}s"
            ) from exc

    async def _execute_tool(self, use: ToolUse, iteration: int) -> ToolCallRecord:
        start = time.monotonic()
        try:
            outcome = await self._executor.execute(
                tool_name=use.name, parameters=dict(use.input)
            )
        except Exception as exc:
            error = str(exc) or type(exc).__name__
            self._observer.conversation_tool_failed(
                tool_name=use.name, call_id=use.id, iteration=iteration, error=error
            )
            return ToolCallRecord(
                tool_name=use.name,
                call_id=use.id,
                input=use.input,
                success=False,
                error=error,
                iteration=iteration,
                duration_ms=int((time.monotonic() - start) * 1000),
            )

        duration_ms = int((time.monotonic() - start) * 1000)
        if not outcome.success:
            error = outcome.error or "tool reported failure"
            self._observer.conversation_tool_failed(
                tool_name=use.name, call_id=use.id, iteration=iteration, error=error
            )
            return ToolCallRecord(
                tool_name=use.name,
                call_id=use.id,
                input=use.input,
                success=False,
                error=error,
                iteration=iteration,
                duration_ms=duration_ms,
            )

        self._observer.conversation_tool_executed(
            tool_name=use.name,
            call_id=use.id,
            iteration=iteration,
            duration_ms=duration_ms,
        )
        return ToolCallRecord(
            tool_name=use.name,
            call_id=use.id,
            input=use.input,
            success=True,
            result=outcome.result,
            iteration=iteration,
            duration_ms=duration_ms,
        )

    def _finish(
        self, state: ConversationState, text: str, stop_reason: str
    ) -> ConversationResult:
        self._observer.conversation_finished(
            status=state.status,
            iterations=state.iteration,
            tool_calls=len(state.completed_tool_calls),
        )
        usage = None
        if state.input_tokens or state.output_tokens:
            usage = UsageMetrics(
                input_tokens=state.input_tokens,
                output_tokens=state.output_tokens,
                total_tokens=state.input_tokens + state.output_tokens,
            )
        return ConversationResult(
            text=text,
            stop_reason=stop_reason,
            tool_call_records=list(state.completed_tool_calls),
            iterations=state.iteration,
            status=state.status,
            usage=usage,
        )


def _tool_result_content(record: ToolCallRecord) -> str:
    """Serialise a tool outcome as the content of a tool turn."""
    if not record.success:
        return json.dumps({"error": record.error, "tool": record.tool_name})
    if isinstance(record.result, str):
        return record.result
    return json.dumps(record.result, default=str)
