"""EvaluationCoordinator — owns evaluation state from collection through grading."""

import time
import uuid
from datetime import UTC, datetime

from det_eval.config.domain.config import EvalConfig
from det_eval.config.domain.mode import ModeCompatibilityError
from det_eval.config.domain.settings import EvaluationSettings
from det_eval.conversation.application.driver import ToolConversationDriver
from det_eval.conversation.domain.executor import ToolExecutor
from det_eval.conversation.domain.observer import ConversationObserver
from det_eval.evaluation.domain import recovery
from det_eval.evaluation.domain.export import EvaluationExport
from det_eval.evaluation.domain.observer import EvaluationObserver
from det_eval.evaluation.domain.recovery import RecoveryOption
from det_eval.evaluation.domain.state import EvaluationPhase, EvaluationState
from det_eval.evaluation.domain.sufficiency import assess_partial_data
from det_eval.evaluation.infrastructure.composite_observer import (
    CompositeEvaluationObserver,
)
from det_eval.evaluation.infrastructure.errors import (
    EvaluationNotFoundError,
    EvaluationStateError,
)
from det_eval.grading.domain.grader import Grader, GradingContext
from det_eval.grading.domain.report import ConsistencyReport, PartialResultInfo
from det_eval.grading.infrastructure.errors import InsufficientDataError
from det_eval.invoker.domain.invoker import ModelInvoker, StreamingModelInvoker
from det_eval.invoker.domain.message import ChatMessage, ToolSpec, compose_user_prompt
from det_eval.invoker.domain.request import InvocationRequest
from det_eval.scheduling.application.cancellation import CancellationToken
from det_eval.scheduling.application.scheduler import BatchScheduler
from det_eval.scheduling.domain.batch import (
    BatchProgress,
    RequestSender,
    SchedulingPolicy,
)
from det_eval.scheduling.domain.response import StructuredResponse
from det_eval.scheduling.domain.throttling import ThrottlingEvent

# Share of the progress bar given to response collection; grading fills the rest.
_COLLECTION_PROGRESS_SHARE = 90.0


class _InvokeSender:
    def __init__(self, invoker: ModelInvoker, request: InvocationRequest) -> None:
        self._invoker = invoker
        self._request = request

    async def send(self, request_index: int) -> object:
        return await self._invoker.invoke(request=self._request)


class _StreamSender:
    def __init__(
        self, invoker: StreamingModelInvoker, request: InvocationRequest
    ) -> None:
        self._invoker = invoker
        self._request = request

    async def send(self, request_index: int) -> object:
        return await self._invoker.invoke_stream(
            request=self._request, on_token=_discard_token
        )


class _ConversationSender:
    def __init__(
        self,
        driver: ToolConversationDriver,
        prompt: str,
        catalog: list[ToolSpec],
        max_iterations: int,
    ) -> None:
        self._driver = driver
        self._prompt = prompt
        self._catalog = catalog
        self._max_iterations = max_iterations

    async def send(self, request_index: int) -> object:
        return await self._driver.run(
            initial_prompt=self._prompt,
            tool_catalog=self._catalog,
            max_iterations=self._max_iterations,
        )


def _discard_token(token: str) -> None:
    pass


def _scheduling_policy(config: EvalConfig) -> SchedulingPolicy:
    policy = SchedulingPolicy.from_settings(settings=config.settings)
    if config.request.tool_mode == "execute":
        # The conversation driver applies the timeout to each model call.
        return policy.model_copy(update={"request_timeout_seconds": None})
    return policy


class _StateListener:
    """Applies live batch updates to an EvaluationState and notifies observers.

    Updates arriving after the state left the collecting phase are dropped,
    so a state finalised by complete_with_partial_data() keeps matching its
    report while requests already in flight finish.
    """

    def __init__(self, state: EvaluationState, observer: EvaluationObserver) -> None:
        self._state = state
        self._observer = observer

    @property
    def _collecting(self) -> bool:
        return self._state.phase == "collecting"

    def on_response(self, response: StructuredResponse) -> None:
        if not self._collecting:
            return
        self._state.append_response(response)
        if response.was_abandoned:
            self._state.throttling_stats.mark_abandoned(
                request_index=response.request_index
            )
        for record in response.tool_call_records:
            self._observer.tool_executed(
                evaluation_id=self._state.id,
                request_index=response.request_index,
                tool_name=record.tool_name,
                success=record.success,
                iteration=record.iteration,
            )

    def on_progress(self, progress: BatchProgress) -> None:
        if not self._collecting:
            return
        if progress.total:
            self._state.progress = round(
                _COLLECTION_PROGRESS_SHARE * progress.resolved / progress.total, 1
            )
        self._observer.evaluation_progress(
            evaluation_id=self._state.id,
            phase=self._state.phase,
            completed=progress.completed,
            failed=progress.failed,
            throttled=progress.throttled,
            total=progress.total,
        )

    def on_throttling(self, event: ThrottlingEvent) -> None:
        if not self._collecting:
            return
        self._state.throttling_stats.record(event=event)
        self._observer.request_throttled(
            evaluation_id=self._state.id,
            request_index=event.request_index,
            attempt=event.attempt,
            backoff_seconds=event.backoff_seconds,
            error=event.error,
        )


class EvaluationCoordinator:
    """Runs determinism evaluations and keeps their state.

    Collection is delegated to the BatchScheduler and grading to the Grader.
    The coordinator is the only writer of each EvaluationState, so a state
    can be exported at any point, including mid-collection, and re-imported
    for re-grading.
    """

    def __init__(
        self,
        invoker: ModelInvoker,
        scheduler: BatchScheduler,
        grader: Grader,
        observer: EvaluationObserver,
        conversation_observer: ConversationObserver,
        tool_executor: ToolExecutor | None = None,
    ) -> None:
        self._invoker = invoker
        self._scheduler = scheduler
        self._grader = grader
        self._observer = CompositeEvaluationObserver(observers=[observer])
        self._conversation_observer = conversation_observer
        self._tool_executor = tool_executor
        self._states: dict[str, EvaluationState] = {}
        self._tokens: dict[str, CancellationToken] = {}

    def add_listener(self, listener: EvaluationObserver) -> None:
        """Register another observer; it receives events after those already registered."""
        self._observer.add(observer=listener)

    def get(self, evaluation_id: str) -> EvaluationState:
        """Return the state registered under evaluation_id.

        Raises:
            EvaluationNotFoundError: if evaluation_id is not registered.
        """
        state = self._states.get(evaluation_id)
        if state is None:
            raise EvaluationNotFoundError(evaluation_id=evaluation_id)
        return state

    def start(self, config: EvalConfig) -> EvaluationState:
        """Register a new evaluation in the collecting phase and return its state.

        Raises:
            ModeCompatibilityError: if the configured mode cannot run with the
                injected invoker or tool executor.
        """
        self._check_capabilities(config=config)
        state = EvaluationState(
            id=str(uuid.uuid4()),
            config=config,
            settings=config.settings,
            total_requests=config.settings.test_count,
        )
        self._states[state.id] = state
        self._tokens[state.id] = CancellationToken()
        return state

    async def evaluate(self, config: EvalConfig) -> EvaluationState:
        """Start and run a new evaluation to completion."""
        state = self.start(config=config)
        return await self.run(evaluation_id=state.id)

    async def run(self, evaluation_id: str) -> EvaluationState:
        """Collect responses for a started evaluation, then grade them.

        A cancelled run returns with phase "cancelled" and whatever responses
        were collected; call complete_with_partial_data() to grade them.

        Raises:
            EvaluationNotFoundError: if evaluation_id is not registered.
            EvaluationStateError: if the evaluation is not freshly started.
        """
        state = self.get(evaluation_id=evaluation_id)
        if state.phase != "collecting" or state.responses:
            raise EvaluationStateError(
                evaluation_id=evaluation_id, phase=state.phase, action="run evaluation"
            )
        token = self._tokens.setdefault(evaluation_id, CancellationToken())
        config = state.config

        self._observer.evaluation_started(
            evaluation_id=state.id,
            config_name=config.name,
            total_requests=state.total_requests,
            tool_mode=config.request.tool_mode,
            max_concurrent=state.settings.max_concurrent,
        )
        started_at = time.monotonic()

        try:
            batch = await self._scheduler.execute(
                sender=self._build_sender(config=config),
                count=state.total_requests,
                policy=_scheduling_policy(config=config),
                cancellation=token,
                listener=_StateListener(state=state, observer=self._observer),
            )
        except Exception as exc:
            state.error_message = str(exc)
            self._set_phase(state=state, phase="error")
            state.ended_at = datetime.now(UTC)
            self._observer.evaluation_failed(evaluation_id=state.id, reason=str(exc))
            raise

        if state.phase != "collecting":
            # Finalised concurrently by complete_with_partial_data(); the batch
            # result also counts responses that arrived after the snapshot.
            return state

        state.responses.sort(key=lambda response: response.request_index)
        state.throttling_stats = batch.throttling_stats
        state.batch_summary = batch.summary

        if token.cancelled:
            self._set_phase(state=state, phase="cancelled")
            state.ended_at = datetime.now(UTC)
            self._observer.evaluation_cancelled(
                evaluation_id=state.id,
                completed=len(state.responses),
                total=state.total_requests,
            )
            return state

        report = await self._grade(
            state=state,
            context=self._grading_context(
                config=config, min_responses=state.settings.min_responses_for_grading
            ),
        )
        self._finish(state=state, report=report, started_at=started_at)
        return state

    def cancel(self, evaluation_id: str) -> EvaluationState:
        """Stop issuing new requests. Collected responses remain available.

        Raises:
            EvaluationNotFoundError: if evaluation_id is not registered.
        """
        state = self.get(evaluation_id=evaluation_id)
        token = self._tokens.get(evaluation_id)
        if token is not None:
            token.cancel()
        return state

    def retry_with_settings(
        self, evaluation_id: str, settings: EvaluationSettings
    ) -> EvaluationState:
        """Cancel an evaluation and start a fresh one from its config with new settings.

        The old state stays registered with whatever it collected. The new
        evaluation is returned in the collecting phase; pass its id to run().

        Raises:
            EvaluationNotFoundError: if evaluation_id is not registered.
        """
        state = self.cancel(evaluation_id=evaluation_id)
        return self.start(config=state.config.model_copy(update={"settings": settings}))

    def recovery_options(self, evaluation_id: str) -> list[RecoveryOption]:
        """What can be done next with an unfinished, cancelled or failed evaluation."""
        return recovery.recovery_options(state=self.get(evaluation_id=evaluation_id))

    def can_recover(self, evaluation_id: str) -> bool:
        return recovery.can_recover(state=self.get(evaluation_id=evaluation_id))

    async def complete_with_partial_data(
        self, evaluation_id: str, reason: str = "user_requested"
    ) -> EvaluationState:
        """Grade whatever was collected for an unfinished, cancelled or failed evaluation.

        Raises:
            EvaluationNotFoundError: if evaluation_id is not registered.
            EvaluationStateError: if the evaluation already completed.
            InsufficientDataError: if too few valid responses were collected.
        """
        state = self.get(evaluation_id=evaluation_id)
        if state.phase in ("completed", "evaluating"):
            raise EvaluationStateError(
                evaluation_id=evaluation_id,
                phase=state.phase,
                action="complete with partial data",
            )

        assessment = assess_partial_data(
            responses=state.responses, target=state.total_requests
        )
        if not assessment.sufficient:
            raise InsufficientDataError(
                valid=len(state.valid_responses),
                required=assessment.min_recommended,
                detail=assessment.recommendations[0],
            )

        token = self._tokens.get(evaluation_id)
        if token is not None:
            token.cancel()

        started_at = time.monotonic()
        partial = PartialResultInfo(
            completed=len(state.valid_responses),
            target=state.total_requests,
            completion_rate=assessment.completion_rate,
            quality=assessment.quality,
            confidence=assessment.confidence,
        )
        report = await self._grade(
            state=state,
            context=self._grading_context(
                config=state.config, min_responses=1, partial=partial
            ),
        )
        state.report = report.model_copy(
            update={
                "notes": (
                    f"{report.notes} Completed with partial data ({reason}): "
                    f"{len(state.responses)} of {state.total_requests} planned responses."
                ).strip()
            }
        )
        self._finish(state=state, report=state.report, started_at=started_at)
        return state

    async def regrade(self, evaluation_id: str, local_only: bool = False) -> EvaluationState:
        """Grade an imported or finished evaluation again.

        Raises:
            EvaluationNotFoundError: if evaluation_id is not registered.
            EvaluationStateError: if the evaluation is still collecting.
        """
        state = self.get(evaluation_id=evaluation_id)
        if not state.is_terminal:
            raise EvaluationStateError(
                evaluation_id=evaluation_id, phase=state.phase, action="regrade"
            )
        started_at = time.monotonic()
        is_partial = len(state.responses) < state.total_requests
        partial = None
        if is_partial:
            assessment = assess_partial_data(
                responses=state.responses, target=state.total_requests
            )
            partial = PartialResultInfo(
                completed=len(state.valid_responses),
                target=state.total_requests,
                completion_rate=assessment.completion_rate,
                quality=assessment.quality,
                confidence=assessment.confidence,
            )
        report = await self._grade(
            state=state,
            context=self._grading_context(
                config=state.config,
                min_responses=1 if is_partial else state.settings.min_responses_for_grading,
                partial=partial,
                local_only=local_only,
            ),
        )
        self._finish(state=state, report=report, started_at=started_at)
        return state

    def export(self, evaluation_id: str) -> EvaluationExport:
        """Snapshot an evaluation in any phase as a replayable export."""
        return EvaluationExport.from_state(state=self.get(evaluation_id=evaluation_id))

    def import_export(self, export: EvaluationExport) -> EvaluationState:
        """Register the evaluation described by an export, replacing any with the same id."""
        state = export.to_state()
        self._states[state.id] = state
        return state

    def _check_capabilities(self, config: EvalConfig) -> None:
        request = config.request
        if request.streaming and not isinstance(self._invoker, StreamingModelInvoker):
            raise ModeCompatibilityError(
                "streaming was requested but the model invoker cannot stream"
            )
        if request.tool_mode == "execute" and self._tool_executor is None:
            raise ModeCompatibilityError(
                "tool_mode 'execute' requires a tool registry to run tools"
            )

    def _build_sender(self, config: EvalConfig) -> RequestSender:
        request = config.request
        prompt = compose_user_prompt(
            user_prompt=request.user_prompt, content=request.content
        )
        catalog = [
            ToolSpec(
                name=tool.name,
                description=tool.description,
                input_schema=tool.input_schema,
            )
            for tool in request.tools
        ]

        if request.tool_mode == "execute":
            if self._tool_executor is None:
                raise ModeCompatibilityError(
                    "tool_mode 'execute' requires a tool registry to run tools"
                )
            driver = ToolConversationDriver(
                invoker=self._invoker,
                executor=self._tool_executor,
                observer=self._conversation_observer,
                model_id=config.model.model,
                system_prompt=request.system_prompt,
                temperature=config.model.temperature,
                max_tokens=config.model.max_tokens,
                call_timeout_seconds=config.settings.request_timeout_seconds,
            )
            return _ConversationSender(
                driver=driver,
                prompt=prompt,
                catalog=catalog,
                max_iterations=config.settings.max_tool_iterations,
            )

        invocation = InvocationRequest(
            model_id=config.model.model,
            system_prompt=request.system_prompt,
            messages=[ChatMessage(role="user", text=prompt)],
            tool_catalog=catalog if request.tool_mode == "detect" else [],
            temperature=config.model.temperature,
            max_tokens=config.model.max_tokens,
        )
        if request.streaming and isinstance(self._invoker, StreamingModelInvoker):
            return _StreamSender(invoker=self._invoker, request=invocation)
        return _InvokeSender(invoker=self._invoker, request=invocation)

    def _grading_context(
        self,
        config: EvalConfig,
        min_responses: int,
        partial: PartialResultInfo | None = None,
        local_only: bool = False,
    ) -> GradingContext:
        return GradingContext(
            user_prompt=config.request.user_prompt,
            system_prompt=config.request.system_prompt,
            tool_mode=config.request.tool_mode,
            min_responses=min_responses,
            prefer_local_for_small_sets=True,
            local_only=local_only,
            partial=partial,
        )

    async def _grade(
        self, state: EvaluationState, context: GradingContext
    ) -> ConsistencyReport:
        self._set_phase(state=state, phase="evaluating")
        self._observer.evaluation_progress(
            evaluation_id=state.id,
            phase=state.phase,
            completed=len(state.valid_responses),
            failed=len(state.responses) - len(state.valid_responses),
            throttled=state.throttling_stats.throttled_count,
            total=state.total_requests,
        )
        return await self._grader.grade(responses=list(state.responses), context=context)

    def _finish(
        self, state: EvaluationState, report: ConsistencyReport, started_at: float
    ) -> None:
        state.report = report
        state.progress = 100.0
        state.ended_at = datetime.now(UTC)
        self._set_phase(state=state, phase="completed")
        self._observer.evaluation_completed(
            evaluation_id=state.id,
            grade=report.grade,
            score=report.score,
            method=report.analysis_method,
            partial=report.partial is not None,
            elapsed_seconds=time.monotonic() - started_at,
        )

    def _set_phase(self, state: EvaluationState, phase: EvaluationPhase) -> None:
        state.phase = phase
        self._observer.evaluation_phase_changed(evaluation_id=state.id, phase=phase)
