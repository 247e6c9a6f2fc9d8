"""BatchScheduler — issues the same request repeatedly under a retry policy."""

import asyncio
import time

from det_eval.scheduling.application.cancellation import (
    CancellationToken,
    TickCallback,
    cancellable_delay,
)
from det_eval.scheduling.application.classify import classify_failure
from det_eval.scheduling.domain.batch import (
    BatchListener,
    BatchPhase,
    BatchProgress,
    BatchResult,
    BatchSummary,
    RequestSender,
    SchedulingPolicy,
)
from det_eval.scheduling.domain.observer import SchedulingObserver
from det_eval.scheduling.domain.response import (
    ABANDON_PERSISTENT_THROTTLING,
    ABANDON_TIMEOUT,
    AbandonReason,
    StructuredResponse,
    normalize_response,
)
from det_eval.scheduling.domain.throttling import ThrottlingEvent, ThrottlingStats


class _NullListener:
    def on_response(self, response: StructuredResponse) -> None:
        pass

    def on_progress(self, progress: BatchProgress) -> None:
        pass

    def on_throttling(self, event: ThrottlingEvent) -> None:
        pass


class _BatchRun:
    """Mutable bookkeeping for one execute() call."""

    def __init__(self, total: int, listener: BatchListener) -> None:
        self.total = total
        self.listener = listener
        self.responses: dict[int, StructuredResponse] = {}
        self.stats = ThrottlingStats()
        self.completed = 0
        self.failed = 0

    def resolve(self, response: StructuredResponse) -> None:
        self.responses[response.request_index] = response
        if response.is_valid:
            self.completed += 1
        else:
            self.failed += 1
        self.listener.on_response(response)
        self.listener.on_progress(self.progress())

    def progress(self, phase: BatchPhase = "collecting") -> BatchProgress:
        return BatchProgress(
            completed=self.completed,
            failed=self.failed,
            throttled=self.stats.throttled_count,
            total=self.total,
            phase=phase,
        )


class BatchScheduler:
    """Runs ``count`` copies of a request with bounded concurrency.

    Requests run in waves of ``max_concurrent``; each wave is a TaskGroup, so
    a wave finishes completely before the inter-request delay and the next
    wave. Each attempt runs under the policy's hard timeout unless it is None.
    Throttled and timed-out requests are retried with backoff and
    abandoned, not raised, when the attempt budget runs out. Any other failure
    fails that request only; the batch always continues.

    Cancellation is cooperative: no new attempt starts once the token is
    cancelled, and backoff delays wake up immediately. Requests already in
    flight are allowed to finish.
    """

    def __init__(self, observer: SchedulingObserver) -> None:
        self._observer = observer

    async def execute(
        self,
        sender: RequestSender,
        count: int,
        policy: SchedulingPolicy,
        cancellation: CancellationToken | None = None,
        listener: BatchListener | None = None,
    ) -> BatchResult:
        """Issue the request ``count`` times and return responses in submission order."""
        token = cancellation or CancellationToken()
        run = _BatchRun(total=count, listener=listener or _NullListener())
        self._observer.batch_started(total=count, max_concurrent=policy.max_concurrent)
        started_at = time.monotonic()

        for wave_start in range(0, count, policy.max_concurrent):
            if token.cancelled:
                break
            if wave_start > 0 and policy.request_delay_seconds > 0:
                if not await cancellable_delay(
                    seconds=policy.request_delay_seconds, token=token
                ):
                    break
            wave_end = min(count, wave_start + policy.max_concurrent)
            async with asyncio.TaskGroup() as tg:
                for request_index in range(wave_start, wave_end):
                    tg.create_task(
                        self._run_request(
                            sender=sender,
                            request_index=request_index,
                            policy=policy,
                            token=token,
                            run=run,
                        )
                    )

        elapsed = time.monotonic() - started_at
        cancelled = token.cancelled and len(run.responses) < count
        if cancelled:
            self._observer.batch_cancelled(completed=len(run.responses), total=count)
        phase: BatchPhase = "cancelled" if cancelled else "completed"
        run.listener.on_progress(run.progress(phase=phase))

        ordered = [run.responses[index] for index in sorted(run.responses)]
        summary = _summarise(
            responses=ordered,
            requested=count,
            stats=run.stats,
            cancelled=cancelled,
            elapsed_seconds=elapsed,
        )
        self._observer.batch_completed(
            completed=summary.completed,
            failed=summary.failed,
            abandoned=summary.abandoned,
            elapsed_seconds=elapsed,
        )
        return BatchResult(responses=ordered, summary=summary, throttling_stats=run.stats)

    async def _run_request(
        self,
        sender: RequestSender,
        request_index: int,
        policy: SchedulingPolicy,
        token: CancellationToken,
        run: _BatchRun,
    ) -> None:
        """Attempt one request until it succeeds, fails or is abandoned.

        Returns without recording anything if cancelled before resolving.
        """
        was_throttled = False
        last_error: str | None = None

        for attempt in range(1, policy.max_retry_attempts + 1):
            if token.cancelled:
                return
            self._observer.request_started(request_index=request_index, attempt=attempt)
            try:
                async with asyncio.timeout(policy.request_timeout_seconds):
                    raw = await sender.send(request_index=request_index)
                response = normalize_response(raw=raw, request_index=request_index)
            except Exception as exc:
                kind = classify_failure(exc=exc)
                last_error = str(exc) or type(exc).__name__
            else:
                self._observer.request_completed(
                    request_index=request_index, attempts=attempt
                )
                run.resolve(
                    response.model_copy(
                        update={
                            "request_index": request_index,
                            "was_throttled": was_throttled,
                            "retry_count": attempt - 1,
                            "last_error": last_error,
                        }
                    )
                )
                return

            if kind == "non_retryable":
                self._observer.request_failed(
                    request_index=request_index, reason=last_error
                )
                run.resolve(
                    StructuredResponse(
                        request_index=request_index,
                        was_failed=True,
                        was_throttled=was_throttled,
                        retry_count=attempt - 1,
                        last_error=last_error,
                    )
                )
                return

            if kind == "throttling":
                was_throttled = True
                backoff = policy.throttle_backoff(attempt=attempt)
                event = ThrottlingEvent(
                    request_index=request_index,
                    attempt=attempt,
                    error=last_error,
                    backoff_seconds=backoff,
                )
                run.stats.record(event=event)
                run.listener.on_throttling(event)
                if attempt == policy.max_retry_attempts:
                    self._abandon(
                        run=run,
                        request_index=request_index,
                        reason=ABANDON_PERSISTENT_THROTTLING,
                        attempts=attempt,
                        last_error=last_error,
                        was_throttled=True,
                    )
                    return
                self._observer.request_throttled(
                    request_index=request_index,
                    attempt=attempt,
                    backoff_seconds=backoff,
                    error=last_error,
                )
            else:
                if attempt == policy.max_retry_attempts:
                    self._abandon(
                        run=run,
                        request_index=request_index,
                        reason=ABANDON_TIMEOUT,
                        attempts=attempt,
                        last_error=last_error,
                        was_throttled=was_throttled,
                    )
                    return
                backoff = policy.timeout_backoff(attempt=attempt)
                self._observer.request_timed_out(
                    request_index=request_index,
                    attempt=attempt,
                    backoff_seconds=backoff,
                )

            if not await cancellable_delay(
                seconds=backoff,
                token=token,
                on_tick=self._ticker(request_index=request_index)
                if policy.enable_throttling_alerts
                else None,
            ):
                return

    def _ticker(self, request_index: int) -> TickCallback:
        def tick(remaining: float) -> None:
            self._observer.backoff_tick(
                request_index=request_index, remaining_seconds=remaining
            )

        return tick

    def _abandon(
        self,
        run: _BatchRun,
        request_index: int,
        reason: AbandonReason,
        attempts: int,
        last_error: str | None,
        was_throttled: bool,
    ) -> None:
        self._observer.request_abandoned(
            request_index=request_index, reason=reason, attempts=attempts
        )
        run.stats.mark_abandoned(request_index=request_index)
        run.resolve(
            StructuredResponse(
                request_index=request_index,
                was_abandoned=True,
                abandon_reason=reason,
                was_throttled=was_throttled,
                retry_count=attempts - 1,
                last_error=last_error,
            )
        )


def _summarise(
    responses: list[StructuredResponse],
    requested: int,
    stats: ThrottlingStats,
    cancelled: bool,
    elapsed_seconds: float,
) -> BatchSummary:
    valid = [r for r in responses if r.is_valid]
    tool_names = {call.name for r in valid for call in r.tool_calls}
    return BatchSummary(
        requested=requested,
        completed=len(valid),
        failed=sum(1 for r in responses if r.was_failed),
        abandoned=sum(1 for r in responses if r.was_abandoned),
        throttled=stats.throttled_count,
        cancelled=cancelled,
        requests_with_tool_use=sum(1 for r in valid if r.uses_tools),
        total_tool_calls=sum(len(r.tool_calls) for r in valid),
        unique_tool_names=sorted(tool_names),
        elapsed_seconds=round(elapsed_seconds, 3),
    )
