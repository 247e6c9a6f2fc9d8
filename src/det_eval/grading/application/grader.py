"""ConsistencyGrader — grades a response set with a three-tier fallback."""

from det_eval.config.domain.model import GraderConfig
from det_eval.grading.application.local_analysis import LocalAnalysis, analyze
from det_eval.grading.application.parsing import (
    GraderVerdict,
    HeuristicVerdict,
    parse_grader_heuristic,
    parse_grader_json,
)
from det_eval.grading.application.prompt import (
    GRADER_SYSTEM_PROMPT,
    build_grader_prompt,
)
from det_eval.grading.domain.grader import GradingContext
from det_eval.grading.domain.observer import GradingObserver
from det_eval.grading.domain.report import (
    ConsistencyMetrics,
    ConsistencyReport,
    score_to_grade,
)
from det_eval.grading.infrastructure.errors import GradingError, InsufficientDataError
from det_eval.invoker.domain.invoker import ModelInvoker
from det_eval.invoker.domain.message import ChatMessage
from det_eval.invoker.domain.request import InvocationRequest
from det_eval.scheduling.domain.response import StructuredResponse, normalize_response

SMALL_SET_THRESHOLD = 3
_GRADER_MAX_TOKENS = 2000


class ConsistencyGrader:
    """Grades response consistency, delegating to a grading model when possible.

    Tier 1 asks the grading model for a JSON verdict. Tier 2 scrapes
    ``grade:``/``score:`` tokens from whatever it said instead. Tier 3 is the
    local statistical analysis, used when both fail, when no grading model is
    configured, or when the set is small enough that a model call adds
    nothing. grade() never raises for analysis failures.

    Does NOT inherit from Grader (structural typing via Protocol).
    """

    def __init__(
        self,
        observer: GradingObserver,
        invoker: ModelInvoker | None = None,
        config: GraderConfig | None = None,
    ) -> None:
        self._observer = observer
        self._invoker = invoker
        self._config = config

    async def grade(
        self, responses: list[object], context: GradingContext
    ) -> ConsistencyReport:
        """Grade the valid subset of responses.

        Abandoned and failed responses are excluded and counted. Below
        context.min_responses valid responses an "insufficient_data" report
        with no grade is returned.
        """
        normalized = [
            normalize_response(raw=raw, request_index=index)
            for index, raw in enumerate(responses)
        ]
        valid = [response for response in normalized if response.is_valid]
        excluded = len(normalized) - len(valid)

        if len(valid) < context.min_responses:
            self._observer.grading_insufficient_data(
                valid=len(valid), required=context.min_responses
            )
            report = ConsistencyReport(
                grade=None,
                score=0,
                analysis_method="insufficient_data",
                notes=str(
                    InsufficientDataError(valid=len(valid), required=context.min_responses)
                ),
                responses_analyzed=len(valid),
                responses_excluded=excluded,
                partial=context.partial,
            )
            self._observer.grading_completed(
                grade=None, score=0, method=report.analysis_method
            )
            return report

        self._observer.grading_started(valid=len(valid), excluded=excluded)
        local = analyze(responses=valid)

        if not self._should_delegate(valid_count=len(valid), context=context):
            return self._complete(
                self._local_report(
                    local=local, valid=len(valid), excluded=excluded, context=context
                )
            )

        try:
            answer = await self._delegate(responses=valid, context=context)
        except Exception as exc:
            reason = str(exc) or type(exc).__name__
            self._observer.grading_tier_failed(tier="grader_call", reason=reason)
            return self._complete(
                self._local_report(
                    local=local,
                    valid=len(valid),
                    excluded=excluded,
                    context=context,
                    grader_error=reason,
                )
            )

        try:
            verdict = parse_grader_json(text=answer)
        except GradingError as exc:
            self._observer.grading_tier_failed(tier="grader_json", reason=exc.reason)
        else:
            return self._complete(
                self._json_report(
                    verdict=verdict,
                    local=local,
                    valid=len(valid),
                    excluded=excluded,
                    context=context,
                )
            )

        try:
            heuristic = parse_grader_heuristic(text=answer)
        except GradingError as exc:
            self._observer.grading_tier_failed(tier="grader_heuristic", reason=exc.reason)
            return self._complete(
                self._local_report(
                    local=local,
                    valid=len(valid),
                    excluded=excluded,
                    context=context,
                    grader_error=exc.reason,
                )
            )
        return self._complete(
            self._heuristic_report(
                heuristic=heuristic,
                local=local,
                valid=len(valid),
                excluded=excluded,
                context=context,
            )
        )

    def _should_delegate(self, valid_count: int, context: GradingContext) -> bool:
        if self._invoker is None or self._config is None or not self._config.enabled:
            return False
        if context.local_only:
            return False
        return not (
            context.prefer_local_for_small_sets and valid_count <= SMALL_SET_THRESHOLD
        )

    async def _delegate(
        self, responses: list[StructuredResponse], context: GradingContext
    ) -> str:
        if self._invoker is None or self._config is None:
            raise GradingError(reason="no grading model configured")
        result = await self._invoker.invoke(
            request=InvocationRequest(
                model_id=self._config.model,
                system_prompt=GRADER_SYSTEM_PROMPT,
                messages=[
                    ChatMessage(
                        role="user",
                        text=build_grader_prompt(responses=responses, context=context),
                    )
                ],
                temperature=self._config.temperature,
                max_tokens=_GRADER_MAX_TOKENS,
            )
        )
        return result.text

    def _complete(self, report: ConsistencyReport) -> ConsistencyReport:
        self._observer.grading_completed(
            grade=report.grade, score=report.score, method=report.analysis_method
        )
        return report

    def _local_report(
        self,
        local: LocalAnalysis,
        valid: int,
        excluded: int,
        context: GradingContext,
        grader_error: str | None = None,
    ) -> ConsistencyReport:
        notes = (
            f"Local statistical analysis of {valid} responses: "
            f"{local.variance.unique_responses} unique, "
            f"{local.variance.exact_matches} matching the most common answer."
        )
        if grader_error:
            notes += f" Grading model unavailable: {grader_error}"
        return ConsistencyReport(
            grade=score_to_grade(local.score),
            score=local.score,
            metrics=local.metrics,
            variance=local.variance,
            notable_variations=local.notable_variations,
            notes=notes,
            analysis_method="local_statistical",
            responses_analyzed=valid,
            responses_excluded=excluded,
            grader_error=grader_error,
            partial=context.partial,
        )

    def _json_report(
        self,
        verdict: GraderVerdict,
        local: LocalAnalysis,
        valid: int,
        excluded: int,
        context: GradingContext,
    ) -> ConsistencyReport:
        score = verdict.score if verdict.score is not None else local.score
        grade = verdict.grade or score_to_grade(score)
        return ConsistencyReport(
            grade=grade,
            score=score,
            metrics=_merge_metrics(local=local.metrics, verdict=verdict),
            variance=local.variance,
            notable_variations=verdict.notable_variations or local.notable_variations,
            notes=verdict.summary_notes,
            analysis_method="grader_json",
            responses_analyzed=valid,
            responses_excluded=excluded,
            grader_model=self._config.model if self._config else None,
            partial=context.partial,
        )

    def _heuristic_report(
        self,
        heuristic: HeuristicVerdict,
        local: LocalAnalysis,
        valid: int,
        excluded: int,
        context: GradingContext,
    ) -> ConsistencyReport:
        score = heuristic.score if heuristic.score is not None else local.score
        grade = heuristic.grade or score_to_grade(score)
        return ConsistencyReport(
            grade=grade,
            score=score,
            metrics=local.metrics,
            variance=local.variance,
            notable_variations=local.notable_variations,
            notes="Grade taken from the grading model's free-text answer.",
            analysis_method="grader_heuristic",
            responses_analyzed=valid,
            responses_excluded=excluded,
            grader_model=self._config.model if self._config else None,
            partial=context.partial,
        )


def _merge_metrics(local: ConsistencyMetrics, verdict: GraderVerdict) -> ConsistencyMetrics:
    """Prefer the grading model's rates; tool usage always comes from local analysis."""
    rates = verdict.metrics
    if rates is None:
        return local
    return local.model_copy(
        update={
            "decision_consistency": _pick(
                rates.decision_consistency_rate, local.decision_consistency
            ),
            "semantic_similarity": _pick(
                rates.semantic_equivalence_rate, local.semantic_similarity
            ),
            "structural_similarity": _pick(
                rates.structure_consistency_rate, local.structural_similarity
            ),
        }
    )


def _pick(preferred: float | None, fallback: float) -> float:
    return fallback if preferred is None else preferred
