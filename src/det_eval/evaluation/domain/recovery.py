"""Recovery options offered for an unfinished or failed evaluation."""

from typing import Literal, TypeAlias

from pydantic import BaseModel

from det_eval.evaluation.domain.state import EvaluationState

RecoveryAction: TypeAlias = Literal["retry", "complete_partial", "modify_settings", "export_data"]
RecoveryPriority: TypeAlias = Literal["high", "medium", "low"]

# Fewest valid responses worth offering partial completion for.
MIN_RESPONSES_FOR_PARTIAL = 3


class RecoveryOption(BaseModel, frozen=True):
    action: RecoveryAction
    label: str
    description: str
    priority: RecoveryPriority


def recovery_options(state: EvaluationState) -> list[RecoveryOption]:
    """List what the caller can do next with this evaluation.

    Retrying and retrying with different settings are always offered.
    Partial completion needs at least three valid responses; exporting needs
    at least one collected response.
    """
    valid = len(state.valid_responses)
    options = [
        RecoveryOption(
            action="retry",
            label="Retry evaluation",
            description="Start the evaluation again from the beginning",
            priority="medium",
        )
    ]
    if valid >= MIN_RESPONSES_FOR_PARTIAL:
        options.append(
            RecoveryOption(
                action="complete_partial",
                label=f"Complete with {valid} responses",
                description="Analyze the responses collected so far",
                priority="high",
            )
        )
    options.append(
        RecoveryOption(
            action="modify_settings",
            label="Retry with different settings",
            description="Adjust test count, retry attempts, or other settings",
            priority="medium",
        )
    )
    if state.responses:
        options.append(
            RecoveryOption(
                action="export_data",
                label="Export collected responses",
                description="Save the responses for manual analysis",
                priority="low",
            )
        )
    return options


def can_recover(state: EvaluationState) -> bool:
    """True unless the evaluation was cancelled before anything was collected."""
    return bool(state.responses) or state.phase != "cancelled"
