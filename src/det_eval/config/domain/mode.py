"""Invocation mode compatibility rules.

Two switches shape how each repeated request is issued: the tool mode
(``none``, ``detect`` or ``execute``) and whether the response is streamed.

    tool_mode   streaming=False                 streaming=True
    ---------   -----------------------------   -------------------------------
    none        single invoke                   streamed invoke
    detect      single invoke, calls recorded   streamed invoke, calls recorded
    execute     multi-turn tool conversation    rejected

Combinations outside the table are rejected when the config is built; they
are never downgraded to a neighbouring mode.
"""

from det_eval.core.errors import DetEvalError


class ModeCompatibilityError(DetEvalError):
    """Raised when tool mode, streaming and tool catalog cannot be combined."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to validate invocation mode: {reason}")


def check_mode_compatibility(tool_mode: str, streaming: bool, tool_count: int) -> None:
    """Raise ModeCompatibilityError for any combination outside the matrix."""
    if tool_mode == "execute" and streaming:
        raise ModeCompatibilityError(
            "tool_mode 'execute' cannot be combined with streaming"
        )
    if tool_mode in ("detect", "execute") and tool_count == 0:
        raise ModeCompatibilityError(
            f"tool_mode '{tool_mode}' requires at least one tool in the catalog"
        )
