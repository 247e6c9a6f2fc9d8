"""Error types raised by tool execution infrastructure."""

from det_eval.core.errors import DetEvalError


class UnknownToolError(DetEvalError):
    """Raised when the model requests a tool that is not registered."""

    def __init__(self, tool_name: str) -> None:
        self.tool_name = tool_name
        super().__init__(f"Failed to execute tool: '{tool_name}' is not registered")


class ToolExecutionError(DetEvalError):
    """Raised when a registered tool handler fails."""

    def __init__(self, tool_name: str, reason: str) -> None:
        self.tool_name = tool_name
        self.reason = reason
        super().__init__(f"Failed to execute tool '{tool_name}': {reason}")


class ToolModuleError(DetEvalError):
    """Raised when a tools module cannot be imported or does not register tools."""

    def __init__(self, module: str, reason: str) -> None:
        super().__init__(f"Failed to load tools module '{module}': {reason}")
