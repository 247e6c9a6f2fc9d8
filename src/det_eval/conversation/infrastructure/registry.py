"""ToolRegistry — maps tool names to sync or async Python handlers."""

import importlib
import inspect
from collections.abc import Awaitable, Callable
from typing import TypeAlias

from det_eval.conversation.domain.executor import ToolExecutionResult
from det_eval.conversation.infrastructure.errors import (
    ToolExecutionError,
    ToolModuleError,
    UnknownToolError,
)
from det_eval.invoker.domain.message import ToolSpec

ToolHandler: TypeAlias = Callable[..., object] | Callable[..., Awaitable[object]]

_REGISTER_HOOK = "register_tools"


class ToolRegistry:
    """In-process ToolExecutor backed by registered handlers.

    Handlers receive the model-supplied parameters as keyword arguments.
    Does NOT inherit from ToolExecutor (structural typing via Protocol).
    """

    def __init__(self) -> None:
        self._handlers: dict[str, ToolHandler] = {}

    def register(self, name: str, handler: ToolHandler) -> None:
        if name in self._handlers:
            raise ValueError(f"tool '{name}' is already registered")
        self._handlers[name] = handler

    def names(self) -> list[str]:
        return sorted(self._handlers)

    def covers(self, catalog: list[ToolSpec]) -> list[str]:
        """Return catalog tool names that have no registered handler."""
        return [spec.name for spec in catalog if spec.name not in self._handlers]

    async def execute(
        self, tool_name: str, parameters: dict[str, object]
    ) -> ToolExecutionResult:
        """Run the handler registered under tool_name.

        Raises:
            UnknownToolError: if no handler is registered for tool_name.
            ToolExecutionError: if the handler raises.
        """
        handler = self._handlers.get(tool_name)
        if handler is None:
            raise UnknownToolError(tool_name=tool_name)

        try:
            outcome = handler(**parameters)
            if inspect.isawaitable(outcome):
                outcome = await outcome
        except Exception as exc:
            raise ToolExecutionError(tool_name=tool_name, reason=str(exc)) from exc

        return ToolExecutionResult(success=True, result=outcome)


def load_tool_registry(module_path: str) -> ToolRegistry:
    """Import module_path and let its register_tools(registry) populate a registry.

    Raises:
        ToolModuleError: if the module cannot be imported or lacks the hook.
    """
    try:
        module = importlib.import_module(module_path)
    except ImportError as exc:
        raise ToolModuleError(module=module_path, reason=str(exc)) from exc

    hook = getattr(module, _REGISTER_HOOK, None)
    if not callable(hook):
        raise ToolModuleError(
            module=module_path, reason=f"module defines no {_REGISTER_HOOK}()"
        )

    registry = ToolRegistry()
    hook(registry)
    return registry
