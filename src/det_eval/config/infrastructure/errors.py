"""Error types raised by config infrastructure."""

from pathlib import Path

from det_eval.core.errors import DetEvalError


class MissingEnvVarsError(DetEvalError):
    """Raised when one or more required environment variables are not set."""

    def __init__(
        self,
        missing_vars: list[str],
        locations: dict[str, list[str]] | None = None,
    ) -> None:
        self.missing_vars = missing_vars
        self.locations = locations or {}
        var_list = ", ".join(
            _describe(name=name, paths=self.locations.get(name, []))
            for name in sorted(missing_vars)
        )
        super().__init__(
            f"Failed to load config: missing environment variables: {var_list}"
        )


class ConfigValidationError(DetEvalError):
    """Raised when the loaded config fails schema or semantic validation."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to validate config: {reason}")


class ConfigLoadError(DetEvalError):
    """Raised when the config file cannot be opened or parsed."""

    def __init__(self, path: Path, reason: str = "file not found") -> None:
        super().__init__(f"Failed to load config: {reason}: {path}")


def _describe(name: str, paths: list[str]) -> str:
    if not paths:
        return name
    return f"{name} (at {', '.join(paths)})"
