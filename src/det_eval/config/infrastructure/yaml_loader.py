"""YAML config loader — parses, interpolates env vars, validates, and emits observer events."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from det_eval.config.domain.config import EvalConfig
from det_eval.config.domain.observer import ConfigObserver
from det_eval.config.infrastructure.env_interpolation import (
    interpolate,
    missing_env_vars,
)
from det_eval.config.infrastructure.errors import (
    ConfigLoadError,
    ConfigValidationError,
    MissingEnvVarsError,
)


class YamlConfigLoader:
    """Loads, interpolates, validates, and returns an EvalConfig from a YAML file."""

    def __init__(self, observer: ConfigObserver) -> None:
        self._observer = observer

    def load(self, path: Path) -> EvalConfig:
        """
        Load, interpolate, validate, and return an EvalConfig from a YAML file.

        Raises:
            ConfigLoadError: if the file is missing or is not valid YAML.
            MissingEnvVarsError: if any ${ENV_VAR} references are unset (all collected first).
            ConfigValidationError: if the schema is violated.
            ModeCompatibilityError: if tool mode and streaming cannot be combined.
        """
        raw = _parse_yaml(path=path)
        _check_missing_env_vars(raw=raw)
        interpolated = interpolate(raw)
        cfg = _build_config(resolved=interpolated)
        _emit_warnings(cfg=cfg, observer=self._observer)
        self._observer.config_loaded(name=cfg.name, version=cfg.version)
        return cfg


def _parse_yaml(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
    except FileNotFoundError as exc:
        raise ConfigLoadError(path=path) from exc
    except yaml.YAMLError as exc:
        raise ConfigLoadError(path=path, reason="invalid YAML") from exc
    if not isinstance(raw, dict):
        raise ConfigLoadError(path=path, reason="top level must be a mapping")
    return raw


def _check_missing_env_vars(raw: Any) -> None:
    """Raise MissingEnvVarsError naming every unset ${ENV_VAR} and where it is used."""
    missing = missing_env_vars(raw)
    if missing:
        raise MissingEnvVarsError(missing_vars=list(missing), locations=missing)


def _build_config(resolved: Any) -> EvalConfig:
    try:
        return EvalConfig.model_validate(resolved)
    except ValidationError as exc:
        raise ConfigValidationError(str(exc)) from exc


def _emit_warnings(cfg: EvalConfig, observer: ConfigObserver) -> None:
    if cfg.model.temperature > 0.0:
        observer.config_model_temperature_warning(cfg.model.temperature)
    if cfg.grader is None or not cfg.grader.enabled:
        observer.config_grader_disabled()
    elif cfg.grader.temperature > 0.0:
        observer.config_grader_temperature_warning(cfg.grader.temperature)
