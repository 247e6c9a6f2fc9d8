"""Structlog implementation of the ConfigObserver port."""

import structlog


class StructlogConfigObserver:
    """Delegates config domain events to structlog.

    Satisfies the ConfigObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def config_loaded(self, name: str, version: str) -> None:
        self._log.info("config.loaded", name=name, version=version)

    def config_model_temperature_warning(self, temperature: float) -> None:
        self._log.warning(
            "config.model_temperature_warning",
            temperature=temperature,
            message="Model temperature > 0.0 is expected to lower determinism",
        )

    def config_grader_temperature_warning(self, temperature: float) -> None:
        self._log.warning(
            "config.grader_temperature_warning",
            temperature=temperature,
            message="Grader temperature > 0.0 may produce non-deterministic grades",
        )

    def config_grader_disabled(self) -> None:
        self._log.info(
            "config.grader_disabled",
            message="No grader model configured; local statistical grading only",
        )
