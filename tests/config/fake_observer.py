"""FakeConfigObserver — records config domain events for assertion in tests."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ConfigLoadedEvent:
    name: str
    version: str


@dataclass(frozen=True)
class TemperatureWarningEvent:
    temperature: float


class FakeConfigObserver:
    """Records every config event; satisfies ConfigObserver structurally."""

    def __init__(self) -> None:
        self.loaded: list[ConfigLoadedEvent] = []
        self.model_temperature_warnings: list[TemperatureWarningEvent] = []
        self.grader_temperature_warnings: list[TemperatureWarningEvent] = []
        self.grader_disabled_count = 0

    def config_loaded(self, name: str, version: str) -> None:
        self.loaded.append(ConfigLoadedEvent(name=name, version=version))

    def config_model_temperature_warning(self, temperature: float) -> None:
        self.model_temperature_warnings.append(
            TemperatureWarningEvent(temperature=temperature)
        )

    def config_grader_temperature_warning(self, temperature: float) -> None:
        self.grader_temperature_warnings.append(
            TemperatureWarningEvent(temperature=temperature)
        )

    def config_grader_disabled(self) -> None:
        self.grader_disabled_count += 1
