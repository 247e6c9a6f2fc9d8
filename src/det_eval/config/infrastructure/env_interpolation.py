"""${ENV_VAR} substitution over raw config data, tracking where each reference sits."""

import os
import re
from collections.abc import Iterator
from typing import TypeAlias

# ${NAME} or ${NAME:-fallback}; a fallback makes the variable optional.
_ENV_REFERENCE = re.compile(
    r"\$\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::-(?P<fallback>[^}]*))?\}"
)

RawValue: TypeAlias = (
    str | int | float | bool | None | list["RawValue"] | dict[str, "RawValue"]
)


def missing_env_vars(data: RawValue) -> dict[str, list[str]]:
    """
    Map every unset, fallback-less variable to the config key paths using it.

    Paths read like "model.model" or "request.tools[0].description"; a value
    at the document root has the path "<root>". Variables keep the order in
    which they first appear so the caller can report them all at once.
    """
    missing: dict[str, list[str]] = {}
    for path, text in _strings(data=data, path=""):
        for match in _ENV_REFERENCE.finditer(text):
            name = match.group("name")
            if name in os.environ or match.group("fallback") is not None:
                continue
            locations = missing.setdefault(name, [])
            if path not in locations:
                locations.append(path)
    return missing


def interpolate(data: RawValue) -> RawValue:
    """
    Return a copy of data with every reference replaced by its value.

    Check `missing_env_vars` first; an unset variable without a fallback
    raises KeyError here.
    """
    if isinstance(data, str):
        return _ENV_REFERENCE.sub(_resolve, data)
    if isinstance(data, list):
        return [interpolate(item) for item in data]
    if isinstance(data, dict):
        return {key: interpolate(value) for key, value in data.items()}
    return data


def _resolve(match: re.Match[str]) -> str:
    fallback = match.group("fallback")
    if fallback is None:
        return os.environ[match.group("name")]
    return os.environ.get(match.group("name"), fallback)


def _strings(data: RawValue, path: str) -> Iterator[tuple[str, str]]:
    if isinstance(data, str):
        yield path or "<root>", data
    elif isinstance(data, list):
        for index, item in enumerate(data):
            yield from _strings(data=item, path=f"{path}[{index}]")
    elif isinstance(data, dict):
        for key, value in data.items():
            yield from _strings(data=value, path=f"{path}.{key}" if path else str(key))
