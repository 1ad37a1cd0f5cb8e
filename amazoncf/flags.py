"""Flag definitions and the options bag handed to a driver.

Drivers describe their configuration as a sequence of flags; the host
tool collects values for them (command line, environment, config files)
and passes them back through a DriverOptions implementation.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

from .exceptions import ConfigurationError

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"", "0", "false", "no", "off"})


@dataclass(frozen=True, slots=True)
class StringFlag:
    """A flag carrying a string value."""

    name: str
    usage: str
    value: str = ""
    env_var: str | None = None

    @property
    def default(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class BoolFlag:
    """A flag that is either present (True) or absent (False)."""

    name: str
    usage: str
    env_var: str | None = None

    @property
    def default(self) -> bool:
        return False


type Flag = StringFlag | BoolFlag


class DriverOptions(Protocol):
    """Read access to the values collected for a driver's flags."""

    def string(self, key: str) -> str: ...
    def boolean(self, key: str) -> bool: ...


def parse_bool(value: object) -> bool:
    """Interpret config and environment values as booleans."""
    match value:
        case bool():
            return value
        case None:
            return False
        case int():
            return value != 0
        case str() if value.strip().lower() in _TRUTHY:
            return True
        case str() if value.strip().lower() in _FALSY:
            return False
        case _:
            raise ValueError(f"Not a boolean value: {value!r}")


class Options:
    """DriverOptions backed by a plain mapping of flag name to value."""

    def __init__(self, values: Mapping[str, object] | None = None) -> None:
        self._values = dict(values or {})

    def __repr__(self) -> str:
        return f"Options({self._values!r})"

    def string(self, key: str) -> str:
        value = self._values.get(key)
        return "" if value is None else str(value)

    def boolean(self, key: str) -> bool:
        try:
            return parse_bool(self._values.get(key))
        except ValueError as e:
            raise ConfigurationError(f"Invalid value for --{key}: {e}") from e
