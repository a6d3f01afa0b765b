"""Container configuration.

Settings are a frozen dataclass so a container's behavior cannot change
underneath an in-flight resolution. Values can also be read from prefixed
environment variables.

Example:
    >>> settings = ContainerSettings.from_env()  # reads TUMBLER_* variables
    >>> container = Container(settings=settings)
"""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, get_type_hints

from .errors import ConfigurationError

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off"}


@dataclass(frozen=True)
class ContainerSettings:
    """Behavior switches for a container.

    Attributes:
        detect_circular: Fail fast with CircularDependencyError when a
            concrete type is already being built further up the chain
        method_delimiter: Separator between class and method in
            ``call("package.Class@method")`` references
        log_resolutions: Emit a DEBUG record for every resolution
    """

    detect_circular: bool = True
    method_delimiter: str = "@"
    log_resolutions: bool = False

    def __post_init__(self):
        if not self.method_delimiter:
            raise ConfigurationError("method_delimiter must not be empty")

    @classmethod
    def from_env(
        cls, prefix: str = "TUMBLER_", environ: Mapping[str, str] | None = None
    ) -> ContainerSettings:
        """Load settings from environment variables.

        Args:
            prefix: Prefix for variable names (``TUMBLER_DETECT_CIRCULAR``, ...)
            environ: Mapping to read instead of ``os.environ``

        Raises:
            ConfigurationError: If a value cannot be converted
        """
        environ = os.environ if environ is None else environ
        hints = get_type_hints(cls)

        values = {}
        for field in dataclasses.fields(cls):
            variable = f"{prefix}{field.name}".upper()
            if variable in environ:
                values[field.name] = _convert_value(environ[variable], hints[field.name], variable)

        return cls(**values)


def _convert_value(value: str, target_type: Any, path: str) -> Any:
    if target_type is bool:
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ConfigurationError(f"Cannot convert {value!r} to bool at {path}")
    return value
