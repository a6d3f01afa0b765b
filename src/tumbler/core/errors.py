"""Exception hierarchy for clear error reporting during resolution.

This module defines the exceptions raised by the Tumbler container. Each
exception type represents a specific failure mode and carries the context
needed to debug it as attributes.

Exception Hierarchy:
    TumblerError: Base exception for all Tumbler errors
    ├── ResolutionError: Service resolution failures
    │   ├── NotInstantiableError: Target has no usable constructor path
    │   │   └── TargetNotFoundError: Target names no locatable class
    │   ├── UnresolvablePrimitiveError: Scalar parameter without a value
    │   └── CircularDependencyError: Circular dependency detected
    ├── RegistrationError: Binding registration failures
    │   └── SelfAliasedError: Alias resolves back to itself
    ├── MissingMethodError: "Class@method" reference without a method
    └── ConfigurationError: Invalid container settings

Example:
    >>> try:
    ...     container.make(ConsumerOne)
    ... except NotInstantiableError as e:
    ...     print(e.target, e.build_stack)
"""

from __future__ import annotations

from typing import Any


class TumblerError(Exception):
    """Base exception for all Tumbler-related errors."""

    pass


class ResolutionError(TumblerError):
    """Raised when a service cannot be resolved."""

    def __init__(
        self, message: str, service_key: str | None = None, cause: Exception | None = None
    ):
        super().__init__(message)
        self.service_key = service_key
        self.cause = cause


class NotInstantiableError(ResolutionError):
    """Raised when the target is an interface or abstract class with no binding.

    The message includes the chain of concrete types that were being built
    when the failure occurred, if any.
    """

    def __init__(self, target: str, build_stack: list[str] | None = None):
        self.target = target
        self.build_stack = list(build_stack or [])

        if self.build_stack:
            previous = ", ".join(self.build_stack)
            message = f"Target [{target}] is not instantiable while building [{previous}]."
        else:
            message = f"Target [{target}] is not instantiable."

        super().__init__(message, service_key=target)


class TargetNotFoundError(NotInstantiableError):
    """Raised when a string target does not name any locatable class."""

    def __init__(self, target: str, build_stack: list[str] | None = None):
        super().__init__(target, build_stack)
        self.args = (f"Target class [{target}] does not exist.",)


class UnresolvablePrimitiveError(ResolutionError):
    """Raised when a non-class parameter has no override, contextual value or default."""

    def __init__(self, class_name: str, parameter_name: str, parameter_type: Any = None):
        self.class_name = class_name
        self.parameter_name = parameter_name
        self.parameter_type = parameter_type

        if parameter_type is None:
            described = f"${parameter_name}"
        else:
            type_name = getattr(parameter_type, "__name__", str(parameter_type))
            described = f"{parameter_name}: {type_name}"

        super().__init__(
            f"Unresolvable dependency resolving [{described}] in class {class_name}",
            service_key=class_name,
        )


class CircularDependencyError(ResolutionError):
    """Raised when a concrete type needs itself, directly or through others.

    ``cycle`` holds the build chain with the repeated type last.
    """

    def __init__(self, cycle: list[str]):
        self.cycle = cycle
        cycle_str = " → ".join(cycle)

        super().__init__(
            f"Circular dependency detected: {cycle_str}",
            service_key=cycle[0] if cycle else None,
        )


class RegistrationError(TumblerError):
    """Raised when a binding cannot be registered or looked up."""

    pass


class SelfAliasedError(RegistrationError, LookupError):
    """Raised when an alias resolves to itself, directly or transitively."""

    def __init__(self, alias: str):
        self.alias = alias
        super().__init__(f"[{alias}] is aliased to itself.")


class MissingMethodError(TumblerError, ValueError):
    """Raised when a "Class@method" callback names no method."""

    def __init__(self, callback: str):
        self.callback = callback
        super().__init__("Method not provided.")


class ConfigurationError(TumblerError):
    """Raised when container settings are invalid."""

    pass
