"""Call arbitrary callables with their dependencies injected.

The call injector accepts any of these callback forms:

    - a function, lambda, or callable object
    - a bound method (``service.handle``)
    - an ``(instance_or_class, "method")`` pair
    - ``"package.module.Class@method"`` (the class is resolved through the
      container; the method may come from ``default_method`` instead)
    - ``"package.module.Class::method"`` for static and class methods
    - ``"package.module.function"``

Arguments are assembled from the caller's explicit values first, then
class-typed parameters are resolved through the container, then defaults
apply. A method binding registered for the callback replaces the call
entirely.

Example:
    >>> def handler(request: Request, mailer: Mailer, retries=3):
    ...     ...
    >>> container.call(handler, {"request": request})
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from .errors import MissingMethodError, TargetNotFoundError
from .introspection import assemble_arguments, describe, locate, to_arguments, type_key

if TYPE_CHECKING:
    from .container import Container

logger = logging.getLogger(__name__)


def call(
    container: Container,
    callback: Any,
    parameters: Any = None,
    default_method: str | None = None,
) -> Any:
    """Call ``callback``, injecting any arguments the caller did not supply.

    Args:
        container: Container used to resolve class-typed parameters
        callback: Any supported callback form (see module docstring)
        parameters: Explicit arguments, as a mapping (named) or sequence (positional)
        default_method: Method to call when a class reference names none

    Returns:
        Whatever the callback returns
    """
    delimiter = container.settings.method_delimiter
    if _is_callable_with_delimiter(callback, delimiter) or default_method:
        return _call_class(container, callback, parameters, default_method)

    callback = _normalize_callback(callback)
    return _call_bound_method(
        container,
        callback,
        lambda: _call_with_dependencies(container, callback, parameters),
    )


def normalize_method(callback: tuple[Any, str], delimiter: str = "@") -> str:
    """Return the ``"package.module.Class@method"`` key for a method pair."""
    target, method = callback
    cls = target if inspect.isclass(target) else type(target)
    return f"{type_key(cls)}{delimiter}{method}"


def _call_class(
    container: Container, target: Any, parameters: Any, default_method: str | None
) -> Any:
    delimiter = container.settings.method_delimiter
    segments = target.split(delimiter) if isinstance(target, str) else [target]

    method = segments[1] if len(segments) == 2 else default_method
    if not method:
        raise MissingMethodError(str(target))

    return call(container, (container.make(segments[0]), method), parameters)


def _call_bound_method(container: Container, callback: Any, default: Callable[[], Any]) -> Any:
    if isinstance(callback, tuple):
        method = normalize_method(callback, container.settings.method_delimiter)
        instance = callback[0]
    else:
        method = type_key(callback)
        instance = callback

    if container.has_method_binding(method):
        return container.call_method_binding(method, instance)

    return default()


def _call_with_dependencies(container: Container, callback: Any, parameters: Any) -> Any:
    if isinstance(callback, tuple):
        target, method = callback
        func = getattr(target, method)
    else:
        func = callback

    declaring = type_key(func)
    resolved = assemble_arguments(
        describe(func),
        to_arguments(parameters),
        lambda spec: container._resolve_parameter(spec, declaring),
        fill_from_positional=True,
    )

    if resolved.ignored:
        logger.debug("Ignoring unmatched arguments %s for %s", resolved.ignored, declaring)

    return func(*resolved.args, **resolved.kwargs)


def _normalize_callback(callback: Any) -> Any:
    """Turn string and bound-method callbacks into callables or method pairs."""
    if isinstance(callback, str):
        if "::" in callback:
            class_path, method = callback.split("::", 1)
            cls = locate(class_path)
            if not inspect.isclass(cls):
                raise TargetNotFoundError(class_path)
            return (cls, method)

        func = locate(callback)
        if func is None or not callable(func):
            raise TargetNotFoundError(callback)
        return func

    if isinstance(callback, (tuple, list)) and len(callback) == 2 and isinstance(callback[1], str):
        return (callback[0], callback[1])

    if inspect.ismethod(callback):
        return (callback.__self__, callback.__name__)

    return callback


def _is_callable_with_delimiter(callback: Any, delimiter: str) -> bool:
    return isinstance(callback, str) and delimiter in callback
