"""Type introspection for constructor and callable signatures.

This module is the container's view of Python signatures. Given a class or
any callable it reports, for each parameter, its name, its kind, the class
it depends on (if any), and its default value. It also turns explicit
caller-supplied arguments into a typed record and assembles the final
argument list for an invocation.

Classes:
    ParameterSpec: Description of one declared parameter
    Named: An explicit argument addressed by parameter name
    Positional: An explicit argument addressed by position
    ResolvedArguments: The assembled ``args``/``kwargs`` for an invocation

Functions:
    describe: Report the parameters of a class constructor or callable
    assemble_arguments: Merge explicit arguments with resolved ones
    normalize_key: Convert a class or string into an abstract identifier
    locate: Find a class or function by its dotted path
    call_with_accepted_args: Invoke a callback with as many args as it accepts

Classification Rules:
    1. A parameter depends on a class if its annotation is a user class
    2. Built-in types (str, int, list, dict, ...) are primitives
    3. ``Optional[T]`` and ``T | None`` depend on ``T`` and are nullable
    4. Missing or unresolvable annotations are primitives
    5. ``*args`` and ``**kwargs`` are never resolved

Example:
    >>> class UserService:
    ...     def __init__(self, db: Database, retries: int = 3):
    ...         ...
    >>> [(p.name, p.dependency, p.default) for p in describe(UserService)]
    [('db', <class 'Database'>, None), ('retries', None, 3)]
"""

from __future__ import annotations

import importlib
import inspect
import types
from collections import deque
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Union, get_args, get_origin, get_type_hints

_EMPTY = inspect.Parameter.empty

# Built-in types that are never resolved through the container
BUILTIN_TYPES: frozenset[type] = frozenset(
    {
        str,
        int,
        float,
        bool,
        complex,
        list,
        dict,
        tuple,
        set,
        frozenset,
        bytes,
        bytearray,
        memoryview,
        type(None),
        object,
        type,
        slice,
        range,
    }
)


@dataclass(frozen=True)
class ParameterSpec:
    """Description of one declared parameter.

    Attributes:
        name: Parameter name
        kind: The ``inspect.Parameter`` kind
        annotation: The resolved annotation, or None when absent
        dependency: The class this parameter depends on, or None for primitives
        has_default: Whether the parameter declares a default value
        default: The default value (None when there is none)
        nullable: Whether the annotation admits None
    """

    name: str
    kind: inspect._ParameterKind = inspect.Parameter.POSITIONAL_OR_KEYWORD
    annotation: Any = None
    dependency: type | None = None
    has_default: bool = False
    default: Any = None
    nullable: bool = False

    @property
    def is_optional(self) -> bool:
        """True if the parameter may fall back to its default (or None)."""
        return self.has_default or self.nullable

    @property
    def is_variadic(self) -> bool:
        return self.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)

    @property
    def is_keyword_only(self) -> bool:
        return self.kind is inspect.Parameter.KEYWORD_ONLY


@dataclass(frozen=True)
class Named:
    """An explicit argument matched to a parameter by name."""

    name: str
    value: Any


@dataclass(frozen=True)
class Positional:
    """An explicit argument with no name, appended or filled by position."""

    value: Any


Argument = Union[Named, Positional]


@dataclass
class ResolvedArguments:
    """The final argument list for an invocation.

    ``ignored`` lists explicit named arguments that matched no parameter
    and could not be forwarded to ``**kwargs``.
    """

    args: list[Any] = field(default_factory=list)
    kwargs: dict[str, Any] = field(default_factory=dict)
    ignored: list[str] = field(default_factory=list)


def normalize_key(abstract: Any) -> str:
    """Convert an abstract identifier to its string key.

    Examples:
        >>> normalize_key("cache")
        'cache'
        >>> normalize_key(collections.OrderedDict)
        'collections.OrderedDict'
    """
    if isinstance(abstract, str):
        return abstract
    if inspect.isclass(abstract):
        return type_key(abstract)
    raise TypeError(
        f"Abstract identifier must be a string or a class, got {type(abstract).__name__}"
    )


def type_key(obj: Any) -> str:
    """Return the dotted ``module.qualname`` path of a class or function."""
    module = getattr(obj, "__module__", None)
    qualname = getattr(obj, "__qualname__", None) or getattr(obj, "__name__", repr(obj))
    if not module:
        return qualname
    return f"{module}.{qualname}"


def locate(path: str) -> Any | None:
    """Find an object by its dotted path, importing its module if needed.

    Returns None when no module prefix of ``path`` can be imported or the
    remaining attributes do not exist. Paths with empty segments
    (``".config"``, ``"app..cache"``) never name anything.
    """
    if "." not in path:
        return None

    parts = path.split(".")
    if not all(parts):
        return None

    for index in range(len(parts) - 1, 0, -1):
        module_name = ".".join(parts[:index])
        try:
            obj: Any = importlib.import_module(module_name)
        except ImportError:
            continue

        for attribute in parts[index:]:
            obj = getattr(obj, attribute, None)
            if obj is None:
                return None
        return obj

    return None


def is_factory(concrete: Any) -> bool:
    """True for callables that are not classes (closures, functions, partials)."""
    return callable(concrete) and not inspect.isclass(concrete)


def is_instantiable(cls: type) -> bool:
    """Check whether ``cls`` can be constructed directly.

    Abstract base classes with unimplemented abstract methods and
    ``typing.Protocol`` classes are interfaces, not concretes.
    """
    if not inspect.isclass(cls):
        return False
    if inspect.isabstract(cls):
        return False
    if getattr(cls, "_is_protocol", False):
        return False
    return True


def is_optional(type_hint: Any) -> bool:
    """Check if a type hint is ``Optional[T]`` or ``T | None``."""
    origin = get_origin(type_hint)
    if origin is Union or origin is types.UnionType:
        args = get_args(type_hint)
        return len(args) == 2 and type(None) in args
    return False


def get_optional_inner(type_hint: Any) -> Any:
    """Get the inner type from ``Optional[T]``."""
    if is_optional(type_hint):
        args = get_args(type_hint)
        return args[0] if args[1] is type(None) else args[1]
    return type_hint


def get_type_hints_safe(func: Callable) -> dict[str, Any]:
    """Get resolved type hints, falling back to raw annotations on failure.

    Forward references that cannot be resolved are kept as strings and are
    treated as primitives by ``describe``.
    """
    func = getattr(func, "__func__", func)
    try:
        return get_type_hints(func)
    except (NameError, AttributeError, TypeError):
        annotations = getattr(func, "__annotations__", None) or {}
        module = inspect.getmodule(func)
        namespace = getattr(module, "__dict__", {})

        resolved = {}
        for name, annotation in annotations.items():
            if isinstance(annotation, str):
                resolved[name] = namespace.get(annotation, annotation)
            else:
                resolved[name] = annotation
        return resolved


def _dependency_of(type_hint: Any) -> type | None:
    inner = get_optional_inner(type_hint)
    if not inspect.isclass(inner) or get_origin(inner) is not None:
        return None
    if inner in BUILTIN_TYPES:
        return None
    return inner


def _constructor_hints(cls: type) -> dict[str, Any]:
    """Merge the hints of a user-defined ``__new__`` and ``__init__``."""
    hints: dict[str, Any] = {}
    for name in ("__new__", "__init__"):
        func = getattr(cls, name)
        if func is not getattr(object, name):
            hints.update(get_type_hints_safe(func))
    return hints


def _is_pass_through(signature: inspect.Signature) -> bool:
    kinds = {param.kind for param in signature.parameters.values()}
    return kinds == {inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD}


def _signature_hints(target: Any) -> dict[str, Any]:
    if inspect.isclass(target):
        return _constructor_hints(target)
    if inspect.isroutine(target) or not callable(target):
        return get_type_hints_safe(target)
    return get_type_hints_safe(type(target).__call__)


def describe(target: Any) -> list[ParameterSpec]:
    """Report the declared parameters of a class constructor or callable.

    Classes are described by their call signature, so constructors defined
    through ``__new__`` (``typing.NamedTuple``), ``__init__`` or a metaclass
    ``__call__`` are all seen. A class whose signature takes no parameters
    yields an empty list.

    Args:
        target: A class or any callable

    Returns:
        Parameters in declaration order; empty when the signature is unavailable
    """
    try:
        signature = inspect.signature(target)
    except (TypeError, ValueError):
        return []

    # A pass-through ``__new__(cls, *args, **kwargs)`` hides the real constructor
    if (
        inspect.isclass(target)
        and _is_pass_through(signature)
        and inspect.isfunction(target.__init__)
    ):
        signature = inspect.signature(target.__init__)
        signature = signature.replace(parameters=list(signature.parameters.values())[1:])

    hints = _signature_hints(target)

    specs = []
    for param in signature.parameters.values():
        annotation = hints.get(param.name, param.annotation)
        if annotation is _EMPTY:
            annotation = None

        has_default = param.default is not _EMPTY
        specs.append(
            ParameterSpec(
                name=param.name,
                kind=param.kind,
                annotation=annotation,
                dependency=_dependency_of(annotation) if annotation is not None else None,
                has_default=has_default,
                default=param.default if has_default else None,
                nullable=annotation is not None and is_optional(annotation),
            )
        )
    return specs


def to_arguments(parameters: Any) -> list[Argument]:
    """Convert caller-supplied parameters into typed arguments.

    A mapping yields ``Named`` entries for string keys and ``Positional``
    entries for any other key; a sequence yields ``Positional`` entries.
    """
    if not parameters:
        return []
    if isinstance(parameters, Mapping):
        return [
            Named(key, value) if isinstance(key, str) else Positional(value)
            for key, value in parameters.items()
        ]
    if isinstance(parameters, (str, bytes)):
        return [Positional(parameters)]
    return [Positional(value) for value in parameters]


def assemble_arguments(
    specs: list[ParameterSpec],
    arguments: list[Argument],
    resolve: Callable[[ParameterSpec], Any],
    *,
    fill_from_positional: bool = False,
) -> ResolvedArguments:
    """Build the argument list for an invocation.

    Each declared parameter takes its ``Named`` argument when one exists;
    otherwise ``resolve`` supplies the value. With ``fill_from_positional``,
    primitive parameters without a named value consume the next
    ``Positional`` argument before ``resolve`` is asked. Remaining
    positional arguments are appended in order; remaining named arguments
    go to ``**kwargs`` when the target accepts it.
    """
    named = {argument.name: argument.value for argument in arguments if isinstance(argument, Named)}
    positional = deque(argument.value for argument in arguments if isinstance(argument, Positional))
    accepts_kwargs = any(spec.kind is inspect.Parameter.VAR_KEYWORD for spec in specs)

    result = ResolvedArguments()
    consumed = set()

    for spec in specs:
        if spec.is_variadic:
            continue

        if spec.name in named:
            value = named[spec.name]
            consumed.add(spec.name)
        elif (
            fill_from_positional
            and positional
            and spec.dependency is None
            and not spec.is_keyword_only
        ):
            value = positional.popleft()
        else:
            value = resolve(spec)

        if spec.is_keyword_only:
            result.kwargs[spec.name] = value
        else:
            result.args.append(value)

    result.args.extend(positional)

    for name, value in named.items():
        if name in consumed:
            continue
        if accepts_kwargs:
            result.kwargs[name] = value
        else:
            result.ignored.append(name)

    return result


def call_with_accepted_args(func: Callable, *args: Any) -> Any:
    """Invoke ``func`` with the leading ``args`` its signature accepts.

    Lets factories and listeners declare only what they use:
    ``lambda: ...``, ``lambda container: ...`` and
    ``lambda container, parameters: ...`` are all valid factories.
    """
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        return func(*args)

    capacity = 0
    for param in signature.parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return func(*args)
        if param.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            capacity += 1

    return func(*args[:capacity])
