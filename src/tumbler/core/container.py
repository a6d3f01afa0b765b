"""Service container with recursive, reflective resolution.

The container turns an abstract identifier (a class or a string key) into a
concrete instance. It discovers constructor dependencies through type hints,
builds them recursively, caches shared instances, and lets callers override,
decorate, and observe construction.

Resolution Order:
    1. Follow the alias chain to the canonical identifier
    2. Return the cached shared instance unless overrides or a contextual
       rule apply
    3. Pick the concrete: contextual rule for the consumer being built,
       then the registered binding, then the identifier itself
    4. Build it (classes and factories) or resolve it again (indirection)
    5. Apply extenders, cache if shared, fire resolving callbacks

Example:
    >>> container = Container()
    >>> container.singleton(Mailer, SmtpMailer)
    >>> container.when(ReportJob).needs(Mailer).give(QueueMailer)
    >>> container.extend(Mailer, lambda mailer: RetryingMailer(mailer))
    >>>
    >>> job = container.make(ReportJob)          # gets a RetryingMailer(QueueMailer)
    >>> container.make(Mailer) is container.make(Mailer)
    True

See Also:
    - tumbler.core.registry: Binding tables
    - tumbler.core.introspection: Signature analysis
    - tumbler.core.bound_method: Call injection
"""

from __future__ import annotations

import inspect
import logging
import threading
from collections import defaultdict
from collections.abc import Callable
from contextvars import ContextVar, Token
from typing import Any, TypeVar

from . import bound_method
from .contextual import ContextualBindingBuilder
from .errors import (
    CircularDependencyError,
    NotInstantiableError,
    RegistrationError,
    TargetNotFoundError,
    UnresolvablePrimitiveError,
)
from .introspection import (
    ParameterSpec,
    assemble_arguments,
    call_with_accepted_args,
    describe,
    is_factory,
    is_instantiable,
    locate,
    normalize_key,
    to_arguments,
)
from .providers import ServiceProvider
from .registry import Binding, BindingRegistry
from .settings import ContainerSettings

T = TypeVar("T")

logger = logging.getLogger(__name__)

# The container made current by ``with container:`` or set_current_container()
_current_container: ContextVar[Container | None] = ContextVar("current_container", default=None)


class Container:
    """Dependency injection container.

    Holds the binding registry and the shared-instance cache, and runs the
    recursive build algorithm. The build stack and the parameter override
    stack are kept per thread, so threads sharing one container never see
    each other's in-flight resolutions. Mutating bindings while other
    threads resolve requires external locking.
    """

    def __init__(self, settings: ContainerSettings | None = None):
        """Initialize a new container.

        Args:
            settings: Behavior switches; defaults to ``ContainerSettings()``
        """
        self.settings = settings or ContainerSettings()
        self.registry = BindingRegistry()

        self._instances: dict[str, Any] = {}
        self._resolved: dict[str, bool] = {}
        self._types: dict[str, type] = {}

        self._rebound_callbacks: dict[str, list[Callable]] = defaultdict(list)
        self._global_resolving_callbacks: list[Callable] = []
        self._global_after_resolving_callbacks: list[Callable] = []
        self._resolving_callbacks: dict[str, list[Callable]] = defaultdict(list)
        self._after_resolving_callbacks: dict[str, list[Callable]] = defaultdict(list)

        self._local = threading.local()

    # Per-thread resolution state

    @property
    def _build_stack(self) -> list[str]:
        """Concrete types currently under construction, innermost last."""
        stack = getattr(self._local, "build_stack", None)
        if stack is None:
            stack = self._local.build_stack = []
        return stack

    @property
    def _with(self) -> list[Any]:
        """Parameter overrides, one entry per in-flight resolve call."""
        stack = getattr(self._local, "with_stack", None)
        if stack is None:
            stack = self._local.with_stack = []
        return stack

    @property
    def _tokens(self) -> list[Token]:
        """Context tokens of the open ``with container:`` blocks."""
        tokens = getattr(self._local, "tokens", None)
        if tokens is None:
            tokens = self._local.tokens = []
        return tokens

    # Registry queries

    def when(self, concrete: str | type) -> ContextualBindingBuilder:
        """Start a contextual binding for ``concrete``."""
        return ContextualBindingBuilder(self, self.get_alias(concrete))

    def bound(self, abstract: str | type) -> bool:
        """Check if ``abstract`` has a binding, an instance, or is an alias."""
        abstract = self._key(abstract)
        return (
            abstract in self.registry
            or abstract in self._instances
            or self.registry.is_alias(abstract)
        )

    def resolved(self, abstract: str | type) -> bool:
        """Check if ``abstract`` (or what it aliases) has been resolved."""
        abstract = self._key(abstract)
        if self.registry.is_alias(abstract):
            abstract = self.registry.get_alias(abstract)
        return abstract in self._resolved or abstract in self._instances

    def is_shared(self, abstract: str | type) -> bool:
        abstract = self._key(abstract)
        if abstract in self._instances:
            return True
        binding = self.registry.get_binding(abstract)
        return binding is not None and binding.shared

    def is_alias(self, name: str | type) -> bool:
        return self.registry.is_alias(self._key(name))

    def get_alias(self, abstract: str | type) -> str:
        """Resolve ``abstract`` through the alias chain.

        Raises:
            SelfAliasedError: If the chain loops back on itself
        """
        return self.registry.get_alias(self._key(abstract))

    def get_bindings(self) -> dict[str, Binding]:
        return self.registry.bindings

    # Registration

    def bind(
        self, abstract: str | type, concrete: Any = None, shared: bool = False
    ) -> None:
        """Register a binding.

        Args:
            abstract: Identifier to bind
            concrete: A class, an identifier, or a factory called as
                ``(container, parameters)``; defaults to ``abstract`` itself
            shared: Cache the first resolved instance
        """
        abstract = self._key(abstract)
        self._drop_stale_instances(abstract)

        if concrete is None:
            concrete = abstract

        if not is_factory(concrete):
            concrete = self._get_closure(abstract, self._key(concrete))

        self.registry.set_binding(abstract, Binding(concrete, shared))
        logger.debug("Bound %s (shared=%s)", abstract, shared)

        if self.resolved(abstract):
            self._rebound(abstract)

    def _get_closure(self, abstract: str, concrete: str) -> Callable[..., Any]:
        """Wrap a class identifier in a factory."""

        def factory(container: Container, parameters: Any = None) -> Any:
            if abstract == concrete:
                return container.build(concrete)
            return container.make_with(concrete, parameters)

        return factory

    def bind_if(self, abstract: str | type, concrete: Any = None, shared: bool = False) -> None:
        """Register a binding only if ``abstract`` is not bound yet."""
        if not self.bound(abstract):
            self.bind(abstract, concrete, shared)

    def singleton(self, abstract: str | type, concrete: Any = None) -> None:
        """Register a shared binding."""
        self.bind(abstract, concrete, shared=True)

    def instance(self, abstract: str | type, instance: T) -> T:
        """Register an existing object as the shared instance of ``abstract``."""
        abstract = self._key(abstract)
        self.registry.remove_abstract_alias(abstract)

        is_bound = self.bound(abstract)
        self.registry.remove_alias(abstract)

        self._instances[abstract] = instance

        if is_bound:
            self._rebound(abstract)

        return instance

    def alias(self, abstract: str | type, alias: str | type) -> None:
        """Make ``alias`` another name for ``abstract``.

        Raises:
            SelfAliasedError: If the alias would resolve back to itself
        """
        abstract, alias = self._key(abstract), self._key(alias)
        self.registry.add_alias(abstract, alias)
        logger.debug("Aliased %s to %s", alias, abstract)

    def extend(self, abstract: str | type, extender: Callable[..., Any]) -> None:
        """Decorate ``abstract`` after construction.

        The extender is called as ``(instance, container)`` and returns the
        instance to use. Existing shared instances are extended immediately.
        """
        abstract = self.get_alias(abstract)

        if abstract in self._instances:
            self._instances[abstract] = call_with_accepted_args(
                extender, self._instances[abstract], self
            )
            self._rebound(abstract)
        else:
            self.registry.add_extender(abstract, extender)
            if self.resolved(abstract):
                self._rebound(abstract)

    def forget_extenders(self, abstract: str | type) -> None:
        self.registry.forget_extenders(self.get_alias(abstract))

    def tag(self, abstracts: Any, *tags: Any) -> None:
        """Attach tags to one identifier or a list of identifiers.

        Examples:
            >>> container.tag(SmtpMailer, "mailers", "outbound")
            >>> container.tag([SmtpMailer, QueueMailer], ["mailers"])
        """
        if len(tags) == 1 and isinstance(tags[0], (list, tuple, set)):
            tags = tuple(tags[0])

        if not isinstance(abstracts, (list, tuple)):
            abstracts = [abstracts]

        self.registry.tag(tags, [self._key(abstract) for abstract in abstracts])

    def tagged(self, tag: str) -> list[Any]:
        """Resolve every identifier carrying ``tag``, in tagging order."""
        return [self.make(abstract) for abstract in self.registry.tagged(tag)]

    def add_contextual_binding(
        self, concrete: str | type, abstract: str | type, implementation: Any
    ) -> None:
        """Use ``implementation`` for ``abstract`` while building ``concrete``."""
        concrete = self._key(concrete)
        abstract = self.get_alias(abstract)
        if inspect.isclass(implementation):
            implementation = self._key(implementation)

        self.registry.add_contextual(concrete, abstract, implementation)
        logger.debug("Contextual binding: %s needs %s", concrete, abstract)

    def register(self, provider: ServiceProvider | type[ServiceProvider]) -> ServiceProvider:
        """Register a service provider, building it through the container if given a class."""
        if inspect.isclass(provider):
            provider = self.make(provider)

        provider.register(self)
        logger.debug("Registered provider %s", type(provider).__name__)
        return provider

    # Method bindings

    def bind_method(self, method: str | tuple[Any, str], callback: Callable[..., Any]) -> None:
        """Replace calls to ``method`` with ``callback(instance, container)``.

        ``method`` is ``"package.module.Class@method"`` or a ``(Class, "method")`` pair.
        """
        self.registry.bind_method(self._method_key(method), callback)

    def has_method_binding(self, method: str | tuple[Any, str]) -> bool:
        return self.registry.has_method_binding(self._method_key(method))

    def call_method_binding(self, method: str | tuple[Any, str], instance: Any) -> Any:
        callback = self.registry.get_method_binding(self._method_key(method))
        return call_with_accepted_args(callback, instance, self)

    def _method_key(self, method: str | tuple[Any, str]) -> str:
        if isinstance(method, str):
            return method
        return bound_method.normalize_method(tuple(method), self.settings.method_delimiter)

    # Lifecycle hooks

    def rebinding(self, abstract: str | type, callback: Callable[..., Any]) -> Any:
        """Call ``callback(container, instance)`` whenever ``abstract`` is rebound.

        Returns:
            A fresh instance if ``abstract`` is already bound, else None
        """
        abstract = self.get_alias(abstract)
        self._rebound_callbacks[abstract].append(callback)

        if self.bound(abstract):
            return self.make(abstract)
        return None

    def refresh(self, abstract: str | type, target: Any, method: str) -> Any:
        """Call ``target.method(instance)`` whenever ``abstract`` is rebound."""

        def refresher(container: Container, instance: Any) -> None:
            getattr(target, method)(instance)

        return self.rebinding(abstract, refresher)

    def _rebound(self, abstract: str) -> None:
        instance = self.make(abstract)
        callbacks = self._rebound_callbacks.get(abstract, ())
        logger.debug("Rebound %s (%d listeners)", abstract, len(callbacks))

        for callback in callbacks:
            call_with_accepted_args(callback, self, instance)

    def resolving(self, abstract: Any, callback: Callable[..., Any] | None = None) -> None:
        """Register a resolving callback.

        Pass only a callable to listen to every resolution, or an identifier
        and a callable to listen to that identifier and instances of it.
        """
        self._add_resolution_callback(
            abstract, callback, self._global_resolving_callbacks, self._resolving_callbacks
        )

    def after_resolving(self, abstract: Any, callback: Callable[..., Any] | None = None) -> None:
        """Register a callback fired after the resolving callbacks."""
        self._add_resolution_callback(
            abstract,
            callback,
            self._global_after_resolving_callbacks,
            self._after_resolving_callbacks,
        )

    def _add_resolution_callback(
        self,
        abstract: Any,
        callback: Callable[..., Any] | None,
        global_callbacks: list[Callable],
        callbacks_per_type: dict[str, list[Callable]],
    ) -> None:
        if callback is None:
            if not callable(abstract) or inspect.isclass(abstract):
                raise RegistrationError(
                    f"Resolution callback for '{normalize_key(abstract)}' is missing"
                )
            global_callbacks.append(abstract)
            return

        callbacks_per_type[self.get_alias(abstract)].append(callback)

    def _fire_resolving_callbacks(self, abstract: str, obj: Any) -> None:
        self._fire_callback_array(obj, self._global_resolving_callbacks)
        self._fire_callback_array(
            obj, self._get_callbacks_for_type(abstract, obj, self._resolving_callbacks)
        )
        self._fire_after_resolving_callbacks(abstract, obj)

    def _fire_after_resolving_callbacks(self, abstract: str, obj: Any) -> None:
        self._fire_callback_array(obj, self._global_after_resolving_callbacks)
        self._fire_callback_array(
            obj, self._get_callbacks_for_type(abstract, obj, self._after_resolving_callbacks)
        )

    def _get_callbacks_for_type(
        self, abstract: str, obj: Any, callbacks_per_type: dict[str, list[Callable]]
    ) -> list[Callable]:
        results = []
        for type_key, callbacks in callbacks_per_type.items():
            if type_key == abstract or self._is_instance_of(obj, type_key):
                results.extend(callbacks)
        return results

    def _fire_callback_array(self, obj: Any, callbacks: list[Callable]) -> None:
        for callback in callbacks:
            call_with_accepted_args(callback, obj, self)

    # Calling

    def call(self, callback: Any, parameters: Any = None, default_method: str | None = None) -> Any:
        """Call ``callback`` with its dependencies injected.

        See ``tumbler.core.bound_method`` for the accepted callback forms.
        """
        return bound_method.call(self, callback, parameters, default_method)

    def wrap(self, callback: Any, parameters: Any = None) -> Callable[[], Any]:
        """Return a zero-argument callable that performs ``call(callback, parameters)``."""

        def wrapper() -> Any:
            return self.call(callback, parameters)

        return wrapper

    def factory(self, abstract: str | type) -> Callable[[], Any]:
        """Return a zero-argument callable that resolves ``abstract``."""

        def resolver() -> Any:
            return self.make(abstract)

        return resolver

    # Resolution

    def make(self, abstract: str | type, parameters: Any = None) -> Any:
        """Resolve ``abstract`` to an instance."""
        return self._resolve(abstract, parameters or {})

    def make_with(self, abstract: str | type, parameters: Any) -> Any:
        """Resolve ``abstract`` with explicit constructor or factory parameters.

        Non-empty parameters bypass the shared-instance cache in both directions.
        """
        return self._resolve(abstract, parameters)

    def _resolve(self, abstract: str | type, parameters: Any) -> Any:
        abstract = self.get_alias(abstract)

        needs_contextual_build = bool(parameters) or (
            self._get_contextual_concrete(abstract) is not None
        )

        if abstract in self._instances and not needs_contextual_build:
            return self._instances[abstract]

        if self.settings.log_resolutions:
            logger.debug("Resolving %s (stack=%s)", abstract, self._build_stack)

        self._with.append(parameters)
        try:
            concrete = self._get_concrete(abstract)

            if self._is_buildable(concrete, abstract):
                obj = self.build(concrete)
            else:
                obj = self.make(concrete)

            for extender in self.registry.extenders_for(abstract):
                obj = call_with_accepted_args(extender, obj, self)

            if self.is_shared(abstract) and not needs_contextual_build:
                self._instances[abstract] = obj

            self._fire_resolving_callbacks(abstract, obj)
            self._resolved[abstract] = True
        finally:
            self._with.pop()

        return obj

    def _get_concrete(self, abstract: str) -> Any:
        concrete = self._get_contextual_concrete(abstract)
        if concrete is not None:
            return concrete

        binding = self.registry.get_binding(abstract)
        if binding is not None:
            return binding.concrete

        return abstract

    def _get_contextual_concrete(self, abstract: str) -> Any | None:
        concrete = self._find_in_contextual_bindings(abstract)
        if concrete is not None:
            return concrete

        for alias in self.registry.aliases_of(abstract):
            concrete = self._find_in_contextual_bindings(alias)
            if concrete is not None:
                return concrete

        return None

    def _find_in_contextual_bindings(self, abstract: str) -> Any | None:
        stack = self._build_stack
        if not stack:
            return None
        return self.registry.find_contextual(stack[-1], abstract)

    def _is_buildable(self, concrete: Any, abstract: str) -> bool:
        if isinstance(concrete, str):
            return concrete == abstract
        return True

    def build(self, concrete: Any) -> Any:
        """Instantiate ``concrete``, resolving its constructor dependencies.

        ``concrete`` may be a class, a class identifier, or a factory; any
        other value is a contextual literal and is returned as is.

        Raises:
            NotInstantiableError: If ``concrete`` is an interface or abstract class
            TargetNotFoundError: If ``concrete`` names no locatable class
            CircularDependencyError: If ``concrete`` is already being built
        """
        if is_factory(concrete):
            return call_with_accepted_args(concrete, self, self._get_last_parameter_override())

        if not isinstance(concrete, (str, type)):
            return concrete

        key = self._key(concrete)
        cls = concrete if inspect.isclass(concrete) else self._lookup_type(key)

        if cls is None:
            raise TargetNotFoundError(key, self._build_stack)

        if not is_instantiable(cls):
            raise NotInstantiableError(key, self._build_stack)

        stack = self._build_stack
        if self.settings.detect_circular and key in stack:
            raise CircularDependencyError([*stack[stack.index(key):], key])

        stack.append(key)
        try:
            specs = describe(cls)
            arguments = self._resolve_dependencies(specs, key) if specs else None
        finally:
            stack.pop()

        if arguments is None:
            return cls()
        return cls(*arguments.args, **arguments.kwargs)

    def _resolve_dependencies(self, specs: list[ParameterSpec], declaring: str):
        resolved = assemble_arguments(
            specs,
            to_arguments(self._get_last_parameter_override()),
            lambda spec: self._resolve_parameter(spec, declaring),
        )

        if resolved.ignored:
            logger.debug("Ignoring unmatched parameters %s for %s", resolved.ignored, declaring)

        return resolved

    def _get_last_parameter_override(self) -> Any:
        stack = self._with
        return stack[-1] if stack else {}

    def _resolve_parameter(self, spec: ParameterSpec, declaring: str) -> Any:
        if spec.dependency is None:
            return self._resolve_primitive(spec, declaring)
        return self._resolve_class(spec)

    def _resolve_primitive(self, spec: ParameterSpec, declaring: str) -> Any:
        concrete = self._get_contextual_concrete(f"${spec.name}")
        if concrete is not None:
            return call_with_accepted_args(concrete, self) if is_factory(concrete) else concrete

        if spec.has_default:
            return spec.default

        raise UnresolvablePrimitiveError(declaring, spec.name, spec.annotation)

    def _resolve_class(self, spec: ParameterSpec) -> Any:
        try:
            return self.make(spec.dependency)
        except NotInstantiableError:
            # Optional dependencies fall back to their default
            if spec.is_optional:
                return spec.default
            raise

    # Forgetting

    def _drop_stale_instances(self, abstract: str) -> None:
        self._instances.pop(abstract, None)
        self.registry.remove_alias(abstract)

    def forget_instance(self, abstract: str | type) -> None:
        self._instances.pop(self._key(abstract), None)

    def forget_instances(self) -> None:
        self._instances.clear()

    def flush(self) -> None:
        """Drop all bindings, aliases, resolved flags and shared instances."""
        self.registry.flush()
        self._resolved.clear()
        self._instances.clear()

    # Identifier handling

    def _key(self, abstract: str | type) -> str:
        """Normalize ``abstract`` and remember classes by their key."""
        key = normalize_key(abstract)
        if inspect.isclass(abstract):
            self._types.setdefault(key, abstract)
        return key

    def _lookup_type(self, key: str) -> type | None:
        cls = self._types.get(key)
        if cls is None:
            located = locate(key)
            if inspect.isclass(located):
                cls = self._types[key] = located
        return cls

    def _is_instance_of(self, obj: Any, key: str) -> bool:
        # Only keys registered from a class take part in isinstance matching
        cls = self._types.get(key)
        return cls is not None and isinstance(obj, cls)

    # Dict-like interface

    def __contains__(self, key: str | type) -> bool:
        """Check if a key is bound."""
        return self.bound(key)

    def __getitem__(self, key: str | type) -> Any:
        """Resolve a key using dict syntax."""
        return self.make(key)

    def __setitem__(self, key: str | type, value: Any) -> None:
        """Bind a key using dict syntax.

        Factories and classes are bound as concretes; any other value is
        bound through a factory returning it.
        """
        if is_factory(value) or inspect.isclass(value):
            self.bind(key, value)
        else:
            self.bind(key, lambda: value)

    def __delitem__(self, key: str | type) -> None:
        """Remove a binding, its shared instance and its resolved flag."""
        key = self._key(key)
        self.registry.remove_binding(key)
        self._instances.pop(key, None)
        self._resolved.pop(key, None)

    def has(self, key: str | type) -> bool:
        return self.bound(key)

    def get(self, key: str | type) -> Any:
        return self.make(key)

    # Context management

    def __enter__(self) -> Container:
        """Set as current container."""
        self._tokens.append(_current_container.set(self))
        return self

    def __exit__(self, *args) -> None:
        """Reset current container."""
        _current_container.reset(self._tokens.pop())


# Helper functions


def get_current_container() -> Container | None:
    """Get the current container from context."""
    return _current_container.get()


def set_current_container(container: Container | None) -> None:
    """Set the current container in context."""
    _current_container.set(container)
