"""Tumbler - a reflective service container for Python applications.

Tumbler turns an abstract identifier (a class or a string key) into a ready
instance. It reads constructor type hints to discover dependencies, builds
them recursively, and lets callers override, decorate and observe the
construction process.

Key Features:
    - Automatic constructor injection from type hints
    - Shared (singleton) and per-resolution bindings
    - Transitive aliases and tags
    - Contextual bindings: a different implementation per consumer
    - Extenders that decorate instances after construction
    - Resolving, after-resolving and rebinding callbacks
    - Call injection for functions, methods and "Class@method" strings

Quick Start:
    >>> from tumbler import Container
    >>>
    >>> class Transport:
    ...     pass
    >>>
    >>> class SmtpTransport(Transport):
    ...     pass
    >>>
    >>> class Mailer:
    ...     def __init__(self, transport: Transport, retries: int = 3):
    ...         self.transport = transport
    ...         self.retries = retries
    >>>
    >>> container = Container()
    >>> container.singleton(Transport, SmtpTransport)
    >>> mailer = container.make_with(Mailer, {"retries": 5})
    >>> isinstance(mailer.transport, SmtpTransport), mailer.retries
    (True, 5)
"""

__version__ = "0.1.0"

from tumbler.core import (
    Binding,
    BindingRegistry,
    CircularDependencyError,
    ConfigurationError,
    Container,
    ContainerSettings,
    ContextualBindingBuilder,
    MissingMethodError,
    NotInstantiableError,
    RegistrationError,
    ResolutionError,
    SelfAliasedError,
    ServiceProvider,
    TargetNotFoundError,
    TumblerError,
    UnresolvablePrimitiveError,
    get_current_container,
    set_current_container,
)

__all__ = [
    "__version__",
    # Container
    "Container",
    "ContainerSettings",
    "get_current_container",
    "set_current_container",
    # Registration
    "Binding",
    "BindingRegistry",
    "ContextualBindingBuilder",
    "ServiceProvider",
    # Errors
    "CircularDependencyError",
    "ConfigurationError",
    "MissingMethodError",
    "NotInstantiableError",
    "RegistrationError",
    "ResolutionError",
    "SelfAliasedError",
    "TargetNotFoundError",
    "TumblerError",
    "UnresolvablePrimitiveError",
]
