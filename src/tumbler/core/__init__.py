"""Core components of the Tumbler service container.

This package provides the resolution engine and its collaborators: the
binding registry, the type introspector, the call injector and the fluent
contextual binding builder.

Key Components:
    Container: Binding registry front end and recursive resolution engine
    BindingRegistry: Bindings, aliases, tags, extenders and contextual rules
    describe: Constructor and callable signature analysis
    ContextualBindingBuilder: ``when(...).needs(...).give(...)``
    ServiceProvider: Groups related bindings for registration

Usage Example:
    >>> from tumbler.core import Container
    >>>
    >>> class Database:
    ...     pass
    >>>
    >>> class UserService:
    ...     def __init__(self, db: Database):
    ...         self.db = db  # Automatically resolved
    >>>
    >>> container = Container()
    >>> container.singleton(Database)
    >>> service = container.make(UserService)

For more detailed examples, see the individual module documentation.
"""

from tumbler.core.container import Container, get_current_container, set_current_container
from tumbler.core.contextual import ContextualBindingBuilder
from tumbler.core.errors import (
    CircularDependencyError,
    ConfigurationError,
    MissingMethodError,
    NotInstantiableError,
    RegistrationError,
    ResolutionError,
    SelfAliasedError,
    TargetNotFoundError,
    TumblerError,
    UnresolvablePrimitiveError,
)
from tumbler.core.introspection import (
    Argument,
    Named,
    ParameterSpec,
    Positional,
    ResolvedArguments,
    assemble_arguments,
    describe,
)
from tumbler.core.providers import ServiceProvider
from tumbler.core.registry import Binding, BindingRegistry
from tumbler.core.settings import ContainerSettings

__all__ = [
    # Container
    "Container",
    "ContainerSettings",
    "get_current_container",
    "set_current_container",
    # Registry
    "Binding",
    "BindingRegistry",
    "ContextualBindingBuilder",
    "ServiceProvider",
    # Introspection
    "Argument",
    "Named",
    "ParameterSpec",
    "Positional",
    "ResolvedArguments",
    "assemble_arguments",
    "describe",
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
