"""Fluent recorder for contextual bindings.

A contextual binding overrides the implementation used for one dependency
while one specific consumer is being built:

    >>> container.when(ReportMailer).needs(Transport).give(SmtpTransport)
    >>> container.when(ReportMailer).needs("$retries").give(5)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .errors import RegistrationError

if TYPE_CHECKING:
    from .container import Container


class ContextualBindingBuilder:
    """Chainable builder for ``when(consumer).needs(dependency).give(impl)``."""

    def __init__(self, container: Container, concrete: str):
        self._container = container
        self._concrete = concrete
        self._needs: Any = None

    def needs(self, abstract: Any) -> ContextualBindingBuilder:
        """Name the dependency to override: a class, a key, or ``"$param"``."""
        self._needs = abstract
        return self

    def give(self, implementation: Any) -> None:
        """Record the implementation: a class, a key, a factory, or a literal value."""
        if self._needs is None:
            raise RegistrationError(
                f"Contextual binding for '{self._concrete}' needs a dependency; call needs() first"
            )

        self._container.add_contextual_binding(self._concrete, self._needs, implementation)
