"""Binding registry: the container's tables of construction recipes.

This module implements the registry that backs the container. It is the
single source of truth for how an abstract identifier is produced, and it
keeps the bookkeeping tables consulted during resolution.

Classes:
    Binding: A construction recipe plus its shared flag
    BindingRegistry: Bindings, aliases, tags, extenders, contextual rules
        and method bindings, all keyed by normalized string identifiers

Key Concepts:
    - Every table is keyed by the string form of an abstract identifier
    - Aliases form a directed graph that must resolve without cycles
    - The reverse alias index lets contextual rules match through aliases
    - Tags and extender chains preserve registration order

Example:
    >>> registry = BindingRegistry()
    >>> registry.set_binding("cache", Binding(make_cache, shared=True))
    >>> registry.add_alias("cache", "app.cache")
    >>> registry.get_alias("app.cache")
    'cache'

See Also:
    - tumbler.core.container: Uses the registry for resolution
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from .errors import SelfAliasedError


@dataclass(frozen=True)
class Binding:
    """A construction recipe for an abstract identifier.

    Attributes:
        concrete: Factory invoked as ``(container, parameters)``
        shared: Whether the resolved instance is cached and reused
    """

    concrete: Callable[..., Any]
    shared: bool = False


class BindingRegistry:
    """Central registry for bindings and their bookkeeping tables.

    Features:
        - Bindings keyed by abstract identifier
        - Transitive alias resolution with cycle detection
        - Reverse lookup (abstract → aliases) for contextual rules
        - Ordered tags and extender chains
        - Contextual rules keyed by (consumer, dependency)
        - Method bindings consulted by the call injector
    """

    def __init__(self):
        """Initialize an empty registry."""
        self._bindings: dict[str, Binding] = {}
        self._aliases: dict[str, str] = {}
        self._abstract_aliases: dict[str, list[str]] = defaultdict(list)
        self._extenders: dict[str, list[Callable]] = defaultdict(list)
        self._tags: dict[str, list[str]] = defaultdict(list)
        self._contextual: dict[str, dict[str, Any]] = defaultdict(dict)
        self._method_bindings: dict[str, Callable] = {}

    # Bindings

    def set_binding(self, abstract: str, binding: Binding) -> None:
        self._bindings[abstract] = binding

    def get_binding(self, abstract: str) -> Binding | None:
        return self._bindings.get(abstract)

    def remove_binding(self, abstract: str) -> bool:
        """Remove a binding, returning True if one existed."""
        return self._bindings.pop(abstract, None) is not None

    @property
    def bindings(self) -> dict[str, Binding]:
        """A copy of the binding table."""
        return dict(self._bindings)

    # Aliases

    def add_alias(self, abstract: str, alias: str) -> None:
        """Record ``alias`` as another name for ``abstract``.

        Raises:
            SelfAliasedError: If the alias would resolve back to itself
        """
        if alias == abstract or self.get_alias(abstract) == alias:
            raise SelfAliasedError(alias)

        self._aliases[alias] = abstract
        self._abstract_aliases[abstract].append(alias)

    def get_alias(self, name: str) -> str:
        """Follow the alias chain from ``name`` to its canonical identifier.

        Raises:
            SelfAliasedError: If the chain leads back to a name already seen
        """
        seen = {name}
        while name in self._aliases:
            target = self._aliases[name]
            if target in seen:
                raise SelfAliasedError(name)
            seen.add(target)
            name = target
        return name

    def is_alias(self, name: str) -> bool:
        return name in self._aliases

    def remove_alias(self, name: str) -> None:
        self._aliases.pop(name, None)

    def remove_abstract_alias(self, searched: str) -> None:
        """Drop ``searched`` from the reverse alias index if it is an alias."""
        if searched not in self._aliases:
            return

        for aliases in self._abstract_aliases.values():
            while searched in aliases:
                aliases.remove(searched)

    def aliases_of(self, abstract: str) -> list[str]:
        return list(self._abstract_aliases.get(abstract, ()))

    # Extenders

    def add_extender(self, abstract: str, extender: Callable) -> None:
        self._extenders[abstract].append(extender)

    def extenders_for(self, abstract: str) -> list[Callable]:
        return list(self._extenders.get(self.get_alias(abstract), ()))

    def forget_extenders(self, abstract: str) -> None:
        self._extenders.pop(abstract, None)

    # Tags

    def tag(self, tags: Iterable[str], abstracts: Iterable[str]) -> None:
        abstracts = list(abstracts)
        for tag in tags:
            self._tags[tag].extend(abstracts)

    def tagged(self, tag: str) -> list[str]:
        return list(self._tags.get(tag, ()))

    # Contextual rules

    def add_contextual(self, concrete: str, abstract: str, implementation: Any) -> None:
        self._contextual[concrete][abstract] = implementation

    def find_contextual(self, concrete: str, abstract: str) -> Any | None:
        rules = self._contextual.get(concrete)
        if rules is None:
            return None
        return rules.get(abstract)

    # Method bindings

    def bind_method(self, method: str, callback: Callable) -> None:
        self._method_bindings[method] = callback

    def has_method_binding(self, method: str) -> bool:
        return method in self._method_bindings

    def get_method_binding(self, method: str) -> Callable:
        return self._method_bindings[method]

    def flush(self) -> None:
        """Clear bindings and all alias bookkeeping."""
        self._bindings.clear()
        self._aliases.clear()
        self._abstract_aliases.clear()

    def __len__(self) -> int:
        """Get number of registered bindings."""
        return len(self._bindings)

    def __contains__(self, abstract: str) -> bool:
        """Support 'in' operator for bindings."""
        return abstract in self._bindings

    def __iter__(self):
        """Iterate over bound abstract identifiers."""
        return iter(self._bindings.keys())
