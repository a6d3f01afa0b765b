"""Service provider contract.

Providers group related bindings so they can be registered together:

    >>> class CacheProvider(ServiceProvider):
    ...     def register(self, container):
    ...         container.singleton(Cache, RedisCache)
    >>>
    >>> container.register(CacheProvider)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .container import Container


class ServiceProvider(ABC):
    """Base class for objects that register bindings on a container."""

    @abstractmethod
    def register(self, container: Container) -> None:
        """Register bindings on ``container``."""
        ...
