"""
Repository registry: maps a requested capability type to the class that implements it.

The composition root builds one registry, registers repository classes on it and
passes it to every UnitOfWork. Lookups never raise for a missing capability.
"""

import inspect
from typing import Callable, Dict, Iterable, List, Optional, Type, TypeVar

from persistkit.config import settings
from persistkit.logging.logger import get_logger

logger = get_logger("repository_registry")

T = TypeVar("T")
Predicate = Callable[[type], bool]


class RepositoryRegistry:
    """Ordered set of implementation classes with optional lookup caching."""

    def __init__(self, implementations: Iterable[type] = (), use_caching: Optional[bool] = None):
        self._implementations: List[type] = []
        self._implementation_cache: Dict[type, List[type]] = {}
        self.use_caching = settings.REGISTRY_USE_CACHING if use_caching is None else use_caching

        for implementation in implementations:
            self.register(implementation)

    def register(self, implementation: Type[T]) -> Type[T]:
        """Register an implementation class. Usable as a decorator."""
        if not inspect.isclass(implementation):
            raise TypeError(f"Only classes can be registered, got {implementation!r}")

        if implementation not in self._implementations:
            self._implementations.append(implementation)
            self._implementation_cache.clear()
        return implementation

    @property
    def implementations(self) -> List[type]:
        return list(self._implementations)

    def get_implementations(
        self,
        capability: Type[T],
        *,
        predicate: Optional[Predicate] = None,
        use_caching: bool = False,
    ) -> List[Type[T]]:
        """Concrete registered classes implementing ``capability``, in registration order."""
        if use_caching and capability in self._implementation_cache:
            return list(self._implementation_cache[capability])

        found = [
            implementation
            for implementation in self._implementations
            if issubclass(implementation, capability)
            and not inspect.isabstract(implementation)
            and (predicate is None or predicate(implementation))
        ]

        if use_caching:
            self._implementation_cache[capability] = found
        return list(found)

    def get_implementation(
        self,
        capability: Type[T],
        *,
        predicate: Optional[Predicate] = None,
        use_caching: bool = False,
    ) -> Optional[Type[T]]:
        """First implementation of ``capability`` or None."""
        found = self.get_implementations(capability, predicate=predicate, use_caching=use_caching)
        if not found:
            return None

        if len(found) > 1:
            logger.warning(
                f"{len(found)} implementations of {capability.__name__} registered; "
                f"using {found[0].__name__}, ignoring {', '.join(i.__name__ for i in found[1:])}"
            )
        return found[0]

    def get_instances(
        self,
        capability: Type[T],
        *args,
        predicate: Optional[Predicate] = None,
        use_caching: bool = False,
        **kwargs,
    ) -> List[T]:
        """Instantiate every implementation of ``capability``; ``args``/``kwargs`` go to the constructors.

        Caching applies to the class lookup only; every call builds new instances.
        """
        return [
            implementation(*args, **kwargs)
            for implementation in self.get_implementations(
                capability, predicate=predicate, use_caching=use_caching
            )
        ]

    def get_instance(
        self,
        capability: Type[T],
        *args,
        predicate: Optional[Predicate] = None,
        use_caching: bool = False,
        **kwargs,
    ) -> Optional[T]:
        """Instantiate the first implementation of ``capability``, or return None.

        Caching applies to the class lookup only; every call builds a new instance.
        """
        implementation = self.get_implementation(
            capability, predicate=predicate, use_caching=use_caching
        )
        if implementation is None:
            return None
        return implementation(*args, **kwargs)

    def resolve(self, capability: Type[T]) -> Optional[T]:
        """Return a new instance implementing ``capability`` or None; used by UnitOfWork."""
        instance = self.get_instance(capability, use_caching=self.use_caching)
        logger.debug(
            f"Resolved {capability.__name__} -> "
            f"{type(instance).__name__ if instance is not None else 'nothing'}"
        )
        return instance
