"""
Unit of Work: one storage context shared by every repository it hands out.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Optional, Type, TypeVar
from persistkit.database.context import StorageContextBase
from persistkit.exceptions import ConfigurationError
from .base import IRepository
from .registry import RepositoryRegistry

R = TypeVar("R", bound=IRepository)


class IStorage(ABC):
    """Unit of Work interface: repository access plus commit entry points."""

    @abstractmethod
    def get_repository(self, repository_type: Type[R]) -> Optional[R]:
        pass

    @abstractmethod
    def save(self) -> None:
        pass

    @abstractmethod
    def save_and_return(self) -> int:
        pass

    @abstractmethod
    async def save_changes_async(
        self,
        accept_all_changes_on_success: bool = True,
        cancellation_token: Optional[asyncio.Event] = None,
    ) -> int:
        pass


def ensure_storage_context(storage_context: Any) -> StorageContextBase:
    """Return ``storage_context`` if it is backed by the SQLModel engine session, else raise."""
    if not isinstance(storage_context, StorageContextBase):
        raise ConfigurationError(
            "The storage context must be an instance of persistkit.database.StorageContextBase "
            f"(a SQLModel session), got {type(storage_context).__name__}.",
            detail={"type": type(storage_context).__qualname__},
        )
    return storage_context


class UnitOfWork(IStorage):
    """Hands out repositories bound to one storage context and commits their changes together.

    The storage context belongs to the caller: the unit of work never opens,
    closes, rolls back or replaces it.
    """

    def __init__(self, storage_context: StorageContextBase, registry: RepositoryRegistry):
        """Initialize UnitOfWork; raises ConfigurationError for an unusable context or missing registry."""
        self._storage_context = ensure_storage_context(storage_context)

        if registry is None:
            raise ConfigurationError("A RepositoryRegistry must be provided.")
        self._registry = registry

    @property
    def storage_context(self) -> StorageContextBase:
        return self._storage_context

    @property
    def registry(self) -> RepositoryRegistry:
        return self._registry

    def get_repository(self, repository_type: Type[R]) -> Optional[R]:
        """Get a repository implementing ``repository_type`` bound to this unit's storage context.

        Returns None when no implementation is registered.
        """
        repository = self._registry.resolve(repository_type)

        if repository is not None:
            repository.set_storage_context(self._storage_context)
        return repository

    def save(self) -> None:
        """Commit the changes made through all repositories."""
        self._storage_context.save_changes()

    def save_and_return(self) -> int:
        """Commit the changes made through all repositories; return the affected record count."""
        return self._storage_context.save_changes()

    async def save_changes_async(
        self,
        accept_all_changes_on_success: bool = True,
        cancellation_token: Optional[asyncio.Event] = None,
    ) -> int:
        """
        Commit without blocking the event loop.

        Args:
            accept_all_changes_on_success: when False the storage context keeps its
                change markers after a successful commit.
            cancellation_token: event that cancels the commit when set;
                ``asyncio.CancelledError`` is raised.

        Returns:
            Affected record count.
        """
        return await self._storage_context.save_changes_async(
            accept_all_changes_on_success, cancellation_token
        )
