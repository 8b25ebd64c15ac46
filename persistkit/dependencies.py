"""
FastAPI integration: one storage context and unit of work per request.

    storage = StorageDependency(manager, registry)

    @router.post("/customers")
    def create_customer(payload: CustomerIn, uow: UnitOfWork = storage.depends()):
        uow.get_repository(ICustomerRepository).create(Customer(**payload.model_dump()))
        uow.save()
"""

from typing import Any, Iterator
from fastapi import Depends
from persistkit.database.manager import StorageManager
from persistkit.repository.registry import RepositoryRegistry
from persistkit.repository.unit_of_work import UnitOfWork


class StorageDependency:
    """Callable dependency yielding a request-scoped UnitOfWork; never commits on its own."""

    def __init__(self, manager: StorageManager, registry: RepositoryRegistry):
        self.manager = manager
        self.registry = registry

    def __call__(self) -> Iterator[UnitOfWork]:
        with self.manager.storage_context() as context:
            yield UnitOfWork(context, self.registry)

    def depends(self) -> Any:
        """``Depends`` marker for route signatures."""
        return Depends(self)
