"""
Repository abstract base class and generic implementation.
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar, Optional, List, Type
from sqlmodel import SQLModel, Session, func, select
from persistkit.database.context import IStorageContext
from persistkit.exceptions import RepositoryNotBoundError

T = TypeVar("T", bound=SQLModel)


class IRepository(ABC):
    """Repository interface; a unit of work binds its storage context before handing it out."""

    @abstractmethod
    def set_storage_context(self, storage_context: IStorageContext) -> None:
        """Bind the storage context all data operations run against."""
        pass


class BaseRepository(IRepository, Generic[T]):
    """Generic repository with SQLModel CRUD; subclasses set ``model`` and add custom queries."""

    model: Type[T] = None

    def __init__(self, model: Optional[Type[T]] = None):
        if model is not None:
            self.model = model
        self._storage_context: Optional[IStorageContext] = None

    def set_storage_context(self, storage_context: IStorageContext) -> None:
        self._storage_context = storage_context

    @property
    def storage_context(self) -> Optional[IStorageContext]:
        return self._storage_context

    @property
    def session(self) -> Session:
        """Bound session; raises if no storage context was set."""
        if self._storage_context is None:
            raise RepositoryNotBoundError(
                f"{type(self).__name__} has no storage context. "
                "Get repositories from a UnitOfWork or call set_storage_context() first."
            )
        return self._storage_context

    def get_by_id(self, id: int) -> Optional[T]:
        """Get entity by ID."""
        return self.session.get(self.model, id)

    def get_all(self, limit: int = 100, offset: int = 0) -> List[T]:
        """Get all entities (paginated)."""
        statement = select(self.model).limit(limit).offset(offset)
        return list(self.session.exec(statement).all())

    def create(self, entity: T) -> T:
        """Stage a new entity."""
        self.session.add(entity)
        return entity

    def update(self, entity: T) -> T:
        """Stage an update (SQLModel tracks attribute changes)."""
        self.session.add(entity)
        return entity

    def delete(self, id: int) -> bool:
        """Stage deletion of the entity with this ID."""
        entity = self.get_by_id(id)
        if entity:
            self.session.delete(entity)
            return True
        return False

    def _filtered(self, statement, filters):
        for key, value in filters.items():
            if hasattr(self.model, key):
                statement = statement.where(getattr(self.model, key) == value)
        return statement

    def find_one(self, **filters) -> Optional[T]:
        """Find one entity by filters (e.g. name='acme')."""
        statement = self._filtered(select(self.model), filters)
        return self.session.exec(statement).first()

    def find_all(self, **filters) -> List[T]:
        """Find entities by filters."""
        statement = self._filtered(select(self.model), filters)
        return list(self.session.exec(statement).all())

    def count(self, **filters) -> int:
        """Count entities matching filters."""
        statement = self._filtered(select(func.count()).select_from(self.model), filters)
        return self.session.exec(statement).one()
