"""
persistkit: Unit of Work over a SQLModel session with registry-resolved repositories.
"""

from persistkit.database import (
    ChangeEntry,
    EntityState,
    IStorageContext,
    StorageContextBase,
    StorageManager,
)
from persistkit.exceptions import ConfigurationError, RepositoryNotBoundError, StorageException
from persistkit.repository import (
    BaseRepository,
    IRepository,
    IStorage,
    RepositoryRegistry,
    UnitOfWork,
)

__all__ = [
    "BaseRepository",
    "ChangeEntry",
    "ConfigurationError",
    "EntityState",
    "IRepository",
    "IStorage",
    "IStorageContext",
    "RepositoryNotBoundError",
    "RepositoryRegistry",
    "StorageContextBase",
    "StorageException",
    "StorageManager",
    "UnitOfWork",
]
