"""
Repository pattern: data access abstraction, decouples service layer from database session.
"""

from .base import BaseRepository, IRepository
from .registry import RepositoryRegistry
from .unit_of_work import IStorage, UnitOfWork, ensure_storage_context

__all__ = [
    "BaseRepository",
    "IRepository",
    "IStorage",
    "RepositoryRegistry",
    "UnitOfWork",
    "ensure_storage_context",
]
