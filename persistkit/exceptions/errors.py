"""
Storage exceptions. Engine failures (sqlalchemy.exc.SQLAlchemyError) and
cancellation (asyncio.CancelledError) are propagated as-is and have no
counterpart here.
"""

from typing import Any


class StorageException(Exception):
    """Base class for storage exceptions."""
    def __init__(self, message: str, detail: Any = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class ConfigurationError(StorageException):
    """Unit of work was given a storage context or registry it cannot work with."""


class RepositoryNotBoundError(StorageException):
    """Repository was used before a storage context was set."""
