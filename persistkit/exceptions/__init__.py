from .errors import ConfigurationError, RepositoryNotBoundError, StorageException

__all__ = ["StorageException", "ConfigurationError", "RepositoryNotBoundError"]
