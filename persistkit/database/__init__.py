from .context import ChangeEntry, EntityState, IStorageContext, StorageContextBase
from .manager import StorageManager

__all__ = [
    "ChangeEntry",
    "EntityState",
    "IStorageContext",
    "StorageContextBase",
    "StorageManager",
]
