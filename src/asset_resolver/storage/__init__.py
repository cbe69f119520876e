from .base import StorageAdapter
from .local import LocalFileStorage
from .memory import InMemoryStorage

__all__ = ["StorageAdapter", "LocalFileStorage", "InMemoryStorage"]
