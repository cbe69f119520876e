from .locks import FileKeyLockManager, KeyLockManager
from .store import CacheStore

__all__ = ["CacheStore", "KeyLockManager", "FileKeyLockManager"]
