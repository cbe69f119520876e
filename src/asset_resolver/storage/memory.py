import itertools
import threading
from typing import Dict, List, Optional

from ..errors import StorageError
from ..models import clean_path
from .base import StorageAdapter


class InMemoryStorage(StorageAdapter):
    """
    Storage adapter that keeps every file in a dict.

    Timestamps come from a logical clock that ticks on every write, so "newer than" is
    always well defined, even for writes happening within the same second.
    Used for dry runs and as the reference adapter in tests.
    """

    def __init__(self, files: Optional[Dict[str, str]] = None):
        self._lock = threading.Lock()
        self._clock = itertools.count(1)
        self._files: Dict[str, bytes] = {}
        self._mtimes: Dict[str, float] = {}
        self._dirs = set()
        self.reads: List[str] = []

        for path, content in (files or {}).items():
            self.write_text(path, content)

    @staticmethod
    def _key(path: str) -> str:
        return clean_path(path)

    def read(self, path: str) -> bytes:
        key = self._key(path)
        with self._lock:
            if key not in self._files:
                raise StorageError(f"Unable to read {path}: no such file", path=path)
            self.reads.append(key)
            return self._files[key]

    def exists(self, path: str) -> bool:
        key = self._key(path)
        with self._lock:
            return key in self._files or key in self._dirs

    def modified_time(self, path: str) -> float:
        key = self._key(path)
        with self._lock:
            if key not in self._mtimes:
                raise StorageError(f"Unable to stat {path}: no such file", path=path)
            return self._mtimes[key]

    def write(self, path: str, data: bytes):
        key = self._key(path)
        with self._lock:
            self._files[key] = bytes(data)
            self._mtimes[key] = float(next(self._clock))

    def make_directories(self, path: str):
        key = self._key(path)
        with self._lock:
            parts = key.split("/")
            for i in range(1, len(parts) + 1):
                self._dirs.add("/".join(parts[:i]))

    def remove_tree(self, path: str):
        prefix = self._key(path).rstrip("/") + "/"
        with self._lock:
            for key in [k for k in self._files if k.startswith(prefix)]:
                del self._files[key]
                del self._mtimes[key]
            self._dirs = {d for d in self._dirs if d != prefix[:-1] and not d.startswith(prefix)}

    def list_files(self, path: str) -> List[str]:
        prefix = self._key(path).rstrip("/") + "/"
        with self._lock:
            return sorted(k[len(prefix) :] for k in self._files if k.startswith(prefix) and "/" not in k[len(prefix) :])

    def touch(self, path: str):
        """Bumps the timestamp of an existing file past everything written so far."""
        key = self._key(path)
        with self._lock:
            if key not in self._files:
                raise StorageError(f"Unable to touch {path}: no such file", path=path)
            self._mtimes[key] = float(next(self._clock))
