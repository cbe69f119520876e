import contextlib
import fcntl
import logging
import os
import threading
from typing import Dict, Iterator

from opentelemetry import trace

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class KeyLockManager:
    """
    Per-key mutual exclusion for the cache.

    Guarantees at most one concurrent check-and-compute per cache key inside the process.
    Locks are re-entrant so a thread already owning a key can consult it again.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.RLock] = {}

    def _lock_for(self, key: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextlib.contextmanager
    def hold(self, key: str) -> Iterator[None]:
        lock = self._lock_for(key)
        # A long wait here means several builders target the same output file
        with tracer.start_as_current_span("cache.lock_wait") as span:
            span.set_attribute("cache.key", key)
            lock.acquire()
        try:
            yield
        finally:
            lock.release()


class FileKeyLockManager(KeyLockManager):
    """
    Per-key lock shared between processes.

    On top of the in-process lock it takes an exclusive `fcntl` lock on `<lock_dir>/<key>.lock`,
    so separate build processes sharing one cache directory never race on the same key.
    The file lock is taken once per key, nested holds by the owning thread only count depth.
    """

    def __init__(self, lock_dir: str):
        super().__init__()
        self.lock_dir = os.path.abspath(lock_dir)
        self._depth: Dict[str, int] = {}
        os.makedirs(self.lock_dir, exist_ok=True)

    @contextlib.contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with super().hold(key):
            # flock() would block on a second descriptor of the same file, even in this process
            if self._depth.get(key):
                self._depth[key] += 1
                try:
                    yield
                finally:
                    self._depth[key] -= 1
                return

            lock_file = os.path.join(self.lock_dir, f"{key}.lock")
            with open(lock_file, "w") as f:
                fcntl.flock(f, fcntl.LOCK_EX)
                self._depth[key] = 1
                try:
                    yield
                finally:
                    del self._depth[key]
                    fcntl.flock(f, fcntl.LOCK_UN)
