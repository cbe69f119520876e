import contextlib
import json
import logging
from typing import Callable, Iterable, Iterator, List, Optional, Tuple

from ..errors import CacheCorruptionError
from ..models import CacheRecord, File, TranspileResult
from ..storage.base import StorageAdapter
from ..utils.hashing import create_file_cache_key
from .locks import KeyLockManager

logger = logging.getLogger(__name__)

SOURCES_SUFFIX = ".sources"


class CacheStore:
    """
    On-disk compute cache with explicit staleness detection.

    **Records** (one JSON document per output file, see `CacheRecord`):
    *   `<cache_dir>/<key>`: the transpiled `(module_name, content)` pair.
    *   `<cache_dir>/<key>.sources`: sorted input paths used to build that output (dev mode).

    **Staleness** is never time-to-live based. It is decided by two checks:
    *   **Source set**: the persisted input list differs from the current one.
    *   **Timestamps**: the output is missing, or an input is strictly newer than it.

    A record that cannot be decoded is logged and treated as stale, never trusted.
    All check-then-act sequences run under `hold(key)`, which serialises work per key.
    """

    def __init__(self, storage: StorageAdapter, cache_dir: str, locks: Optional[KeyLockManager] = None):
        self.storage = storage
        self.cache_dir = cache_dir.rstrip("/") or "."
        self.locks = locks or KeyLockManager()
        self.storage.make_directories(self.cache_dir)

    # --- KEYS ---
    @staticmethod
    def key_for(output_file: File) -> str:
        return create_file_cache_key(output_file.path)

    def path_for(self, key: str) -> str:
        return f"{self.cache_dir}/{key}"

    def sources_path_for(self, key: str) -> str:
        return self.path_for(key) + SOURCES_SUFFIX

    @contextlib.contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self.locks.hold(key):
            yield

    # --- RECORD I/O ---
    def _read_record(self, path: str, key: str) -> Optional[CacheRecord]:
        if not self.storage.exists(path):
            return None
        raw = self.storage.read(path)
        try:
            data = json.loads(raw.decode("utf-8"))
        except ValueError as e:
            raise CacheCorruptionError(f"Cache record {key} is not valid JSON: {e}", key=key) from e
        return CacheRecord.from_dict(key, data)

    def _write_record(self, path: str, record: CacheRecord):
        self.storage.write_text(path, json.dumps(record.to_dict(), sort_keys=True))

    # --- SOURCE-SET CHECK ---
    def sources_changed(self, key: str, sources: Iterable[str]) -> bool:
        """
        True when the stored input list for `key` is missing or differs from `sources`.

        Comparison is set based: order and duplicates do not matter.
        """
        current = sorted(set(sources))
        try:
            record = self._read_record(self.sources_path_for(key), key)
        except CacheCorruptionError as e:
            logger.warning(f"⚠️ Corrupt source list for {key}, rebuilding: {e}")
            return True

        if record is None or record.sources is None:
            return True
        return bool(set(record.sources) ^ set(current))

    def record_sources(self, key: str, sources: Iterable[str]):
        self._write_record(self.sources_path_for(key), CacheRecord(key=key, sources=sorted(set(sources))))

    # --- TIMESTAMP CHECK ---
    def any_changed(self, output_path: str, input_paths: Iterable[str]) -> bool:
        """True when `output_path` is missing or any input was modified after it."""
        output_mtime = self.storage.modified_time_or_none(output_path)
        if output_mtime is None:
            return True
        for input_path in input_paths:
            if output_mtime < self.storage.modified_time(input_path):
                return True
        return False

    # --- COMPUTE CACHE ---
    def load(self, key: str, source_path: str) -> Optional[TranspileResult]:
        """Returns the cached result for `key` unless it is missing, older than `source_path` or corrupt."""
        entry_path = self.path_for(key)
        if self.any_changed(entry_path, [source_path]):
            return None
        try:
            record = self._read_record(entry_path, key)
        except CacheCorruptionError as e:
            logger.warning(f"⚠️ Corrupt cache entry {key}, recomputing: {e}")
            return None
        return record.to_result() if record else None

    def store(self, key: str, result: TranspileResult):
        self._write_record(
            self.path_for(key), CacheRecord(key=key, module_name=result.module_name, content=result.content)
        )

    def compute_or_load(
        self, key: str, source_path: str, compute: Callable[[], TranspileResult]
    ) -> Tuple[TranspileResult, bool]:
        """
        Atomic "compute-or-wait" for one key.

        Concurrent callers with the same key are serialised: the first computes and persists,
        the others then find a fresh record and reuse it.

        Returns:
            Tuple[TranspileResult, bool]: the result and whether it came from the cache.
        """
        with self.hold(key):
            cached = self.load(key, source_path)
            if cached is not None:
                return cached, True

            result = compute()
            self.store(key, result)
            return result, False

    # --- MAINTENANCE ---
    def keys(self) -> List[str]:
        return [
            name
            for name in self.storage.list_files(self.cache_dir)
            if not name.endswith(SOURCES_SUFFIX) and not name.endswith(".lock") and not name.startswith(".tmp-")
        ]

    def clear(self):
        self.storage.remove_tree(self.cache_dir)
        self.storage.make_directories(self.cache_dir)
