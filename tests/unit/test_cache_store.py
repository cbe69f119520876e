import json
import os
import threading
import time

import pytest

from asset_resolver.cache import CacheStore, FileKeyLockManager, KeyLockManager
from asset_resolver.models import File, TranspileResult
from asset_resolver.storage import LocalFileStorage


@pytest.fixture
def store(storage):
    return CacheStore(storage, "var/cache")


def test_key_for_uses_output_path(store):
    key = store.key_for(File("web/app.js"))
    assert key.endswith("_web.app.js")
    assert store.path_for(key) == f"var/cache/{key}"
    assert store.sources_path_for(key) == f"var/cache/{key}.sources"


def test_sources_changed_without_record(store):
    assert store.sources_changed("k", ["a.ts"])


def test_sources_changed_is_set_based(store):
    store.record_sources("k", ["b.ts", "a.ts", "a.ts"])

    assert not store.sources_changed("k", ["a.ts", "b.ts"])
    assert not store.sources_changed("k", ["b.ts", "a.ts"])
    assert store.sources_changed("k", ["a.ts"])
    assert store.sources_changed("k", ["a.ts", "b.ts", "c.ts"])


def test_recorded_sources_are_sorted(store, storage):
    store.record_sources("k", ["util.ts", "app.ts"])
    data = json.loads(storage.read_text(store.sources_path_for("k")))
    assert data["sources"] == ["app.ts", "util.ts"]


def test_corrupt_sources_record_counts_as_changed(store, storage, caplog):
    storage.write_text(store.sources_path_for("k"), "{not json")
    assert store.sources_changed("k", [])
    assert "Corrupt source list" in caplog.text


def test_any_changed(storage, store):
    storage.write_text("src/a.ts", "a")
    assert store.any_changed("web/a.js", ["src/a.ts"])

    storage.write_text("web/a.js", "compiled")
    assert not store.any_changed("web/a.js", ["src/a.ts"])

    storage.touch("src/a.ts")
    assert store.any_changed("web/a.js", ["src/a.ts"])


def test_any_changed_equal_timestamps_is_fresh(tmp_path):
    storage = LocalFileStorage(str(tmp_path))
    store = CacheStore(storage, "cache")
    storage.write_text("a.ts", "a")
    storage.write_text("a.js", "a")
    stamp = time.time()
    for name in ("a.ts", "a.js"):
        os.utime(tmp_path / name, (stamp, stamp))
    assert not store.any_changed("a.js", ["a.ts"])

    os.utime(tmp_path / "a.ts", (stamp + 10, stamp + 10))
    assert store.any_changed("a.js", ["a.ts"])


def test_compute_or_load_reuses_fresh_entry(storage, store):
    storage.write_text("src/a.ts", "a")
    calls = []

    def compute():
        calls.append(1)
        return TranspileResult("a", "compiled a")

    first, first_cached = store.compute_or_load("key-a", "src/a.ts", compute)
    second, second_cached = store.compute_or_load("key-a", "src/a.ts", compute)

    assert first == second == TranspileResult("a", "compiled a")
    assert (first_cached, second_cached) == (False, True)
    assert len(calls) == 1


def test_compute_or_load_recomputes_when_source_newer(storage, store):
    storage.write_text("src/a.ts", "a")
    store.compute_or_load("key-a", "src/a.ts", lambda: TranspileResult("a", "v1"))

    storage.touch("src/a.ts")
    result, cached = store.compute_or_load("key-a", "src/a.ts", lambda: TranspileResult("a", "v2"))
    assert not cached
    assert result.content == "v2"


def test_compute_or_load_recomputes_corrupt_entry(storage, store, caplog):
    storage.write_text("src/a.ts", "a")
    storage.write_text(store.path_for("key-a"), json.dumps({"version": 0, "content": "old"}))

    result, cached = store.compute_or_load("key-a", "src/a.ts", lambda: TranspileResult("a", "new"))
    assert not cached
    assert result.content == "new"
    assert "Corrupt cache entry" in caplog.text


def test_compute_or_load_computes_once_under_contention(storage, store):
    storage.write_text("src/a.ts", "a")
    calls = []
    calls_lock = threading.Lock()
    start = threading.Barrier(8)

    def compute():
        with calls_lock:
            calls.append(1)
        time.sleep(0.01)
        return TranspileResult("a", "compiled")

    results = []

    def worker():
        start.wait()
        results.append(store.compute_or_load("key-a", "src/a.ts", compute))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(calls) == 1
    assert sorted(cached for _, cached in results) == [False] + [True] * 7


def test_keys_and_clear(storage, store):
    store.store("k1", TranspileResult("a", "a"))
    store.record_sources("k1", ["a.ts"])
    store.store("k2", TranspileResult("b", "b"))

    assert store.keys() == ["k1", "k2"]
    store.clear()
    assert store.keys() == []


def test_key_lock_manager_is_reentrant():
    locks = KeyLockManager()
    with locks.hold("k"):
        with locks.hold("k"):
            pass


def test_file_key_lock_manager_creates_lock_file(tmp_path):
    locks = FileKeyLockManager(str(tmp_path / "locks"))
    with locks.hold("abc_web.app.js"):
        assert (tmp_path / "locks" / "abc_web.app.js.lock").exists()


def test_file_key_lock_manager_nested_hold_is_released(tmp_path):
    locks = FileKeyLockManager(str(tmp_path / "locks"))
    with locks.hold("k"):
        with locks.hold("k"):
            pass

    acquired = threading.Event()

    def take():
        with locks.hold("k"):
            acquired.set()

    t = threading.Thread(target=take)
    t.start()
    t.join(timeout=5)
    assert acquired.is_set()
