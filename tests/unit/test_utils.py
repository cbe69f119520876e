import hashlib

from asset_resolver.utils.hashing import compute_path_hash, create_file_cache_key


def test_compute_path_hash_is_deterministic():
    assert compute_path_hash("web/app.js") == compute_path_hash("web/app.js")
    assert compute_path_hash("web/app.js") != compute_path_hash("web/app2.js")
    assert len(compute_path_hash("web/app.js")) == 5
    assert len(compute_path_hash("web/app.js", length=8)) == 8


def test_cache_key_format():
    expected_hash = hashlib.md5(b"web/dist/app.js").hexdigest()[:5]
    assert create_file_cache_key("web/dist/app.js") == f"{expected_hash}_web.dist.app.js"


def test_cache_key_differs_per_location():
    # Same literal suffix, different locations
    assert create_file_cache_key("a/b.js") != create_file_cache_key("a.b.js")
