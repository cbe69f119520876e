import hashlib

CACHE_KEY_HASH_LENGTH = 5


def compute_path_hash(path: str, length: int = CACHE_KEY_HASH_LENGTH) -> str:
    return hashlib.md5(path.encode("utf-8")).hexdigest()[:length]


def create_file_cache_key(path: str) -> str:
    """
    Creates the cache key for an output path.

    Unique per location, stable across runs: the same file in another folder gets another key.
    The hash prefix keeps keys distinct, the literal suffix keeps the cache directory readable.
    """
    return f"{compute_path_hash(path)}_{path.replace('/', '.')}"
