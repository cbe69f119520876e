import logging
import os
import shutil
import tempfile
from typing import List

from ..errors import StorageError
from ..models import File
from .base import StorageAdapter

logger = logging.getLogger(__name__)


class LocalFileStorage(StorageAdapter):
    """
    Storage adapter backed by the local file system.

    Relative paths are resolved against `cwd`, absolute ones are used as they are.
    Writes go to a temporary sibling first and are moved into place with `os.replace`,
    which is atomic on POSIX and Windows.
    """

    def __init__(self, cwd: str):
        self.cwd = os.path.abspath(cwd)

    def resolve(self, path: str) -> str:
        if File.is_absolute_path(path):
            return path
        return os.path.join(self.cwd, path)

    def read(self, path: str) -> bytes:
        full_path = self.resolve(path)
        try:
            with open(full_path, "rb") as f:
                return f.read()
        except OSError as e:
            raise StorageError(f"Unable to read {path}: {e}", path=path) from e

    def exists(self, path: str) -> bool:
        return os.path.exists(self.resolve(path))

    def modified_time(self, path: str) -> float:
        try:
            return os.path.getmtime(self.resolve(path))
        except OSError as e:
            raise StorageError(f"Unable to stat {path}: {e}", path=path) from e

    def write(self, path: str, data: bytes):
        full_path = self.resolve(path)
        directory = os.path.dirname(full_path) or "."
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".tmp-", suffix=os.path.basename(full_path))
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_path, full_path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StorageError(f"Unable to write {path}: {e}", path=path) from e

    def make_directories(self, path: str):
        try:
            os.makedirs(self.resolve(path), exist_ok=True)
        except OSError as e:
            raise StorageError(f"Unable to create directory {path}: {e}", path=path) from e

    def remove_tree(self, path: str):
        full_path = self.resolve(path)
        if not os.path.exists(full_path):
            return
        try:
            shutil.rmtree(full_path)
        except OSError as e:
            raise StorageError(f"Unable to remove {path}: {e}", path=path) from e
        logger.info(f"🧹 Removed {full_path}")

    def list_files(self, path: str) -> List[str]:
        full_path = self.resolve(path)
        if not os.path.isdir(full_path):
            return []
        return sorted(name for name in os.listdir(full_path) if os.path.isfile(os.path.join(full_path, name)))
