from abc import ABC, abstractmethod
from typing import List


class StorageAdapter(ABC):
    """
    Abstract Base Class (ABC) for the build's file system access.

    The engine never touches the disk directly: every read, write, timestamp lookup and
    directory creation goes through this contract. Paths are logical (relative to the
    adapter's working directory) unless explicitly absolute.

    Implementations must raise `StorageError` for any I/O failure and must make `write`
    atomic, so a concurrent reader never observes a half-written file.
    """

    # --- READ ---
    @abstractmethod
    def read(self, path: str) -> bytes:
        pass

    @abstractmethod
    def exists(self, path: str) -> bool:
        pass

    @abstractmethod
    def modified_time(self, path: str) -> float:
        """Returns the modification timestamp. Raises `StorageError` if the path is missing."""
        pass

    # --- WRITE ---
    @abstractmethod
    def write(self, path: str, data: bytes):
        pass

    @abstractmethod
    def make_directories(self, path: str):
        """Creates `path` and all missing parents. No-op when it already exists."""
        pass

    @abstractmethod
    def remove_tree(self, path: str):
        """Removes a directory and everything below it. No-op when missing."""
        pass

    @abstractmethod
    def list_files(self, path: str) -> List[str]:
        """Lists the file names directly inside a directory, sorted."""
        pass

    # --- HELPERS ---
    def read_text(self, path: str) -> str:
        return self.read(path).decode("utf-8")

    def write_text(self, path: str, text: str):
        self.write(path, text.encode("utf-8"))

    def modified_time_or_none(self, path: str):
        if not self.exists(path):
            return None
        return self.modified_time(path)
