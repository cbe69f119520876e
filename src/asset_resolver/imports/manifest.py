import json
import logging
from typing import Any, Dict, Iterator, List, Mapping, Set, Tuple

from ..errors import ConfigurationError
from ..models import Dependency, File
from ..storage.base import StorageAdapter
from .base import ImportFinder

logger = logging.getLogger(__name__)


class ManifestImportFinder(ImportFinder):
    """
    Import finder over a pre-computed dependency manifest.

    The manifest maps a file to its direct imports:

        {
            "src/app.ts": ["src/util.ts", {"path": "jquery", "virtual": true}],
            "src/util.ts": [{"path": "src/style.less", "static": true}]
        }

    `all()` walks it depth-first and emits files post-order (dependencies first), each file once.
    Virtual entries are kept in the result and still walked, so anything reachable only through
    them stays part of the graph. Flags of the first edge reaching a file win.
    """

    def __init__(self, graph: Mapping[str, List[Any]]):
        self._graph: Dict[str, List[Dependency]] = {
            File(path).path: [self._to_dependency(entry, path) for entry in entries]
            for path, entries in graph.items()
        }

    @staticmethod
    def _to_dependency(entry: Any, owner: str) -> Dependency:
        if isinstance(entry, str):
            return Dependency(File(entry))
        if isinstance(entry, dict) and isinstance(entry.get("path"), str):
            return Dependency(
                File(entry["path"]), virtual=bool(entry.get("virtual", False)), static=bool(entry.get("static", False))
            )
        raise ConfigurationError(f"Invalid dependency entry for {owner}: {entry!r}")

    @classmethod
    def from_file(cls, storage: StorageAdapter, path: str) -> "ManifestImportFinder":
        try:
            data = json.loads(storage.read_text(path))
        except ValueError as e:
            raise ConfigurationError(f"Dependency manifest {path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Dependency manifest {path} must be an object of file -> imports")
        logger.info(f"📦 Loaded dependency manifest {path} ({len(data)} files)")
        return cls(data)

    def imports_of(self, file: File) -> List[Dependency]:
        return list(self._graph.get(file.path, []))

    def all(self, file: File) -> List[Dependency]:
        ordered: List[Dependency] = []
        root = Dependency(file)
        seen: Set[str] = {root.file.path}

        # Explicit stack: long require chains must not hit the interpreter's recursion limit
        stack: List[Tuple[Dependency, Iterator[Dependency]]] = [(root, iter(self._graph.get(root.file.path, [])))]
        while stack:
            dep, children = stack[-1]
            for child in children:
                if child.file.path not in seen:
                    seen.add(child.file.path)
                    stack.append((child, iter(self._graph.get(child.file.path, []))))
                    break
            else:
                stack.pop()
                ordered.append(dep)
        return ordered
