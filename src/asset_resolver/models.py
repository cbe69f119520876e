import posixpath
import re
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .errors import CacheCorruptionError
from .schema import CACHE_SCHEMA_VERSION, VENDOR_DIR

_WINDOWS_DRIVE = re.compile(r"^[a-zA-Z]:[\\/]")
_URL_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")


def clean_path(path: str) -> str:
    """Normalizes separators and collapses `.` / `..` segments without touching the disk."""
    path = path.replace("\\", "/")
    if _URL_SCHEME.match(path):
        return path

    is_absolute = path.startswith("/")
    parts: List[str] = []
    for part in path.split("/"):
        if part in ("", "."):
            continue
        if part == ".." and parts and parts[-1] != "..":
            parts.pop()
            continue
        if part == ".." and is_absolute:
            continue
        parts.append(part)

    cleaned = "/".join(parts)
    return "/" + cleaned if is_absolute else cleaned


@dataclass(frozen=True)
class File:
    """
    Path-addressed unit of content.

    The path is relative to the configured working directory unless it is explicitly absolute.
    A File never changes after construction: every derived value (directory, base name,
    extension) is computed from the normalized path.
    """

    path: str

    def __post_init__(self):
        object.__setattr__(self, "path", clean_path(self.path))

    @staticmethod
    def is_absolute_path(path: str) -> bool:
        return path.startswith("/") or bool(_WINDOWS_DRIVE.match(path)) or bool(_URL_SCHEME.match(path))

    @property
    def directory(self) -> str:
        return posixpath.dirname(self.path) or "."

    @property
    def name(self) -> str:
        return posixpath.basename(self.path)

    @property
    def base_name(self) -> str:
        name = self.name
        if "." not in name.lstrip("."):
            return name
        return name[: name.rindex(".")]

    @property
    def extension(self) -> str:
        name = self.name
        if "." not in name.lstrip("."):
            return ""
        return name[name.rindex(".") + 1 :]

    @property
    def is_vendor(self) -> bool:
        return VENDOR_DIR in self.path.split("/")

    def with_extension(self, extension: str) -> "File":
        """Same directory and base name, another extension."""
        return File(f"{self.directory}/{self.base_name}.{extension}")

    def __str__(self) -> str:
        return self.path


@dataclass(frozen=True)
class Dependency:
    """
    Edge from an entry point to a required file.

    *   **virtual**: the reference resolves outside the file system (e.g. a global). It is never
        read, transpiled or wrapped, but stays in the list so the graph is transitively complete.
    *   **static**: a standalone asset reference (e.g. a stylesheet required by a script).
        Static files are compiled one-to-one instead of being concatenated into the bundle.
    """

    file: File
    virtual: bool = False
    static: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.file.path, "virtual": self.virtual, "static": self.static}


@dataclass
class EntryPoint:
    """
    Root file plus its resolved dependency list.

    Dependency order is significant: it is the concatenation order of the bundle.
    The list is split into three views once, at construction:

    *   **bundle_files**: application code (everything outside `node_modules`).
    *   **vendor_files**: third-party code (inside `node_modules`).
    *   **asset_files**: static, non-virtual references compiled on their own.

    The entry file itself is always the last bundled dependency.
    """

    file: File
    dependencies: List[Dependency] = field(default_factory=list)

    bundle_files: Tuple[Dependency, ...] = field(init=False, repr=False)
    vendor_files: Tuple[Dependency, ...] = field(init=False, repr=False)
    asset_files: Tuple[File, ...] = field(init=False, repr=False)

    def __post_init__(self):
        deps = list(self.dependencies)
        if not any(dep.file == self.file for dep in deps):
            deps.append(Dependency(self.file))
        self.dependencies = deps

        bundle, vendor, assets = [], [], []
        for dep in deps:
            if dep.static:
                if not dep.virtual:
                    assets.append(dep.file)
                continue
            if dep.file.is_vendor:
                vendor.append(dep)
            else:
                bundle.append(dep)

        self.bundle_files = tuple(bundle)
        self.vendor_files = tuple(vendor)
        self.asset_files = tuple(assets)

    def bundle_file(self, output_folder: str) -> File:
        return File(f"{output_folder}/{self.file.base_name}.js")

    def vendor_file(self, output_folder: str) -> File:
        return File(f"{output_folder}/{self.file.base_name}.vendor.js")


@dataclass(frozen=True)
class TranspileResult:
    """Output of converting one file: the logical module name used for wrapping and the final content."""

    module_name: str
    content: str


@dataclass
class CacheRecord:
    """
    Persisted compute result for one output file.

    Keyed by the output file's logical path, never by content, so a stale record can be located
    before recomputation. `sources` is only filled for source-set records (dev mode).
    """

    key: str
    module_name: str = ""
    content: str = ""
    sources: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["version"] = CACHE_SCHEMA_VERSION
        return data

    @classmethod
    def from_dict(cls, key: str, data: Any) -> "CacheRecord":
        """Rebuilds a record, failing loudly on any schema drift."""
        if not isinstance(data, dict):
            raise CacheCorruptionError(f"Cache record {key} is not an object", key=key)

        version = data.get("version")
        if version != CACHE_SCHEMA_VERSION:
            raise CacheCorruptionError(
                f"Cache record {key} has schema version {version!r}, expected {CACHE_SCHEMA_VERSION}", key=key
            )

        module_name = data.get("module_name", "")
        content = data.get("content", "")
        sources = data.get("sources")
        if not isinstance(module_name, str) or not isinstance(content, str):
            raise CacheCorruptionError(f"Cache record {key} has a malformed payload", key=key)
        if sources is not None and (
            not isinstance(sources, list) or not all(isinstance(s, str) for s in sources)
        ):
            raise CacheCorruptionError(f"Cache record {key} has a malformed source list", key=key)

        return cls(key=key, module_name=module_name, content=content, sources=sources)

    def to_result(self) -> TranspileResult:
        return TranspileResult(self.module_name, self.content)
