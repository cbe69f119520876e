import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import ConfigurationError
from .models import File, clean_path

logger = logging.getLogger(__name__)

# ==============================================================================
#  RUNTIME DEFAULTS (ENVIRONMENT)
# ==============================================================================

"""
Defaults are resolved from the environment (or a `.env` file loaded by the CLI) so CI jobs and
developer machines can tune a build without touching the project's config file.
"""


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        # Log the warning but do not crash at import time, validate() reports real misuse
        logger.warning(f"⚠️ Ignoring {name}={value!r}: not an integer")
        return default


# 1. 'RESOLVER_CACHE_DIR' if set (absolute, or relative to the working directory).
# 2. Otherwise a local folder 'var/cache/asset-resolver'.
CACHE_DIR = os.getenv("RESOLVER_CACHE_DIR", os.path.join("var", "cache", "asset-resolver"))
WORKERS = _env_int("RESOLVER_WORKERS", 1)
DEV = _env_flag("RESOLVER_DEV")

CONFIG_FILE_NAME = "resolve.config.json"

# Config file key -> BuildConfig attribute
_FILE_KEYS = {
    "web-root": "web_root",
    "output-folder": "output_folder",
    "source-root": "source_root",
    "files": "entry_points",
    "assets": "asset_files",
    "cache-dir": "cache_dir",
    "dev": "dev",
    "workers": "workers",
    "processors": "processors",
}


@dataclass
class BuildConfig:
    """
    Explicit build context threaded through every operation.

    Replaces process-wide state (working directory, dev flag): two builds with two configs can
    run side by side in the same process.

    Attributes:
        cwd (str): Directory every relative path is resolved against.
        web_root (str): Public web directory (e.g. 'web').
        output_folder (str): Sub folder of `web_root` receiving the outputs (e.g. 'dist').
        source_root (str): Optional prefix of every entry point and asset path (e.g. 'src').
        entry_points (List[str]): Files bundled with their dependencies, relative to `source_root`.
        asset_files (List[str]): Standalone files compiled one-to-one, relative to `source_root`.
        dev (bool): Enables the compute cache and source-set tracking.
        cache_dir (str): Location of the compute cache.
        workers (int): Entry points (and the files of a group) compiled concurrently.
        processors (List[Dict]): Extra external compiler steps, see `build_pipeline`.
    """

    web_root: str
    output_folder: str = "dist"
    source_root: str = ""
    entry_points: List[str] = field(default_factory=list)
    asset_files: List[str] = field(default_factory=list)
    dev: bool = DEV
    cache_dir: str = CACHE_DIR
    workers: int = WORKERS
    cwd: str = field(default_factory=os.getcwd)
    processors: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def output_root(self) -> str:
        return clean_path(f"{self.web_root}/{self.output_folder}")

    @property
    def source_dir(self) -> str:
        root = self.source_root.strip("/")
        return f"{root}/" if root else ""

    def validate(self) -> "BuildConfig":
        if not self.web_root:
            raise ConfigurationError("web_root is required")
        if not isinstance(self.workers, int) or self.workers < 1:
            raise ConfigurationError(f"workers must be a positive integer, got {self.workers!r}")

        duplicates = sorted({f for f in self.entry_points if self.entry_points.count(f) > 1})
        if duplicates:
            raise ConfigurationError(f"Duplicate entry points: {', '.join(duplicates)}")

        # Outputs are named after the entry's base name only, so folders do not keep them apart
        owners: Dict[str, str] = {}
        for name in self.entry_points:
            base_name = File(name).base_name
            for output in (f"{base_name}.js", f"{base_name}.vendor.js"):
                other = owners.setdefault(output, name)
                if other != name:
                    raise ConfigurationError(
                        f"Entry points {other} and {name} would both write {self.output_root}/{output}"
                    )
        return self


def load_config(path: str, **overrides: Any) -> BuildConfig:
    """
    Reads a JSON build config file.

    Keys: `web-root`, `output-folder`, `source-root`, `files`, `assets`, `cache-dir`, `dev`, `workers`,
    `processors`. The working directory defaults to the folder holding the file. Overrides with a
    `None` value are ignored, so CLI options that were not given keep the file's value.

    Raises:
        ConfigurationError: if the file is unreadable, not a JSON object, or invalid.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read config {path}: {e}") from e
    except ValueError as e:
        raise ConfigurationError(f"Config {path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config {path} must contain a JSON object")

    values: Dict[str, Any] = {"cwd": os.path.dirname(os.path.abspath(path))}
    for key, value in data.items():
        attr = _FILE_KEYS.get(key)
        if attr is None:
            logger.warning(f"⚠️ Unknown config key '{key}' in {path}, ignored")
            continue
        values[attr] = value

    values.update({k: v for k, v in overrides.items() if v is not None})

    if "web_root" not in values:
        raise ConfigurationError(f"Config {path} is missing 'web-root'")

    try:
        config = BuildConfig(**values)
    except TypeError as e:
        raise ConfigurationError(f"Invalid config {path}: {e}") from e
    return config.validate()


def find_config(cwd: Optional[str] = None) -> str:
    return os.path.join(cwd or os.getcwd(), CONFIG_FILE_NAME)
