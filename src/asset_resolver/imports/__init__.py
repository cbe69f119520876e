from .base import ImportFinder
from .manifest import ManifestImportFinder

__all__ = ["ImportFinder", "ManifestImportFinder"]
