from .bundler import AssetCompiler, Bundler, CompositeTransformer, DefineModuleWrapper, ModuleWrapper, Transformer
from .cache import CacheStore
from .config import BuildConfig, load_config
from .errors import (
    CacheCorruptionError,
    ConfigurationError,
    PipelineConfigurationError,
    ResolverError,
    StorageError,
    TransformationError,
    TranspileError,
)
from .factory import build_pipeline, create_bundler
from .imports import ImportFinder, ManifestImportFinder
from .models import CacheRecord, Dependency, EntryPoint, File, TranspileResult
from .pipeline import ContentPipeline, ContentProcessor
from .storage import InMemoryStorage, LocalFileStorage, StorageAdapter
from .transpile import PipelineTranspiler, Transpiler

__all__ = [
    "Bundler", "AssetCompiler", "create_bundler", "build_pipeline",
    "BuildConfig", "load_config",
    "File", "Dependency", "EntryPoint", "TranspileResult", "CacheRecord",
    "CacheStore",
    "ContentPipeline", "ContentProcessor",
    "Transpiler", "PipelineTranspiler",
    "ImportFinder", "ManifestImportFinder",
    "ModuleWrapper", "DefineModuleWrapper",
    "Transformer", "CompositeTransformer",
    "StorageAdapter", "LocalFileStorage", "InMemoryStorage",
    "ResolverError", "ConfigurationError", "PipelineConfigurationError",
    "TransformationError", "TranspileError", "StorageError", "CacheCorruptionError",
]
