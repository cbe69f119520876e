import logging

from opentelemetry import trace

from ..cache.store import CacheStore
from ..config import BuildConfig
from ..models import File, TranspileResult
from ..transpile.base import Transpiler
from .transformer import Transformer

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class ModuleCompiler:
    """
    Produces the `(module_name, content)` pair of a single file.

    In dev mode results go through the compute cache, keyed by the file's predicted *output*
    path (`src/app.ts` -> `src/app.js`). The entry is reused while it is newer than the source.
    Outside dev mode the cache is neither read nor written: every call transpiles.
    """

    def __init__(self, config: BuildConfig, transpiler: Transpiler, transformer: Transformer, cache: CacheStore):
        self.config = config
        self.transpiler = transpiler
        self.transformer = transformer
        self.cache = cache

    def output_file_for(self, file: File) -> File:
        return file.with_extension(self.transpiler.extension_for(file))

    def compile(self, file: File) -> TranspileResult:
        output_file = self.output_file_for(file)

        if not self.config.dev:
            return self._compile(file, output_file)

        key = self.cache.key_for(output_file)
        result, from_cache = self.cache.compute_or_load(key, file.path, lambda: self._compile(file, output_file))
        if from_cache:
            logger.debug(f"  - Emitting {file.path} (from cache)")
        return result

    def _compile(self, file: File, output_file: File) -> TranspileResult:
        logger.debug(f"  - Emitting {file.path}")

        with tracer.start_as_current_span("compiler.transpile") as span:
            span.set_attribute("file.path", file.path)
            span.set_attribute("file.output", output_file.path)

            result = self.transpiler.transpile(file)
            content = self.transformer.on_post_transpile(output_file, result.content, self.config.output_folder)

        return TranspileResult(result.module_name, content)
