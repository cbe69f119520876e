import logging
from typing import Iterable, List, Optional

from opentelemetry import trace

from ..cache.store import CacheStore
from ..config import BuildConfig
from ..errors import TransformationError
from ..models import File
from ..storage.base import StorageAdapter
from .compiler import ModuleCompiler
from .transformer import Transformer

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class AssetCompiler:
    """
    Compiles standalone files one-to-one (stylesheets, static resources).

    Each asset lands at the same relative position under the output root as it had under the
    source root, with its transpiled extension (`src/css/site.less` -> `web/dist/css/site.css`).
    Assets are independent of each other: no concatenation, no ordering.
    """

    def __init__(
        self,
        config: BuildConfig,
        storage: StorageAdapter,
        compiler: ModuleCompiler,
        transformer: Transformer,
        cache: CacheStore,
    ):
        self.config = config
        self.storage = storage
        self.compiler = compiler
        self.transformer = transformer
        self.cache = cache

    def output_file_for(self, asset_file: File) -> File:
        source_root = self.config.source_root.strip("/")
        directory = "" if asset_file.directory == "." else asset_file.directory

        if source_root and (directory == source_root or directory.startswith(source_root + "/")):
            directory = directory[len(source_root) :].strip("/")

        extension = self.compiler.transpiler.extension_for(asset_file)
        return File(f"{self.config.output_root}/{directory}/{asset_file.base_name}.{extension}")

    def compile(self, asset_files: Iterable[File]) -> List[File]:
        """Compiles every asset that changed. Returns the outputs actually written."""
        written = []
        for asset_file in asset_files:
            output_file = self.compile_asset(asset_file)
            if output_file is not None:
                written.append(output_file)
        return written

    def compile_asset(self, asset_file: File) -> Optional[File]:
        output_file = self.output_file_for(asset_file)
        self.storage.make_directories(output_file.directory)

        key = self.cache.key_for(output_file)
        with tracer.start_as_current_span("assets.compile") as span, self.cache.hold(key):
            span.set_attribute("file.path", asset_file.path)
            span.set_attribute("file.output", output_file.path)

            if self.config.dev and not self.cache.any_changed(output_file.path, [asset_file.path]):
                logger.debug(f" * Nothing to do for asset {asset_file.path}")
                return None

            try:
                result = self.compiler.compile(asset_file)
            except TransformationError as e:
                span.record_exception(e)
                span.set_status(trace.Status(trace.StatusCode.ERROR))
                logger.error(f"❌ {e}\n{e.diagnostic}" if e.diagnostic else f"❌ {e}")
                raise

            content = self.transformer.on_pre_write(output_file, result.content, self.config.output_folder)
            self.storage.write_text(output_file.path, content)

        logger.info(f"✅ Wrote {output_file.path}")
        return output_file
