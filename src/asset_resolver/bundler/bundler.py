import concurrent.futures
import contextlib
import logging
from typing import Callable, Dict, Iterator, List, Optional, Sequence

from opentelemetry import trace

from ..cache.store import CacheStore
from ..config import BuildConfig
from ..errors import TransformationError
from ..imports.base import ImportFinder
from ..models import Dependency, EntryPoint, File, TranspileResult
from ..schema import OUTPUT_GROUPS
from ..storage.base import StorageAdapter
from ..transpile.base import Transpiler
from .assets import AssetCompiler
from .compiler import ModuleCompiler
from .transformer import Transformer
from .wrapper import ModuleWrapper

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class Bundler:
    """
    The top-level driver of a build.

    For every configured entry point it resolves the dependency list, splits it into the
    bundle, vendor and asset groups and regenerates only what is stale.

    **Workflow (per entry point):**
    1.  **Resolve**: `ImportFinder.all()` returns the ordered dependency list.
    2.  **Check**: for the bundle and the vendor group independently, decide whether the output
        is stale (source-set check + timestamp check in dev mode; always in production).
    3.  **Rebuild**: compile every non-virtual dependency (cached in dev mode), wrap it with its
        module name and original path, concatenate in list order.
    4.  **Write**: run the pre-write transform and persist the output, creating folders as needed.
    5.  **Assets**: compile the static dependencies one-to-one.

    **Concurrency**: with `workers > 1` entry points are built in parallel, and the files of a
    group are compiled in parallel too. Concatenation always follows the resolved order.

    **Failures**: a transformation error aborts the current entry point and propagates.
    Outputs already written for other entry points are kept.
    """

    def __init__(
        self,
        config: BuildConfig,
        storage: StorageAdapter,
        finder: ImportFinder,
        transpiler: Transpiler,
        transformer: Transformer,
        module_wrapper: ModuleWrapper,
        cache: Optional[CacheStore] = None,
    ):
        self.config = config.validate()
        self.storage = storage
        self.finder = finder
        self.transpiler = transpiler
        self.transformer = transformer
        self.module_wrapper = module_wrapper
        self.cache = cache or CacheStore(storage, config.cache_dir)

        self.compiler = ModuleCompiler(config, transpiler, transformer, self.cache)
        self.assets = AssetCompiler(config, storage, self.compiler, transformer, self.cache)

        self._file_pool: Optional[concurrent.futures.ThreadPoolExecutor] = None

    # ==============================================================================
    #  PUBLIC API
    # ==============================================================================

    def bundle(self) -> List[File]:
        """
        Bundles every entry point, each into its own bundle and vendor file.

        Returns:
            List[File]: outputs written during this run, in entry point order.
        """
        files = [File(self.config.source_dir + name) for name in self.config.entry_points]
        with tracer.start_as_current_span("bundler.bundle") as span:
            span.set_attribute("build.entry_points", len(files))
            span.set_attribute("build.dev", self.config.dev)
            return self._run_all(files, self._bundle_entry_point)

    def compile(self) -> List[File]:
        """
        Compiles every configured standalone asset, each into its own file.

        Returns:
            List[File]: outputs written during this run.
        """
        files = [File(self.config.source_dir + name) for name in self.config.asset_files]
        with tracer.start_as_current_span("bundler.compile") as span:
            span.set_attribute("build.assets", len(files))
            return self._run_all(files, self._compile_asset_entry)

    def build(self) -> List[File]:
        return self.bundle() + self.compile()

    # ==============================================================================
    #  ENTRY POINTS
    # ==============================================================================

    def _bundle_entry_point(self, file: File) -> List[File]:
        with tracer.start_as_current_span("bundler.entry_point") as span:
            span.set_attribute("entry_point.path", file.path)

            entry_point = EntryPoint(file, self.finder.all(file))
            output_folder = self.config.output_root
            written: List[File] = []

            logger.debug(f"Checking entry-point {file.path}")

            try:
                for group, output_file, dependencies in (
                    ("bundle", entry_point.bundle_file(output_folder), entry_point.bundle_files),
                    ("vendor", entry_point.vendor_file(output_folder), entry_point.vendor_files),
                ):
                    if self._build_group(group, entry_point, output_file, dependencies):
                        written.append(output_file)

                written.extend(self.assets.compile(entry_point.asset_files))
            except Exception as e:
                span.record_exception(e)
                span.set_status(trace.Status(trace.StatusCode.ERROR))
                logger.error(f"❌ Build of entry-point {file.path} failed: {e}")
                raise

            return written

    def _compile_asset_entry(self, file: File) -> List[File]:
        entry_point = EntryPoint(file, self.finder.all(file))
        logger.debug(f"Checking asset {file.path}")

        return self.assets.compile(dep.file for dep in entry_point.bundle_files if not dep.virtual)

    # ==============================================================================
    #  GROUPS (BUNDLE / VENDOR)
    # ==============================================================================

    def _build_group(
        self, group: OUTPUT_GROUPS, entry_point: EntryPoint, output_file: File, dependencies: Sequence[Dependency]
    ) -> bool:
        files = [dep.file for dep in dependencies if not dep.virtual]
        sources = [f.path for f in files]
        key = self.cache.key_for(output_file)

        with tracer.start_as_current_span("bundler.compile_group") as span, self.cache.hold(key):
            span.set_attribute("group.name", group)
            span.set_attribute("group.output", output_file.path)
            span.set_attribute("group.files", len(files))

            if not self._needs_rebuild(key, output_file, sources):
                logger.debug(f" * Nothing to do for {group}")
                return False

            logger.debug(f" * Compiling {group} for {entry_point.file.path}")
            self._compile_file(output_file, files)

            # Recorded only once the output exists, so a failed build is retried next time
            if self.config.dev:
                self.cache.record_sources(key, sources)

        return True

    def _needs_rebuild(self, key: str, output_file: File, sources: List[str]) -> bool:
        if not self.config.dev:
            return True
        if self.cache.sources_changed(key, sources):
            return True
        return self.cache.any_changed(output_file.path, sources)

    def _compile_file(self, output_file: File, files: List[File]):
        self.storage.make_directories(output_file.directory)

        try:
            # Same predicted output means same compute-cache key: one file would be served the other's result
            self._check_distinct(output_file, files, [self.compiler.output_file_for(f).path for f in files], "output")
            results = self._compile_all(files)
            self._check_distinct(output_file, files, [r.module_name for r in results], "module name")
        except TransformationError as e:
            logger.error(f"❌ {e}\n{e.diagnostic}" if e.diagnostic else f"❌ {e}")
            raise

        output_content = "".join(
            # The original path, not the output one: the runtime resolves requires relative to it
            self.module_wrapper.wrap_module(file.path, result.module_name, result.content)
            for file, result in zip(files, results)
        )

        output_content = self.transformer.on_pre_write(output_file, output_content, self.config.output_folder)
        self.storage.write_text(output_file.path, output_content)

        logger.info(f"✅ Wrote {output_file.path} ({len(files)} modules)")

    @staticmethod
    def _check_distinct(output_file: File, files: List[File], values: List[str], what: str):
        owners: Dict[str, File] = {}
        for file, value in zip(files, values):
            other = owners.setdefault(value, file)
            if other != file:
                raise TransformationError(
                    f"{other.path} and {file.path} share the {what} '{value}' in {output_file.path}", path=file.path
                )

    def _compile_all(self, files: List[File]) -> List[TranspileResult]:
        if self._file_pool is None or len(files) < 2:
            return [self.compiler.compile(f) for f in files]
        # map() yields in submission order, whatever the completion order
        return list(self._file_pool.map(self.compiler.compile, files))

    # ==============================================================================
    #  EXECUTION
    # ==============================================================================

    @contextlib.contextmanager
    def _pools(self) -> Iterator[Optional[concurrent.futures.ThreadPoolExecutor]]:
        if self.config.workers < 2:
            yield None
            return

        # Two pools: entry-point tasks block on file tasks, sharing one pool could starve it
        with concurrent.futures.ThreadPoolExecutor(
            max_workers=self.config.workers, thread_name_prefix="resolver-file"
        ) as file_pool, concurrent.futures.ThreadPoolExecutor(
            max_workers=self.config.workers, thread_name_prefix="resolver-entry"
        ) as entry_pool:
            self._file_pool = file_pool
            try:
                yield entry_pool
            finally:
                self._file_pool = None

    def _run_all(self, files: List[File], task: Callable[[File], List[File]]) -> List[File]:
        written: List[File] = []

        with self._pools() as entry_pool:
            if entry_pool is None:
                for file in files:
                    written.extend(task(file))
                return written

            futures = [entry_pool.submit(task, file) for file in files]
            concurrent.futures.wait(futures)

        errors = []
        for file, future in zip(files, futures):
            error = future.exception()
            if error is not None:
                errors.append((file, error))
                continue
            written.extend(future.result())

        if errors:
            for file, error in errors[1:]:
                logger.error(f"❌ Entry {file.path} also failed: {error}")
            raise errors[0][1]

        return written
