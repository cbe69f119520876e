import threading
from collections import Counter

import pytest

from asset_resolver.bundler import Bundler, DefineModuleWrapper, Transformer
from asset_resolver.cache import CacheStore
from asset_resolver.config import BuildConfig
from asset_resolver.imports import ManifestImportFinder
from asset_resolver.models import File, TranspileResult
from asset_resolver.pipeline import ContentPipeline, ContentProcessor, IdentityProcessor, JsonProcessor, ModuleProcessor
from asset_resolver.schema import UNPROCESSED
from asset_resolver.storage import InMemoryStorage
from asset_resolver.transpile import PipelineTranspiler, Transpiler


class StripTypesProcessor(ContentProcessor):
    """Stand-in for a TypeScript compiler: drops `: number` annotations, leaves an intermediate js item."""

    name = "strip-types"

    @property
    def transitions(self):
        return {(UNPROCESSED, "ts"): ("js", "js")}

    def transpile(self, cwd, item):
        item.transition("js", item.content.replace(": number", ""), "js")


class CountingTranspiler(Transpiler):
    """Delegates to a real transpiler and counts transpile calls per path."""

    def __init__(self, inner: Transpiler):
        self.inner = inner
        self.calls = Counter()
        self._lock = threading.Lock()

    def extension_for(self, file: File) -> str:
        return self.inner.extension_for(file)

    def transpile(self, file: File) -> TranspileResult:
        with self._lock:
            self.calls[file.path] += 1
        return self.inner.transpile(file)

    @property
    def total(self) -> int:
        return sum(self.calls.values())

    def reset(self):
        self.calls.clear()


def make_pipeline():
    return ContentPipeline(
        [JsonProcessor(), IdentityProcessor(("js", "css")), StripTypesProcessor(), ModuleProcessor()]
    )


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def pipeline():
    return make_pipeline()


@pytest.fixture
def make_config():
    def _make(**overrides):
        values = dict(web_root="web", output_folder="", cwd="/project", cache_dir="var/cache", dev=True, workers=1)
        values.update(overrides)
        return BuildConfig(**values)

    return _make


@pytest.fixture
def make_bundler(storage):
    """Builds a Bundler over the in-memory storage with a call-counting transpiler."""

    def _make(config, graph, transformer=None, storage=storage):
        transpiler = CountingTranspiler(PipelineTranspiler(storage, make_pipeline(), config.cwd, config.source_root))
        bundler = Bundler(
            config=config,
            storage=storage,
            finder=ManifestImportFinder(graph),
            transpiler=transpiler,
            transformer=transformer or Transformer(),
            module_wrapper=DefineModuleWrapper(),
            cache=CacheStore(storage, config.cache_dir),
        )
        return bundler, transpiler

    return _make
