import pytest

from asset_resolver.bundler import Bundler
from asset_resolver.cache import FileKeyLockManager, KeyLockManager
from asset_resolver.config import BuildConfig
from asset_resolver.errors import ConfigurationError, PipelineConfigurationError
from asset_resolver.factory import build_pipeline, create_bundler
from asset_resolver.imports import ManifestImportFinder
from asset_resolver.models import File
from asset_resolver.pipeline import CommandProcessor, IdentityProcessor, JsonProcessor, ModuleProcessor
from asset_resolver.storage import InMemoryStorage, LocalFileStorage


def test_default_pipeline():
    pipeline = build_pipeline()
    assert pipeline.input_extensions == ("css", "html", "js", "json", "svg")
    assert [type(p) for p in pipeline.processors] == [JsonProcessor, IdentityProcessor]


def test_command_claims_its_extension():
    pipeline = build_pipeline([{"from": "css", "to": "css", "command": "postcss --no-map"}])
    command = pipeline.processors[-1]

    assert isinstance(command, CommandProcessor)
    assert command.command == ["postcss", "--no-map"]
    assert "css" not in pipeline.processors[1].extensions
    assert pipeline.peek(".", File("a.css")) == "css"


def test_intermediate_state_gets_a_module_processor():
    pipeline = build_pipeline([{"from": "ts", "to": "js", "state": "js", "command": ["esbuild", "--loader=ts"]}])
    assert isinstance(pipeline.processors[-1], ModuleProcessor)
    assert pipeline.peek(".", File("src/app.ts")) == "js"


def test_chained_commands_need_no_module_processor():
    pipeline = build_pipeline(
        [
            {"from": "ts", "to": "js", "state": "js", "command": "tsc-stdin", "name": "tsc"},
            {"from": "js", "from-state": "js", "to": "js", "command": "terser", "timeout": 30},
        ]
    )
    assert not any(isinstance(p, ModuleProcessor) for p in pipeline.processors)
    assert pipeline.processors[-1].timeout == 30
    assert pipeline.processors[-2].name == "tsc"


@pytest.mark.parametrize(
    "spec",
    [
        {"from": "less", "to": "css"},
        {"from": "less", "to": "css", "command": ""},
        {"to": "css", "command": "lessc"},
    ],
)
def test_invalid_processor_definitions(spec):
    with pytest.raises(ConfigurationError):
        build_pipeline([spec])


def test_duplicate_commands_are_ambiguous():
    with pytest.raises(PipelineConfigurationError):
        build_pipeline(
            [
                {"from": "less", "to": "css", "command": "lessc -"},
                {"from": "less", "to": "css", "command": "other -"},
            ]
        )


def test_create_bundler_with_memory_storage():
    config = BuildConfig(web_root="web", cwd="/project", cache_dir="cache", entry_points=["app.js"])
    bundler = create_bundler(config, ManifestImportFinder({}), storage=InMemoryStorage())

    assert isinstance(bundler, Bundler)
    assert type(bundler.cache.locks) is KeyLockManager


def test_create_bundler_with_local_storage_uses_file_locks(tmp_path):
    config = BuildConfig(web_root="web", cwd=str(tmp_path), cache_dir="var/cache")
    bundler = create_bundler(config, ManifestImportFinder({}))

    assert isinstance(bundler.storage, LocalFileStorage)
    assert isinstance(bundler.cache.locks, FileKeyLockManager)
    assert (tmp_path / "var" / "cache").is_dir()


def test_create_bundler_validates_config():
    with pytest.raises(ConfigurationError):
        create_bundler(BuildConfig(web_root="web", workers=0), ManifestImportFinder({}), storage=InMemoryStorage())
