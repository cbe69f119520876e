import importlib
import json
import os

import pytest

import asset_resolver.config as config
from asset_resolver.config import BuildConfig, find_config, load_config
from asset_resolver.errors import ConfigurationError


@pytest.fixture
def reload_config(monkeypatch):
    yield lambda: importlib.reload(config)
    # Restore the environment before restoring the module defaults
    monkeypatch.undo()
    importlib.reload(config)


def test_config_uses_env_defaults(monkeypatch, tmp_path, reload_config):
    monkeypatch.setenv("RESOLVER_CACHE_DIR", str(tmp_path))
    monkeypatch.setenv("RESOLVER_WORKERS", "4")
    monkeypatch.setenv("RESOLVER_DEV", "yes")
    module = reload_config()
    assert module.CACHE_DIR == str(tmp_path)
    assert module.WORKERS == 4
    assert module.DEV is True


def test_config_ignores_bad_worker_count(monkeypatch, reload_config, caplog):
    monkeypatch.setenv("RESOLVER_WORKERS", "many")
    monkeypatch.delenv("RESOLVER_DEV", raising=False)
    module = reload_config()
    assert module.WORKERS == 1
    assert module.DEV is False
    assert "not an integer" in caplog.text


def test_build_config_paths():
    cfg = BuildConfig(web_root="web", output_folder="dist", source_root="/src/")
    assert cfg.output_root == "web/dist"
    assert cfg.source_dir == "src/"
    assert BuildConfig(web_root="web", output_folder="").output_root == "web"
    assert BuildConfig(web_root="web").source_dir == ""


@pytest.mark.parametrize(
    "kwargs",
    [
        {"web_root": ""},
        {"web_root": "web", "workers": 0},
        {"web_root": "web", "workers": "2"},
        {"web_root": "web", "entry_points": ["app.ts", "app.ts"]},
    ],
)
def test_validate_rejects_invalid_config(kwargs):
    with pytest.raises(ConfigurationError):
        BuildConfig(**kwargs).validate()


@pytest.mark.parametrize(
    "entry_points, output",
    [
        (["app.js", "admin/app.js"], "web/dist/app.js"),
        (["app.ts", "app.js"], "web/dist/app.js"),
        (["app.ts", "app.vendor.ts"], "web/dist/app.vendor.js"),
    ],
)
def test_validate_rejects_entry_points_sharing_an_output(entry_points, output):
    config = BuildConfig(web_root="web", entry_points=entry_points)
    with pytest.raises(ConfigurationError, match=f"{entry_points[0]} and {entry_points[1]} would both write {output}"):
        config.validate()


def test_validate_accepts_distinct_base_names():
    config = BuildConfig(web_root="web", entry_points=["app.js", "admin/admin.js", "pages/home.ts"])
    assert config.validate() is config


def _write(tmp_path, data, name="resolve.config.json"):
    path = tmp_path / name
    path.write_text(data if isinstance(data, str) else json.dumps(data))
    return str(path)


def test_load_config_reads_file(tmp_path, caplog):
    path = _write(
        tmp_path,
        {
            "web-root": "web",
            "output-folder": "dist",
            "source-root": "src",
            "files": ["app.ts"],
            "assets": ["css/site.less"],
            "dev": True,
            "workers": 2,
            "processors": [{"from": "less", "to": "css", "command": "lessc -"}],
            "minify": True,
        },
    )

    cfg = load_config(path)

    assert cfg.cwd == str(tmp_path)
    assert cfg.entry_points == ["app.ts"]
    assert cfg.asset_files == ["css/site.less"]
    assert cfg.dev is True
    assert cfg.workers == 2
    assert cfg.processors[0]["from"] == "less"
    assert "Unknown config key 'minify'" in caplog.text


def test_load_config_overrides(tmp_path):
    path = _write(tmp_path, {"web-root": "web", "dev": True, "workers": 2})
    cfg = load_config(path, dev=False, workers=None, cache_dir="/tmp/c")
    assert cfg.dev is False
    assert cfg.workers == 2
    assert cfg.cache_dir == "/tmp/c"


@pytest.mark.parametrize(
    "data",
    [
        "{not json",
        "[]",
        {"output-folder": "dist"},
        {"web-root": "web", "workers": -1},
    ],
)
def test_load_config_errors(tmp_path, data):
    with pytest.raises(ConfigurationError):
        load_config(_write(tmp_path, data))


def test_load_config_missing_file(tmp_path):
    with pytest.raises(ConfigurationError, match="Cannot read config"):
        load_config(str(tmp_path / "nope.json"))


def test_find_config(tmp_path):
    assert find_config(str(tmp_path)) == os.path.join(str(tmp_path), "resolve.config.json")
