import logging
import os
import sys
from typing import Optional

import click
from dotenv import load_dotenv

from asset_resolver.config import BuildConfig, find_config, load_config
from asset_resolver.errors import ResolverError
from asset_resolver.factory import create_bundler
from asset_resolver.imports.manifest import ManifestImportFinder
from asset_resolver.storage.local import LocalFileStorage

# Configure logging
logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

DEFAULT_GRAPH_FILE = "dependencies.json"


def _load(config_path: Optional[str], dev: Optional[bool], workers: Optional[int], cache_dir: Optional[str]):
    return load_config(config_path or find_config(), dev=dev, workers=workers, cache_dir=cache_dir)


def _create(config: BuildConfig, graph: Optional[str]):
    storage = LocalFileStorage(config.cwd)
    finder = ManifestImportFinder.from_file(storage, graph or os.path.join(config.cwd, DEFAULT_GRAPH_FILE))
    return create_bundler(config, finder, storage=storage)


def _build_options(func):
    func = click.option("--graph", default=None, help="Dependency manifest (default: dependencies.json)")(func)
    func = click.option("--cache-dir", default=None, envvar="RESOLVER_CACHE_DIR", help="Compute cache directory")(func)
    func = click.option("--workers", type=int, default=None, envvar="RESOLVER_WORKERS", help="Parallel builds")(func)
    func = click.option("--dev/--no-dev", default=None, envvar="RESOLVER_DEV", help="Enable the compute cache")(func)
    func = click.argument("config_path", required=False, type=click.Path(dir_okay=False))(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log every checked and emitted file")
def cli(verbose):
    """Asset Resolver - incremental asset bundler CLI"""
    # Load .env from current working directory
    load_dotenv(os.path.join(os.getcwd(), ".env"))
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


@cli.command()
@_build_options
def build(config_path, dev, workers, cache_dir, graph):
    """Bundle every entry point, then compile the standalone assets."""
    try:
        config = _load(config_path, dev, workers, cache_dir)
        written = _create(config, graph).build()
        click.echo(f"Build completed. {len(written)} file(s) written.")
    except ResolverError as e:
        click.secho(f"Build failed: {e}", fg="red", err=True)
        sys.exit(1)


@cli.command("compile")
@_build_options
def compile_assets(config_path, dev, workers, cache_dir, graph):
    """Compile the standalone assets only."""
    try:
        config = _load(config_path, dev, workers, cache_dir)
        written = _create(config, graph).compile()
        click.echo(f"Compile completed. {len(written)} file(s) written.")
    except ResolverError as e:
        click.secho(f"Compile failed: {e}", fg="red", err=True)
        sys.exit(1)


@cli.command("clear-cache")
@click.argument("config_path", required=False, type=click.Path(dir_okay=False))
@click.option("--cache-dir", default=None, envvar="RESOLVER_CACHE_DIR", help="Compute cache directory")
def clear_cache(config_path, cache_dir):
    """Remove every cached compile result."""
    try:
        config = _load(config_path, None, None, cache_dir)
        LocalFileStorage(config.cwd).remove_tree(config.cache_dir)
        click.echo(f"Cache cleared: {config.cache_dir}")
    except ResolverError as e:
        click.secho(f"Clearing cache failed: {e}", fg="red", err=True)
        sys.exit(1)


def main():
    cli()


if __name__ == "__main__":
    main()
