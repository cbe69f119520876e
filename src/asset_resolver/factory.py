import logging
from typing import Any, Dict, List, Optional

from .bundler.bundler import Bundler
from .bundler.transformer import Transformer
from .bundler.wrapper import DefineModuleWrapper, ModuleWrapper
from .cache.locks import FileKeyLockManager
from .cache.store import CacheStore
from .config import BuildConfig
from .errors import ConfigurationError
from .imports.base import ImportFinder
from .pipeline.base import ContentProcessor
from .pipeline.pipeline import ContentPipeline
from .pipeline.processors import CommandProcessor, IdentityProcessor, JsonProcessor, ModuleProcessor
from .pipeline.processors.identity import DEFAULT_EXTENSIONS
from .schema import PROCESSED, UNPROCESSED
from .storage.base import StorageAdapter
from .storage.local import LocalFileStorage
from .transpile.pipeline_transpiler import PipelineTranspiler

logger = logging.getLogger(__name__)


def _command_processor(spec: Dict[str, Any]) -> CommandProcessor:
    try:
        command = spec["command"]
        source_ext = spec["from"]
        target_ext = spec["to"]
    except KeyError as e:
        raise ConfigurationError(f"Processor definition {spec!r} is missing {e}") from e
    if isinstance(command, str):
        command = command.split()
    if not command:
        raise ConfigurationError(f"Processor definition {spec!r} has an empty command")
    return CommandProcessor(
        command=command,
        source_ext=source_ext,
        target_ext=target_ext,
        target_state=spec.get("state", PROCESSED),
        source_state=spec.get("from-state", UNPROCESSED),
        timeout=spec.get("timeout"),
        name=spec.get("name"),
    )


def build_pipeline(processor_specs: Optional[List[Dict[str, Any]]] = None) -> ContentPipeline:
    """
    Builds the default content pipeline.

    *   JSON documents become value modules.
    *   js, css, html and svg pass through untouched.
    *   Every configured external command claims its source extension. A command ending in an
        intermediate state (e.g. `"state": "js"`) is finished by a `ModuleProcessor`.
    """
    commands = [_command_processor(spec) for spec in processor_specs or []]
    claimed = {cmd.source_ext for cmd in commands if cmd.source_state == UNPROCESSED}

    processors: List[ContentProcessor] = [JsonProcessor()] if "json" not in claimed else []
    processors.append(IdentityProcessor(ext for ext in DEFAULT_EXTENSIONS if ext not in claimed))
    processors.extend(commands)

    accepted = {(cmd.source_state, cmd.source_ext) for cmd in commands}
    intermediates = sorted(
        {(cmd.target_state, cmd.target_ext) for cmd in commands if cmd.target_state != PROCESSED} - accepted
    )
    for state, extension in intermediates:
        processors.append(ModuleProcessor(source_state=state, extension=extension))

    return ContentPipeline(processors)


def create_bundler(
    config: BuildConfig,
    finder: ImportFinder,
    storage: Optional[StorageAdapter] = None,
    transformer: Optional[Transformer] = None,
    module_wrapper: Optional[ModuleWrapper] = None,
) -> Bundler:
    """Wires a Bundler for `config` with the default collaborators."""
    config.validate()
    storage = storage or LocalFileStorage(config.cwd)

    locks = None
    if isinstance(storage, LocalFileStorage):
        locks = FileKeyLockManager(storage.resolve(config.cache_dir))
    cache = CacheStore(storage, config.cache_dir, locks=locks)

    transpiler = PipelineTranspiler(storage, build_pipeline(config.processors), config.cwd, config.source_root)
    logger.debug(f"Pipeline accepts: {', '.join(transpiler.pipeline.input_extensions)}")

    return Bundler(
        config=config,
        storage=storage,
        finder=finder,
        transpiler=transpiler,
        transformer=transformer or Transformer(),
        module_wrapper=module_wrapper or DefineModuleWrapper(),
        cache=cache,
    )
