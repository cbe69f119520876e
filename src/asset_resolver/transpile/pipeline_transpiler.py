import logging

from opentelemetry import trace

from ..errors import TransformationError, TranspileError
from ..models import File, TranspileResult
from ..pipeline.content import ContentItem
from ..pipeline.pipeline import ContentPipeline
from ..schema import VENDOR_DIR
from ..storage.base import StorageAdapter
from .base import Transpiler

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class PipelineTranspiler(Transpiler):
    """
    Transpiler backed by the content pipeline.

    Reads the file through the storage adapter, drives it to the PROCESSED state and derives a
    stable module name:

    *   application files: path relative to the source root;
    *   vendor files: path relative to their `node_modules` folder (`node_modules/a/b.js` -> `a/b`);
    *   script output (`js`) drops the extension, anything else keeps the predicted one.
    """

    def __init__(self, storage: StorageAdapter, pipeline: ContentPipeline, cwd: str = ".", source_root: str = ""):
        self.storage = storage
        self.pipeline = pipeline
        self.cwd = cwd
        self.source_root = source_root.strip("/")

    def extension_for(self, file: File) -> str:
        return self.pipeline.peek(self.cwd, file)

    def module_name_for(self, file: File, extension: str) -> str:
        parts = file.path.split("/")
        if VENDOR_DIR in parts:
            last = len(parts) - 1 - parts[::-1].index(VENDOR_DIR)
            parts = parts[last + 1 :]
        elif self.source_root and file.path.startswith(self.source_root + "/"):
            parts = file.path[len(self.source_root) + 1 :].split("/")

        logical = File("/".join(parts))
        directory = "" if logical.directory == "." else logical.directory + "/"
        if extension == "js":
            return directory + logical.base_name
        return f"{directory}{logical.base_name}.{extension}"

    def transpile(self, file: File) -> TranspileResult:
        with tracer.start_as_current_span("transpiler.transpile") as span:
            span.set_attribute("file.path", file.path)

            try:
                content = self.storage.read(file.path).decode("utf-8")
            except UnicodeDecodeError as e:
                raise TranspileError(f"Cannot transpile {file.path}: not UTF-8 text", path=file.path) from e

            item = ContentItem(file, self.module_name_for(file, self.extension_for(file)), content)
            logger.debug(f"    Transpiling {file.path} as module '{item.module_name}'")
            try:
                self.pipeline.process(self.cwd, item)
            except TranspileError as e:
                span.record_exception(e)
                raise
            except TransformationError as e:
                span.record_exception(e)
                raise TranspileError(
                    f"Cannot transpile {file.path}: {e}", path=file.path, error_output=e.diagnostic or str(e)
                ) from e

            return TranspileResult(item.module_name, item.content)
