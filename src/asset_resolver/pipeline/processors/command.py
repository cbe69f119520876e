import logging
import subprocess
from typing import Optional, Sequence

from opentelemetry import trace

from ...errors import TranspileError
from ...schema import PROCESSED, UNPROCESSED
from ..base import ContentProcessor
from ..content import ContentItem

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class CommandProcessor(ContentProcessor):
    """
    Runs content through an external compiler (esbuild, lessc, sass...).

    The content is written to the command's stdin and the result read back from stdout.
    Arguments may reference the file with `{path}`, e.g. `["lessc", "--include-path={dir}", "-"]`.
    A missing executable, a non-zero exit code or a timeout raise `TranspileError` carrying stderr.
    """

    def __init__(
        self,
        command: Sequence[str],
        source_ext: str,
        target_ext: str,
        target_state: str = PROCESSED,
        source_state: str = UNPROCESSED,
        timeout: Optional[float] = None,
        name: Optional[str] = None,
    ):
        if not command:
            raise ValueError("CommandProcessor requires a command")
        self.command = list(command)
        self.source_ext = source_ext
        self.target_ext = target_ext
        self.target_state = target_state
        self.source_state = source_state
        self.timeout = timeout
        self.name = name or self.command[0]

    @property
    def transitions(self):
        return {(self.source_state, self.source_ext): (self.target_state, self.target_ext)}

    def _build_args(self, item: ContentItem):
        placeholders = {"path": item.file.path, "dir": item.file.directory, "name": item.file.name}
        return [arg.format(**placeholders) for arg in self.command]

    def transpile(self, cwd: str, item: ContentItem):
        args = self._build_args(item)

        with tracer.start_as_current_span("processor.command") as span:
            span.set_attribute("processor.command", args[0])
            span.set_attribute("file.path", item.file.path)
            try:
                proc = subprocess.run(
                    args,
                    input=item.content.encode("utf-8"),
                    cwd=cwd,
                    capture_output=True,
                    timeout=self.timeout,
                    check=False,
                )
            except FileNotFoundError as e:
                span.record_exception(e)
                raise TranspileError(
                    f"Cannot compile {item.file.path}: executable {args[0]!r} not found",
                    path=item.file.path,
                    error_output=str(e),
                ) from e
            except subprocess.TimeoutExpired as e:
                span.record_exception(e)
                raise TranspileError(
                    f"Cannot compile {item.file.path}: {args[0]} timed out after {self.timeout}s",
                    path=item.file.path,
                    error_output=(e.stderr or b"").decode("utf-8", errors="replace"),
                ) from e

            if proc.returncode != 0:
                error_output = proc.stderr.decode("utf-8", errors="replace")
                span.set_status(trace.Status(trace.StatusCode.ERROR))
                raise TranspileError(
                    f"Cannot compile {item.file.path}: {args[0]} exited with {proc.returncode}",
                    path=item.file.path,
                    error_output=error_output,
                )

        item.transition(self.target_state, proc.stdout.decode("utf-8"), self.target_ext)
