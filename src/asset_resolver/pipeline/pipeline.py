import logging
from typing import Dict, Iterable, List, Tuple

from ..errors import PipelineConfigurationError, TransformationError
from ..models import File
from ..schema import TERMINAL_STATES, UNPROCESSED
from .base import ContentProcessor, StatePair
from .content import ContentItem, ContentState

logger = logging.getLogger(__name__)


class ContentPipeline:
    """
    Drives content items from UNPROCESSED to PROCESSED.

    **Dispatch table**: built once, at construction, from the `transitions` each processor declares.
    *   Two processors accepting the same (state, extension) pair is an ambiguity and is rejected.
    *   A declared target pair that is not terminal must be accepted by some processor, otherwise an
        item could get stuck half-way. This is rejected as well.

    An input extension nobody accepts is only known once a file shows up, and fails for that file.
    """

    def __init__(self, processors: Iterable[ContentProcessor]):
        self.processors: List[ContentProcessor] = list(processors)
        self._table = self._build_dispatch_table(self.processors)

    @staticmethod
    def _build_dispatch_table(processors: List[ContentProcessor]) -> Dict[StatePair, ContentProcessor]:
        table: Dict[StatePair, ContentProcessor] = {}
        for processor in processors:
            for pair in processor.transitions:
                if pair in table:
                    raise PipelineConfigurationError(
                        f"Ambiguous pipeline: {table[pair].name} and {processor.name} both accept "
                        f"state={pair[0]} extension={pair[1]}"
                    )
                table[pair] = processor

        for processor in processors:
            for target in processor.transitions.values():
                if target[0] not in TERMINAL_STATES and target not in table:
                    raise PipelineConfigurationError(
                        f"Incomplete pipeline: {processor.name} produces state={target[0]} extension={target[1]} "
                        f"but no processor accepts it"
                    )
        return table

    @property
    def input_extensions(self) -> Tuple[str, ...]:
        return tuple(sorted(ext for state, ext in self._table if state == UNPROCESSED))

    def processor_for(self, state: ContentState, file: File) -> ContentProcessor:
        processor = self._table.get((state.current(), state.extension()))
        if processor is None:
            raise PipelineConfigurationError(
                f"No processor accepts {file.path} (state={state.current()} extension={state.extension()})"
            )
        return processor

    def peek(self, cwd: str, file: File) -> str:
        """Predicts the final extension of `file` without transforming anything."""
        state = ContentState(file.extension)
        while not state.is_processed():
            self.processor_for(state, file).peek(cwd, state)
        return state.extension()

    def process(self, cwd: str, item: ContentItem):
        while not item.state.is_processed():
            processor = self.processor_for(item.state, item.file)
            before = (item.state.current(), item.state.extension())

            logger.debug(f"    {processor.name}: {item.file.path} [{before[0]}/{before[1]}]")
            processor.transpile(cwd, item)

            if (item.state.current(), item.state.extension()) == before:
                raise TransformationError(
                    f"{processor.name} did not advance {item.file.path} past state={before[0]}",
                    path=item.file.path,
                )
