from typing import Optional, Set

from ..errors import TransformationError
from ..models import File
from ..schema import PROCESSED, UNPROCESSED


class ContentState:
    """
    Processing state of one content item: where it is (`current`) and what it currently is (`extension`).

    Transitions are monotonic. A state that was already visited can never be entered again,
    and PROCESSED is terminal. This is what guarantees that driving an item through the
    pipeline always terminates.
    """

    def __init__(self, extension: str, current: str = UNPROCESSED):
        self._current = current
        self._extension = extension
        self._visited: Set[str] = {current}

    def current(self) -> str:
        return self._current

    def extension(self) -> str:
        return self._extension

    def is_processed(self) -> bool:
        return self._current == PROCESSED

    def transition(self, state: str, extension: Optional[str] = None):
        if self.is_processed():
            raise TransformationError(f"Cannot leave terminal state {PROCESSED} (requested {state})")
        if state in self._visited:
            raise TransformationError(f"State {state} was already visited, transitions must move forward")

        self._visited.add(state)
        self._current = state
        if extension is not None:
            self._extension = extension

    def __repr__(self) -> str:
        return f"ContentState({self._current!r}, {self._extension!r})"


class ContentItem:
    """A file's content while it moves through the pipeline."""

    def __init__(self, file: File, module_name: str, content: str, state: Optional[ContentState] = None):
        self.file = file
        self.module_name = module_name
        self.content = content
        self.state = state or ContentState(file.extension)

    def transition(self, state: str, content: Optional[str] = None, extension: Optional[str] = None):
        try:
            self.state.transition(state, extension)
        except TransformationError as e:
            raise TransformationError(f"{self.file.path}: {e}", path=self.file.path) from e
        if content is not None:
            self.content = content
