from abc import ABC, abstractmethod
from typing import Dict, Tuple

from .content import ContentItem, ContentState

StatePair = Tuple[str, str]


class ContentProcessor(ABC):
    """
    Interface for one stage of the content pipeline.

    A processor is stateless. It declares, through `transitions`, every (state, extension) pair it
    accepts and the pair it moves an item to. The pipeline builds its dispatch table from these
    declarations, so coverage problems surface when the pipeline is built rather than mid-build.
    """

    name: str = "processor"

    @property
    @abstractmethod
    def transitions(self) -> Dict[StatePair, StatePair]:
        """Mapping of accepted (state, extension) to the (state, extension) it produces."""
        pass

    def supports(self, state: ContentState) -> bool:
        return (state.current(), state.extension()) in self.transitions

    def peek(self, cwd: str, state: ContentState):
        """Advances the declared state only, without producing content."""
        next_state, next_extension = self.transitions[(state.current(), state.extension())]
        state.transition(next_state, next_extension)

    @abstractmethod
    def transpile(self, cwd: str, item: ContentItem):
        """Performs the real transformation and transitions the item."""
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
