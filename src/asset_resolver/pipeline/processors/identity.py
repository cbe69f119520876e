from typing import Iterable

from ...schema import PROCESSED, UNPROCESSED
from ..base import ContentProcessor
from ..content import ContentItem

DEFAULT_EXTENSIONS = ("js", "css", "html", "svg")


class IdentityProcessor(ContentProcessor):
    """Marks files that need no transformation (plain scripts, stylesheets) as processed."""

    name = "identity"

    def __init__(self, extensions: Iterable[str] = DEFAULT_EXTENSIONS):
        self.extensions = tuple(extensions)

    @property
    def transitions(self):
        return {(UNPROCESSED, ext): (PROCESSED, ext) for ext in self.extensions}

    def transpile(self, cwd: str, item: ContentItem):
        item.transition(PROCESSED)
