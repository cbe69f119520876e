import re

from ...schema import PROCESSED
from ..base import ContentProcessor
from ..content import ContentItem

_SOURCE_MAP_LINE = re.compile(r"^\s*//[#@] sourceMappingURL=.*$\n?", re.MULTILINE)


class ModuleProcessor(ContentProcessor):
    """
    Finishes compiled scripts.

    Accepts items left in the intermediate `js` state by a compiler step, normalizes line endings
    and drops `sourceMappingURL` comments, which point to nothing once modules are concatenated.
    """

    name = "module"

    def __init__(self, source_state: str = "js", extension: str = "js"):
        self.source_state = source_state
        self.extension = extension

    @property
    def transitions(self):
        return {(self.source_state, self.extension): (PROCESSED, self.extension)}

    def transpile(self, cwd: str, item: ContentItem):
        content = item.content.replace("\r\n", "\n")
        content = _SOURCE_MAP_LINE.sub("", content)
        if content and not content.endswith("\n"):
            content += "\n"
        item.transition(PROCESSED, content)
