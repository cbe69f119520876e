from ...schema import PROCESSED, UNPROCESSED
from ..base import ContentProcessor
from ..content import ContentItem


class JsonProcessor(ContentProcessor):
    """Turns a JSON document into a module whose value is the document itself, in one step."""

    name = "json"

    @property
    def transitions(self):
        return {(UNPROCESSED, "json"): (PROCESSED, "json")}

    def transpile(self, cwd: str, item: ContentItem):
        js = "return " + item.content.rstrip() + ";\n"
        item.transition(PROCESSED, js, "js")
