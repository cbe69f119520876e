from .base import ContentProcessor
from .content import ContentItem, ContentState
from .pipeline import ContentPipeline
from .processors import CommandProcessor, IdentityProcessor, JsonProcessor, ModuleProcessor

__all__ = [
    "ContentPipeline",
    "ContentProcessor",
    "ContentItem",
    "ContentState",
    "CommandProcessor",
    "IdentityProcessor",
    "JsonProcessor",
    "ModuleProcessor",
]
