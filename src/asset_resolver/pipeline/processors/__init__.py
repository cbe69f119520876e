from .command import CommandProcessor
from .identity import IdentityProcessor
from .json_processor import JsonProcessor
from .module import ModuleProcessor

__all__ = ["CommandProcessor", "IdentityProcessor", "JsonProcessor", "ModuleProcessor"]
