from .assets import AssetCompiler
from .bundler import Bundler
from .compiler import ModuleCompiler
from .transformer import CompositeTransformer, Transformer
from .wrapper import DefineModuleWrapper, ModuleWrapper

__all__ = [
    "Bundler",
    "AssetCompiler",
    "ModuleCompiler",
    "Transformer",
    "CompositeTransformer",
    "ModuleWrapper",
    "DefineModuleWrapper",
]
