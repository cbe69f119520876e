from .base import Transpiler
from .pipeline_transpiler import PipelineTranspiler

__all__ = ["Transpiler", "PipelineTranspiler"]
