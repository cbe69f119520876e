from abc import ABC, abstractmethod

from ..models import File, TranspileResult


class Transpiler(ABC):
    """
    Converts one source file into its target form.

    The engine only relies on this contract, the per-language work lives behind it.
    Implementations raise `TranspileError` with the collected tool output on failure.
    """

    @abstractmethod
    def extension_for(self, file: File) -> str:
        """Returns the extension `file` will have once transpiled, without doing the work."""
        pass

    @abstractmethod
    def transpile(self, file: File) -> TranspileResult:
        pass
