from typing import Iterable, List

from ..models import File


class Transformer:
    """
    Hook points around transpilation.

    *   `on_post_transpile`: right after a single file was transpiled (its result is what gets cached).
    *   `on_pre_write`: right before an output (bundle, vendor file or asset) is written.

    The base class leaves content untouched, subclasses override what they need.
    """

    def on_post_transpile(self, output_file: File, content: str, output_folder: str) -> str:
        return content

    def on_pre_write(self, output_file: File, content: str, output_folder: str) -> str:
        return content


class CompositeTransformer(Transformer):
    """Applies several transformers in registration order."""

    def __init__(self, transformers: Iterable[Transformer] = ()):
        self.transformers: List[Transformer] = list(transformers)

    def add(self, transformer: Transformer):
        self.transformers.append(transformer)

    def on_post_transpile(self, output_file: File, content: str, output_folder: str) -> str:
        for transformer in self.transformers:
            content = transformer.on_post_transpile(output_file, content, output_folder)
        return content

    def on_pre_write(self, output_file: File, content: str, output_folder: str) -> str:
        for transformer in self.transformers:
            content = transformer.on_pre_write(output_file, content, output_folder)
        return content
