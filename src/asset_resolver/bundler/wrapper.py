import json
import posixpath
from abc import ABC, abstractmethod


class ModuleWrapper(ABC):
    """
    Wraps one compiled module so several can be concatenated into a single bundle.

    `initializer_path` is the original (pre-transpile) path of the file, used by the runtime
    to resolve the module's relative requires.
    """

    @abstractmethod
    def wrap_module(self, initializer_path: str, module_name: str, content: str) -> str:
        pass


class DefineModuleWrapper(ModuleWrapper):
    """
    Emits modules for a `register(name, dirname, factory)` loader.

        register("app/util", "src/app", function (define, require, module, exports) {
        ...module content...
        });
    """

    def __init__(self, register_function: str = "register"):
        self.register_function = register_function

    def wrap_module(self, initializer_path: str, module_name: str, content: str) -> str:
        directory = posixpath.dirname(initializer_path)
        body = content if content.endswith("\n") or not content else content + "\n"
        return (
            f"{self.register_function}({json.dumps(module_name)}, {json.dumps(directory)}, "
            f"function (define, require, module, exports) {{\n{body}}});\n"
        )
