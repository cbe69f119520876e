from typing import Optional


class ResolverError(Exception):
    """Root of every error raised by the build engine."""


class ConfigurationError(ResolverError):
    """Invalid build configuration (paths, entry points, worker count)."""


class PipelineConfigurationError(ConfigurationError):
    """
    The configured processors do not cover the content pipeline.

    Raised eagerly when two processors claim the same (state, extension) pair or when a
    declared intermediate state has no processor to continue from it.
    """


class TransformationError(ResolverError):
    """
    A content processor could not convert an item.

    Fatal to the file and to every bundle containing it. The build of the current entry point stops.
    """

    def __init__(self, message: str, path: Optional[str] = None, diagnostic: str = ""):
        super().__init__(message)
        self.path = path
        self.diagnostic = diagnostic


class TranspileError(TransformationError):
    """Raised by the transpiler collaborator, carries the collected tool output."""

    def __init__(self, message: str, path: Optional[str] = None, error_output: str = ""):
        super().__init__(message, path=path, diagnostic=error_output)
        self.error_output = error_output


class StorageError(ResolverError):
    """Read, write, stat or mkdir failure in a storage adapter. Never retried."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class CacheCorruptionError(ResolverError):
    """A cache record exists but does not match the expected schema."""

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key
