"""
Exception types for the Spire build pipeline.

Only ConfigError (and unexpected exceptions) stop a build early. Every other
error is converted into a Diagnostic at the stage boundary where it is caught.
"""


class SpireError(Exception):
    """Base class for all Spire build errors."""
    pass


class ConfigError(SpireError):
    """Raised when the build configuration is missing required fields."""
    pass


class TransformError(SpireError):
    """Raised when a transform pass meets a node shape it cannot handle."""

    def __init__(self, message: str, file_path=None, line=None, column=None):
        super().__init__(message)
        self.file_path = file_path
        self.line = line
        self.column = column


class StyleCompileError(SpireError):
    """Raised when a stylesheet cannot be resolved or compiled."""

    def __init__(self, message: str, file_path=None):
        super().__init__(message)
        self.file_path = file_path


class WorkerTaskError(SpireError):
    """Raised when a task dispatched to the worker pool fails."""
    pass


class ManagerDisconnectedError(WorkerTaskError):
    """Raised when a task is submitted to a disconnected worker manager."""

    def __init__(self, message: str = "manager disconnected"):
        super().__init__(message)


class ManifestError(SpireError):
    """Raised when a manifest file cannot be read or parsed."""
    pass


class ReconcileError(SpireError):
    """Raised when the output directory cannot be synchronized."""
    pass
