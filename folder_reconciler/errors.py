"""Exceptions raised by folder reconciler."""


class ReconcilerError(Exception):
    """Base class for errors that abort an operation."""


class PreconditionError(ReconcilerError):
    """A root is missing, or a log/quarantine directory cannot be created."""


class MirrorError(ReconcilerError):
    """The external mirroring tool failed or could not be started."""

    def __init__(self, message: str, returncode: int | None = None):
        super().__init__(message)
        self.returncode = returncode
