from typing import Optional


class StorageError(Exception):
    """Base class for failures reported by the storage engine."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StorageError):
    """Request rejected before anything touched the disk."""


class NotFoundError(StorageError):
    pass


class PersistenceError(StorageError):
    """Filesystem failure while writing, deleting or listing."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.cause = cause
