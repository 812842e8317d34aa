"""Errors raised by the record store.

A missing record is not an error: single-record lookups return ``None``.
"""


class StorageError(Exception):
    """Base class for storage failures."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotInitializedError(StorageError):
    """Raised when the store is used before initialize() or after close()."""


class StorageUnavailableError(StorageError):
    """Raised when the backing file or its directory cannot be created or opened."""


class WriteFailedError(StorageError):
    """Raised when a row write fails; the enclosing batch has been rolled back."""
