"""Exceptions raised by the seeds core."""

from __future__ import annotations

__all__ = [
    "LockTimeoutError",
    "MalformedRecordError",
    "NotFoundError",
    "NotInitializedError",
    "SeedsError",
    "StorageError",
]


class SeedsError(Exception):
    """Base class for all seeds errors."""


class LockTimeoutError(SeedsError, TimeoutError):
    """Raised when a data file lock cannot be acquired in time.

    Nothing has been written when this is raised, so the operation is safe
    to retry.
    """

    def __init__(self, resource: str, timeout: float) -> None:
        self.resource = resource
        self.timeout = timeout
        super().__init__(
            f"Timeout acquiring lock for {resource} after {timeout:g}s",
        )


class NotInitializedError(SeedsError):
    """Raised when no .seeds directory can be found."""


class NotFoundError(SeedsError, LookupError):
    """Raised when a referenced issue or template does not exist."""

    def __init__(self, kind: str, item_id: str) -> None:
        self.kind = kind
        self.item_id = item_id
        super().__init__(f"{kind} not found: {item_id}")


class MalformedRecordError(SeedsError, ValueError):
    """Raised when a log line cannot be decoded into a record."""

    def __init__(self, message: str, line_number: int | None = None) -> None:
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class StorageError(SeedsError):
    """Raised when a data file cannot be written."""
