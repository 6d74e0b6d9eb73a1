"""
Result type returned by sync engine operations.

Each operation reports success or a tagged failure instead of letting
store errors cross into the caller. Swallowed blob failures are kept
as warnings so the best-effort policy stays observable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

from .exceptions import BlobError, RemoteError, TodoSyncError, ValidationError

T = TypeVar("T")


class ErrorKind(Enum):
    """Category of a failed operation."""

    VALIDATION = "validation"
    REMOTE = "remote"
    BLOB = "blob"


def classify_error(error: TodoSyncError) -> ErrorKind:
    if isinstance(error, ValidationError):
        return ErrorKind.VALIDATION
    if isinstance(error, BlobError):
        return ErrorKind.BLOB
    if isinstance(error, RemoteError):
        return ErrorKind.REMOTE
    # Unknown library errors are treated as remote failures
    return ErrorKind.REMOTE


@dataclass
class SyncResult(Generic[T]):
    """Result of a sync engine operation.

    Attributes:
        success: Whether the operation completed
        value: Operation value on success
        error: Captured error on failure
        kind: Error category on failure
        warnings: Blob failures that were logged and swallowed
        details: Operation-specific extra information
        duration_ms: Wall-clock duration of the operation
    """

    success: bool
    value: T | None = None
    error: TodoSyncError | None = None
    kind: ErrorKind | None = None
    warnings: list[BlobError] = field(default_factory=list)
    details: dict[str, Any] = field(default_factory=dict)
    duration_ms: int = 0

    @classmethod
    def ok(cls, value: T | None = None, warnings: list[BlobError] | None = None) -> SyncResult[T]:
        return cls(success=True, value=value, warnings=list(warnings or []))

    @classmethod
    def fail(
        cls, error: TodoSyncError, warnings: list[BlobError] | None = None
    ) -> SyncResult[T]:
        return cls(
            success=False,
            error=error,
            kind=classify_error(error),
            warnings=list(warnings or []),
        )

    def unwrap(self) -> T | None:
        """Return the value, or raise the captured error."""
        if not self.success:
            if self.error is None:
                raise TodoSyncError("Operation failed without an error")
            raise self.error
        return self.value

    def __bool__(self) -> bool:
        return self.success
