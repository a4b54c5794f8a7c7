"""
Failure taxonomy for the key-value store layer.

Every error raised by the store primitives and the domain services derives
from StoreError. Nothing in this package retries: a failure is raised once
and surfaced to the caller.
"""

from enum import Enum


class StoreErrorKind(str, Enum):
    """Classification of a store failure, used by the status probe."""

    UNAVAILABLE = "unavailable"
    TABLE_MISSING = "table_missing"
    PERMISSION_DENIED = "permission_denied"
    REJECTED = "rejected"
    NOT_FOUND = "not_found"
    PARTIAL_WRITE = "partial_write"
    UNKNOWN = "unknown"


class StoreError(Exception):
    """Exception raised for store operation failures.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying exception, if any.
        kind: Classification of the failure.
    """

    default_kind = StoreErrorKind.UNKNOWN

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        kind: StoreErrorKind | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error
        self.kind = kind or self.default_kind

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class StoreUnavailable(StoreError):
    """The remote call could not complete (transport failure, timeout, 5xx)."""

    default_kind = StoreErrorKind.UNAVAILABLE


class NotFound(StoreError):
    """A record the operation requires is absent."""

    default_kind = StoreErrorKind.NOT_FOUND

    def __init__(self, key: str, message: str | None = None) -> None:
        super().__init__(message or f"Record not found: {key}")
        self.key = key


class PartialWriteFailure(StoreError):
    """A multi-record write where an earlier write landed and a later one failed.

    Attributes:
        written_keys: Keys that were written before the failure.
        failed_key: Key whose write failed.
        compensated: True when the earlier writes were rolled back.
    """

    default_kind = StoreErrorKind.PARTIAL_WRITE

    def __init__(
        self,
        written_keys: list[str],
        failed_key: str,
        original_error: Exception,
        compensated: bool = False,
    ) -> None:
        super().__init__(
            f"Write of {failed_key} failed after {', '.join(written_keys)} was written",
            original_error,
        )
        self.written_keys = written_keys
        self.failed_key = failed_key
        self.compensated = compensated


class SlotUnavailable(StoreError):
    """A session was booked into a slot that overlaps an existing one."""

    default_kind = StoreErrorKind.REJECTED
