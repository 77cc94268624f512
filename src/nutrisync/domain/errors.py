"""Error kinds raised by the persistence and sync layers."""

from __future__ import annotations

from enum import StrEnum


class SaveSystemError(RuntimeError):
    """Base class for persistence and synchronisation failures."""


class DecodeErrorKind(StrEnum):
    MALFORMED = "malformed"
    INVALID = "invalid"
    UNSUPPORTED_VERSION = "unsupported_version"


class DecodeError(SaveSystemError):
    """Raised when save text cannot be turned into a valid record."""

    def __init__(self, message: str, *, kind: DecodeErrorKind = DecodeErrorKind.MALFORMED) -> None:
        super().__init__(message)
        self.kind = kind


class SaveIOError(SaveSystemError):
    """Raised when the file system rejects a read, write, copy or delete."""


class RemoteUnavailableError(SaveSystemError):
    """Raised when the remote gateway cannot be reached or is not configured."""


class RemoteError(SaveSystemError):
    """Raised when the remote gateway reports a failure."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ConcurrencyRejectedError(SaveSystemError):
    """Raised when an operation is already in flight; callers retry on the next tick."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"{operation} already in progress")
        self.operation = operation


__all__ = [
    "ConcurrencyRejectedError",
    "DecodeError",
    "DecodeErrorKind",
    "RemoteError",
    "RemoteUnavailableError",
    "SaveIOError",
    "SaveSystemError",
]
