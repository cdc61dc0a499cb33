"""Domain level exceptions shared by the store and its HTTP adapters."""

from __future__ import annotations

__all__ = [
    "ClipVaultError",
    "ValidationError",
    "MissingUploadError",
    "UnsupportedMediaError",
    "PayloadTooLargeError",
    "InvalidCommentError",
    "BlobNotFoundError",
    "StorageError",
    "StorageWriteError",
    "StorageUnavailableError",
    "ensure_found",
]


class ClipVaultError(Exception):
    """Base class for application specific errors."""


class ValidationError(ClipVaultError):
    """Raised when caller input is rejected before any state is touched."""

    failure_reason = "invalid_request"


class MissingUploadError(ValidationError):
    """Raised when the upload carries no file part."""

    failure_reason = "no_file_uploaded"


class UnsupportedMediaError(ValidationError):
    """Raised when Content-Type is not allowed."""

    failure_reason = "invalid_file_type"


class PayloadTooLargeError(ValidationError):
    """Raised when uploaded file exceeds configured limits."""

    failure_reason = "payload_too_large"


class InvalidCommentError(ValidationError):
    """Raised when a comment has no text."""

    failure_reason = "invalid_comment"


class BlobNotFoundError(ClipVaultError):
    """Raised when no entry matches the given filename or digest."""

    failure_reason = "not_found"

    def __init__(self, key: str) -> None:
        super().__init__(f"Blob '{key}' not found")
        self.key = key


class StorageError(ClipVaultError):
    """Base class for filesystem failures."""

    failure_reason = "storage_error"


class StorageWriteError(StorageError):
    """Raised when new content could not be written to the storage root."""


class StorageUnavailableError(StorageError):
    """Raised when the storage root cannot be created at startup."""


def ensure_found(record: object | None, *, key: str) -> object:
    """Ensure a record exists, otherwise raise :class:`BlobNotFoundError`."""

    if record is None:
        raise BlobNotFoundError(key)
    return record
