"""Translate domain failures into HTTP errors."""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, status

from ..exceptions import (
    BlobNotFoundError,
    ClipVaultError,
    PayloadTooLargeError,
    StorageError,
    UnsupportedMediaError,
    ValidationError,
)

_STATUS_BY_ERROR: tuple[tuple[type[ClipVaultError], int], ...] = (
    (PayloadTooLargeError, status.HTTP_413_CONTENT_TOO_LARGE),
    (UnsupportedMediaError, status.HTTP_415_UNSUPPORTED_MEDIA_TYPE),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (BlobNotFoundError, status.HTTP_404_NOT_FOUND),
    (StorageError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def http_error(status_code: int, failure_reason: str, **details: Any) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={"status": "error", "failure_reason": failure_reason, **details},
    )


def error_from_domain(exc: ClipVaultError) -> HTTPException:
    """Map a :class:`ClipVaultError` onto its HTTP status and reason code."""

    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return http_error(status_code, getattr(exc, "failure_reason", "internal_error"))
    return http_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error")


__all__ = ["error_from_domain", "http_error"]
