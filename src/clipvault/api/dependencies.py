"""Accessors for services stored on ``app.state``."""

from __future__ import annotations

from fastapi import Request

from ..config import AppConfig
from ..media.content_index import ContentIndex
from ..uploads.validation import UploadValidator


def get_content_index(request: Request) -> ContentIndex:
    """Fetch the content index from application state."""
    try:
        return request.app.state.content_index  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover
        raise RuntimeError("ContentIndex is not configured") from exc


def get_app_config(request: Request) -> AppConfig:
    try:
        return request.app.state.config  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover
        raise RuntimeError("AppConfig is not configured") from exc


def get_upload_validator(request: Request) -> UploadValidator:
    try:
        return request.app.state.upload_validator  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover
        raise RuntimeError("UploadValidator is not configured") from exc
