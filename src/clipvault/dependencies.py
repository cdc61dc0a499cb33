"""Dependency wiring helpers."""

from __future__ import annotations

from fastapi import FastAPI

from .config import AppConfig
from .files.files_api import router as files_router
from .media.content_index import ContentIndex
from .media.reconciler import LifecycleReconciler
from .uploads.upload_api import router as upload_router
from .uploads.validation import UploadValidator


def build_content_index(config: AppConfig) -> ContentIndex:
    """Load the persisted index and heal it against the storage root."""
    return ContentIndex.load(
        storage_root=config.storage_root,
        index_path=config.index_path,
        default_ttl_hours=config.default_ttl_hours,
        digest_algorithm=config.digest_algorithm,
    )


def include_routers(
    app: FastAPI,
    config: AppConfig,
    *,
    content_index: ContentIndex | None = None,
) -> None:
    """Mount routers and attach services."""
    index = content_index or build_content_index(config)
    reconciler = LifecycleReconciler(index=index)
    validator = UploadValidator(
        allowed_content_types=config.allowed_content_types,
        max_bytes=config.max_upload_bytes,
        chunk_size_bytes=config.chunk_size_bytes,
    )

    app.state.config = config
    app.state.content_index = index
    app.state.reconciler = reconciler
    app.state.upload_validator = validator

    app.include_router(upload_router)
    app.include_router(files_router)
