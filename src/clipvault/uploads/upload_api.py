"""HTTP route for uploading videos."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile, status
from starlette.concurrency import run_in_threadpool

from ..api.dependencies import get_app_config, get_content_index, get_upload_validator
from ..api.errors import error_from_domain
from ..config import AppConfig
from ..exceptions import ClipVaultError, MissingUploadError
from ..media.content_index import ContentIndex
from ..utils.display import display_iso, guess_mime
from .upload_schemas import UploadFileInfo, UploadResponse
from .validation import UploadValidator

router = APIRouter(tags=["upload"])
logger = logging.getLogger(__name__)


def video_url(request: Request, config: AppConfig, filename: str) -> str:
    base = config.public_base_url or str(request.base_url)
    return f"{base.rstrip('/')}/video/{filename}"


@router.post("/upload", status_code=status.HTTP_201_CREATED, response_model=UploadResponse)
async def upload_video(
    request: Request,
    video: UploadFile | None = File(None),
    title: str | None = Form(None),
    title_query: str | None = Query(None, alias="title"),
    expired: str | None = Query(None),
    index: ContentIndex = Depends(get_content_index),
    validator: UploadValidator = Depends(get_upload_validator),
    config: AppConfig = Depends(get_app_config),
) -> UploadResponse:
    """Store a video once per unique content and (re)arm its lifetime."""
    try:
        if video is None:
            raise MissingUploadError("video part is required")
        payload = await validator.read(video)
        result = await run_in_threadpool(
            index.put,
            payload.data,
            extension=payload.original_name,
            title=title or title_query,
            ttl=expired,
        )
    except ClipVaultError as exc:
        logger.warning(
            "upload.rejected",
            extra={"reason": getattr(exc, "failure_reason", "internal_error")},
        )
        raise error_from_domain(exc) from exc

    entry = result.entry
    return UploadResponse(
        message="File already exists" if result.is_duplicate else "Upload successful",
        video_url=video_url(request, config, result.filename),
        is_duplicate=result.is_duplicate,
        expires_at=display_iso(entry.expires_at, config.display_timezone),
        is_permanent=entry.is_permanent,
        file_info=UploadFileInfo(
            filename=result.filename,
            size=result.size_bytes,
            mimetype=payload.content_type or guess_mime(result.filename),
            title=entry.title,
        ),
    )
