"""HTTP routes over stored videos."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import FileResponse

from ..api.dependencies import get_app_config, get_content_index
from ..api.errors import error_from_domain, http_error
from ..auth.auth_dependencies import require_api_key
from ..config import AppConfig
from ..exceptions import ClipVaultError
from ..media.content_index import ContentIndex
from ..uploads.upload_api import video_url
from ..utils.display import display_iso, guess_mime
from .files_schemas import (
    AnnotateRequest,
    AnnotateResponse,
    CommentPayload,
    CommentRequest,
    CommentResponse,
    DeleteResponse,
    FileListResponse,
    FileSummary,
    LikeResponse,
)

router = APIRouter(tags=["files"])
logger = logging.getLogger(__name__)


@router.get(
    "/files",
    response_model=FileListResponse,
    dependencies=[Depends(require_api_key)],
)
def list_files(
    request: Request,
    index: ContentIndex = Depends(get_content_index),
    config: AppConfig = Depends(get_app_config),
) -> FileListResponse:
    """Return live videos, newest first."""
    tz = config.display_timezone
    files = [
        FileSummary(
            digest=item.digest,
            filename=item.filename,
            url=video_url(request, config, item.filename),
            size=item.size_bytes,
            uploaded_at=display_iso(item.uploaded_at, tz) or "",
            expires_at=None if item.is_permanent else display_iso(item.expires_at, tz),
            is_permanent=item.is_permanent,
            mimetype=guess_mime(item.filename),
            likes=item.likes,
            comments=[CommentPayload(text=c.text, timestamp=c.timestamp) for c in item.comments],
            title=item.title,
        )
        for item in index.list()
    ]
    return FileListResponse(count=len(files), files=files)


@router.patch(
    "/files/{key}",
    response_model=AnnotateResponse,
    dependencies=[Depends(require_api_key)],
)
def annotate_file(
    key: str,
    body: AnnotateRequest,
    index: ContentIndex = Depends(get_content_index),
) -> AnnotateResponse:
    try:
        entry = index.annotate(key, body.title)
    except ClipVaultError as exc:
        raise error_from_domain(exc) from exc
    return AnnotateResponse(filename=entry.filename, title=entry.title)


@router.post("/files/{filename}/like", response_model=LikeResponse)
def like_file(
    filename: str,
    index: ContentIndex = Depends(get_content_index),
) -> LikeResponse:
    try:
        likes = index.like(filename)
    except ClipVaultError as exc:
        raise error_from_domain(exc) from exc
    return LikeResponse(filename=filename, likes=likes)


@router.post(
    "/files/{filename}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
def comment_file(
    filename: str,
    body: CommentRequest,
    index: ContentIndex = Depends(get_content_index),
) -> CommentResponse:
    try:
        comment = index.comment(filename, body.text)
    except ClipVaultError as exc:
        raise error_from_domain(exc) from exc
    return CommentResponse(
        filename=filename,
        comment=CommentPayload(text=comment.text, timestamp=comment.timestamp),
    )


@router.delete(
    "/files/{filename}",
    response_model=DeleteResponse,
    dependencies=[Depends(require_api_key)],
)
def delete_file(
    filename: str,
    index: ContentIndex = Depends(get_content_index),
) -> DeleteResponse:
    """Delete one video, or everything in storage for ``/files/all``."""
    try:
        removed = index.delete(filename)
    except ClipVaultError as exc:
        raise error_from_domain(exc) from exc
    logger.info("files.deleted", extra={"target": filename, "removed": removed})
    return DeleteResponse(removed=removed)


@router.get("/video/{filename}", name="serve_video")
def serve_video(
    filename: str,
    index: ContentIndex = Depends(get_content_index),
) -> FileResponse:
    try:
        entry = index.get(filename)
    except ClipVaultError as exc:
        raise error_from_domain(exc) from exc
    if entry.filename != filename:
        raise http_error(status.HTTP_404_NOT_FOUND, "not_found")
    if entry.is_expired(index.now_ms()):
        raise http_error(status.HTTP_410_GONE, "media_expired")

    path = index.path_for(entry.filename)
    if not path.is_file():
        raise http_error(status.HTTP_410_GONE, "media_missing")
    return FileResponse(
        path=path,
        media_type=guess_mime(filename),
        filename=filename,
        content_disposition_type="inline",
    )
