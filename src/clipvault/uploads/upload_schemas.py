"""Pydantic schemas for the upload endpoint."""

from __future__ import annotations

from pydantic import BaseModel


class UploadFileInfo(BaseModel):
    filename: str
    size: int
    mimetype: str
    title: str | None = None


class UploadResponse(BaseModel):
    status: str = "ok"
    message: str
    video_url: str
    is_duplicate: bool
    expires_at: str | None
    is_permanent: bool
    file_info: UploadFileInfo
