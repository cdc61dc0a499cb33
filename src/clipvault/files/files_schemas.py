"""Pydantic schemas for the files API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CommentPayload(BaseModel):
    text: str
    timestamp: str


class FileSummary(BaseModel):
    digest: str
    filename: str
    url: str
    size: int
    uploaded_at: str
    expires_at: str | None
    is_permanent: bool
    mimetype: str
    likes: int
    comments: list[CommentPayload]
    title: str | None = None


class FileListResponse(BaseModel):
    status: str = "ok"
    count: int
    files: list[FileSummary]


class AnnotateRequest(BaseModel):
    title: str | list[str] | None = None


class AnnotateResponse(BaseModel):
    status: str = "ok"
    filename: str
    title: str | None


class LikeResponse(BaseModel):
    status: str = "ok"
    filename: str
    likes: int


class CommentRequest(BaseModel):
    text: str = Field(..., max_length=2000)


class CommentResponse(BaseModel):
    status: str = "ok"
    filename: str
    comment: CommentPayload


class DeleteResponse(BaseModel):
    status: str = "ok"
    removed: int
