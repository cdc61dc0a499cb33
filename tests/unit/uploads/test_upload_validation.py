from io import BytesIO

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from clipvault.exceptions import PayloadTooLargeError, UnsupportedMediaError
from clipvault.uploads.validation import UploadValidator

VIDEO = b"\x00\x00\x00\x18ftypmp42" + b"\x01" * 64


def make_upload(data: bytes, *, content_type: str, filename: str) -> UploadFile:
    return UploadFile(
        filename=filename,
        file=BytesIO(data),
        headers=Headers({"content-type": content_type}),
    )


def build_validator(*, max_bytes: int = 1024, chunk_size: int = 16) -> UploadValidator:
    return UploadValidator(
        allowed_content_types=("video/mp4", "video/webm", "video/x-matroska"),
        max_bytes=max_bytes,
        chunk_size_bytes=chunk_size,
    )


@pytest.mark.asyncio
async def test_read_buffers_allowed_video() -> None:
    upload = make_upload(VIDEO, content_type="video/mp4", filename="clip.MP4")

    payload = await build_validator().read(upload)

    assert payload.data == VIDEO
    assert payload.size_bytes == len(VIDEO)
    assert payload.original_name == "clip.MP4"
    assert payload.content_type == "video/mp4"


@pytest.mark.asyncio
async def test_read_rejects_unsupported_media() -> None:
    upload = make_upload(VIDEO, content_type="image/gif", filename="clip.gif")

    with pytest.raises(UnsupportedMediaError):
        await build_validator().read(upload)


@pytest.mark.asyncio
async def test_read_rejects_too_large_payload() -> None:
    upload = make_upload(VIDEO * 20, content_type="video/webm", filename="big.webm")

    with pytest.raises(PayloadTooLargeError):
        await build_validator(max_bytes=len(VIDEO)).read(upload)
