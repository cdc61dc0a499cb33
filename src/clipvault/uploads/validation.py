"""Upload validation utilities."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from fastapi import UploadFile

from ..exceptions import PayloadTooLargeError, UnsupportedMediaError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class UploadPayload:
    data: bytes
    original_name: str
    content_type: str

    @property
    def size_bytes(self) -> int:
        return len(self.data)


@dataclass(slots=True)
class UploadValidator:
    """Validate uploads against configured limits and buffer their bytes."""

    allowed_content_types: Sequence[str]
    max_bytes: int
    chunk_size_bytes: int = 1024 * 1024

    async def read(self, upload: UploadFile) -> UploadPayload:
        if upload.content_type not in set(self.allowed_content_types):
            logger.warning(
                "upload.unsupported_media",
                extra={"content_type": upload.content_type},
            )
            raise UnsupportedMediaError(upload.content_type)

        chunks: list[bytes] = []
        size = 0
        try:
            while True:
                chunk = await upload.read(self.chunk_size_bytes)
                if not chunk:
                    break
                size += len(chunk)
                if size > self.max_bytes:
                    logger.warning(
                        "upload.payload_too_large",
                        extra={"size_bytes": size, "limit_bytes": self.max_bytes},
                    )
                    raise PayloadTooLargeError(size)
                chunks.append(chunk)
        finally:
            await upload.close()

        payload = UploadPayload(
            data=b"".join(chunks),
            original_name=upload.filename or "",
            content_type=upload.content_type or "application/octet-stream",
        )
        logger.info(
            "upload.validated",
            extra={
                "original_name": payload.original_name,
                "size_bytes": payload.size_bytes,
                "content_type": payload.content_type,
            },
        )
        return payload
