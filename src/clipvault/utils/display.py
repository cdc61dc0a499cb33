"""Presentation helpers: display timestamps and MIME guesses."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)

_VIDEO_MIME_TYPES = {
    ".mp4": "video/mp4",
    ".webm": "video/webm",
    ".mkv": "video/x-matroska",
    ".avi": "video/x-msvideo",
    ".mov": "video/quicktime",
}


def display_iso(value: datetime | int | None, tz: timezone) -> str | None:
    """Render an epoch-ms value or datetime as ISO 8601 in ``tz``.

    >>> display_iso(0, timezone.utc)
    '1970-01-01T00:00:00.000+00:00'
    """

    if value is None:
        return None
    try:
        if isinstance(value, datetime):
            moment = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        else:
            moment = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        return moment.astimezone(tz).isoformat(timespec="milliseconds")
    except (OverflowError, ValueError, OSError):
        logger.warning("display.timestamp_out_of_range", extra={"value": str(value)})
        return None


def guess_mime(filename: str) -> str:
    return _VIDEO_MIME_TYPES.get(Path(filename).suffix.lower(), "application/octet-stream")
