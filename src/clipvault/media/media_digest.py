"""Digest, filename and lifetime helpers for stored blobs."""

from __future__ import annotations

import hashlib
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .media_models import TtlSpec

MS_PER_HOUR = 3_600_000
DEFAULT_TTL_HOURS = 24

_EXTENSION_RE = re.compile(r"^\.[a-z0-9]{1,10}$")
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")

# Deadlines past this point cannot be rendered as datetimes in every offset.
LATEST_EXPIRY_MS = int(datetime(9999, 1, 1, tzinfo=timezone.utc).timestamp() * 1000)


def compute_digest(data: bytes, algorithm: str = "md5") -> str:
    """Return the hex digest identifying ``data``."""

    hasher = hashlib.new(algorithm, usedforsecurity=False)
    hasher.update(data)
    return hasher.hexdigest()


def normalize_extension(value: str | None) -> str:
    """Return a lowercased ``.ext`` suffix, or ``""`` when unusable.

    Accepts a bare extension (``"MP4"``), a dotted one (``".mp4"``) or a
    full client filename (``"clip.final.MP4"``).
    """

    if not value:
        return ""
    if "." in value:
        suffix = Path(value).suffix or ("." + value.rsplit(".", 1)[-1])
    else:
        suffix = f".{value}"
    suffix = suffix.lower()
    if not _EXTENSION_RE.match(suffix):
        return ""
    return suffix


def derive_filename(digest: str, extension: str | None) -> str:
    return f"{digest}{normalize_extension(extension)}"


def is_safe_filename(filename: str) -> bool:
    """Reject names that would resolve outside the storage root."""

    if not filename or filename in {".", ".."}:
        return False
    return Path(filename).name == filename and "\\" not in filename


def parse_ttl_spec(
    value: Any,
    *,
    default_hours: int = DEFAULT_TTL_HOURS,
    now_ms: int | None = None,
) -> TtlSpec:
    """Interpret the caller's ``expired`` hour count.

    ``None``/empty/non-numeric input and negative numbers fall back to the
    default lifetime, ``0`` means permanent. Strings are read up to the first
    non-digit, so ``"5h"`` and ``"5.9"`` both mean five hours. Hour counts
    whose deadline would fall past ``LATEST_EXPIRY_MS`` also use the default.
    """

    default = TtlSpec(is_permanent=False, ttl_ms=default_hours * MS_PER_HOUR)
    hours: int | None = None
    if isinstance(value, bool):
        hours = None
    elif isinstance(value, int):
        hours = value
    elif isinstance(value, float):
        hours = int(value) if value == value and abs(value) != float("inf") else None
    elif isinstance(value, str):
        match = _LEADING_INT_RE.match(value)
        if match:
            hours = int(match.group(1))

    if hours is None:
        return default
    if hours == 0:
        return TtlSpec(is_permanent=True, ttl_ms=0)
    if hours < 0:
        return default
    if now_ms is None:
        now_ms = epoch_ms(datetime.now(timezone.utc))
    if now_ms + hours * MS_PER_HOUR > LATEST_EXPIRY_MS:
        return default
    return TtlSpec(is_permanent=False, ttl_ms=hours * MS_PER_HOUR)


def epoch_ms(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp() * 1000)


def utc_iso(moment: datetime) -> str:
    """Format ``moment`` as ``2024-05-01T10:00:00.000Z``."""

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )
