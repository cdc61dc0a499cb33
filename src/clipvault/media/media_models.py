"""Media data models.

``BlobEntry`` mirrors one record of the persisted index file. The on-disk
shape uses camelCase keys (``expiresAt``, ``isPermanent``) and must round-trip
unchanged, so the model exposes snake_case attributes with camelCase aliases.
Field validators run once at the load boundary and coerce whatever older
deployments wrote into the strict shape below.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def normalize_title(value: Any) -> str | None:
    """Collapse a title to a non-empty string or ``None``.

    Multipart parsers occasionally hand over repeated fields as a list; the
    first element wins in that case.
    """

    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if isinstance(value, str) and value:
        return value
    return None


class BlobComment(BaseModel):
    model_config = ConfigDict(extra="ignore")

    text: str
    timestamp: str


class BlobEntry(BaseModel):
    """Metadata for one unique content digest."""

    # unknown keys written by other tools are carried through to the index file
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    digest: str = Field(default="", exclude=True)
    filename: str = Field(..., min_length=1)
    title: str | None = None
    expires_at: int | None = Field(default=None, alias="expiresAt")
    is_permanent: bool = Field(default=False, alias="isPermanent")
    likes: int = 0
    comments: list[BlobComment] = Field(default_factory=list)

    @field_validator("title", mode="before")
    @classmethod
    def _coerce_title(cls, value: Any) -> str | None:
        return normalize_title(value)

    @field_validator("expires_at", mode="before")
    @classmethod
    def _coerce_expires_at(cls, value: Any) -> int | None:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        if not math.isfinite(value):
            return None
        return int(value)

    @field_validator("is_permanent", mode="before")
    @classmethod
    def _coerce_is_permanent(cls, value: Any) -> bool:
        return value is True

    @field_validator("likes", mode="before")
    @classmethod
    def _coerce_likes(cls, value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return 0
        if not math.isfinite(value):
            return 0
        return max(int(value), 0)

    @field_validator("comments", mode="before")
    @classmethod
    def _coerce_comments(cls, value: Any) -> list[dict[str, str]]:
        if not isinstance(value, list):
            return []
        comments: list[dict[str, str]] = []
        for item in value:
            if not isinstance(item, dict) or not isinstance(item.get("text"), str):
                continue
            timestamp = item.get("timestamp")
            comments.append(
                {
                    "text": item["text"],
                    "timestamp": timestamp if isinstance(timestamp, str) else "",
                }
            )
        return comments

    @model_validator(mode="after")
    def _drop_expiry_when_permanent(self) -> "BlobEntry":
        if self.is_permanent:
            self.expires_at = None
        return self

    def is_expired(self, now_ms: int) -> bool:
        """Return ``True`` once a time-limited entry is past its deadline.

        A time-limited entry without a deadline is treated as already expired.
        """

        if self.is_permanent:
            return False
        return self.expires_at is None or self.expires_at < now_ms

    def to_record(self) -> dict[str, Any]:
        """Return the JSON-ready shape stored in the index file."""

        return self.model_dump(by_alias=True, mode="json")


@dataclass(frozen=True, slots=True)
class TtlSpec:
    """Parsed lifetime request attached to an upload."""

    is_permanent: bool
    ttl_ms: int

    def expires_at(self, now_ms: int) -> int | None:
        if self.is_permanent:
            return None
        return now_ms + self.ttl_ms


@dataclass(slots=True)
class PutResult:
    filename: str
    is_duplicate: bool
    entry: BlobEntry
    size_bytes: int


@dataclass(slots=True)
class BlobListing:
    """Index entry enriched with fresh on-disk stat."""

    digest: str
    filename: str
    title: str | None
    expires_at: int | None
    is_permanent: bool
    likes: int
    comments: list[BlobComment]
    size_bytes: int
    uploaded_at: datetime


@dataclass(slots=True)
class SweepReport:
    """Outcome of one reconciler pass."""

    expired: list[str] = field(default_factory=list)
    orphaned: list[str] = field(default_factory=list)
    dry_run: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.expired or self.orphaned)
