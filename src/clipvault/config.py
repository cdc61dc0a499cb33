"""Application configuration.

Settings are read from ``CLIPVAULT_*`` environment variables. The API key also
honours the bare ``API_KEY`` variable used by older deployments.
"""

from __future__ import annotations

import os
from datetime import timedelta, timezone
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import StorageUnavailableError

DEFAULT_CONTENT_TYPES = ("video/mp4", "video/webm", "video/x-matroska")


class AppConfig(BaseSettings):
    """Pydantic settings container for the store and its adapters."""

    model_config = SettingsConfigDict(env_prefix="CLIPVAULT_")

    storage_root: Path = Field(
        default_factory=lambda: Path("public/videos"),
        description="Directory holding one file per unique blob.",
    )
    index_path: Path = Field(
        default_factory=lambda: Path("var/file-hash-map.json"),
        description="JSON file mirroring the digest → entry index.",
    )
    api_key: str | None = Field(
        default=None,
        description="Key required by list, annotate and delete endpoints.",
    )
    default_ttl_hours: int = Field(
        default=24,
        ge=1,
        description="Lifetime applied when an upload carries no usable TTL.",
    )
    max_upload_bytes: int = Field(
        default=100 * 1024 * 1024,
        ge=1,
        description="Upper bound for a single upload.",
    )
    allowed_content_types: tuple[str, ...] = Field(
        default=DEFAULT_CONTENT_TYPES,
        description="Accepted upload Content-Type values.",
    )
    chunk_size_bytes: int = Field(
        default=1024 * 1024,
        ge=1024,
        description="Read size used while buffering uploads.",
    )
    sweep_interval_seconds: float = Field(
        default=3600.0,
        ge=0.0,
        description="Delay between reconciler sweeps; 0 disables the timer.",
    )
    sweep_on_startup: bool = Field(
        default=True,
        description="Run one sweep eagerly when the application starts.",
    )
    display_utc_offset_hours: int = Field(
        default=7,
        ge=-12,
        le=14,
        description="UTC offset used when rendering timestamps in responses.",
    )
    digest_algorithm: str = Field(
        default="md5",
        description="hashlib algorithm naming blobs; changing it orphans existing files.",
    )
    public_base_url: str | None = Field(
        default=None,
        description="Base URL for video links; defaults to the request's base URL.",
    )

    @property
    def display_timezone(self) -> timezone:
        return timezone(timedelta(hours=self.display_utc_offset_hours))


def load_config() -> AppConfig:
    """Load configuration from environment."""
    config = AppConfig()
    legacy_key = os.getenv("API_KEY")
    if config.api_key is None and legacy_key:
        config = config.model_copy(update={"api_key": legacy_key})
    return config


def ensure_storage_root(config: AppConfig) -> Path:
    """Create the storage root, failing loudly when that is impossible."""
    try:
        config.storage_root.mkdir(parents=True, exist_ok=True, mode=0o755)
    except OSError as exc:
        raise StorageUnavailableError(
            f"cannot create storage root '{config.storage_root}': {exc}"
        ) from exc
    return config.storage_root
