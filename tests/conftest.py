from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from clipvault.media.content_index import ContentIndex

os.environ.pop("CLIPVAULT_API_KEY", None)
os.environ.pop("API_KEY", None)

START = datetime(2025, 1, 1, tzinfo=timezone.utc)


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture()
def storage_root(tmp_path: Path) -> Path:
    root = tmp_path / "videos"
    root.mkdir()
    return root


@pytest.fixture()
def index_path(tmp_path: Path) -> Path:
    return tmp_path / "var" / "file-hash-map.json"


@pytest.fixture()
def content_index(storage_root: Path, index_path: Path, clock: FrozenClock) -> ContentIndex:
    return ContentIndex.load(storage_root=storage_root, index_path=index_path, clock=clock)
