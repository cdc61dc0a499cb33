from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from clipvault.exceptions import BlobNotFoundError, InvalidCommentError, StorageWriteError
from clipvault.media.content_index import ContentIndex
from clipvault.media.media_digest import MS_PER_HOUR, epoch_ms
from tests.helpers.index_files import md5_hex, read_index

pytestmark = pytest.mark.unit

B1 = b"first video bytes"
B2 = b"second video bytes"


def test_put_stores_new_content_once(content_index, storage_root, index_path, clock) -> None:
    result = content_index.put(B1, extension=".MP4", title="Beach")

    digest = md5_hex(B1)
    assert result.filename == f"{digest}.mp4"
    assert result.is_duplicate is False
    assert result.size_bytes == len(B1)
    assert (storage_root / result.filename).read_bytes() == B1
    assert read_index(index_path) == {
        digest: {
            "filename": f"{digest}.mp4",
            "title": "Beach",
            "expiresAt": epoch_ms(clock()) + 24 * MS_PER_HOUR,
            "isPermanent": False,
            "likes": 0,
            "comments": [],
        }
    }


def test_identical_uploads_share_one_file_and_entry(content_index, storage_root) -> None:
    results = [content_index.put(B1, extension=".mp4") for _ in range(4)]

    assert [r.is_duplicate for r in results] == [False, True, True, True]
    assert {r.filename for r in results} == {results[0].filename}
    assert [p.name for p in storage_root.iterdir()] == [results[0].filename]
    assert len(content_index) == 1


def test_duplicate_does_not_rewrite_file(content_index, storage_root) -> None:
    first = content_index.put(B1, extension=".mp4")
    path = storage_root / first.filename
    before = path.stat().st_mtime_ns
    time.sleep(0.02)

    content_index.put(B1, extension=".webm")

    assert path.stat().st_mtime_ns == before
    assert content_index.get(first.filename).filename == first.filename


def test_duplicate_rearms_expiry(content_index, clock) -> None:
    first = content_index.put(B1, extension=".mp4", ttl="2")
    clock.advance(hours=1)

    second = content_index.put(B1, extension=".mp4", ttl="5")

    assert first.entry.expires_at == epoch_ms(clock()) - MS_PER_HOUR + 2 * MS_PER_HOUR
    assert second.entry.expires_at == epoch_ms(clock()) + 5 * MS_PER_HOUR


def test_permanent_entry_ignores_later_ttl(content_index) -> None:
    created = content_index.put(B1, extension=".mp4")
    assert created.entry.is_permanent is False
    assert created.entry.expires_at is not None

    permanent = content_index.put(B1, extension=".mp4", ttl="0")
    assert permanent.is_duplicate is True
    assert permanent.filename == created.filename
    assert permanent.entry.is_permanent is True
    assert permanent.entry.expires_at is None

    later = content_index.put(B1, extension=".mp4", ttl="5")
    assert later.entry.is_permanent is True
    assert later.entry.expires_at is None


def test_title_only_overwritten_when_supplied(content_index) -> None:
    content_index.put(B1, extension=".mp4", title="Original")

    untouched = content_index.put(B1, extension=".mp4")
    renamed = content_index.put(B1, extension=".mp4", title=["Renamed", "ignored"])

    assert untouched.entry.title == "Original"
    assert renamed.entry.title == "Renamed"


def test_restores_file_removed_behind_the_index(content_index, storage_root) -> None:
    result = content_index.put(B1, extension=".mp4")
    (storage_root / result.filename).unlink()

    again = content_index.put(B1, extension=".mp4")

    assert again.is_duplicate is True
    assert (storage_root / result.filename).read_bytes() == B1


def test_write_failure_creates_no_entry(tmp_path: Path, index_path: Path, clock) -> None:
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("occupied")
    index = ContentIndex.load(storage_root=blocker, index_path=index_path, clock=clock)

    with pytest.raises(StorageWriteError):
        index.put(B1, extension=".mp4")

    assert len(index) == 0
    assert read_index(index_path) == {}


def test_list_heals_missing_files_and_sorts_newest_first(
    content_index, storage_root, index_path
) -> None:
    older = content_index.put(B1, extension=".mp4")
    time.sleep(0.05)
    newer = content_index.put(B2, extension=".webm")
    time.sleep(0.05)
    gone = content_index.put(b"soon deleted", extension=".mp4")
    (storage_root / gone.filename).unlink()

    listings = content_index.list()

    assert [item.filename for item in listings] == [newer.filename, older.filename]
    assert listings[0].size_bytes == len(B2)
    assert md5_hex(b"soon deleted") not in read_index(index_path)
    assert len(content_index) == 2


def test_annotate_by_digest_or_filename(content_index) -> None:
    result = content_index.put(B1, extension=".mp4", title="Old")

    by_digest = content_index.annotate(md5_hex(B1), "By digest")
    assert by_digest.title == "By digest"

    cleared = content_index.annotate(result.filename, None)
    assert cleared.title is None

    with pytest.raises(BlobNotFoundError):
        content_index.annotate("missing.mp4", "nope")


def test_like_increments_and_persists(content_index, index_path) -> None:
    result = content_index.put(B1, extension=".mp4")

    assert content_index.like(result.filename) == 1
    assert content_index.like(result.filename) == 2
    assert read_index(index_path)[md5_hex(B1)]["likes"] == 2


def test_concurrent_likes_are_not_lost(content_index) -> None:
    result = content_index.put(B1, extension=".mp4")

    with ThreadPoolExecutor(max_workers=3) as pool:
        list(pool.map(lambda _: content_index.like(result.filename), range(3)))

    assert content_index.get(result.filename).likes == 3


def test_concurrent_identical_puts_create_one_entry(content_index, storage_root) -> None:
    with ThreadPoolExecutor(max_workers=5) as pool:
        results = list(pool.map(lambda _: content_index.put(B1, extension=".mp4"), range(5)))

    assert sorted(r.is_duplicate for r in results) == [False, True, True, True, True]
    assert len(list(storage_root.iterdir())) == 1


def test_comment_appends_with_timestamp(content_index, index_path) -> None:
    result = content_index.put(B1, extension=".mp4")

    first = content_index.comment(result.filename, "great")
    second = content_index.comment(result.filename, "again")

    assert first.timestamp == "2025-01-01T00:00:00.000Z"
    assert read_index(index_path)[md5_hex(B1)]["comments"] == [
        {"text": "great", "timestamp": "2025-01-01T00:00:00.000Z"},
        {"text": second.text, "timestamp": second.timestamp},
    ]


def test_comment_requires_text(content_index) -> None:
    result = content_index.put(B1, extension=".mp4")

    with pytest.raises(InvalidCommentError):
        content_index.comment(result.filename, "   ")
    assert content_index.get(result.filename).comments == []


def test_unknown_filename_is_not_found(content_index) -> None:
    with pytest.raises(BlobNotFoundError):
        content_index.like("missing.mp4")
    with pytest.raises(BlobNotFoundError):
        content_index.comment("missing.mp4", "hello")
    with pytest.raises(BlobNotFoundError):
        content_index.delete("missing.mp4")


def test_delete_removes_file_and_entry(content_index, storage_root, index_path) -> None:
    keep = content_index.put(B1, extension=".mp4")
    drop = content_index.put(B2, extension=".mp4")

    assert content_index.delete(drop.filename) == 1

    assert not (storage_root / drop.filename).exists()
    assert list(read_index(index_path)) == [md5_hex(B1)]
    assert (storage_root / keep.filename).exists()


def test_delete_removes_entry_even_when_file_is_gone(content_index, storage_root) -> None:
    result = content_index.put(B1, extension=".mp4")
    (storage_root / result.filename).unlink()

    assert content_index.delete(result.filename) == 1
    assert len(content_index) == 0


def test_delete_all_wipes_storage_including_orphans(
    tmp_path: Path, clock
) -> None:
    storage_root = tmp_path / "videos"
    storage_root.mkdir()
    index_path = storage_root / "index.json"
    index = ContentIndex.load(storage_root=storage_root, index_path=index_path, clock=clock)
    index.put(B1, extension=".mp4")
    index.put(B2, extension=".mp4")
    (storage_root / "orphan.mp4").write_bytes(b"stray")

    assert index.delete("all") == 2

    assert [p.name for p in storage_root.iterdir()] == ["index.json"]
    assert read_index(index_path) == {}


def test_persist_failure_keeps_memory_state(content_index, index_path, caplog) -> None:
    result = content_index.put(B1, extension=".mp4")
    index_path.unlink()
    index_path.mkdir()

    with caplog.at_level(logging.ERROR, logger="clipvault.media.content_index"):
        likes = content_index.like(result.filename)

    assert likes == 1
    assert content_index.get(result.filename).likes == 1
    assert any(r.getMessage() == "index.persist.failed" for r in caplog.records)


def test_failed_restore_leaves_duplicate_entry_untouched(
    content_index, storage_root, index_path, monkeypatch
) -> None:
    first = content_index.put(B1, extension=".mp4", title="Original", ttl="2")
    (storage_root / first.filename).unlink()

    def refuse(filename: str, data: bytes) -> None:
        raise StorageWriteError(f"could not store '{filename}'")

    monkeypatch.setattr(content_index, "_write_blob", refuse)

    with pytest.raises(StorageWriteError):
        content_index.put(B1, extension=".mp4", title="Renamed", ttl="0")

    entry = content_index.get(first.filename)
    assert (entry.title, entry.is_permanent, entry.expires_at) == (
        "Original",
        False,
        first.entry.expires_at,
    )
    assert read_index(index_path)[md5_hex(B1)]["title"] == "Original"
