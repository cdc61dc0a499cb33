"""Content-addressed index of stored blobs.

The index maps a content digest to its :class:`BlobEntry` and is mirrored to a
JSON file after every mutation. All read-modify-persist sequences run under a
single re-entrant lock, which the lifecycle reconciler shares, so the file on
disk always reflects the latest committed in-memory state.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import threading
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

from pydantic import ValidationError as SchemaError

from ..exceptions import (
    BlobNotFoundError,
    InvalidCommentError,
    StorageWriteError,
    ensure_found,
)
from .media_digest import (
    DEFAULT_TTL_HOURS,
    compute_digest,
    derive_filename,
    epoch_ms,
    is_safe_filename,
    parse_ttl_spec,
    utc_iso,
)
from .media_models import BlobComment, BlobEntry, BlobListing, PutResult, normalize_title

logger = logging.getLogger(__name__)

DELETE_ALL = "all"
PARTIAL_SUFFIX = ".part"


def _default_clock() -> datetime:
    return datetime.now(timezone.utc)


class ContentIndex:
    """Authoritative digest → entry mapping backed by a JSON file."""

    def __init__(
        self,
        *,
        storage_root: Path,
        index_path: Path,
        default_ttl_hours: int = DEFAULT_TTL_HOURS,
        digest_algorithm: str = "md5",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.storage_root = Path(storage_root)
        self.index_path = Path(index_path)
        self.default_ttl_hours = default_ttl_hours
        self.digest_algorithm = digest_algorithm
        self.clock = clock or _default_clock
        self.lock = threading.RLock()
        self._entries: dict[str, BlobEntry] = {}

    @classmethod
    def load(cls, **kwargs: Any) -> "ContentIndex":
        """Build an index from its persisted file and heal it."""

        index = cls(**kwargs)
        index.repair()
        return index

    def __len__(self) -> int:
        with self.lock:
            return len(self._entries)

    def __contains__(self, digest: object) -> bool:
        with self.lock:
            return digest in self._entries

    def path_for(self, filename: str) -> Path:
        return self.storage_root / filename

    def now_ms(self) -> int:
        return epoch_ms(self.clock())

    # ------------------------------------------------------------------
    # load / repair
    # ------------------------------------------------------------------
    def repair(self, *, persist: bool = True) -> int:
        """Replace in-memory state with the healed on-disk index.

        Returns the number of persisted records that were dropped. With
        ``persist=False`` the index file is left as it was found.
        """

        raw = self._read_raw()
        entries: dict[str, BlobEntry] = {}
        claimed: set[str] = set()
        dropped = 0
        for digest, payload in raw.items():
            entry = self._parse_record(digest, payload)
            if entry is None:
                dropped += 1
                continue
            if entry.filename in claimed:
                logger.warning(
                    "index.load.duplicate_filename",
                    extra={"digest": digest, "blob": entry.filename},
                )
                dropped += 1
                continue
            if not self.path_for(entry.filename).is_file():
                logger.info(
                    "index.load.missing_file",
                    extra={"digest": digest, "blob": entry.filename},
                )
                dropped += 1
                continue
            claimed.add(entry.filename)
            entries[digest] = entry

        with self.lock:
            self._entries = entries
            logger.info(
                "index.loaded",
                extra={"entries": len(entries), "dropped": dropped, "path": str(self.index_path)},
            )
            if persist:
                self.persist()
        return dropped

    def _read_raw(self) -> dict[str, Any]:
        if not self.index_path.exists():
            return {}
        try:
            data = json.loads(self.index_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.warning(
                "index.load.corrupted",
                extra={"path": str(self.index_path), "error": str(exc)},
            )
            return {}
        except OSError:
            logger.exception("index.load.read_failed", extra={"path": str(self.index_path)})
            return {}
        if not isinstance(data, dict):
            logger.warning(
                "index.load.invalid_root",
                extra={"path": str(self.index_path), "root_type": type(data).__name__},
            )
            return {}
        return data

    @staticmethod
    def _parse_record(digest: str, payload: Any) -> BlobEntry | None:
        if not isinstance(payload, dict):
            logger.warning("index.load.invalid_entry", extra={"digest": digest})
            return None
        filename = payload.get("filename")
        if not isinstance(filename, str) or not is_safe_filename(filename):
            logger.warning(
                "index.load.invalid_filename", extra={"digest": digest, "blob": filename}
            )
            return None
        try:
            return BlobEntry.model_validate({**payload, "digest": digest})
        except SchemaError as exc:
            logger.warning(
                "index.load.invalid_entry", extra={"digest": digest, "error": str(exc)}
            )
            return None

    # ------------------------------------------------------------------
    # persistence
    # ------------------------------------------------------------------
    def persist(self) -> bool:
        """Write the current snapshot to ``index_path``.

        Failures are logged and reported through the return value; the
        in-memory state stays authoritative until the next successful write.
        """

        with self.lock:
            payload = {digest: entry.to_record() for digest, entry in self._entries.items()}
            tmp_path = self.index_path.with_name(self.index_path.name + ".tmp")
            try:
                self.index_path.parent.mkdir(parents=True, exist_ok=True)
                tmp_path.write_text(
                    json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8"
                )
                os.replace(tmp_path, self.index_path)
            except OSError:
                logger.exception("index.persist.failed", extra={"path": str(self.index_path)})
                with contextlib.suppress(OSError):
                    tmp_path.unlink(missing_ok=True)
                return False
            logger.debug("index.persisted", extra={"entries": len(payload)})
            return True

    def is_index_artifact(self, path: Path) -> bool:
        """Return ``True`` for the index file or its temp sibling."""

        index_file = self.index_path.resolve()
        candidate = path.resolve()
        return candidate in {index_file, index_file.with_name(index_file.name + ".tmp")}

    # ------------------------------------------------------------------
    # operations
    # ------------------------------------------------------------------
    def put(
        self,
        data: bytes,
        *,
        extension: str | None = None,
        title: str | Sequence[str] | None = None,
        ttl: Any = None,
    ) -> PutResult:
        """Store ``data`` once and register or refresh its entry."""

        digest = compute_digest(data, self.digest_algorithm)
        new_title = normalize_title(title)

        with self.lock:
            now_ms = self.now_ms()
            spec = parse_ttl_spec(ttl, default_hours=self.default_ttl_hours, now_ms=now_ms)
            entry = self._entries.get(digest)
            is_duplicate = entry is not None
            if entry is not None:
                # the entry is only touched once its file is back in place
                if not self.path_for(entry.filename).is_file():
                    logger.warning(
                        "index.put.restoring_missing_file",
                        extra={"digest": digest, "blob": entry.filename},
                    )
                    self._write_blob(entry.filename, data)
                if new_title is not None:
                    entry.title = new_title
                if not entry.is_permanent:
                    entry.is_permanent = spec.is_permanent
                    entry.expires_at = spec.expires_at(now_ms)
            else:
                filename = derive_filename(digest, extension)
                self._write_blob(filename, data)
                entry = BlobEntry(
                    digest=digest,
                    filename=filename,
                    title=new_title,
                    expires_at=spec.expires_at(now_ms),
                    is_permanent=spec.is_permanent,
                )
                self._entries[digest] = entry

            logger.info(
                "index.put",
                extra={
                    "digest": digest,
                    "blob": entry.filename,
                    "duplicate": is_duplicate,
                    "permanent": entry.is_permanent,
                },
            )
            self.persist()
            return PutResult(
                filename=entry.filename,
                is_duplicate=is_duplicate,
                entry=entry.model_copy(deep=True),
                size_bytes=len(data),
            )

    def get(self, key: str) -> BlobEntry:
        """Return a copy of the entry addressed by filename or digest."""

        with self.lock:
            return self._resolve(key).model_copy(deep=True)

    def list(self) -> list[BlobListing]:
        """Return live entries, newest upload first, healing dangling ones."""

        listings: list[BlobListing] = []
        with self.lock:
            missing: list[str] = []
            for digest, entry in self._entries.items():
                try:
                    stat = self.path_for(entry.filename).stat()
                except FileNotFoundError:
                    missing.append(digest)
                    continue
                except OSError:
                    logger.exception("index.list.stat_failed", extra={"blob": entry.filename})
                    continue
                created = getattr(stat, "st_birthtime", None) or stat.st_ctime
                listings.append(
                    BlobListing(
                        digest=digest,
                        filename=entry.filename,
                        title=entry.title,
                        expires_at=entry.expires_at,
                        is_permanent=entry.is_permanent,
                        likes=entry.likes,
                        comments=[comment.model_copy() for comment in entry.comments],
                        size_bytes=stat.st_size,
                        uploaded_at=datetime.fromtimestamp(created, tz=timezone.utc),
                    )
                )
            for digest in missing:
                removed = self._entries.pop(digest)
                logger.info(
                    "index.list.removed_missing",
                    extra={"digest": digest, "blob": removed.filename},
                )
            if missing:
                self.persist()

        listings.sort(key=lambda item: item.uploaded_at, reverse=True)
        return listings

    def annotate(self, key: str, title: str | Sequence[str] | None) -> BlobEntry:
        """Replace (or clear) the title of an entry."""

        with self.lock:
            entry = self._resolve(key)
            entry.title = normalize_title(title)
            self.persist()
            return entry.model_copy(deep=True)

    def like(self, filename: str) -> int:
        with self.lock:
            entry = self._by_filename(filename)
            entry.likes += 1
            self.persist()
            return entry.likes

    def comment(self, filename: str, text: str) -> BlobComment:
        if not isinstance(text, str) or not text.strip():
            raise InvalidCommentError("comment text is required")
        with self.lock:
            entry = self._by_filename(filename)
            comment = BlobComment(text=text, timestamp=utc_iso(self.clock()))
            entry.comments.append(comment)
            self.persist()
            return comment.model_copy()

    def delete(self, filename: str) -> int:
        """Remove one blob, or every file when ``filename == "all"``.

        Returns the number of index entries removed. The entry is dropped even
        if the physical delete fails.
        """

        with self.lock:
            if filename == DELETE_ALL:
                return self._delete_all()
            entry = self._by_filename(filename)
            self.unlink_blob(entry.filename)
            del self._entries[entry.digest]
            logger.info("index.delete", extra={"digest": entry.digest, "blob": filename})
            self.persist()
            return 1

    # ------------------------------------------------------------------
    # reconciler support; callers hold ``lock``
    # ------------------------------------------------------------------
    def entries(self) -> list[BlobEntry]:
        with self.lock:
            return list(self._entries.values())

    def referenced_filenames(self) -> set[str]:
        with self.lock:
            return {entry.filename for entry in self._entries.values()}

    def discard(self, digest: str) -> BlobEntry | None:
        with self.lock:
            return self._entries.pop(digest, None)

    def unlink_blob(self, filename: str) -> bool:
        """Delete a stored file, logging instead of raising on failure."""

        try:
            self.path_for(filename).unlink()
        except FileNotFoundError:
            logger.warning("storage.delete.missing", extra={"blob": filename})
            return False
        except OSError:
            logger.exception("storage.delete.failed", extra={"blob": filename})
            return False
        return True

    # ------------------------------------------------------------------
    # internals
    # ------------------------------------------------------------------
    def _resolve(self, key: str) -> BlobEntry:
        entry = self._entries.get(key)
        if entry is None:
            entry = self._find_filename(key)
        return ensure_found(entry, key=key)  # type: ignore[return-value]

    def _by_filename(self, filename: str) -> BlobEntry:
        entry = self._find_filename(filename)
        if entry is None:
            raise BlobNotFoundError(filename)
        return entry

    def _find_filename(self, filename: str) -> BlobEntry | None:
        return next(
            (entry for entry in self._entries.values() if entry.filename == filename),
            None,
        )

    def _write_blob(self, filename: str, data: bytes) -> None:
        target = self.path_for(filename)
        partial = target.with_name(target.name + PARTIAL_SUFFIX)
        try:
            self.storage_root.mkdir(parents=True, exist_ok=True)
            partial.write_bytes(data)
            os.replace(partial, target)
        except OSError as exc:
            logger.exception("storage.write.failed", extra={"blob": filename})
            with contextlib.suppress(OSError):
                partial.unlink(missing_ok=True)
            raise StorageWriteError(f"could not store '{filename}'") from exc

    def _delete_all(self) -> int:
        removed_entries = len(self._entries)
        removed_files = 0
        if self.storage_root.is_dir():
            for path in self.storage_root.iterdir():
                if not path.is_file() or self.is_index_artifact(path):
                    continue
                if self.unlink_blob(path.name):
                    removed_files += 1
        self._entries.clear()
        logger.info(
            "index.delete_all",
            extra={"entries": removed_entries, "files": removed_files},
        )
        self.persist()
        return removed_entries
