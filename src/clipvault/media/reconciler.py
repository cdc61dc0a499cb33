"""Expiry and orphan sweeps over the content index and storage root."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from .content_index import ContentIndex
from .media_digest import epoch_ms
from .media_models import SweepReport


@dataclass(slots=True)
class LifecycleReconciler:
    """Reclaim storage held by expired entries and unreferenced files."""

    index: ContentIndex
    log: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))

    def sweep(self, now: datetime | None = None) -> SweepReport:
        """Delete expired entries, then orphaned files, then persist once."""

        with self.index.lock:
            now_ms = epoch_ms(now) if now is not None else self.index.now_ms()
            report = SweepReport()

            for entry in self.index.entries():
                if not entry.is_expired(now_ms):
                    continue
                self.index.unlink_blob(entry.filename)
                self.index.discard(entry.digest)
                report.expired.append(entry.filename)
                self.log.info(
                    "sweep.expired.removed",
                    extra={"digest": entry.digest, "blob": entry.filename},
                )

            for path in self._orphans():
                if self.index.unlink_blob(path.name):
                    report.orphaned.append(path.name)
                    self.log.info("sweep.orphan.removed", extra={"blob": path.name})

            self.index.persist()

        if report.changed:
            self.log.info(
                "sweep.completed",
                extra={"expired": len(report.expired), "orphaned": len(report.orphaned)},
            )
        return report

    def preview(self, now: datetime | None = None) -> SweepReport:
        """Report what :meth:`sweep` would remove without touching anything."""

        with self.index.lock:
            now_ms = epoch_ms(now) if now is not None else self.index.now_ms()
            expired = [entry for entry in self.index.entries() if entry.is_expired(now_ms)]
            orphaned = [path.name for path in self._orphans()]
        return SweepReport(
            expired=[entry.filename for entry in expired],
            orphaned=orphaned,
            dry_run=True,
        )

    def _orphans(self) -> list[Path]:
        root = self.index.storage_root
        if not root.is_dir():
            return []
        referenced = self.index.referenced_filenames()
        orphans: list[Path] = []
        for path in sorted(root.iterdir()):
            if not path.is_file() or self.index.is_index_artifact(path):
                continue
            if path.name in referenced:
                continue
            orphans.append(path)
        return orphans


__all__ = ["LifecycleReconciler"]
