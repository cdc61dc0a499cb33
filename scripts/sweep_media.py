"""Cron entry point for sweeping expired and orphaned videos."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from datetime import datetime, timezone

from clipvault.config import ensure_storage_root, load_config
from clipvault.media.content_index import ContentIndex
from clipvault.media.reconciler import LifecycleReconciler


@dataclass(slots=True)
class SweepSummary:
    expired_removed: int
    orphans_removed: int
    dry_run: bool
    entries_dropped: int = 0


def perform_sweep(*, dry_run: bool, reference_time: datetime | None = None) -> SweepSummary:
    """Execute one reconciler pass and return summary counters.

    A dry run heals the index in memory only, so neither the index file nor
    the storage root is modified.
    """
    config = load_config()
    ensure_storage_root(config)
    index = ContentIndex(
        storage_root=config.storage_root,
        index_path=config.index_path,
        default_ttl_hours=config.default_ttl_hours,
        digest_algorithm=config.digest_algorithm,
    )
    dropped = index.repair(persist=not dry_run)
    reconciler = LifecycleReconciler(index=index)

    now = reference_time or datetime.now(timezone.utc)
    report = reconciler.preview(now) if dry_run else reconciler.sweep(now)
    return SweepSummary(
        expired_removed=len(report.expired),
        orphans_removed=len(report.orphaned),
        dry_run=report.dry_run,
        entries_dropped=dropped,
    )


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sweep expired and orphaned videos.")
    parser.add_argument("--dry-run", action="store_true", help="Only report counts without deleting files.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv or [])
    try:
        summary = perform_sweep(dry_run=args.dry_run)
    except Exception as exc:
        print(f"sweep failed: {exc}", file=sys.stderr)
        return 2

    if summary.dry_run:
        print(
            f"sweep dry-run, expired={summary.expired_removed}, orphaned={summary.orphans_removed}, "
            f"dropped_entries={summary.entries_dropped}",
            file=sys.stdout,
        )
    else:
        print(
            f"sweep done, expired_removed={summary.expired_removed}, orphans_removed={summary.orphans_removed}, "
            f"dropped_entries={summary.entries_dropped}",
            file=sys.stdout,
        )
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
