"""Lifecycle helpers wiring the reconciler sweep into FastAPI startup."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable

from .media.media_models import SweepReport
from .media.reconciler import LifecycleReconciler


logger = logging.getLogger(__name__)


def _default_clock() -> datetime:
    return datetime.now(timezone.utc)


def sweep_once(
    *,
    reconciler: LifecycleReconciler,
    now: datetime | None = None,
) -> SweepReport:
    """Run a single reconciler sweep and return what it removed."""

    return reconciler.sweep(now=now or _default_clock())


async def run_periodic_sweep(
    *,
    reconciler: LifecycleReconciler,
    shutdown_event: asyncio.Event,
    interval_seconds: float | None = 3600.0,
    sweep_immediately: bool = True,
    clock: Callable[[], datetime] | None = None,
) -> None:
    """Execute sweeps until ``shutdown_event`` is signalled.

    Each tick runs in a worker thread and takes the index lock, so request
    handlers and the sweep never interleave on the index. With
    ``interval_seconds=None`` only the immediate sweep runs.
    """

    interval = None if interval_seconds is None else max(1.0, float(interval_seconds))
    tick = clock or _default_clock
    run_now = sweep_immediately
    while not shutdown_event.is_set():
        if run_now:
            try:
                report = await asyncio.to_thread(
                    sweep_once, reconciler=reconciler, now=tick()
                )
            except Exception:  # pragma: no cover
                logger.exception("sweep.iteration_failed")
            else:
                if report.changed:
                    logger.info(
                        "Swept %s expired and %s orphaned files",
                        len(report.expired),
                        len(report.orphaned),
                    )
        run_now = True
        if interval is None:
            await shutdown_event.wait()
            break
        try:
            await asyncio.wait_for(shutdown_event.wait(), timeout=interval)
        except asyncio.TimeoutError:
            continue


__all__ = [
    "run_periodic_sweep",
    "sweep_once",
]
