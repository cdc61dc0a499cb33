"""FastAPI application factory.

The content index is loaded and healed before the app is returned, so a
corrupted or stale index never reaches a request handler. The lifespan runs
the reconciler once before serving, then on a timer, and persists the index
one last time on shutdown.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator

from fastapi import FastAPI

from . import __version__
from .config import AppConfig, ensure_storage_root, load_config
from .dependencies import include_routers
from .exceptions import StorageUnavailableError
from .lifecycle import run_periodic_sweep, sweep_once
from .logging import configure_logging
from .media.content_index import ContentIndex

logger = logging.getLogger(__name__)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    config: AppConfig = app.state.config
    index: ContentIndex = app.state.content_index
    reconciler = app.state.reconciler
    shutdown_event = asyncio.Event()
    task: asyncio.Task[None] | None = None

    if config.sweep_on_startup:
        try:
            await asyncio.to_thread(sweep_once, reconciler=reconciler)
        except Exception:
            logger.exception("sweep.startup_failed")
    if config.sweep_interval_seconds > 0:
        task = asyncio.create_task(
            run_periodic_sweep(
                reconciler=reconciler,
                shutdown_event=shutdown_event,
                interval_seconds=config.sweep_interval_seconds,
                sweep_immediately=False,
            ),
            name="clipvault-sweep",
        )
    app.state.sweep_task = task
    try:
        yield
    finally:
        shutdown_event.set()
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        app.state.sweep_task = None
        index.persist()
        logger.info("app.shutdown", extra={"entries": len(index)})


def create_app(
    config: AppConfig | None = None,
    *,
    content_index: ContentIndex | None = None,
) -> FastAPI:
    """Build FastAPI instance with configured dependencies.

    Exits the process when the storage root cannot be created.
    """
    configure_logging()
    cfg = config or load_config()
    try:
        ensure_storage_root(cfg)
    except StorageUnavailableError:
        logger.critical("app.storage_unavailable", exc_info=True)
        raise SystemExit(1)
    logger.info("app.storage_ready", extra={"storage_root": str(cfg.storage_root)})

    app = FastAPI(title="ClipVault", version=__version__, lifespan=lifespan)
    include_routers(app, cfg, content_index=content_index)
    return app


__all__ = ["create_app", "lifespan"]
