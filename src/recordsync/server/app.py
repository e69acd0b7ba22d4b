"""FastAPI application for the recordsync server.

This module creates and configures the FastAPI application with:
- REST API for entity records, migration and the upload queue
- Upload queue consumer and migration scheduler tied to the app lifespan

Usage:
    uvicorn recordsync.server.app:app_factory --factory --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from recordsync import __version__
from recordsync.core.config import Settings
from recordsync.server.api.router import router as api_router
from recordsync.server.database import Database
from recordsync.server.migration import MigrationService
from recordsync.server.scheduler import MigrationScheduler
from recordsync.server.storage import ObjectStorage, create_storage
from recordsync.sync.reconcile import Reconcilers
from recordsync.sync.records import RecordService
from recordsync.sync.remote import RemoteStores
from recordsync.sync.upload_queue import UploadQueue

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def setup_logging(log_path: Path | None, level: int = logging.INFO) -> None:
    """Configure logging to output to both file and stdout.

    Calling it again is a no-op, so the CLI and the app factory may both call it.

    Args:
        log_path: Path to the log file (None = stdout only).
        level: Level of the recordsync logger.
    """
    root_logger = logging.getLogger("recordsync")
    root_logger.setLevel(level)
    if root_logger.handlers:
        return

    formatter = logging.Formatter(LOG_FORMAT)

    # Stdout handler
    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(formatter)
    root_logger.addHandler(stdout_handler)

    if log_path is None:
        return

    # File handler
    log_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    # Also capture uvicorn logs to file
    for uvicorn_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(uvicorn_name).addHandler(file_handler)


def create_app(
    db: Database,
    storage: ObjectStorage | None = None,
    remotes: RemoteStores | None = None,
    settings: Settings | None = None,
    uploads: UploadQueue | None = None,
    enable_scheduler: bool | None = None,
) -> FastAPI:
    """Create FastAPI application with custom collaborators.

    Tests pass an isolated database, in-memory remote stores and a queue
    with injected timers.

    Args:
        db: Database instance.
        storage: Attachment storage (default: from settings).
        remotes: Remote stores (default: from settings).
        settings: Runtime settings (default: Settings()).
        uploads: Upload queue (default: built from settings).
        enable_scheduler: Override settings.scheduler_enabled.

    Returns:
        Configured FastAPI application.
    """
    settings = settings or Settings()
    storage = storage or create_storage(settings.storage)
    remotes = remotes or RemoteStores.from_settings(settings)
    reconcilers = Reconcilers(db, remotes)
    if uploads is None:
        uploads = UploadQueue(
            storage,
            reconcilers,
            max_retries=settings.upload_max_retries,
            retry_delay=settings.upload_retry_delay,
            inter_task_delay=settings.upload_inter_task_delay,
            reconcile_delay=settings.reconcile_delay,
        )
    migration = MigrationService(reconcilers)
    scheduler = MigrationScheduler(
        migration,
        hour=settings.migration_hour,
        minute=settings.migration_minute,
        sweep_minutes=settings.sweep_minutes,
    )
    if enable_scheduler is None:
        enable_scheduler = settings.scheduler_enabled

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler for startup/shutdown."""
        # Startup
        logger.info("=" * 60)
        logger.info("recordsync server starting")
        logger.info("=" * 60)
        logger.info("  Database: %s", db.path)
        logger.info("  Storage:  %s", storage.location)
        if settings.remote_configured:
            logger.info("  Remote:   AppSheet %s", settings.appsheet_url)
        else:
            logger.info("  Remote:   in-memory (AppSheet not configured)")
        logger.info("  Logs:     %s", settings.log_path.absolute())
        logger.info("=" * 60)

        uploads.start()
        if enable_scheduler:
            scheduler.start()

        yield

        # Shutdown
        logger.info("recordsync server shutting down")
        scheduler.stop()
        uploads.stop()
        remotes.close()

    application = FastAPI(
        title="recordsync",
        description="Local-first records reconciled with AppSheet",
        version=__version__,
        lifespan=lifespan,
    )

    application.state.db = db
    application.state.storage = storage
    application.state.settings = settings
    application.state.reconcilers = reconcilers
    application.state.records = RecordService(reconcilers, uploads)
    application.state.migration = migration
    application.state.uploads = uploads
    application.state.scheduler = scheduler

    application.include_router(api_router)

    return application


def app_factory() -> FastAPI:
    """Factory function for uvicorn --factory mode."""
    settings = Settings.from_env()
    setup_logging(settings.log_path)
    return create_app(db=Database(settings.db_path), settings=settings)
