"""FastAPI dependencies for API routes."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from recordsync.core.config import Settings
from recordsync.core.errors import UnknownEntityError
from recordsync.server.database import Database
from recordsync.server.migration import MigrationService
from recordsync.sync.entities import EntitySpec, get_entity
from recordsync.sync.reconcile import Reconcilers
from recordsync.sync.records import RecordService
from recordsync.sync.upload_queue import UploadQueue


def get_db(request: Request) -> Database:
    """Get database from app state."""
    db: Database = request.app.state.db
    return db


def get_settings(request: Request) -> Settings:
    """Get settings from app state."""
    settings: Settings = request.app.state.settings
    return settings


def get_reconcilers(request: Request) -> Reconcilers:
    """Get the reconciliation services from app state."""
    reconcilers: Reconcilers = request.app.state.reconcilers
    return reconcilers


def get_records(request: Request) -> RecordService:
    """Get the record write service from app state."""
    records: RecordService = request.app.state.records
    return records


def get_migration(request: Request) -> MigrationService:
    """Get the migration service from app state."""
    migration: MigrationService = request.app.state.migration
    return migration


def get_upload_queue(request: Request) -> UploadQueue:
    """Get the upload queue from app state."""
    uploads: UploadQueue = request.app.state.uploads
    return uploads


def get_spec(entity: str) -> EntitySpec:
    """Resolve the ``{entity}`` path parameter."""
    try:
        return get_entity(entity)
    except UnknownEntityError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        ) from e
