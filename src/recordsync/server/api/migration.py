"""Migration API routes."""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

from fastapi import APIRouter, Depends, HTTPException, status

from recordsync.core.errors import RemoteStoreError
from recordsync.server.api.deps import get_migration, get_spec
from recordsync.server.migration import MigrationService
from recordsync.server.schemas import (
    BatchResponse,
    ComparisonResponse,
    FullMigrationResponse,
    ImportResponse,
    MigrationStatusResponse,
    batch_to_response,
    import_to_response,
)
from recordsync.sync.entities import EntitySpec

T = TypeVar("T")

router = APIRouter(prefix="/api/{entity}/migration", tags=["migration"])


def _remote_call(func: Callable[[], T]) -> T:
    """Run a migration operation, mapping remote failures to 502."""
    try:
        return func()
    except RemoteStoreError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Remote store error: {e}",
        ) from e


@router.get("/status", response_model=MigrationStatusResponse)
def migration_status(
    spec: EntitySpec = Depends(get_spec),
    migration: MigrationService = Depends(get_migration),
) -> MigrationStatusResponse:
    """Counts and samples from both stores."""
    result = _remote_call(lambda: migration.status(spec.name))
    return MigrationStatusResponse.model_validate(result, from_attributes=True)


@router.post("/import", response_model=ImportResponse)
def import_records(
    spec: EntitySpec = Depends(get_spec),
    migration: MigrationService = Depends(get_migration),
    parent: str | None = None,
) -> ImportResponse:
    """Import remote rows missing from the database."""
    return import_to_response(_remote_call(lambda: migration.import_from_remote(spec.name, parent)))


@router.post("/sync", response_model=BatchResponse)
def sync_records(
    spec: EntitySpec = Depends(get_spec),
    migration: MigrationService = Depends(get_migration),
    parent: str | None = None,
) -> BatchResponse:
    """Reconcile every unsynced record."""
    return batch_to_response(migration.sync_to_remote(spec.name, parent))


@router.post("/full", response_model=FullMigrationResponse)
def full_migration(
    spec: EntitySpec = Depends(get_spec),
    migration: MigrationService = Depends(get_migration),
) -> FullMigrationResponse:
    """Import, then sync."""
    result = _remote_call(lambda: migration.full_migration(spec.name))
    return FullMigrationResponse.model_validate(result.to_dict())


@router.get("/compare/{remote_id}", response_model=ComparisonResponse)
def compare(
    remote_id: str,
    spec: EntitySpec = Depends(get_spec),
    migration: MigrationService = Depends(get_migration),
) -> ComparisonResponse:
    """Remote row and local record sharing an identifier."""
    result = _remote_call(lambda: migration.compare(spec.name, remote_id))
    return ComparisonResponse.model_validate(result, from_attributes=True)
