"""Pydantic schemas for API request/response models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from recordsync.sync.entities import EntitySpec
from recordsync.sync.identifiers import remote_ref_of
from recordsync.sync.results import (
    BatchResult,
    ImportResult,
    SyncResult,
)
from recordsync.sync.upload_queue import QueueStatus

# === Health ===


class HealthResponse(BaseModel):
    """Response for health check."""

    status: str


# === Entity schemas ===


class EntityResponse(BaseModel):
    """Registered entity."""

    name: str
    table: str
    prefix: str
    natural_key: list[str]
    match_policy: str
    parent_field: str | None
    fields: list[str]


def entity_to_response(spec: EntitySpec) -> EntityResponse:
    """Convert EntitySpec to response schema."""
    return EntityResponse(
        name=spec.name,
        table=spec.table,
        prefix=spec.prefix,
        natural_key=list(spec.natural_key.fields),
        match_policy=spec.natural_key.policy.value,
        parent_field=spec.parent_field,
        fields=[m.name for m in spec.fields],
    )


# === Record schemas ===


class RecordResponse(BaseModel):
    """Local record in responses."""

    id: int
    remote_id: str | None
    remote_id_state: str
    synced: bool
    created_at: str | None
    fields: dict[str, Any]


def record_to_response(spec: EntitySpec, record: Any) -> RecordResponse:
    """Convert a local record to response schema."""
    return RecordResponse(
        id=record.id,
        remote_id=record.remote_id,
        remote_id_state=remote_ref_of(record, spec).state.value,
        synced=bool(record.synced),
        created_at=record.created_at.isoformat() if record.created_at else None,
        fields={m.name: getattr(record, m.name) for m in spec.fields},
    )


class SyncResponse(BaseModel):
    """Outcome of reconciling one record."""

    success: bool
    record_id: int
    remote_id: str | None = None
    action: str | None = None
    error: str | None = None


def sync_to_response(result: SyncResult) -> SyncResponse:
    """Convert SyncResult to response schema."""
    return SyncResponse(
        success=result.success,
        record_id=result.record_id,
        remote_id=result.remote_id,
        action=result.action.value if result.action else None,
        error=result.error,
    )


class WriteResponse(BaseModel):
    """Response for record create/update."""

    record: RecordResponse
    sync: SyncResponse
    queued_uploads: list[str]


# === Migration schemas ===


class ErrorDetailResponse(BaseModel):
    record_id: int | None
    remote_id: str | None
    natural_key: dict[str, Any]
    error: str


class SkipDetailResponse(BaseModel):
    remote_id: str | None
    reason: str


class BatchResponse(BaseModel):
    """Result of a bulk sync."""

    entity: str
    success: bool
    message: str
    total: int
    synced: int
    errors: int
    error_details: list[ErrorDetailResponse]


class ImportResponse(BaseModel):
    """Result of an import from the remote store."""

    entity: str
    success: bool
    message: str
    total: int
    imported: int
    skipped: int
    errors: int
    error_details: list[ErrorDetailResponse]
    skipped_details: list[SkipDetailResponse]


class FullMigrationResponse(BaseModel):
    entity: str
    success: bool
    imported: ImportResponse
    synced: BatchResponse


def batch_to_response(result: BatchResult) -> BatchResponse:
    """Convert BatchResult to response schema."""
    return BatchResponse.model_validate(result.to_dict())


def import_to_response(result: ImportResult) -> ImportResponse:
    """Convert ImportResult to response schema."""
    return ImportResponse.model_validate(result.to_dict())


class MigrationStatusResponse(BaseModel):
    entity: str
    remote_total: int
    remote_sample: list[dict[str, str]]
    local_total: int
    local_synced: int
    local_unsynced: int
    local_sample: list[dict[str, Any]]


class ComparisonResponse(BaseModel):
    entity: str
    remote_id: str
    remote_row: dict[str, str] | None
    local_record: dict[str, Any] | None
    synced: bool | None


# === Upload queue schemas ===


class PendingUploadResponse(BaseModel):
    task_id: str
    file_name: str
    retry_count: int
    status: str


class UploadQueueResponse(BaseModel):
    """Upload queue snapshot."""

    running: bool
    depth: int
    in_flight: bool
    pending: list[PendingUploadResponse]
    completed: int
    abandoned: int


def queue_to_response(status: QueueStatus) -> UploadQueueResponse:
    """Convert QueueStatus to response schema."""
    return UploadQueueResponse(
        running=status.running,
        depth=status.depth,
        in_flight=status.in_flight,
        pending=[
            PendingUploadResponse(
                task_id=p.task_id,
                file_name=p.file_name,
                retry_count=p.retry_count,
                status=p.status,
            )
            for p in status.pending
        ],
        completed=status.completed,
        abandoned=status.abandoned,
    )
