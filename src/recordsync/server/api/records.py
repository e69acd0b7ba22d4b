"""Record API routes.

Writes accept either a JSON object of fields or a multipart form with a
``fields`` JSON part; every other multipart part must be a file and is
named after the record field that receives its location.
"""

from __future__ import annotations

import json
import secrets
from pathlib import Path
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from recordsync.core.config import Settings
from recordsync.core.errors import RecordNotFoundError, UnknownFieldError
from recordsync.server.api.deps import get_reconcilers, get_records, get_settings, get_spec
from recordsync.server.schemas import (
    RecordResponse,
    SyncResponse,
    WriteResponse,
    record_to_response,
    sync_to_response,
)
from recordsync.sync.entities import EntitySpec
from recordsync.sync.reconcile import Reconcilers
from recordsync.sync.records import Attachment, RecordService
from recordsync.sync.results import WriteResult

router = APIRouter(prefix="/api/{entity}/records", tags=["records"])


async def _read_write_request(
    request: Request, tmp_dir: Path
) -> tuple[dict[str, Any], list[Attachment]]:
    """Parse fields and spool uploaded files to disk."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError as e:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Invalid JSON body",
            ) from e
        return _as_fields(body), []

    form = await request.form()
    raw_fields = form.get("fields") or "{}"
    if isinstance(raw_fields, UploadFile):
        raw_fields = (await raw_fields.read()).decode("utf-8")
    try:
        fields = _as_fields(json.loads(raw_fields))
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="'fields' must be a JSON object",
        ) from e

    attachments = []
    for name, value in form.multi_items():
        if name == "fields" or not isinstance(value, UploadFile):
            continue
        file_name = Path(value.filename or name).name
        tmp_dir.mkdir(parents=True, exist_ok=True)
        spooled = tmp_dir / f"{secrets.token_hex(8)}_{file_name}"
        spooled.write_bytes(await value.read())
        attachments.append(
            Attachment(
                field=name,
                source_path=spooled,
                file_name=file_name,
                mime_type=value.content_type or "application/octet-stream",
            )
        )
    return fields, attachments


def _as_fields(value: Any) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Fields must be a JSON object",
        )
    return value


def _write_response(spec: EntitySpec, result: WriteResult) -> WriteResponse:
    return WriteResponse(
        record=record_to_response(spec, result.record),
        sync=sync_to_response(result.sync),
        queued_uploads=result.queued_uploads,
    )


@router.get("", response_model=list[RecordResponse])
def list_records(
    spec: EntitySpec = Depends(get_spec),
    reconcilers: Reconcilers = Depends(get_reconcilers),
    parent: str | None = None,
) -> list[RecordResponse]:
    """List records, newest first."""
    store = reconcilers.for_entity(spec).store
    return [record_to_response(spec, r) for r in store.find_all(parent)]


@router.post("", response_model=WriteResponse, status_code=status.HTTP_201_CREATED)
async def create_record(
    request: Request,
    spec: EntitySpec = Depends(get_spec),
    records: RecordService = Depends(get_records),
    settings: Settings = Depends(get_settings),
) -> WriteResponse:
    """Create a record, queue its files and reconcile it."""
    fields, attachments = await _read_write_request(request, settings.upload_tmp_dir)
    try:
        result = await run_in_threadpool(records.create, spec.name, fields, attachments)
    except UnknownFieldError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        ) from e
    return _write_response(spec, result)


@router.get("/{record_id}", response_model=RecordResponse)
def get_record(
    record_id: int,
    spec: EntitySpec = Depends(get_spec),
    reconcilers: Reconcilers = Depends(get_reconcilers),
) -> RecordResponse:
    """Get a record by local id."""
    record = reconcilers.for_entity(spec).store.get(record_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{spec.name} #{record_id} not found",
        )
    return record_to_response(spec, record)


@router.patch("/{record_id}", response_model=WriteResponse)
async def update_record(
    record_id: int,
    request: Request,
    spec: EntitySpec = Depends(get_spec),
    records: RecordService = Depends(get_records),
    settings: Settings = Depends(get_settings),
) -> WriteResponse:
    """Update a record, queue its files and reconcile it."""
    fields, attachments = await _read_write_request(request, settings.upload_tmp_dir)
    try:
        result = await run_in_threadpool(records.update, spec.name, record_id, fields, attachments)
    except UnknownFieldError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        ) from e
    except RecordNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        ) from e
    return _write_response(spec, result)


@router.post("/{record_id}/sync", response_model=SyncResponse)
def sync_record(
    record_id: int,
    spec: EntitySpec = Depends(get_spec),
    reconcilers: Reconcilers = Depends(get_reconcilers),
) -> SyncResponse:
    """Reconcile one record now."""
    service = reconcilers.for_entity(spec)
    if service.store.get(record_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{spec.name} #{record_id} not found",
        )
    return sync_to_response(service.reconcile_by_id(record_id))
