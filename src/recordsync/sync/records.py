"""Local-first write path for entity records.

A write is committed locally, its attachments are queued for upload and the
record is reconciled immediately. The caller gets the stored record whether
or not the remote store was reachable; an unreachable remote only leaves the
record unsynced for the sweep to pick up.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from recordsync.core.errors import RecordNotFoundError, UnknownFieldError
from recordsync.sync.identifiers import new_placeholder
from recordsync.sync.results import WriteResult
from recordsync.sync.upload_queue import UploadTask

if TYPE_CHECKING:
    from collections.abc import Iterable

    from recordsync.sync.entities import EntitySpec
    from recordsync.sync.reconcile import Reconcilers
    from recordsync.sync.upload_queue import UploadQueue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Attachment:
    """A local file destined for one field of a record."""

    field: str
    source_path: Path
    file_name: str
    mime_type: str = "application/octet-stream"


class RecordService:
    """Creates and updates records, then hands them to reconciliation."""

    def __init__(self, reconcilers: Reconcilers, uploads: UploadQueue) -> None:
        self._reconcilers = reconcilers
        self._uploads = uploads

    def create(
        self,
        entity: str,
        fields: dict[str, Any],
        attachments: Iterable[Attachment] = (),
    ) -> WriteResult:
        """Create a record with a placeholder identifier and reconcile it.

        Args:
            entity: Entity name.
            fields: Domain field values keyed by local column name.
            attachments: Files to upload into fields of the new record.

        Returns:
            The created record, the sync outcome and the queued upload ids.

        Raises:
            UnknownEntityError: If the entity is not registered.
            UnknownFieldError: If a field or attachment field is unknown.
        """
        service = self._reconcilers.for_entity(entity)
        spec = service.spec
        attachments = list(attachments)
        self._check_attachments(spec, attachments)

        placeholder = new_placeholder(spec.prefix)
        record = service.store.create(fields, remote_ref=placeholder, synced=False)
        logger.info("Created %s #%s (%s)", spec.name, record.id, placeholder.token)

        queued = self._enqueue(spec, record.id, attachments)
        sync = service.reconcile_by_id(record.id)
        # Re-read to pick up the identifier written by reconciliation
        record = service.store.get(record.id) or record
        return WriteResult(record=record, sync=sync, queued_uploads=queued)

    def update(
        self,
        entity: str,
        local_id: int,
        fields: dict[str, Any],
        attachments: Iterable[Attachment] = (),
    ) -> WriteResult:
        """Update a record locally, mark it unsynced and reconcile it.

        Raises:
            UnknownEntityError: If the entity is not registered.
            UnknownFieldError: If a field or attachment field is unknown.
            RecordNotFoundError: If the record does not exist.
        """
        service = self._reconcilers.for_entity(entity)
        spec = service.spec
        attachments = list(attachments)
        self._check_attachments(spec, attachments)

        record = service.store.update_fields(local_id, fields, mark_unsynced=True)
        logger.info("Updated %s #%s locally", spec.name, local_id)

        queued = self._enqueue(spec, record.id, attachments)
        sync = service.reconcile_by_id(record.id)
        refreshed = service.store.get(record.id)
        if refreshed is None:
            raise RecordNotFoundError(f"{spec.name} #{local_id} not found")
        return WriteResult(record=refreshed, sync=sync, queued_uploads=queued)

    def _enqueue(self, spec: EntitySpec, record_id: int, attachments: list[Attachment]) -> list[str]:
        return [
            self._uploads.enqueue(
                UploadTask(
                    entity=spec.name,
                    record_id=record_id,
                    field=a.field,
                    source_path=Path(a.source_path),
                    file_name=a.file_name,
                    mime_type=a.mime_type,
                    folder=spec.attachment_folder,
                    max_retries=self._uploads.max_retries,
                )
            )
            for a in attachments
        ]

    @staticmethod
    def _check_attachments(spec: EntitySpec, attachments: list[Attachment]) -> None:
        unknown = {a.field for a in attachments} - spec.field_names
        if unknown:
            raise UnknownFieldError(
                f"{spec.name}: unknown attachment fields {', '.join(sorted(unknown))}"
            )
