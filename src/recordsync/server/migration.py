"""Bulk migration between the remote store and the local database.

This module provides:
- status: counts and samples from both stores
- import_from_remote: copy remote rows that are missing locally
- sync_to_remote: reconcile every unsynced local record
- full_migration: import then sync
- compare: side-by-side view of one remote row and its local record
- run_all: full migration over every entity with per-entity timings
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

from recordsync.server.models import REMOTE_ID_HEADER
from recordsync.sync.entities import get_entity, iter_entities
from recordsync.sync.identifiers import Confirmed
from recordsync.sync.results import (
    BatchResult,
    Comparison,
    EntityMigrationReport,
    ErrorDetail,
    FullMigrationResult,
    ImportResult,
    MigrationStatus,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from recordsync.sync.reconcile import Reconcilers
    from recordsync.sync.remote import Row

logger = logging.getLogger(__name__)

SAMPLE_SIZE = 3

SKIP_EMPTY_RECORD = "Completely empty record"
SKIP_EMPTY_ID = "Empty ID"
SKIP_EXISTING = "Already exists in database"


def _is_empty(row: Row) -> bool:
    return all(not (value or "").strip() for value in row.values())


class MigrationService:
    """Migration operations for every registered entity."""

    def __init__(self, reconcilers: Reconcilers) -> None:
        self._reconcilers = reconcilers

    def status(self, entity: str) -> MigrationStatus:
        """Count and sample records on both sides.

        Raises:
            UnknownEntityError: If the entity is not registered.
            RemoteStoreError: If the remote table cannot be read.
        """
        service = self._reconcilers.for_entity(entity)
        store = service.store
        rows = service.remote.list_all()
        local = store.find_all()
        synced = store.count(synced=True)
        return MigrationStatus(
            entity=service.spec.name,
            remote_total=len(rows),
            remote_sample=rows[:SAMPLE_SIZE],
            local_total=len(local),
            local_synced=synced,
            local_unsynced=len(local) - synced,
            local_sample=[self._local_view(store, r) for r in local[:SAMPLE_SIZE]],
        )

    def import_from_remote(self, entity: str, parent_key: str | None = None) -> ImportResult:
        """Create local records for remote rows not yet in the database.

        Imported records are confirmed and synced.

        Args:
            entity: Entity name.
            parent_key: Only import rows whose parent column has this value.

        Returns:
            Import counts with skip reasons and per-row errors.

        Raises:
            UnknownEntityError: If the entity is not registered.
            RemoteStoreError: If the remote table cannot be read.
        """
        service = self._reconcilers.for_entity(entity)
        spec = service.spec
        store = service.store
        rows = service.remote.list_all()

        parent_header = spec.parent_header()
        if parent_key is not None and parent_header is not None:
            rows = [r for r in rows if (r.get(parent_header) or "").strip() == parent_key]

        result = ImportResult(entity=spec.name, total=len(rows))
        logger.info("Importing %d %s rows from %s", len(rows), spec.name, service.remote.name)

        for row in rows:
            remote_id = (row.get(REMOTE_ID_HEADER) or "").strip()
            if _is_empty(row):
                result.skip(remote_id or None, SKIP_EMPTY_RECORD)
                continue
            if not remote_id:
                result.skip(None, SKIP_EMPTY_ID)
                continue
            if store.find_by_remote_id(remote_id) is not None:
                result.skip(remote_id, SKIP_EXISTING)
                continue

            fields = store.from_remote_row(row)
            try:
                store.create(fields, remote_ref=Confirmed(remote_id), synced=True)
            except Exception as e:
                logger.error("Failed to import %s row %s: %s", spec.name, remote_id, e)
                result.errors += 1
                result.error_details.append(
                    ErrorDetail(
                        record_id=None,
                        remote_id=remote_id,
                        natural_key={name: fields.get(name) for name in spec.natural_key.fields},
                        error=str(e),
                    )
                )
                continue
            result.imported += 1

        logger.info(result.message)
        return result

    def sync_to_remote(self, entity: str, parent_key: str | None = None) -> BatchResult:
        """Reconcile every unsynced record of an entity."""
        return self._reconcilers.for_entity(entity).reconcile_all_unsynced(parent_key)

    def full_migration(self, entity: str) -> FullMigrationResult:
        """Import missing remote rows, then push unsynced local records."""
        name = get_entity(entity).name
        logger.info("Starting full migration of %s", name)
        imported = self.import_from_remote(name)
        synced = self.sync_to_remote(name)
        return FullMigrationResult(entity=name, imported=imported, synced=synced)

    def compare(self, entity: str, remote_id: str) -> Comparison:
        """Show the remote row and local record sharing an identifier.

        Raises:
            UnknownEntityError: If the entity is not registered.
            RemoteStoreError: If the remote table cannot be read.
        """
        service = self._reconcilers.for_entity(entity)
        remote_row = service.remote.find(remote_id)
        record = service.store.find_by_remote_id(remote_id)
        return Comparison(
            entity=service.spec.name,
            remote_id=remote_id,
            remote_row=remote_row,
            local_record=self._local_view(service.store, record) if record else None,
            synced=record.synced if record else None,
        )

    def run_all(self, entities: Iterable[str] | None = None) -> list[EntityMigrationReport]:
        """Run a full migration over several entities.

        A failing entity is reported and does not stop the others.

        Args:
            entities: Entity names (default: every registered entity, in order).

        Returns:
            One report per entity.
        """
        names = list(entities) if entities is not None else [s.name for s in iter_entities()]
        reports: list[EntityMigrationReport] = []
        started = time.monotonic()

        for name in names:
            t0 = time.monotonic()
            try:
                result = self.full_migration(name)
            except Exception as e:
                duration = time.monotonic() - t0
                logger.exception("Migration of %s failed after %.1fs", name, duration)
                reports.append(
                    EntityMigrationReport(name, success=False, duration_seconds=duration, error=str(e))
                )
                continue
            duration = time.monotonic() - t0
            logger.info("Migration of %s finished in %.1fs", name, duration)
            reports.append(
                EntityMigrationReport(
                    name, success=result.success, duration_seconds=duration, result=result
                )
            )

        failed = sum(1 for r in reports if not r.success)
        logger.info(
            "Migration run finished in %.1fs: %d entities, %d with errors",
            time.monotonic() - started,
            len(reports),
            failed,
        )
        return reports

    @staticmethod
    def _local_view(store: Any, record: Any) -> dict[str, Any]:
        view: dict[str, Any] = {
            "id": record.id,
            "remote_id": record.remote_id,
            "synced": record.synced,
        }
        view.update(store.values(record))
        return view
