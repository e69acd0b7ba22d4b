"""Reconciliation of local records with the remote store.

One ReconciliationService exists per entity; entity differences (field
mapping, natural key, placeholder prefixes) come from its EntitySpec.

Protocol for one record:

1. Confirmed ID: update the row. Done, unless the row is gone; then the ID
   is stale and we fall through to creation.
2. Placeholder / unassigned / stale: look for an existing row, first by
   placeholder token, then by natural key (unless disabled for the entity).
3. Match -> update it and adopt its ID, unless another record owns it.
4. No match -> append a row and adopt the ID the store returns.
5. Remote failure -> record is left (or flipped) unsynced, error propagates.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from recordsync.core.errors import (
    IdentificationError,
    RecordNotFoundError,
    RemoteRowNotFoundError,
    RemoteStoreError,
)
from recordsync.server.database import format_value
from recordsync.server.models import REMOTE_ID_HEADER
from recordsync.sync.entities import get_entity
from recordsync.sync.identifiers import Confirmed, Placeholder, RemoteRef, remote_ref_of
from recordsync.sync.locks import RecordLocks
from recordsync.sync.results import (
    BatchResult,
    ErrorDetail,
    ReconcileAction,
    ReconcileOutcome,
    SyncResult,
)

if TYPE_CHECKING:
    from recordsync.server.database import Database, RecordStore
    from recordsync.sync.entities import EntitySpec
    from recordsync.sync.remote import RemoteStore, RemoteStores, Row

logger = logging.getLogger(__name__)


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class ReconciliationService:
    """Brings local records of one entity into agreement with the remote store."""

    def __init__(
        self,
        spec: EntitySpec,
        store: RecordStore,
        remote: RemoteStore,
        locks: RecordLocks | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            spec: Entity specification.
            store: Local record store of the entity.
            remote: Remote table of the entity.
            locks: Shared per-record lock registry.
        """
        self.spec = spec
        self._store = store
        self._remote = remote
        self._locks = locks or RecordLocks()

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def remote(self) -> RemoteStore:
        return self._remote

    # === Single record ===

    def reconcile(self, record: Any) -> ReconcileOutcome:
        """Reconcile one record with the remote store.

        Args:
            record: Local record (detached ORM instance).

        Returns:
            What was done and the record's confirmed remote ID.

        Raises:
            RemoteStoreError: If a remote call fails (record left unsynced).
            IdentificationError: If the resolved ID belongs to another record.
        """
        ref = remote_ref_of(record, self.spec)
        fields = self._store.to_remote_fields(record)
        fields.pop(REMOTE_ID_HEADER, None)

        try:
            if isinstance(ref, Confirmed):
                outcome = self._update_confirmed(record, ref, fields)
                if outcome is not None:
                    return outcome

            match = self._find_existing(record, ref)
            if match is not None:
                outcome = self._update_match(record, match, fields)
                if outcome is not None:
                    return outcome

            return self._append(record, ref, fields)
        except RemoteStoreError as e:
            logger.error(
                "Failed to reconcile %s #%s (%s): %s",
                self.spec.name,
                record.id,
                record.remote_id,
                e,
            )
            if record.synced:
                self._store.update_sync_flag(record.id, False)
            raise

    def _update_confirmed(
        self, record: Any, ref: Confirmed, fields: Row
    ) -> ReconcileOutcome | None:
        """Update the row addressed by a confirmed ID; None if it is gone."""
        try:
            self._remote.update_by_identifier(ref.remote_id, fields)
        except RemoteRowNotFoundError:
            logger.warning(
                "%s #%s: remote row %s no longer exists, creating a new one",
                self.spec.name,
                record.id,
                ref.remote_id,
            )
            return None
        self._store.set_remote_ref(record.id, ref, synced=True)
        logger.info("Updated %s #%s in %s (ID %s)", self.spec.name, record.id, self._remote.name, ref.remote_id)
        return ReconcileOutcome(ReconcileAction.UPDATED, ref.remote_id)

    def _find_existing(self, record: Any, ref: RemoteRef) -> Row | None:
        """Find a remote row for a record without a usable confirmed ID."""
        rows: list[Row] | None = None

        # An earlier append may have stored the placeholder without the write-back
        if isinstance(ref, Placeholder):
            rows = self._remote.list_all()
            for row in rows:
                if row.get(REMOTE_ID_HEADER) == ref.token:
                    return row

        natural_key = self.spec.natural_key
        if not natural_key.enabled:
            return None

        values = {name: getattr(record, name) for name in natural_key.fields}
        if all(_blank(v) for v in values.values()):
            logger.info(
                "%s #%s has no %s for identification, creating a new row",
                self.spec.name,
                record.id,
                " or ".join(natural_key.fields),
            )
            return None

        wanted = {
            self.spec.mapping(name).header: format_value(value).strip()
            for name, value in values.items()
        }
        if rows is None:
            rows = self._remote.list_all()
        logger.debug("Searching %d rows of %s for %s", len(rows), self._remote.name, wanted)
        for row in rows:
            if all((row.get(header) or "").strip() == value for header, value in wanted.items()):
                return row
        return None

    def _update_match(self, record: Any, row: Row, fields: Row) -> ReconcileOutcome | None:
        remote_id = row.get(REMOTE_ID_HEADER)
        if not remote_id:
            return None
        owner = self._store.find_by_remote_id(remote_id)
        if owner is not None and owner.id != record.id:
            # The owner's row must keep the owner's values
            raise IdentificationError(
                f"{self.spec.name} #{record.id}: matching row {remote_id} "
                f"already belongs to #{owner.id}"
            )
        try:
            self._remote.update_by_identifier(remote_id, fields)
        except RemoteRowNotFoundError:
            return None
        self._store.set_remote_ref(record.id, Confirmed(remote_id), synced=True)
        logger.info(
            "Matched %s #%s to existing row %s in %s",
            self.spec.name,
            record.id,
            remote_id,
            self._remote.name,
        )
        return ReconcileOutcome(ReconcileAction.MATCHED, remote_id)

    def _append(self, record: Any, ref: RemoteRef, fields: Row) -> ReconcileOutcome:
        proposed = None
        if isinstance(ref, Placeholder) and self.spec.caller_assigned_ids:
            proposed = ref.token
        row = self._remote.append(fields, proposed_id=proposed)
        remote_id = row.get(REMOTE_ID_HEADER)
        if not remote_id:
            raise RemoteStoreError(f"{self._remote.name}: appended row has no {REMOTE_ID_HEADER}")
        self._store.set_remote_ref(record.id, Confirmed(remote_id), synced=True)
        logger.info("Created %s #%s in %s (ID %s)", self.spec.name, record.id, self._remote.name, remote_id)
        return ReconcileOutcome(ReconcileAction.CREATED, remote_id)

    # === Entry points ===

    def reconcile_by_id(self, local_id: int) -> SyncResult:
        """Re-read a record and reconcile it under its lock.

        Never raises: failures are returned and leave the record unsynced.

        Args:
            local_id: Local primary key.

        Returns:
            SyncResult describing the outcome.
        """
        with self._locks.hold(self.spec.name, local_id):
            record = self._store.get(local_id)
            if record is None:
                return SyncResult(
                    success=False,
                    record_id=local_id,
                    error=f"{self.spec.name} #{local_id} not found",
                )
            try:
                outcome = self.reconcile(record)
            except Exception as e:
                logger.error("Sync of %s #%s failed: %s", self.spec.name, local_id, e)
                self._mark_unsynced(local_id)
                return SyncResult(
                    success=False,
                    record_id=local_id,
                    remote_id=record.remote_id,
                    error=str(e),
                )
            return SyncResult(
                success=True,
                record_id=local_id,
                remote_id=outcome.remote_id,
                action=outcome.action,
            )

    def reconcile_all_unsynced(self, parent_key: str | None = None) -> BatchResult:
        """Reconcile every unsynced record, one at a time.

        Args:
            parent_key: Optional value of the entity's parent field.

        Returns:
            Aggregate counts with per-failure detail.
        """
        records = self._store.find_unsynced(parent_key)
        result = BatchResult(entity=self.spec.name, total=len(records))
        logger.info("Syncing %d unsynced %s records", len(records), self.spec.name)

        for record in records:
            sync = self.reconcile_by_id(record.id)
            if sync.success:
                result.synced += 1
                continue
            result.errors += 1
            result.error_details.append(
                ErrorDetail(
                    record_id=record.id,
                    remote_id=record.remote_id,
                    natural_key=self.identifying_values(record),
                    error=sync.error or "Unknown error",
                )
            )

        logger.info(result.message)
        return result

    def identifying_values(self, record: Any) -> dict[str, Any]:
        """Values that let a human find the record: natural key, else parent."""
        names = self.spec.natural_key.fields
        if not names and self.spec.parent_field:
            names = (self.spec.parent_field,)
        return {name: getattr(record, name) for name in names}

    def _mark_unsynced(self, local_id: int) -> None:
        try:
            self._store.update_sync_flag(local_id, False)
        except RecordNotFoundError:
            logger.debug("%s #%s vanished before it could be flagged", self.spec.name, local_id)


class Reconcilers:
    """One ReconciliationService per entity, sharing locks and stores."""

    def __init__(
        self,
        db: Database,
        remotes: RemoteStores,
        locks: RecordLocks | None = None,
    ) -> None:
        self._db = db
        self._remotes = remotes
        self._locks = locks or RecordLocks()
        self._services: dict[str, ReconciliationService] = {}

    @property
    def db(self) -> Database:
        return self._db

    @property
    def remotes(self) -> RemoteStores:
        return self._remotes

    def for_entity(self, entity: str | EntitySpec) -> ReconciliationService:
        """Get the service of an entity.

        Raises:
            UnknownEntityError: If the entity name is not registered.
        """
        spec = get_entity(entity) if isinstance(entity, str) else entity
        service = self._services.get(spec.name)
        if service is None:
            service = ReconciliationService(
                spec,
                self._db.records(spec),
                self._remotes.for_entity(spec),
                self._locks,
            )
            self._services[spec.name] = service
        return service

    def reconcile_by_id(self, entity: str, local_id: int) -> SyncResult:
        return self.for_entity(entity).reconcile_by_id(local_id)
