"""Tests for record reconciliation."""

from __future__ import annotations

from typing import Any

import pytest

from recordsync.core.errors import RemoteStoreError
from recordsync.server.database import Database
from recordsync.sync.entities import get_entity
from recordsync.sync.identifiers import (
    UNASSIGNED,
    Confirmed,
    Placeholder,
    new_placeholder,
    remote_ref_of,
)
from recordsync.sync.reconcile import Reconcilers, ReconciliationService
from recordsync.sync.remote import InMemoryRemoteStore, RemoteStores, Row
from recordsync.sync.results import ReconcileAction


class FlakyRemoteStore(InMemoryRemoteStore):
    """In-memory store failing appends of rows with a given lender."""

    def __init__(self, fail_lender: str | None = None, fail_everything: bool = False) -> None:
        super().__init__("Active Debts")
        self.fail_lender = fail_lender
        self.fail_everything = fail_everything
        self.calls = 0

    def list_all(self) -> list[Row]:
        self.calls += 1
        if self.fail_everything:
            raise RemoteStoreError("AppSheet Find Active Debts failed: status 503", 503)
        return super().list_all()

    def append(self, fields: Row, proposed_id: str | None = None) -> Row:
        if self.fail_everything or fields.get("Lender") == self.fail_lender:
            raise RemoteStoreError("AppSheet Add Active Debts failed: status 500", 500)
        return super().append(fields, proposed_id)


class RecordingRemoteStore(InMemoryRemoteStore):
    """In-memory store logging the remote operations it serves."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.log: list[str] = []

    def list_all(self) -> list[Row]:
        self.log.append("list_all")
        return super().list_all()

    def find(self, remote_id: str) -> Row | None:
        self.log.append("find")
        return super().find(remote_id)

    def update_by_identifier(self, remote_id: str, fields: Row) -> None:
        self.log.append("update_by_identifier")
        super().update_by_identifier(remote_id, fields)


def service_with(db: Database, entity: str, remote: InMemoryRemoteStore) -> ReconciliationService:
    """Build a reconciliation service over a given remote store."""
    reconcilers = Reconcilers(db, RemoteStores(lambda spec: remote))
    return reconcilers.for_entity(entity)


def create_placeholder_record(service: ReconciliationService, **fields: Any) -> Any:
    return service.store.create(fields, remote_ref=new_placeholder(service.spec.prefix))


class TestCreate:
    """Tests for records without a remote row."""

    def test_active_debt_always_appends(self, db: Database) -> None:
        """Should keep the placeholder as permanent ID, confirmed by state."""
        remote = InMemoryRemoteStore("Active Debts")
        service = service_with(db, "active-debts", remote)
        record = create_placeholder_record(
            service, credit_application_id="CA-1", lender="KCB", balance=1200.0
        )
        token = record.remote_id

        outcome = service.reconcile(record)

        assert outcome.action is ReconcileAction.CREATED
        assert outcome.remote_id == token
        assert remote.rows[0]["ID"] == token
        assert remote.rows[0]["Lender"] == "KCB"
        assert remote.rows[0]["Balance"] == "1200"
        stored = service.store.get(record.id)
        assert stored.synced is True
        assert remote_ref_of(stored, service.spec) == Confirmed(token)

    def test_matching_disabled_never_matches(self, db: Database) -> None:
        """Should append a second identical active debt instead of matching."""
        remote = InMemoryRemoteStore("Active Debts")
        service = service_with(db, "active-debts", remote)
        for _ in range(2):
            record = create_placeholder_record(service, credit_application_id="CA-1", lender="KCB")
            assert service.reconcile(record).action is ReconcileAction.CREATED
        assert len(remote.rows) == 2

    def test_store_assigned_ids(self, db: Database) -> None:
        """Should adopt the store's ID when it ignores proposals."""
        remote = InMemoryRemoteStore("Active Debts", caller_assigned_ids=False)
        service = service_with(db, "active-debts", remote)
        record = create_placeholder_record(service, lender="Equity")

        outcome = service.reconcile(record)

        assert not outcome.remote_id.startswith("AD-")
        stored = service.store.get(record.id)
        assert stored.remote_id == outcome.remote_id
        assert remote_ref_of(stored, service.spec) == Confirmed(outcome.remote_id)

    def test_unassigned_record_is_created(self, db: Database) -> None:
        """Should create a row for a record with no identifier at all."""
        remote = InMemoryRemoteStore("Active Debts")
        service = service_with(db, "active-debts", remote)
        record = service.store.create({"lender": "KCB"}, remote_ref=UNASSIGNED)

        outcome = service.reconcile(record)

        assert outcome.action is ReconcileAction.CREATED
        assert service.store.get(record.id).remote_id == outcome.remote_id


class TestUpdate:
    """Tests for records with a confirmed ID."""

    def test_idempotent(self, db: Database) -> None:
        """Should not create rows or change the ID when reconciled again."""
        remote = InMemoryRemoteStore("Active Debts")
        service = service_with(db, "active-debts", remote)
        record = create_placeholder_record(service, lender="KCB")
        first = service.reconcile(record)

        second = service.reconcile(service.store.get(record.id))
        third = service.reconcile(service.store.get(record.id))

        assert second.action is ReconcileAction.UPDATED
        assert third.action is ReconcileAction.UPDATED
        assert len(remote.rows) == 1
        assert service.store.get(record.id).remote_id == first.remote_id

    def test_confirmed_update_is_single_call(self, db: Database) -> None:
        """Should update a confirmed row without looking it up first."""
        remote = RecordingRemoteStore("Active Debts")
        service = service_with(db, "active-debts", remote)
        record = create_placeholder_record(service, lender="KCB")
        service.reconcile(record)
        remote.log.clear()

        outcome = service.reconcile(service.store.get(record.id))

        assert outcome.action is ReconcileAction.UPDATED
        assert remote.log == ["update_by_identifier"]

    def test_stale_id_is_detected_by_update(self, db: Database) -> None:
        """Should fall back to a search when the update finds no row."""
        remote = RecordingRemoteStore("Active Debts")
        service = service_with(db, "active-debts", remote)
        record = service.store.create({"lender": "KCB"}, remote_ref=Confirmed("gone-1"))

        service.reconcile(record)

        assert remote.log[0] == "update_by_identifier"
        assert "find" not in remote.log

    def test_pushes_new_values(self, db: Database) -> None:
        """Should write changed fields to the existing row."""
        remote = InMemoryRemoteStore("Active Debts")
        service = service_with(db, "active-debts", remote)
        record = create_placeholder_record(service, lender="KCB", balance=100.0)
        service.reconcile(record)

        updated = service.store.update_fields(record.id, {"balance": 50.5}, mark_unsynced=True)
        outcome = service.reconcile(updated)

        assert outcome.action is ReconcileAction.UPDATED
        assert remote.rows[0]["Balance"] == "50.5"
        assert service.store.get(record.id).synced is True

    def test_stale_id_falls_back_to_create(self, db: Database) -> None:
        """Should create a new row when the confirmed ID vanished remotely."""
        remote = InMemoryRemoteStore("Active Debts")
        service = service_with(db, "active-debts", remote)
        record = service.store.create({"lender": "KCB"}, remote_ref=Confirmed("gone-1"))

        outcome = service.reconcile(record)

        assert outcome.action is ReconcileAction.CREATED
        assert outcome.remote_id != "gone-1"
        assert len(remote.rows) == 1
        assert service.store.get(record.id).remote_id == outcome.remote_id


class TestMatch:
    """Tests for natural-key and placeholder matching."""

    def test_natural_key_match_adopts_id(self, db: Database) -> None:
        """Should update an existing row with the same natural key."""
        remote = InMemoryRemoteStore("Users")
        remote.append({"Borrower ID": "B-1", "Name": "Jane Doe", "Email": ""}, "u-42")
        service = service_with(db, "directors", remote)
        record = create_placeholder_record(
            service, borrower_id="B-1", name="Jane Doe", email="jane@example.com"
        )

        outcome = service.reconcile(record)

        assert outcome.action is ReconcileAction.MATCHED
        assert outcome.remote_id == "u-42"
        assert len(remote.rows) == 1
        assert remote.rows[0]["Email"] == "jane@example.com"
        assert service.store.get(record.id).remote_id == "u-42"

    def test_natural_key_ignores_surrounding_whitespace(self, db: Database) -> None:
        """Should compare trimmed cell values."""
        remote = InMemoryRemoteStore("Users")
        remote.append({"Borrower ID": " B-1 ", "Name": "Jane Doe "}, "u-7")
        service = service_with(db, "directors", remote)
        record = create_placeholder_record(service, borrower_id="B-1", name="Jane Doe")

        assert service.reconcile(record).remote_id == "u-7"

    def test_partial_key_does_not_match(self, db: Database) -> None:
        """Should require every natural-key field to match."""
        remote = InMemoryRemoteStore("Users")
        remote.append({"Borrower ID": "B-1", "Name": "John Doe"}, "u-1")
        service = service_with(db, "directors", remote)
        record = create_placeholder_record(service, borrower_id="B-1", name="Jane Doe")

        assert service.reconcile(record).action is ReconcileAction.CREATED
        assert len(remote.rows) == 2

    def test_blank_natural_key_creates(self, db: Database) -> None:
        """Should create without searching when the natural key is blank."""
        remote = InMemoryRemoteStore("Users")
        remote.append({"Borrower ID": "", "Name": ""}, "u-1")
        service = service_with(db, "directors", remote)
        record = create_placeholder_record(service, email="x@example.com")

        assert service.reconcile(record).action is ReconcileAction.CREATED
        assert len(remote.rows) == 2

    def test_create_once(self, db: Database) -> None:
        """Should leave the owner's row untouched when a second record matches it."""
        remote = InMemoryRemoteStore("Users")
        service = service_with(db, "directors", remote)
        first = create_placeholder_record(
            service, borrower_id="B-1", name="Jane Doe", email="first@example.com"
        )
        second = create_placeholder_record(
            service, borrower_id="B-1", name="Jane Doe", email="second@example.com"
        )

        assert service.reconcile_by_id(first.id).success is True
        owner_id = service.store.get(first.id).remote_id
        result = service.reconcile_by_id(second.id)

        assert len(remote.rows) == 1
        assert remote.rows[0]["Email"] == "first@example.com"
        assert result.success is False
        assert "already belongs" in (result.error or "")
        owner = service.store.get(first.id)
        assert owner.synced is True
        assert remote_ref_of(owner, service.spec) == Confirmed(owner_id)
        loser = service.store.get(second.id)
        assert loser.synced is False
        assert loser.remote_id != owner_id

    def test_borrower_matched_by_name(self, db: Database) -> None:
        """Should adopt the row of a borrower with the same name."""
        remote = InMemoryRemoteStore("Borrowers")
        remote.append({"Name": "Hill School", "SSL ID": ""}, "b-9")
        service = service_with(db, "borrowers", remote)
        record = create_placeholder_record(service, name="Hill School", ssl_id="SSL-4")

        outcome = service.reconcile(record)

        assert outcome.action is ReconcileAction.MATCHED
        assert outcome.remote_id == "b-9"
        assert remote.rows[0]["SSL ID"] == "SSL-4"

    def test_placeholder_row_is_own_row(self, db: Database) -> None:
        """Should recognize a row appended earlier under the placeholder."""
        remote = InMemoryRemoteStore("Active Debts")
        service = service_with(db, "active-debts", remote)
        record = create_placeholder_record(service, lender="KCB", balance=10.0)
        # Append accepted, write-back lost
        remote.append({"Lender": "KCB"}, record.remote_id)

        outcome = service.reconcile(record)

        assert outcome.action is ReconcileAction.MATCHED
        assert outcome.remote_id == record.remote_id
        assert len(remote.rows) == 1
        assert remote.rows[0]["Balance"] == "10"

    def test_legacy_placeholder_without_state(self, db: Database) -> None:
        """Should treat a legacy-prefixed ID with no stored state as a placeholder."""
        remote = InMemoryRemoteStore("Other Supporting Docs")
        service = service_with(db, "other-supporting-docs", remote)
        record = service.store.create({"credit_application_id": "CA-9"}, remote_ref=UNASSIGNED)
        with db.session() as session:
            row = session.get(service.spec.model, record.id)
            row.remote_id = "OSD-1700000000000-abcde"
            row.remote_id_state = None
            session.commit()

        outcome = service.reconcile(service.store.get(record.id))

        assert outcome.action is ReconcileAction.CREATED
        assert outcome.remote_id == "OSD-1700000000000-abcde"
        assert service.store.get(record.id).remote_id_state == "confirmed"


class TestFailures:
    """Tests for remote failures."""

    def test_failure_propagates_and_leaves_unsynced(self, db: Database) -> None:
        """Should raise RemoteStoreError and not mark the record synced."""
        remote = FlakyRemoteStore(fail_everything=True)
        service = service_with(db, "active-debts", remote)
        record = create_placeholder_record(service, lender="KCB")

        with pytest.raises(RemoteStoreError):
            service.reconcile(record)

        stored = service.store.get(record.id)
        assert stored.synced is False
        assert isinstance(remote_ref_of(stored, service.spec), Placeholder)

    def test_failure_flips_synced_record(self, db: Database) -> None:
        """Should flip a synced record to unsynced when the remote fails."""
        remote = FlakyRemoteStore()
        service = service_with(db, "active-debts", remote)
        record = create_placeholder_record(service, lender="KCB")
        service.reconcile(record)
        assert service.store.get(record.id).synced is True

        remote.fail_everything = True
        with pytest.raises(RemoteStoreError):
            service.reconcile(service.store.get(record.id))

        assert service.store.get(record.id).synced is False

    def test_reconcile_by_id_never_raises(self, db: Database) -> None:
        """Should return a failed SyncResult on remote errors."""
        remote = FlakyRemoteStore(fail_everything=True)
        service = service_with(db, "active-debts", remote)
        record = create_placeholder_record(service, lender="KCB")

        result = service.reconcile_by_id(record.id)

        assert result.success is False
        assert "503" in (result.error or "")
        assert service.store.get(record.id).synced is False

    def test_reconcile_by_id_missing_record(self, db: Database) -> None:
        """Should report a missing record without raising."""
        service = service_with(db, "active-debts", InMemoryRemoteStore())
        result = service.reconcile_by_id(999)
        assert result.success is False
        assert "not found" in (result.error or "")

    def test_no_internal_retry(self, db: Database) -> None:
        """Should call the remote store once per reconcile attempt."""
        remote = FlakyRemoteStore(fail_everything=True)
        service = service_with(db, "active-debts", remote)
        record = create_placeholder_record(service, lender="KCB")

        service.reconcile_by_id(record.id)

        assert remote.calls == 1


class TestReconcileAllUnsynced:
    """Tests for batch reconciliation."""

    def test_batch_resilience(self, db: Database) -> None:
        """Should continue past a failing record and report it."""
        remote = FlakyRemoteStore(fail_lender="Bad Bank")
        service = service_with(db, "active-debts", remote)
        for lender in ("KCB", "Bad Bank", "Equity", "Coop"):
            create_placeholder_record(service, credit_application_id="CA-1", lender=lender)

        result = service.reconcile_all_unsynced()

        assert result.total == 4
        assert result.synced == 3
        assert result.errors == 1
        assert result.success is False
        detail = result.error_details[0]
        assert detail.natural_key == {"credit_application_id": "CA-1"}
        assert "500" in detail.error
        assert len(remote.rows) == 3

    def test_parent_filter(self, db: Database) -> None:
        """Should only reconcile records of the given parent."""
        remote = InMemoryRemoteStore("Active Debts")
        service = service_with(db, "active-debts", remote)
        create_placeholder_record(service, credit_application_id="CA-1", lender="A")
        create_placeholder_record(service, credit_application_id="CA-2", lender="B")

        result = service.reconcile_all_unsynced("CA-2")

        assert result.total == 1
        assert result.synced == 1
        assert [r["Lender"] for r in remote.rows] == ["B"]
        assert service.store.count(synced=False) == 1

    def test_parentless_entity_ignores_parent_key(self, db: Database) -> None:
        """Should reconcile every unsynced borrower when a parent key is given."""
        remote = InMemoryRemoteStore("Borrowers")
        service = service_with(db, "borrowers", remote)
        create_placeholder_record(service, name="Hill School")
        create_placeholder_record(service, name="Lake Academy")

        result = service.reconcile_all_unsynced("CA-1")

        assert result.total == 2
        assert result.synced == 2
        assert sorted(r["Name"] for r in remote.rows) == ["Hill School", "Lake Academy"]

    def test_skips_synced_records(self, db: Database) -> None:
        """Should leave synced records alone."""
        remote = InMemoryRemoteStore("Active Debts")
        service = service_with(db, "active-debts", remote)
        service.store.create({"lender": "A"}, remote_ref=Confirmed("r-1"), synced=True)

        result = service.reconcile_all_unsynced()

        assert result.total == 0
        assert result.success is True
        assert remote.rows == []

    def test_message(self, db: Database) -> None:
        """Should summarize counts in the message."""
        service = service_with(db, "active-debts", InMemoryRemoteStore())
        create_placeholder_record(service, lender="A")
        result = service.reconcile_all_unsynced()
        assert result.message == "Synced 1 of 1 active-debts records (0 errors)"


class TestReconcilers:
    """Tests for the per-entity service registry."""

    def test_caches_services(self, reconcilers: Reconcilers) -> None:
        """Should return the same service for the same entity."""
        assert reconcilers.for_entity("directors") is reconcilers.for_entity(get_entity("directors"))

    def test_reconcile_by_id(self, reconcilers: Reconcilers) -> None:
        """Should dispatch to the entity's service."""
        service = reconcilers.for_entity("fee-plans")
        record = create_placeholder_record(service, school_year="2025")

        result = reconcilers.reconcile_by_id("fee-plans", record.id)

        assert result.success is True
        assert result.action is ReconcileAction.CREATED
