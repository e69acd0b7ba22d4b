"""Tests for the database layer."""

from __future__ import annotations

from pathlib import Path

import pytest

from recordsync.core.errors import (
    IdentificationError,
    RecordNotFoundError,
    UnknownFieldError,
)
from recordsync.server.database import Database, RecordStore, format_value, parse_number
from recordsync.sync.entities import get_entity
from recordsync.sync.identifiers import Confirmed, Placeholder, Unassigned, remote_ref_of


@pytest.fixture
def debts(db: Database) -> RecordStore:
    return db.records(get_entity("active-debts"))


@pytest.fixture
def directors(db: Database) -> RecordStore:
    return db.records(get_entity("directors"))


class TestParseNumber:
    """Tests for parse_number."""

    def test_plain_numbers(self) -> None:
        assert parse_number("1200") == 1200.0
        assert parse_number(12) == 12.0
        assert parse_number(0.5) == 0.5

    def test_currency_and_separators(self) -> None:
        """Should strip currency markers and thousands separators."""
        assert parse_number("KSh 1,200.50") == 1200.5
        assert parse_number("KES 3 000") == 3000.0
        assert parse_number("$45") == 45.0

    def test_empty_and_garbage(self) -> None:
        assert parse_number(None) is None
        assert parse_number("") is None
        assert parse_number("   ") is None
        assert parse_number("n/a") is None
        assert parse_number(True) is None


class TestFormatValue:
    """Tests for format_value."""

    def test_values(self) -> None:
        assert format_value(None) == ""
        assert format_value(1200.0) == "1200"
        assert format_value(0.5) == "0.5"
        assert format_value("KCB") == "KCB"


class TestDatabase:
    """Tests for the Database class."""

    def test_creates_parent_directory(self, tmp_path: Path) -> None:
        """Should create the database directory if missing."""
        database = Database(tmp_path / "nested" / "dir" / "records.db")
        try:
            assert database.path.parent.is_dir()
        finally:
            database.close()

    def test_store_is_cached(self, db: Database) -> None:
        spec = get_entity("payroll")
        assert db.records(spec) is db.records(spec)


class TestRecordStore:
    """Tests for RecordStore reads and writes."""

    def test_create_and_get(self, debts: RecordStore) -> None:
        """Should create a detached, unsynced record."""
        record = debts.create({"lender": "KCB", "balance": 1200.0})

        fetched = debts.get(record.id)
        assert fetched is not None
        assert fetched.lender == "KCB"
        assert fetched.balance == 1200.0
        assert fetched.synced is False
        assert isinstance(remote_ref_of(fetched, debts.spec), Unassigned)

    def test_create_with_placeholder(self, debts: RecordStore) -> None:
        record = debts.create({}, Placeholder("AD-1-abcde"))
        assert remote_ref_of(record, debts.spec) == Placeholder("AD-1-abcde")

    def test_create_unknown_field(self, debts: RecordStore) -> None:
        with pytest.raises(UnknownFieldError, match="colour"):
            debts.create({"colour": "red"})

    def test_get_missing(self, debts: RecordStore) -> None:
        assert debts.get(999) is None

    def test_find_by_remote_id(self, debts: RecordStore) -> None:
        record = debts.create({"lender": "KCB"}, Confirmed("r-1"), synced=True)
        found = debts.find_by_remote_id("r-1")
        assert found is not None
        assert found.id == record.id
        assert debts.find_by_remote_id("r-2") is None

    def test_find_all_newest_first(self, debts: RecordStore) -> None:
        first = debts.create({"lender": "A"})
        second = debts.create({"lender": "B"})
        assert [r.id for r in debts.find_all()] == [second.id, first.id]

    def test_find_all_by_parent(self, debts: RecordStore) -> None:
        """Should filter by the entity's parent field."""
        debts.create({"credit_application_id": "CA-1", "lender": "A"})
        debts.create({"credit_application_id": "CA-2", "lender": "B"})

        records = debts.find_all("CA-1")

        assert [r.lender for r in records] == ["A"]

    def test_find_unsynced(self, debts: RecordStore) -> None:
        pending = debts.create({"lender": "A"})
        debts.create({"lender": "B"}, Confirmed("r-1"), synced=True)
        assert [r.id for r in debts.find_unsynced()] == [pending.id]

    def test_count(self, debts: RecordStore) -> None:
        debts.create({"lender": "A"})
        debts.create({"lender": "B"}, Confirmed("r-1"), synced=True)
        assert debts.count() == 2
        assert debts.count(synced=True) == 1
        assert debts.count(synced=False) == 1

    def test_update_by_remote_id(self, debts: RecordStore) -> None:
        debts.create({"lender": "A"}, Confirmed("r-1"), synced=True)
        record = debts.update("r-1", {"lender": "B"})
        assert record.lender == "B"

    def test_update_missing_remote_id(self, debts: RecordStore) -> None:
        with pytest.raises(RecordNotFoundError):
            debts.update("nope", {"lender": "B"})

    def test_update_fields_mark_unsynced(self, debts: RecordStore) -> None:
        record = debts.create({"lender": "A"}, Confirmed("r-1"), synced=True)

        updated = debts.update_fields(record.id, {"balance": 10.0}, mark_unsynced=True)

        assert updated.balance == 10.0
        assert updated.synced is False

    def test_update_fields_missing(self, debts: RecordStore) -> None:
        with pytest.raises(RecordNotFoundError):
            debts.update_fields(999, {"lender": "B"})

    def test_patch_field_marks_unsynced(self, debts: RecordStore) -> None:
        """Storing an uploaded file location should require a new sync."""
        record = debts.create({}, Confirmed("r-1"), synced=True)

        patched = debts.patch_field(record.id, "debt_statement", "Docs/statement.pdf")

        assert patched.debt_statement == "Docs/statement.pdf"
        assert patched.synced is False

    def test_set_remote_ref(self, debts: RecordStore) -> None:
        record = debts.create({}, Placeholder("AD-1-abcde"))

        updated = debts.set_remote_ref(record.id, Confirmed("r-9"), synced=True)

        assert remote_ref_of(updated, debts.spec) == Confirmed("r-9")
        assert updated.synced is True

    def test_set_remote_ref_duplicate(self, debts: RecordStore) -> None:
        """Should refuse to give two records the same remote identifier."""
        debts.create({}, Confirmed("r-1"), synced=True)
        other = debts.create({})

        with pytest.raises(IdentificationError, match="already belongs"):
            debts.set_remote_ref(other.id, Confirmed("r-1"))

        assert debts.get(other.id).remote_id is None

    def test_update_sync_flag(self, debts: RecordStore) -> None:
        record = debts.create({})
        debts.update_sync_flag(record.id, True)
        assert debts.get(record.id).synced is True


class TestMapping:
    """Tests for mapping records to and from remote rows."""

    def test_to_remote_fields(self, debts: RecordStore) -> None:
        """Should key values by remote header and include the identifier."""
        record = debts.create(
            {"lender": "KCB", "balance": 1200.0, "is_loan_collateralized": "No"},
            Confirmed("r-1"),
        )

        row = debts.to_remote_fields(record)

        assert row["ID"] == "r-1"
        assert row["Lender"] == "KCB"
        assert row["Balance"] == "1200"
        assert row["Is the loan collateralized? "] == "No"
        assert row["Amount Overdue"] == ""
        assert "Created At" in row

    def test_to_remote_fields_without_id(self, debts: RecordStore) -> None:
        record = debts.create({"lender": "KCB"})
        assert "ID" not in debts.to_remote_fields(record)

    def test_from_remote_row(self, debts: RecordStore) -> None:
        """Should parse numbers, drop empty cells and ignore unknown headers."""
        fields = debts.from_remote_row(
            {
                "ID": "r-1",
                "Lender": "KCB",
                "Balance": "KSh 1,200",
                "Amount Overdue": "",
                "Monthly Payment": "n/a",
                "Unknown": "x",
            }
        )

        assert fields == {"lender": "KCB", "balance": 1200.0}

    def test_values(self, directors: RecordStore) -> None:
        record = directors.create({"borrower_id": "B-1", "name": "Jane"})
        values = directors.values(record)
        assert values["borrower_id"] == "B-1"
        assert values["name"] == "Jane"
        assert values["email"] is None
