"""Tests for the entity registry."""

from __future__ import annotations

import pytest

from recordsync.core.errors import UnknownEntityError
from recordsync.core.types import MatchPolicy
from recordsync.sync.entities import ENTITIES, get_entity, iter_entities


class TestRegistry:
    """Tests for entity lookup."""

    def test_all_entities(self) -> None:
        """Should register every entity type once."""
        names = [spec.name for spec in iter_entities()]
        assert len(names) == 23
        assert len(set(names)) == 23
        assert set(names) == set(ENTITIES)

    def test_unknown_entity(self) -> None:
        """Should raise UnknownEntityError for unknown names."""
        with pytest.raises(UnknownEntityError):
            get_entity("invoices")

    def test_unique_prefixes_and_tables(self) -> None:
        """Should give each entity its own placeholder prefix and table."""
        specs = list(iter_entities())
        assert len({s.prefix for s in specs}) == len(specs)
        assert len({s.model.__tablename__ for s in specs}) == len(specs)


class TestEntitySpec:
    """Tests for EntitySpec field mapping."""

    def test_fields_from_model(self) -> None:
        """Should map columns to remote headers and detect numbers."""
        spec = get_entity("active-debts")
        assert spec.mapping("lender").header == "Lender"
        assert spec.mapping("balance").number is True
        assert spec.mapping("lender").number is False
        assert "remote_id" not in spec.field_names
        assert "synced" not in spec.field_names

    def test_unknown_mapping(self) -> None:
        """Should raise KeyError for a non-domain column."""
        with pytest.raises(KeyError):
            get_entity("directors").mapping("remote_id")

    def test_natural_keys(self) -> None:
        """Should enable matching only where a natural key is meaningful."""
        assert get_entity("active-debts").natural_key.policy is MatchPolicy.DISABLED
        directors = get_entity("directors").natural_key
        assert directors.policy is MatchPolicy.MATCH
        assert directors.fields == ("borrower_id", "name")

    def test_natural_key_fields_exist(self) -> None:
        """Should only reference real columns in natural keys and parents."""
        for spec in iter_entities():
            for name in spec.natural_key.fields:
                assert name in spec.field_names, (spec.name, name)
            if spec.parent_field is not None:
                assert spec.parent_field in spec.field_names, spec.name

    def test_attachment_folder(self) -> None:
        """Should default the folder to '<table>_Files'."""
        assert get_entity("active-debts").attachment_folder == "Active Debts_Statements"
        assert get_entity("payroll").attachment_folder == "Payroll_Files"

    def test_placeholder_prefixes(self) -> None:
        """Should include legacy prefixes after the current one."""
        assert get_entity("enrollment-verifications").placeholder_prefixes == ("ENR", "EV")

    def test_borrowers(self) -> None:
        """Should match borrowers by name and leave them without a parent."""
        spec = get_entity("borrowers")
        assert spec.table == "Borrowers"
        assert spec.natural_key.fields == ("name",)
        assert spec.parent_field is None
        assert spec.parent_header() is None
        assert spec.mapping("ssl_id").header == "SSL ID"
        assert spec.attachment_folder == "Borrowers_Images"

    def test_direct_loan_children(self) -> None:
        """Should group loan payments and tranches by direct loan."""
        processing = get_entity("direct-lending-processing")
        tranches = get_entity("principal-tranches")
        assert processing.parent_header() == "Direct Loan ID"
        assert tranches.parent_header() == "Direct Loan ID"
        assert processing.natural_key.policy is MatchPolicy.DISABLED
        assert processing.mapping("amount_paid").number is False
        assert tranches.mapping("amount").number is True
