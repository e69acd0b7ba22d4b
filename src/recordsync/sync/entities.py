"""Entity registry.

Each synchronized entity is described by an EntitySpec: the model that
stores it, the remote table it mirrors, how placeholders are prefixed and
which fields identify a pre-existing remote row. The field mapping itself
is read from the model's column ``info["header"]``.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from functools import cached_property

from recordsync.core.errors import UnknownEntityError
from recordsync.core.types import MatchPolicy
from recordsync.server.models import (
    ActiveDebt,
    AssetTitle,
    AuditedFinancial,
    Base,
    Borrower,
    ContractDetails,
    CreditApplication,
    CreditApplicationComment,
    CrbConsent,
    Director,
    DirectLendingProcessing,
    DirectPaymentSchedule,
    EnrollmentVerification,
    FeePlan,
    FinancialSurvey,
    HomeVisit,
    InvestmentCommittee,
    MpesaBankStatement,
    OtherSupportingDoc,
    Payroll,
    PrincipalTranche,
    Referrer,
    StudentBreakdown,
    VendorDisbursementDetail,
)


@dataclass(frozen=True)
class NaturalKey:
    """Fields used to find an existing remote row when no ID links them.

    Attributes:
        policy: DISABLED (always create) or MATCH (scan remote rows).
        fields: Local column names compared against their remote headers.
    """

    policy: MatchPolicy = MatchPolicy.DISABLED
    fields: tuple[str, ...] = ()

    @classmethod
    def match(cls, *fields: str) -> NaturalKey:
        return cls(MatchPolicy.MATCH, tuple(fields))

    @classmethod
    def disabled(cls) -> NaturalKey:
        return cls(MatchPolicy.DISABLED, ())

    @property
    def enabled(self) -> bool:
        return self.policy is MatchPolicy.MATCH and bool(self.fields)


@dataclass(frozen=True)
class FieldMapping:
    """One local column and the remote header it maps to."""

    name: str
    header: str
    number: bool = False


@dataclass(frozen=True)
class EntitySpec:
    """Configuration of one synchronized entity type.

    Attributes:
        name: URL/CLI key (e.g. "active-debts").
        model: SQLAlchemy model storing the records.
        table: Remote table name.
        prefix: Placeholder prefix for new records.
        natural_key: Natural-key policy.
        parent_field: Column used to filter bulk operations.
        legacy_prefixes: Older prefixes that also mark placeholders.
        caller_assigned_ids: Whether the remote store accepts a proposed ID.
        folder: Object storage folder for this entity's attachments.
    """

    name: str
    model: type[Base]
    table: str
    prefix: str
    natural_key: NaturalKey = field(default_factory=NaturalKey.disabled)
    parent_field: str | None = "credit_application_id"
    legacy_prefixes: tuple[str, ...] = ()
    caller_assigned_ids: bool = True
    folder: str = ""

    @cached_property
    def fields(self) -> tuple[FieldMapping, ...]:
        """Domain columns in declaration order."""
        mappings = []
        for column in self.model.__table__.columns:
            header = column.info.get("header")
            if header is None:
                continue
            python_type = getattr(column.type, "python_type", str)
            mappings.append(FieldMapping(column.key, header, python_type is float))
        return tuple(mappings)

    @cached_property
    def field_names(self) -> frozenset[str]:
        return frozenset(m.name for m in self.fields)

    @cached_property
    def placeholder_prefixes(self) -> tuple[str, ...]:
        return (self.prefix, *self.legacy_prefixes)

    @property
    def attachment_folder(self) -> str:
        return self.folder or f"{self.table}_Files"

    def mapping(self, name: str) -> FieldMapping:
        """Get the mapping of a local column.

        Raises:
            KeyError: If the column is not a domain field.
        """
        for mapping in self.fields:
            if mapping.name == name:
                return mapping
        raise KeyError(name)

    def parent_header(self) -> str | None:
        """Remote header of the parent field, if the entity has one."""
        if self.parent_field is None:
            return None
        return self.mapping(self.parent_field).header


_SPECS: tuple[EntitySpec, ...] = (
    EntitySpec(
        "active-debts",
        ActiveDebt,
        "Active Debts",
        "AD",
        # Several debts per application are legitimate
        NaturalKey.disabled(),
        folder="Active Debts_Statements",
    ),
    EntitySpec(
        "directors",
        Director,
        "Users",
        "D",
        NaturalKey.match("borrower_id", "name"),
        parent_field="borrower_id",
        folder="Users_Images",
    ),
    EntitySpec(
        "crb-consents",
        CrbConsent,
        "CRB Consent",
        "CRB",
        NaturalKey.match("borrower_id", "signed_by_name"),
        parent_field="borrower_id",
        folder="CRB Consent_Signatures",
    ),
    EntitySpec(
        "referrers",
        Referrer,
        "Referrers",
        "REF",
        NaturalKey.match("school_id", "referrer_name"),
        parent_field="school_id",
        folder="Referrers_Proof of Payment",
    ),
    EntitySpec(
        "credit-applications",
        CreditApplication,
        "Credit Applications",
        "CA",
        NaturalKey.match("borrower_id", "credit_type"),
        parent_field="borrower_id",
        folder="Credit Applications_Checks",
    ),
    EntitySpec(
        "mpesa-bank-statements",
        MpesaBankStatement,
        "Mpesa and Bank Statements",
        "STMT",
        NaturalKey.match("credit_application_id"),
        folder="Financial Records_Files",
    ),
    EntitySpec(
        "audited-financials",
        AuditedFinancial,
        "Audited Financial Statements",
        "FIN",
        NaturalKey.match("credit_application_id"),
        folder="Audited Financial Statements_Files",
    ),
    EntitySpec(
        "student-breakdowns",
        StudentBreakdown,
        "Student Breakdown",
        "SB",
        NaturalKey.match("credit_application_id"),
    ),
    EntitySpec(
        "investment-committees",
        InvestmentCommittee,
        "Investment Committee",
        "IC",
        NaturalKey.match("credit_application_id"),
    ),
    EntitySpec(
        "other-supporting-docs",
        OtherSupportingDoc,
        "Other Supporting Docs",
        "DOC",
        legacy_prefixes=("OSD",),
        folder="Other Supporting Docs_Files",
    ),
    EntitySpec(
        "fee-plans",
        FeePlan,
        "Fee Plan Documents",
        "FP",
        folder="Fee Plan Documents_Files",
    ),
    EntitySpec("payroll", Payroll, "Payroll", "PR"),
    EntitySpec(
        "enrollment-verifications",
        EnrollmentVerification,
        "Enrollment Verification",
        "ENR",
        legacy_prefixes=("EV",),
        folder="Enrollment Reports_Files",
    ),
    EntitySpec(
        "vendor-disbursement-details",
        VendorDisbursementDetail,
        "Vendor Disbursement Details",
        "VD",
    ),
    EntitySpec(
        "asset-titles",
        AssetTitle,
        "Asset Titles",
        "AT",
        folder="Asset Titles_Images",
    ),
    EntitySpec("home-visits", HomeVisit, "Home Visits", "HV"),
    EntitySpec("financial-surveys", FinancialSurvey, "Financial Surveys", "FS"),
    EntitySpec("contract-details", ContractDetails, "Contract Details", "CD"),
    EntitySpec(
        "credit-application-comments",
        CreditApplicationComment,
        "Credit Application Comments",
        "COM",
    ),
    EntitySpec(
        "direct-payment-schedules",
        DirectPaymentSchedule,
        "Direct Payment Schedules",
        "DPS",
        parent_field="borrower_id",
    ),
    EntitySpec(
        "borrowers",
        Borrower,
        "Borrowers",
        "BOR",
        NaturalKey.match("name"),
        parent_field=None,
        folder="Borrowers_Images",
    ),
    EntitySpec(
        "direct-lending-processing",
        DirectLendingProcessing,
        "Direct Lending Processing",
        "DLP",
        parent_field="direct_loan_id",
    ),
    EntitySpec(
        "principal-tranches",
        PrincipalTranche,
        "Principal Tranches",
        "PT",
        parent_field="direct_loan_id",
    ),
)

ENTITIES: dict[str, EntitySpec] = {spec.name: spec for spec in _SPECS}


def get_entity(name: str) -> EntitySpec:
    """Look up an entity by name.

    Args:
        name: Entity key, e.g. "directors".

    Returns:
        The matching EntitySpec.

    Raises:
        UnknownEntityError: If no entity has this name.
    """
    try:
        return ENTITIES[name]
    except KeyError:
        raise UnknownEntityError(f"Unknown entity: {name}") from None


def iter_entities() -> Iterator[EntitySpec]:
    """Iterate over entities in registry order."""
    return iter(_SPECS)
