"""SQLAlchemy models for recordsync.

Every entity table shares the columns of SyncedRecordMixin. Domain columns
carry the remote column header they map to in ``info["header"]``; Float
columns are the number fields parsed on import.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Header of the remote identifier column
REMOTE_ID_HEADER = "ID"
CREATED_AT_HEADER = "Created At"


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""


def text_field(header: str) -> Any:
    """Declare a nullable text column mapped to a remote header."""
    return mapped_column(Text, nullable=True, info={"header": header})


def number_field(header: str) -> Any:
    """Declare a nullable float column mapped to a remote header."""
    return mapped_column(Float, nullable=True, info={"header": header})


class SyncedRecordMixin:
    """Columns shared by every synchronized entity table."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    remote_id: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    remote_id_state: Mapped[str | None] = mapped_column(String(16), nullable=True)
    synced: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} id={self.id} remote_id={self.remote_id!r} "
            f"synced={self.synced}>"
        )


class ActiveDebt(SyncedRecordMixin, Base):
    """A debt held by a borrower at application time."""

    __tablename__ = "active_debts"

    credit_application_id: Mapped[str | None] = text_field("Credit Application ID")
    debt_status: Mapped[str | None] = text_field("Debt Status")
    listed_on_crb: Mapped[str | None] = text_field("Listed on CRB?")
    personal_loan_or_school_loan: Mapped[str | None] = text_field(
        "Personal Loan or School Loan"
    )
    lender: Mapped[str | None] = text_field("Lender")
    date_loan_taken: Mapped[str | None] = text_field("Date Loan Taken")
    final_due_date: Mapped[str | None] = text_field("Final Due Date")
    total_loan_amount: Mapped[float | None] = number_field("Total Loan Amount")
    balance: Mapped[float | None] = number_field("Balance")
    amount_overdue: Mapped[float | None] = number_field("Amount Overdue")
    monthly_payment: Mapped[float | None] = number_field("Monthly Payment")
    debt_statement: Mapped[str | None] = text_field("Debt Statement")
    annual_declining_balance_interest_rate: Mapped[float | None] = number_field(
        "Annual Declining Balance Interest Rate"
    )
    # Remote headers carry a trailing space
    is_loan_collateralized: Mapped[str | None] = text_field("Is the loan collateralized? ")
    type_of_collateral: Mapped[str | None] = text_field("Type of collateral ")
    what_was_loan_used_for: Mapped[str | None] = text_field("What was the loan used for")


class Director(SyncedRecordMixin, Base):
    """A director of a borrowing school."""

    __tablename__ = "directors"

    borrower_id: Mapped[str | None] = text_field("Borrower ID")
    name: Mapped[str | None] = text_field("Name")
    national_id_number: Mapped[str | None] = text_field("National ID Number")
    kra_pin_number: Mapped[str | None] = text_field("KRA Pin Number")
    phone_number: Mapped[str | None] = text_field("Phone Number")
    email: Mapped[str | None] = text_field("Email")
    gender: Mapped[str | None] = text_field("Gender")
    role_in_school: Mapped[str | None] = text_field("Role in School")
    status: Mapped[str | None] = text_field("Status")
    date_of_birth: Mapped[str | None] = text_field("Date of Birth")
    education_level: Mapped[str | None] = text_field("Education Level")
    insured_for_credit_life: Mapped[str | None] = text_field("Insured for Credit Life?")
    address: Mapped[str | None] = text_field("Address")
    postal_address: Mapped[str | None] = text_field("Postal Address")
    national_id_front: Mapped[str | None] = text_field("National ID Front")
    national_id_back: Mapped[str | None] = text_field("National ID Back")
    kra_pin_photo: Mapped[str | None] = text_field("KRA Pin Photo")
    passport_photo: Mapped[str | None] = text_field("Passport Photo")


class CrbConsent(SyncedRecordMixin, Base):
    """A signed credit bureau consent."""

    __tablename__ = "crb_consents"

    borrower_id: Mapped[str | None] = text_field("Borrower ID")
    agreement: Mapped[str | None] = text_field("Agreement")
    signed_by_name: Mapped[str | None] = text_field("Signed By Name")
    date: Mapped[str | None] = text_field("Date")
    role_in_organization: Mapped[str | None] = text_field("Role in Organization")
    signature: Mapped[str | None] = text_field("Signature")


class Referrer(SyncedRecordMixin, Base):
    """A person who referred a school."""

    __tablename__ = "referrers"

    school_id: Mapped[str | None] = text_field("School ID")
    referrer_name: Mapped[str | None] = text_field("Referrer Name")
    mpesa_number: Mapped[str | None] = text_field("M Pesa Number")
    referral_reward_paid: Mapped[str | None] = text_field("Referral Reward Paid?")
    date_paid: Mapped[str | None] = text_field("Date Paid")
    amount_paid: Mapped[float | None] = number_field("Amount Paid")
    proof_of_payment: Mapped[str | None] = text_field("Proof of Payment")


class CreditApplication(SyncedRecordMixin, Base):
    """A loan application."""

    __tablename__ = "credit_applications"

    customer_type: Mapped[str | None] = text_field("Customer Type")
    borrower_id: Mapped[str | None] = text_field("Borrower ID")
    application_start_date: Mapped[str | None] = text_field("Application Start Date")
    credit_type: Mapped[str | None] = text_field("Credit Type")
    total_amount_requested: Mapped[float | None] = number_field("Total Amount Requested")
    working_capital_application_number: Mapped[str | None] = text_field(
        "Working Capital Application Number"
    )
    ssl_action_needed: Mapped[str | None] = text_field("SSL Action Needed")
    ssl_action: Mapped[str | None] = text_field("SSL Action")
    ssl_id: Mapped[str | None] = text_field("SSL ID")
    ssl_feedback_on_action: Mapped[str | None] = text_field("SSL Feedback on Action")
    school_crb_available: Mapped[str | None] = text_field("School CRB Available?")
    status: Mapped[str | None] = text_field("Status")
    referred_by: Mapped[str | None] = text_field("Referred By")
    current_cost_of_capital: Mapped[float | None] = number_field("Current Cost of Capital")
    checks_collected: Mapped[float | None] = number_field("Checks Collected")
    checks_needed_for_loan: Mapped[float | None] = number_field("Checks Needed for Loan")
    photo_of_check: Mapped[str | None] = text_field("Photo of Check")
    comments_on_checks: Mapped[str | None] = text_field("Comments on Checks")


class MpesaBankStatement(SyncedRecordMixin, Base):
    """An M-Pesa or bank statement attached to an application."""

    __tablename__ = "mpesa_bank_statements"

    credit_application_id: Mapped[str | None] = text_field("Credit Application")
    personal_or_business_account: Mapped[str | None] = text_field(
        "Personal Or Business Account"
    )
    type: Mapped[str | None] = text_field("Type")
    account_details: Mapped[str | None] = text_field("Account Details")
    description: Mapped[str | None] = text_field("Description")
    statement: Mapped[str | None] = text_field("Statement")
    statement_start_date: Mapped[str | None] = text_field("Statement Start Date")
    statement_end_date: Mapped[str | None] = text_field("Statement End Date")
    total_revenue: Mapped[float | None] = number_field("Total Revenue")
    converted_excel_file: Mapped[str | None] = text_field("Converted Excel File")


class AuditedFinancial(SyncedRecordMixin, Base):
    """An audited financial statement."""

    __tablename__ = "audited_financials"

    credit_application_id: Mapped[str | None] = text_field("Credit Application ID")
    statement_type: Mapped[str | None] = text_field("Statement Type")
    notes: Mapped[str | None] = text_field("Notes")
    file: Mapped[str | None] = text_field("File")


class StudentBreakdown(SyncedRecordMixin, Base):
    """Fee and enrollment breakdown per grade."""

    __tablename__ = "student_breakdowns"

    credit_application_id: Mapped[str | None] = text_field("Credit Application")
    fee_type: Mapped[str | None] = text_field("Fee Type")
    term: Mapped[str | None] = text_field("Term ID")
    grade: Mapped[str | None] = text_field("Grade")
    number_of_students: Mapped[float | None] = number_field("Number of Students")
    fee: Mapped[float | None] = number_field("Fee")
    total_revenue: Mapped[float | None] = number_field("Total Revenue")


class InvestmentCommittee(SyncedRecordMixin, Base):
    """Investment committee scoring sheet for an application."""

    __tablename__ = "investment_committees"

    credit_application_id: Mapped[str | None] = text_field("Credit Application ID")
    ssl_id: Mapped[str | None] = text_field("SSL ID")
    school_id: Mapped[str | None] = text_field("School ID")
    type_of_school: Mapped[str | None] = text_field("Type of School")
    age_of_school: Mapped[str | None] = text_field("Age of school")
    incorporation_structure: Mapped[str | None] = text_field("Incorporation Structure")
    school_is_profitable: Mapped[str | None] = text_field("School is profitable?")
    number_of_students_previous_year: Mapped[float | None] = number_field(
        "Number of Students the Previous Year"
    )
    collections_rate: Mapped[float | None] = number_field("Collections Rate")
    average_school_fees_charged: Mapped[float | None] = number_field(
        "Average School Fees Charged"
    )
    debt_ratio: Mapped[float | None] = number_field("Debt Ratio")
    loan_length_months: Mapped[float | None] = number_field("Loan Length (Months)")
    annual_reducing_interest_rate: Mapped[float | None] = number_field(
        "Annual Reducing Interest Rate"
    )
    maximum_monthly_payment: Mapped[float | None] = number_field("Maximum Monthly Payment")
    maximum_loan: Mapped[float | None] = number_field("Maximum Loan")


class OtherSupportingDoc(SyncedRecordMixin, Base):
    """Any other document supporting an application."""

    __tablename__ = "other_supporting_docs"

    credit_application_id: Mapped[str | None] = text_field("Credit Application ID")
    document_type: Mapped[str | None] = text_field("Document Type")
    notes: Mapped[str | None] = text_field("Notes")
    file: Mapped[str | None] = text_field("File")
    image: Mapped[str | None] = text_field("Image")


class FeePlan(SyncedRecordMixin, Base):
    """A school's fee plan for one school year."""

    __tablename__ = "fee_plans"

    credit_application_id: Mapped[str | None] = text_field("Credit Application ID")
    school_year: Mapped[str | None] = text_field("School Year")
    photo: Mapped[str | None] = text_field("Photo")
    file: Mapped[str | None] = text_field("File")


class Payroll(SyncedRecordMixin, Base):
    """Payroll cost of one role."""

    __tablename__ = "payroll"

    credit_application_id: Mapped[str | None] = text_field("Credit Application ID")
    role: Mapped[str | None] = text_field("Role")
    number_of_employees_in_role: Mapped[float | None] = number_field(
        "Number of Employees in Role"
    )
    monthly_salary: Mapped[float | None] = number_field("Monthly Salary")
    months_per_year_the_role_is_paid: Mapped[float | None] = number_field(
        "Months per Year the Role is Paid"
    )
    notes: Mapped[str | None] = text_field("Notes")
    total_annual_cost: Mapped[float | None] = number_field("Total Annual Cost")


class EnrollmentVerification(SyncedRecordMixin, Base):
    """Enrollment figures verified against official reports."""

    __tablename__ = "enrollment_verifications"

    credit_application_id: Mapped[str | None] = text_field("Credit Application ID")
    sub_county_enrollment_report: Mapped[str | None] = text_field(
        "Sub County Enrollment Report"
    )
    enrollment_report: Mapped[str | None] = text_field("Enrollment Report")
    number_of_students_this_year: Mapped[float | None] = number_field(
        "Number of Students This Year"
    )
    number_of_students_last_year: Mapped[float | None] = number_field(
        "Number of students last year"
    )
    number_of_students_two_years_ago: Mapped[float | None] = number_field(
        "Number of students two years ago"
    )


class VendorDisbursementDetail(SyncedRecordMixin, Base):
    """Where and how a vendor gets paid."""

    __tablename__ = "vendor_disbursement_details"

    credit_application_id: Mapped[str | None] = text_field("Credit Application ID")
    vendor_payment_method: Mapped[str | None] = text_field("Vendor Payment Method")
    phone_number_for_mpesa_payment: Mapped[str | None] = text_field(
        "Phone Number for M Pesa Payment"
    )
    manager_verification: Mapped[str | None] = text_field(
        "Manager Verification of Payment Account"
    )
    document_verifying_payment_account: Mapped[str | None] = text_field(
        "Document Verifying Payment Account"
    )
    bank_name: Mapped[str | None] = text_field("Bank Name")
    account_name: Mapped[str | None] = text_field("Account Name")
    account_number: Mapped[str | None] = text_field("Account Number")
    phone_number_for_bank_account: Mapped[str | None] = text_field(
        "Phone Number for Bank Account"
    )
    paybill_number_and_account: Mapped[str | None] = text_field("Paybill Number and Account")
    buy_goods_till: Mapped[str | None] = text_field("Buy Goods Till ")


class AssetTitle(SyncedRecordMixin, Base):
    """An asset offered as collateral."""

    __tablename__ = "asset_titles"

    credit_application_id: Mapped[str | None] = text_field("Credit Application ID")
    type: Mapped[str | None] = text_field("Type")
    to_be_used_as_security: Mapped[str | None] = text_field("To Be Used As Security?")
    description: Mapped[str | None] = text_field("Description")
    legal_owner: Mapped[str | None] = text_field("Legal Owner")
    user_id: Mapped[str | None] = text_field("User ID")
    plot_number: Mapped[str | None] = text_field("Plot Number")
    initial_estimated_value: Mapped[float | None] = number_field(
        "Initial Estimated Value (KES)"
    )
    evaluators_market_value: Mapped[float | None] = number_field("Evaluator's Market Value")
    evaluators_forced_value: Mapped[float | None] = number_field("Evaluator's Forced Value")
    money_owed_on_asset: Mapped[float | None] = number_field("Money Owed on Asset (If Any)")
    license_plate_number: Mapped[str | None] = text_field("License Plate Number")
    logbook_photo: Mapped[str | None] = text_field("Logbook Photo")
    title_deed_photo: Mapped[str | None] = text_field("Title Deed Photo")
    full_title_deed: Mapped[str | None] = text_field("Full Title Deed")
    evaluators_report: Mapped[str | None] = text_field("Evaluator's Report")


class HomeVisit(SyncedRecordMixin, Base):
    """Notes from a visit to a director's home."""

    __tablename__ = "home_visits"

    credit_application_id: Mapped[str | None] = text_field("Credit Application ID")
    user_id: Mapped[str | None] = text_field("User ID")
    county: Mapped[str | None] = text_field("County")
    address_details: Mapped[str | None] = text_field("Address Details ")
    location_pin: Mapped[str | None] = text_field("Location Pin")
    own_or_rent: Mapped[str | None] = text_field("Own or Rent")
    how_many_years_stayed: Mapped[str | None] = text_field(
        "How many years have they stayed there?"
    )
    marital_status: Mapped[str | None] = text_field("Marital Status")
    how_many_children: Mapped[str | None] = text_field(
        "How many children does the director have?"
    )
    is_director_trained_educator: Mapped[str | None] = text_field(
        "Is the director a trained educator?"
    )
    other_notes: Mapped[str | None] = text_field("Other Notes")


class FinancialSurvey(SyncedRecordMixin, Base):
    """Director interview on school income and expenses."""

    __tablename__ = "financial_surveys"

    credit_application_id: Mapped[str | None] = text_field("Credit Application ID")
    survey_date: Mapped[str | None] = text_field("Survey Date")
    director_id: Mapped[str | None] = text_field("Director ID")
    created_by: Mapped[str | None] = text_field("Created By")
    school_grades: Mapped[str | None] = text_field("What grades does the school serve?")
    is_school_apbet_or_private: Mapped[str | None] = text_field(
        "Is the school APBET or Private?"
    )
    facility_ownership: Mapped[str | None] = text_field(
        "Does the school rent, lease, or own its facilities?"
    )
    annual_lease_rent: Mapped[float | None] = number_field(
        "How much does the school pay for the lease or rental per year?"
    )
    provides_meals: Mapped[str | None] = text_field("Does the school provide any meals?")
    monthly_electricity_expense: Mapped[float | None] = number_field(
        "How much does the school spend on electricity per month?"
    )
    has_vehicles: Mapped[str | None] = text_field(
        "Does the school have vehicles for transportation?"
    )


class ContractDetails(SyncedRecordMixin, Base):
    """Requested loan terms."""

    __tablename__ = "contract_details"

    credit_application_id: Mapped[str | None] = text_field("Credit Application ID")
    loan_length_requested_months: Mapped[str | None] = text_field(
        "Loan Length Requested (Months)"
    )
    months_school_requests_forgiveness: Mapped[str | None] = text_field(
        "Months the School Requests Forgiveness"
    )
    disbursal_date_requested: Mapped[str | None] = text_field("Disbursal Date Requested")
    ten_percent_down_on_vehicle_or_land_financing: Mapped[str | None] = text_field(
        "10% Down on Vehicle or Land Financing?"
    )
    created_by: Mapped[str | None] = text_field("Created By")


class CreditApplicationComment(SyncedRecordMixin, Base):
    """A reviewer comment on an application."""

    __tablename__ = "credit_application_comments"

    credit_application_id: Mapped[str | None] = text_field("Credit Application ID")
    commenter_type: Mapped[str | None] = text_field("Commenter Type")
    comments: Mapped[str | None] = text_field("Comments")
    commenter_name: Mapped[str | None] = text_field("Commenter Name")


class DirectPaymentSchedule(SyncedRecordMixin, Base):
    """One installment of a direct loan repayment schedule."""

    __tablename__ = "direct_payment_schedules"

    direct_loan_id: Mapped[str | None] = text_field("Direct Loan ID")
    borrower_type: Mapped[str | None] = text_field("Borrower Type ")
    borrower_id: Mapped[str | None] = text_field("Borrower ID")
    due_date: Mapped[str | None] = text_field("Due Date")
    holiday_forgiveness: Mapped[str | None] = text_field("Holiday Forgiveness?")
    amount_still_unpaid: Mapped[float | None] = number_field("Amount Still Unpaid")
    days_late: Mapped[float | None] = number_field("Days Late")
    date_fully_paid: Mapped[str | None] = text_field("Date Fully Paid")
    payment_overdue: Mapped[str | None] = text_field("Payment Overdue?")
    interest_repayment_due: Mapped[float | None] = number_field("Interest Repayment Due")
    principal_repayment_due: Mapped[float | None] = number_field("Principal Repayment Due")
    amount_due: Mapped[float | None] = number_field("Amount Due")
    amount_paid: Mapped[float | None] = number_field("Amount Paid")
    notes_on_payment: Mapped[str | None] = text_field("Notes on Payment")
    ssl_id: Mapped[str | None] = text_field("SSL ID")


class Borrower(SyncedRecordMixin, Base):
    """A borrowing school or individual."""

    __tablename__ = "borrowers"

    ssl_id: Mapped[str | None] = text_field("SSL ID")
    customer_type: Mapped[str | None] = text_field("Customer Type")
    type: Mapped[str | None] = text_field("Type")
    name: Mapped[str | None] = text_field("Name")
    location_description: Mapped[str | None] = text_field("Location Description")
    entity_type: Mapped[str | None] = text_field("Society, CBO, or Corporation")
    year_founded: Mapped[str | None] = text_field("Year Founded")
    location_pin: Mapped[str | None] = text_field("Location Pin")
    historical_payment_details: Mapped[str | None] = text_field("Historical Payment Details")
    payment_method: Mapped[str | None] = text_field("Payment Method")
    bank_name: Mapped[str | None] = text_field("Bank Name")
    account_name: Mapped[str | None] = text_field("Account Name")
    account_number: Mapped[str | None] = text_field("Account Number")
    primary_phone: Mapped[str | None] = text_field("Primary Phone for Borrower")
    document_verifying_account: Mapped[str | None] = text_field(
        "Document Verifying Payment Account"
    )
    manager_verification: Mapped[str | None] = text_field(
        "Manager Verification of Payment Account"
    )
    status: Mapped[str | None] = text_field("Status")
    notes: Mapped[str | None] = text_field("Notes")
    registration_number: Mapped[str | None] = text_field(
        "Registration Number of CBO, Society, or Corporation"
    )
    notes_on_status: Mapped[str | None] = text_field("Notes on Status")
    official_search: Mapped[str | None] = text_field("Official Search")
    peleza_search: Mapped[str | None] = text_field("Peleza Search")
    products_requested: Mapped[str | None] = text_field("Products Requested")
    data_collection_progress: Mapped[str | None] = text_field("Data Collection Progress")
    initial_contact_notes: Mapped[str | None] = text_field("Initial Contact Details and Notes")
    kra_pin_photo: Mapped[str | None] = text_field("KRA PIN Photo")
    kra_pin_number: Mapped[str | None] = text_field("KRA PIN Number")
    created_by: Mapped[str | None] = text_field("Created By")
    how_heard: Mapped[str | None] = text_field("How did the borrower hear about Jackfruit?")
    month_year_created: Mapped[str | None] = text_field("Month And Year Created")
    moe_certified: Mapped[str | None] = text_field("Certified by the MOE?")
    moe_certificate: Mapped[str | None] = text_field("MOE Certificate")
    county: Mapped[str | None] = text_field("County")
    cr12: Mapped[str | None] = text_field("CR12")
    national_id_number: Mapped[str | None] = text_field("National ID Number")
    national_id_front: Mapped[str | None] = text_field("National ID Front")
    national_id_back: Mapped[str | None] = text_field("National ID Back")
    date_of_birth: Mapped[str | None] = text_field("Date of Birth")
    private_or_apbet: Mapped[str | None] = text_field("Private or APBET")
    society_certificate: Mapped[str | None] = text_field(
        "Society/CBO/Incorporation Certificate"
    )


class DirectLendingProcessing(SyncedRecordMixin, Base):
    """A payment received against a direct loan."""

    __tablename__ = "direct_lending_processing"

    payment_type: Mapped[str | None] = text_field("Payment Type")
    payment_source: Mapped[str | None] = text_field("Payment Source")
    borrower_type: Mapped[str | None] = text_field("Borrower Type")
    borrower_id: Mapped[str | None] = text_field("Borrower ID")
    direct_loan_id: Mapped[str | None] = text_field("Direct Loan ID")
    payment_schedule_id: Mapped[str | None] = text_field("Payment Schedule ID")
    payment_date: Mapped[str | None] = text_field("Payment Date")
    # Amount columns are text in this table
    amount_paid: Mapped[str | None] = text_field("Amount Paid")
    payment_reference: Mapped[str | None] = text_field(
        "Payment Reference or Transaction Code"
    )
    installment_payment_amount: Mapped[str | None] = text_field("Installment Payment Amount")
    installment_vehicle_insurance_premium_amount: Mapped[str | None] = text_field(
        "Installment Vehicle Insurance Premium Amount"
    )
    installment_vehicle_insurance_surcharge_amount: Mapped[str | None] = text_field(
        "Installment Vehicle Insurance Surcharge Amount"
    )
    installment_interest_amount: Mapped[str | None] = text_field("Installment Interest Amount")
    installment_principal_amount: Mapped[str | None] = text_field(
        "Installment Principal Amount"
    )
    vehicle_insurance_premium_paid: Mapped[str | None] = text_field(
        "Vehicle Insurance Premium Paid"
    )
    vehicle_insurance_surcharge_paid: Mapped[str | None] = text_field(
        "Vehicle Insurance Surcharge Paid"
    )
    interest_paid: Mapped[str | None] = text_field("Interest Paid")
    principal_paid: Mapped[str | None] = text_field("Principal Paid")
    created_by: Mapped[str | None] = text_field("Created By")
    ssl_id: Mapped[str | None] = text_field("SSL ID")
    region: Mapped[str | None] = text_field("Region")


class PrincipalTranche(SyncedRecordMixin, Base):
    """A principal disbursement tranche of a direct loan."""

    __tablename__ = "principal_tranches"

    direct_loan_id: Mapped[str | None] = text_field("Direct Loan ID")
    contract_signing_date: Mapped[str | None] = text_field("Contract Signing Date")
    amount: Mapped[float | None] = number_field("Amount")
    ssl_id: Mapped[str | None] = text_field("SSL ID")
    initial_disbursement_date_in_contract: Mapped[str | None] = text_field(
        "Initial Disbursement Date in Contract"
    )
    date_tranche_has_gone_par_30: Mapped[str | None] = text_field(
        "Date Tranche Has Gone Par 30"
    )
    created_by: Mapped[str | None] = text_field("Created By")
    has_female_director: Mapped[str | None] = text_field("Has Female Director?")
    loan_type: Mapped[str | None] = text_field("Loan Type")
    reassigned: Mapped[str | None] = text_field("Reassigned?")
    team_leader: Mapped[str | None] = text_field("Team Leader")
    region: Mapped[str | None] = text_field("Region")
