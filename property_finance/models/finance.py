"""
Core Data Models for Property Finance

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Keep closed tag sets (types, statuses) as enums, never free text
4. Separate creation drafts and partial patches from stored entities

DESIGN DECISION: Stored entities carry identity and timestamps.
Drafts and patches never do - those are assigned by the repository layer.
Any id/created_at/updated_at a caller puts on a draft is discarded.
"""

import datetime as dt
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionCategory(str, Enum):
    """Top-level split of transaction types."""
    INCOME = "income"
    EXPENSE = "expense"


class TransactionType(str, Enum):
    """
    Supported transaction types.

    The value doubles as the category marker: every member starts
    with either INCOME_ or EXPENSE_.
    """
    INCOME_RENT = "INCOME_RENT"
    INCOME_LATE_FEE = "INCOME_LATE_FEE"
    INCOME_OTHER = "INCOME_OTHER"
    EXPENSE_MAINTENANCE = "EXPENSE_MAINTENANCE"
    EXPENSE_UTILITIES = "EXPENSE_UTILITIES"
    EXPENSE_INSURANCE = "EXPENSE_INSURANCE"
    EXPENSE_PROPERTY_TAX = "EXPENSE_PROPERTY_TAX"
    EXPENSE_REPAIRS = "EXPENSE_REPAIRS"
    EXPENSE_OPERATIONAL = "EXPENSE_OPERATIONAL"
    EXPENSE_PAYROLL = "EXPENSE_PAYROLL"
    EXPENSE_OTHER = "EXPENSE_OTHER"

    @property
    def category(self) -> TransactionCategory:
        if self.value.startswith("INCOME_"):
            return TransactionCategory.INCOME
        return TransactionCategory.EXPENSE

    @property
    def is_income(self) -> bool:
        return self.category is TransactionCategory.INCOME

    @property
    def is_expense(self) -> bool:
        return self.category is TransactionCategory.EXPENSE

    @property
    def label(self) -> str:
        """Human-readable name shown in lists and forms."""
        return TRANSACTION_TYPE_LABELS[self]


TRANSACTION_TYPE_LABELS: dict[TransactionType, str] = {
    TransactionType.INCOME_RENT: "Rent",
    TransactionType.INCOME_LATE_FEE: "Late Fee",
    TransactionType.INCOME_OTHER: "Other Income",
    TransactionType.EXPENSE_MAINTENANCE: "Maintenance",
    TransactionType.EXPENSE_UTILITIES: "Utilities",
    TransactionType.EXPENSE_INSURANCE: "Insurance",
    TransactionType.EXPENSE_PROPERTY_TAX: "Property Tax",
    TransactionType.EXPENSE_REPAIRS: "Repairs",
    TransactionType.EXPENSE_OPERATIONAL: "Operational",
    TransactionType.EXPENSE_PAYROLL: "Payroll",
    TransactionType.EXPENSE_OTHER: "Other Expense",
}


class TransactionStatus(str, Enum):
    """
    Transaction approval status.

    CRITICAL: New transactions are always PENDING.
    Only the approval workflow moves them to APPROVED or REJECTED.
    """
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class PayrollStatus(str, Enum):
    """Lifecycle of a payroll run."""
    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PAID = "paid"


class EmployeeStatus(str, Enum):
    """Employment status. Only ACTIVE employees are paid."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    ON_LEAVE = "on_leave"


# =============================================================================
# TRANSACTIONS
# =============================================================================

class TransactionDraft(BaseModel):
    """
    Caller input for a new transaction.

    Has no id or timestamps. Status is accepted for shape compatibility
    but create_transaction always overrides it with PENDING.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Decimal = Field(
        ...,
        ge=0,
        description="Amount in the ledger currency"
    )
    type: TransactionType
    description: str = Field(
        ...,
        max_length=500,
        description="What the money was for"
    )
    date: dt.date
    property_id: Optional[str] = None
    reference_number: Optional[str] = Field(
        default=None,
        max_length=50
    )
    status: TransactionStatus = TransactionStatus.PENDING
    submitted_by: str = Field(
        ...,
        min_length=1,
        description="User who submitted the transaction"
    )
    approved_by: Optional[str] = None
    approval_notes: Optional[str] = Field(
        default=None,
        max_length=1000
    )
    approved_at: Optional[datetime] = None


class Transaction(TransactionDraft):
    """A stored transaction."""

    id: str = Field(
        ...,
        min_length=1,
        description="Repository-assigned identifier"
    )
    created_at: datetime
    updated_at: datetime


class TransactionPatch(BaseModel):
    """Partial update for a transaction. Only explicitly set fields are merged."""
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Optional[Decimal] = Field(default=None, ge=0)
    type: Optional[TransactionType] = None
    description: Optional[str] = Field(default=None, max_length=500)
    date: Optional[dt.date] = None
    property_id: Optional[str] = None
    reference_number: Optional[str] = Field(default=None, max_length=50)
    status: Optional[TransactionStatus] = None
    submitted_by: Optional[str] = None
    approved_by: Optional[str] = None
    approval_notes: Optional[str] = Field(default=None, max_length=1000)
    approved_at: Optional[datetime] = None


# =============================================================================
# PAYROLL
# =============================================================================

class PayrollRunDraft(BaseModel):
    """
    Caller input for a new payroll run.

    total_amount and employee_count are snapshots: they are computed
    once from the employees included at generation time and never
    recomputed when employee records change later.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1900, le=2100)
    status: PayrollStatus = PayrollStatus.DRAFT
    total_amount: Decimal = Field(..., ge=0)
    employee_count: int = Field(..., ge=0)
    notes: Optional[str] = Field(default=None, max_length=1000)
    transaction_ids: list[str] = Field(
        default_factory=list,
        description="Transactions recorded for this run"
    )
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None


class PayrollRun(PayrollRunDraft):
    """A stored payroll run."""

    id: str = Field(..., min_length=1)
    created_at: datetime
    updated_at: datetime


class PayrollRunPatch(BaseModel):
    """Partial update for a payroll run."""

    month: Optional[int] = Field(default=None, ge=1, le=12)
    year: Optional[int] = Field(default=None, ge=1900, le=2100)
    status: Optional[PayrollStatus] = None
    total_amount: Optional[Decimal] = Field(default=None, ge=0)
    employee_count: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = Field(default=None, max_length=1000)
    transaction_ids: Optional[list[str]] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None


# =============================================================================
# EMPLOYEES
# =============================================================================

class EmployeeDraft(BaseModel):
    """Caller input for a new employee."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., max_length=200)
    position: str = Field(..., max_length=200)
    salary: Decimal = Field(
        ...,
        ge=0,
        description="Monthly salary"
    )
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    hire_date: date
    termination_date: Optional[date] = None

    @model_validator(mode='after')
    def validate_dates(self) -> 'EmployeeDraft':
        """Validate date relationships."""
        if self.termination_date and self.termination_date < self.hire_date:
            raise ValueError("Termination date cannot be before hire date")
        return self


class Employee(EmployeeDraft):
    """
    A stored employee.

    Timestamps are optional: the demo seed records carry none,
    records created through the repository get both.
    """

    id: str = Field(..., min_length=1)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_payable(self) -> bool:
        return self.status is EmployeeStatus.ACTIVE


class EmployeePatch(BaseModel):
    """Partial update for an employee."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, max_length=200)
    position: Optional[str] = Field(default=None, max_length=200)
    salary: Optional[Decimal] = Field(default=None, ge=0)
    status: Optional[EmployeeStatus] = None
    hire_date: Optional[date] = None
    termination_date: Optional[date] = None


EntityT = TypeVar("EntityT", bound=BaseModel)


def apply_patch(entity: EntityT, patch: BaseModel) -> EntityT:
    """
    Merge a patch onto an entity and return a new validated entity.

    Only fields explicitly set on the patch participate; everything
    else is carried over unchanged. The input entity is not modified.

    Raises:
        pydantic.ValidationError: If the merged record is invalid
    """
    changes = patch.model_dump(exclude_unset=True)
    merged: dict[str, Any] = {**entity.model_dump(), **changes}
    return type(entity).model_validate(merged)


# =============================================================================
# METRICS MODELS (derived, never stored)
# =============================================================================

class MetricsPeriod(BaseModel):
    """Display label for the period a metrics result covers."""

    start: date
    end: date


class PeriodTotals(BaseModel):
    """Aggregated totals for one date window."""

    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    total_payroll: Decimal = Decimal("0")

    @property
    def net_profit(self) -> Decimal:
        return self.total_income - self.total_expenses - self.total_payroll


class FinancialMetrics(BaseModel):
    """
    Summary metrics for a period with a previous-month comparison.

    Change fields are percentages. They are 0 whenever the baseline
    value is 0, which is a defined fallback, not "no change".
    """

    total_income: Decimal
    total_expenses: Decimal
    net_profit: Decimal
    total_payroll: Decimal

    income_change: Decimal
    expenses_change: Decimal
    profit_change: Decimal
    payroll_change: Decimal

    period: MetricsPeriod
    previous_period: PeriodTotals = Field(
        default_factory=PeriodTotals,
        description="Totals of the previous calendar month used as the baseline"
    )


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'ineligible')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """Result of validating one draft or selection."""

    subject: str = Field(
        ...,
        description="What was validated (e.g., 'transaction', 'payroll_selection')"
    )
    validated_at: datetime = Field(
        default_factory=datetime.now
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def warnings(self) -> list[str]:
        """Non-blocking messages worth showing to the user."""
        return [issue.message for issue in self.issues if issue.severity == "warning"]
