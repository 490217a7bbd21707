"""
Business Validation for Finance Records

DESIGN DECISION: Validation happens in two layers:

LAYER 1 - SCHEMA (pydantic models):
- Types, enum membership, non-negative amounts, month range
- Enforced by the models themselves, surfaced by the repositories
  as ValidationFailure

LAYER 2 - BUSINESS RULES (this module):
- Currency precision (at most two decimal places)
- Blank descriptions and names
- Suspiciously large amounts and future dates (warnings)
- Payroll eligibility: only active employees can be paid

IMPORTANT: Validation NEVER silently fixes issues.
It reports them; ensure_valid() turns errors into ValidationFailure.
"""

from collections.abc import Iterable
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from property_finance.config import FinanceSettings, get_settings
from property_finance.models.finance import (
    Employee,
    EmployeeDraft,
    TransactionDraft,
    ValidationIssue,
    ValidationResult,
)
from property_finance.services.storage import ValidationFailure


def _has_sub_cent_precision(amount: Decimal) -> bool:
    exponent = amount.normalize().as_tuple().exponent
    return isinstance(exponent, int) and exponent < -2


class FinanceValidator:
    """
    Validates drafts before they are handed to the repositories.

    The validator has no storage access; callers pass in whatever
    records a rule needs (e.g. the employee list for payroll).
    """

    def __init__(self, settings: Optional[FinanceSettings] = None):
        self._settings = settings or get_settings().finance

    def validate_transaction(
        self,
        draft: TransactionDraft,
        today: Optional[date] = None,
    ) -> ValidationResult:
        """
        Check a transaction draft.

        Errors: blank description, more than two decimal places.
        Warnings: unusually large amount, date too far in the future.
        """
        issues = []
        today = today or date.today()

        if not draft.description:
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description is required",
                severity="error",
                suggested_fix="Describe what the money was for",
            ))

        if _has_sub_cent_precision(draft.amount):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message="Amount can have at most 2 decimal places",
                severity="error",
            ))

        if draft.amount > self._settings.max_transaction_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({draft.amount:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        max_future_date = today + timedelta(days=self._settings.future_date_tolerance_days)
        if draft.date > max_future_date:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Transaction date ({draft.date}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        return ValidationResult(subject="transaction", issues=issues)

    def validate_employee(self, draft: EmployeeDraft) -> ValidationResult:
        """Check an employee draft. Date ordering is enforced by the model."""
        issues = []

        if not draft.name:
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Employee name is required",
                severity="error",
            ))

        if _has_sub_cent_precision(draft.salary):
            issues.append(ValidationIssue(
                field="salary",
                issue_type="invalid_format",
                message="Salary can have at most 2 decimal places",
                severity="error",
            ))

        return ValidationResult(subject="employee", issues=issues)

    def validate_payroll_selection(
        self,
        employees: Iterable[Employee],
        selected_ids: Iterable[str],
    ) -> ValidationResult:
        """
        Check which employees a payroll run may include.

        Every selected id must exist and belong to an active employee,
        and at least one employee must be selected.
        """
        issues = []
        by_id = {employee.id: employee for employee in employees}
        selected = list(dict.fromkeys(selected_ids))

        for employee_id in selected:
            employee = by_id.get(employee_id)
            if employee is None:
                issues.append(ValidationIssue(
                    field="employee_ids",
                    issue_type="unknown",
                    message=f"Employee not found: {employee_id}",
                    severity="error",
                ))
            elif not employee.is_payable:
                issues.append(ValidationIssue(
                    field="employee_ids",
                    issue_type="ineligible",
                    message=f"{employee.name} is {employee.status.value} and cannot be paid",
                    severity="error",
                    suggested_fix="Only active employees can be included in a payroll run",
                ))

        if not selected:
            issues.append(ValidationIssue(
                field="employee_ids",
                issue_type="missing",
                message="Select at least one employee",
                severity="error",
            ))

        return ValidationResult(subject="payroll_selection", issues=issues)

    def ensure_valid(self, result: ValidationResult) -> ValidationResult:
        """
        Raise if the result carries errors; return it unchanged otherwise.

        Raises:
            ValidationFailure: With the result's issues attached
        """
        if result.has_errors:
            raise ValidationFailure(
                f"Invalid {result.subject.replace('_', ' ')}: "
                f"{result.error_count} error(s)",
                result.issues,
            )
        return result

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """Generate a short summary of validation results for display."""
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []

        if result.has_errors:
            lines.append("Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
