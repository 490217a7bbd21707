"""
Main Orchestrator for Property Finance

This module ties together all the components and defines the
end-to-end flows for:
1. Transactions (submit → finance review → approve/reject)
2. Payroll (select active employees → generate → approve → pay)
3. Reporting (fetch → compute metrics)
4. Employees (validate → add to the roster)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No transaction is stored without passing validation
- No transaction is created pre-approved
- Only active employees are paid
- Every step is audited

This is the "glue" UI components call into. It holds no state of its own.
"""

from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from property_finance.audit import AuditLogger, configure_logging, create_correlation_id
from property_finance.config import FinanceSettings, get_settings
from property_finance.metrics import calculate_financial_metrics
from property_finance.models.finance import (
    Employee,
    EmployeeDraft,
    FinancialMetrics,
    PayrollRun,
    PayrollStatus,
    Transaction,
    TransactionDraft,
    TransactionPatch,
    TransactionStatus,
    TransactionType,
    ValidationResult,
)
from property_finance.services.storage import (
    EntityStore,
    FinanceRepositories,
    InMemoryAuditStorage,
    NotFoundError,
    ValidationFailure,
)
from property_finance.validation import FinanceValidator


PAYROLL_SUBMITTER = "system"


@asynccontextmanager
async def _audit_not_found(
    audit_logger: Optional[AuditLogger],
    correlation_id: UUID,
) -> AsyncIterator[None]:
    """Record lookups of unknown ids, then let the error propagate."""
    try:
        yield
    except NotFoundError as e:
        if audit_logger:
            await audit_logger.log_error(
                error_type="not_found",
                error_message=str(e),
                details={"entity_type": e.entity_type, "entity_id": e.entity_id},
                correlation_id=correlation_id,
            )
        raise


async def _audit_validation_failure(
    audit_logger: Optional[AuditLogger],
    result: ValidationResult,
    correlation_id: UUID,
) -> None:
    if audit_logger and result.has_errors:
        issues = [
            {"field": i.field, "type": i.issue_type, "message": i.message}
            for i in result.issues
        ]
        await audit_logger.log_validation_failed(
            subject=result.subject,
            issues=issues,
            correlation_id=correlation_id,
        )


@asynccontextmanager
async def _audit_rejected_input(
    audit_logger: Optional[AuditLogger],
    subject: str,
    correlation_id: UUID,
) -> AsyncIterator[None]:
    """Audit schema errors raised at the repository boundary, then re-raise."""
    try:
        yield
    except ValidationFailure as e:
        result = ValidationResult(subject=subject, issues=e.issues)
        await _audit_validation_failure(audit_logger, result, correlation_id)
        raise


class TransactionFlow:
    """
    Orchestrates the transaction approval workflow.

    Flow:
    1. Submit → validate, store as PENDING
    2. Review → finance officer approves or rejects with notes

    Review is MANDATORY. Submission never approves.
    """

    def __init__(
        self,
        repositories: FinanceRepositories,
        validator: Optional[FinanceValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._repos = repositories
        self._validator = validator or FinanceValidator()
        self._audit_logger = audit_logger

    async def submit_transaction(
        self,
        draft: TransactionDraft,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Validate and store a new transaction.

        Returns:
            The stored transaction, always PENDING

        Raises:
            ValidationFailure: If the draft has errors
        """
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate_transaction(draft)
        await _audit_validation_failure(self._audit_logger, result, correlation_id)
        self._validator.ensure_valid(result)

        transaction = await self._repos.transactions.create_transaction(draft)

        if self._audit_logger:
            await self._audit_logger.log_transaction_submitted(
                transaction_id=transaction.id,
                transaction_type=transaction.type.value,
                amount=str(transaction.amount),
                submitted_by=transaction.submitted_by,
                correlation_id=correlation_id,
            )

        return transaction

    async def update_transaction(
        self,
        transaction_id: str,
        patch: TransactionPatch,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """Apply a partial edit. NotFoundError propagates to the caller."""
        correlation_id = correlation_id or create_correlation_id()

        async with _audit_not_found(self._audit_logger, correlation_id), \
                _audit_rejected_input(self._audit_logger, "transaction", correlation_id):
            transaction = await self._repos.transactions.update(transaction_id, patch)

        if self._audit_logger:
            await self._audit_logger.log_transaction_updated(
                transaction_id=transaction_id,
                fields=sorted(patch.model_fields_set),
                correlation_id=correlation_id,
            )

        return transaction

    async def approve_transaction(
        self,
        transaction_id: str,
        approved_by: str,
        notes: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        return await self._review(
            transaction_id, TransactionStatus.APPROVED, approved_by, notes, correlation_id
        )

    async def reject_transaction(
        self,
        transaction_id: str,
        approved_by: str,
        notes: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        return await self._review(
            transaction_id, TransactionStatus.REJECTED, approved_by, notes, correlation_id
        )

    async def _review(
        self,
        transaction_id: str,
        status: TransactionStatus,
        reviewed_by: str,
        notes: Optional[str],
        correlation_id: Optional[UUID],
    ) -> Transaction:
        correlation_id = correlation_id or create_correlation_id()

        async with _audit_not_found(self._audit_logger, correlation_id), \
                _audit_rejected_input(self._audit_logger, "transaction", correlation_id):
            transaction = await self._repos.transactions.update(transaction_id, {
                "status": status,
                "approved_by": reviewed_by,
                "approval_notes": notes,
                "approved_at": datetime.now(),
            })

        if self._audit_logger:
            await self._audit_logger.log_transaction_reviewed(
                transaction_id=transaction_id,
                approved=status is TransactionStatus.APPROVED,
                reviewed_by=reviewed_by,
                notes=notes,
                correlation_id=correlation_id,
            )

        return transaction

    async def pending_transactions(self) -> list[Transaction]:
        """Transactions waiting for finance review, oldest first."""
        transactions = await self._repos.transactions.list_all()
        pending = [t for t in transactions if t.status is TransactionStatus.PENDING]
        pending.sort(key=lambda t: t.created_at)
        return pending


class EmployeeFlow:
    """Adds employees to the payroll roster after business-rule checks."""

    def __init__(
        self,
        repositories: FinanceRepositories,
        validator: Optional[FinanceValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._repos = repositories
        self._validator = validator or FinanceValidator()
        self._audit_logger = audit_logger

    async def add_employee(
        self,
        draft: EmployeeDraft,
        correlation_id: Optional[UUID] = None,
    ) -> Employee:
        """
        Validate and store a new employee.

        Raises:
            ValidationFailure: If the name is blank or the salary has
                more than two decimal places
        """
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate_employee(draft)
        await _audit_validation_failure(self._audit_logger, result, correlation_id)
        self._validator.ensure_valid(result)

        employee = await self._repos.employees.create(draft)

        if self._audit_logger:
            await self._audit_logger.log_employee_added(
                employee_id=employee.id,
                name=employee.name,
                position=employee.position,
                correlation_id=correlation_id,
            )

        return employee


class PayrollFlow:
    """
    Orchestrates payroll runs.

    Flow:
    1. Generate → snapshot salaries of the selected active employees
    2. Review → approve (records a payroll expense) or reject
    3. Pay → only approved runs can be marked paid
    """

    def __init__(
        self,
        repositories: FinanceRepositories,
        validator: Optional[FinanceValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._repos = repositories
        self._validator = validator or FinanceValidator()
        self._audit_logger = audit_logger

    async def generate_payroll_run(
        self,
        month: int,
        year: int,
        employee_ids: Optional[Iterable[str]] = None,
        notes: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> PayrollRun:
        """
        Create a pending payroll run.

        Args:
            month: 1-12
            year: Calendar year
            employee_ids: Employees to include. Defaults to every
                active employee.
            notes: Free-text notes

        Raises:
            ValidationFailure: If a selected employee is unknown or
                not active, or nobody is selected
        """
        correlation_id = correlation_id or create_correlation_id()

        employees = await self._repos.employees.list_all()
        if employee_ids is None:
            selected_ids = [e.id for e in employees if e.is_payable]
        else:
            selected_ids = list(dict.fromkeys(employee_ids))

        result = self._validator.validate_payroll_selection(employees, selected_ids)
        await _audit_validation_failure(self._audit_logger, result, correlation_id)
        self._validator.ensure_valid(result)

        included = [e for e in employees if e.id in set(selected_ids)]
        total_amount = sum((e.salary for e in included), Decimal("0"))

        async with _audit_rejected_input(self._audit_logger, "payroll_run", correlation_id):
            run = await self._repos.payroll_runs.create({
                "month": month,
                "year": year,
                "status": PayrollStatus.PENDING,
                "total_amount": total_amount,
                "employee_count": len(included),
                "notes": notes,
            })

        if self._audit_logger:
            await self._audit_logger.log_payroll_run_generated(
                run_id=run.id,
                month=run.month,
                year=run.year,
                total_amount=str(run.total_amount),
                employee_count=run.employee_count,
                correlation_id=correlation_id,
            )

        return run

    async def approve_payroll_run(
        self,
        run_id: str,
        approved_by: str,
        correlation_id: Optional[UUID] = None,
    ) -> PayrollRun:
        """
        Approve a payroll run and record its expense.

        The expense transaction goes through create_transaction like any
        other, so it starts PENDING and waits for finance review.
        """
        correlation_id = correlation_id or create_correlation_id()

        async with _audit_not_found(self._audit_logger, correlation_id):
            run = await self._repos.payroll_runs.get_by_id(run_id)
        self._ensure_status(run, (PayrollStatus.DRAFT, PayrollStatus.PENDING), "approved")

        expense = await self._repos.transactions.create_transaction(TransactionDraft(
            amount=run.total_amount,
            type=TransactionType.EXPENSE_PAYROLL,
            description=f"Monthly Payroll Run: {date(run.year, run.month, 1):%B %Y}",
            date=date.today(),
            reference_number=f"PAY-{run.month}-{run.year}",
            submitted_by=PAYROLL_SUBMITTER,
        ))

        approved = await self._repos.payroll_runs.update(run_id, {
            "status": PayrollStatus.APPROVED,
            "approved_by": approved_by,
            "approved_at": datetime.now(),
            "transaction_ids": [*run.transaction_ids, expense.id],
        })

        if self._audit_logger:
            await self._audit_logger.log_payroll_run_reviewed(
                run_id=run_id,
                approved=True,
                reviewed_by=approved_by,
                correlation_id=correlation_id,
                expense_transaction_id=expense.id,
            )

        return approved

    async def reject_payroll_run(
        self,
        run_id: str,
        approved_by: str,
        correlation_id: Optional[UUID] = None,
    ) -> PayrollRun:
        correlation_id = correlation_id or create_correlation_id()

        async with _audit_not_found(self._audit_logger, correlation_id):
            run = await self._repos.payroll_runs.get_by_id(run_id)
        self._ensure_status(run, (PayrollStatus.DRAFT, PayrollStatus.PENDING), "rejected")

        rejected = await self._repos.payroll_runs.update(run_id, {
            "status": PayrollStatus.REJECTED,
            "approved_by": approved_by,
            "approved_at": datetime.now(),
        })

        if self._audit_logger:
            await self._audit_logger.log_payroll_run_reviewed(
                run_id=run_id,
                approved=False,
                reviewed_by=approved_by,
                correlation_id=correlation_id,
            )

        return rejected

    async def mark_paid(
        self,
        run_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> PayrollRun:
        """Record that an approved run has been paid out."""
        correlation_id = correlation_id or create_correlation_id()

        async with _audit_not_found(self._audit_logger, correlation_id):
            run = await self._repos.payroll_runs.get_by_id(run_id)
        self._ensure_status(run, (PayrollStatus.APPROVED,), "paid")

        paid = await self._repos.payroll_runs.update(run_id, {
            "status": PayrollStatus.PAID,
            "paid_at": datetime.now(),
        })

        if self._audit_logger:
            await self._audit_logger.log_payroll_run_paid(
                run_id=run_id,
                correlation_id=correlation_id,
            )

        return paid

    @staticmethod
    def _ensure_status(
        run: PayrollRun,
        allowed: tuple[PayrollStatus, ...],
        target: str,
    ) -> None:
        if run.status not in allowed:
            raise ValidationFailure(
                f"Payroll run {run.id} is {run.status.value} and cannot be {target}"
            )


class ReportingFlow:
    """Fetches the current data and hands it to the metrics engine."""

    def __init__(self, repositories: FinanceRepositories):
        self._repos = repositories

    async def get_financial_metrics(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        today: Optional[date] = None,
    ) -> FinancialMetrics:
        transactions = await self._repos.transactions.list_all()
        payroll_runs = await self._repos.payroll_runs.list_all()
        return calculate_financial_metrics(
            transactions,
            payroll_runs,
            start_date,
            end_date,
            today=today,
        )


async def create_app_components(
    settings: Optional[FinanceSettings] = None,
    store: Optional[EntityStore] = None,
    seed: Optional[bool] = None,
) -> tuple[TransactionFlow, PayrollFlow, EmployeeFlow, ReportingFlow, FinanceRepositories]:
    """
    Factory function to create all application components.

    Called once per process/session. Seeds the demo employees here,
    explicitly, so that listing employees stays side-effect free.

    Args:
        settings: Finance settings. Defaults to the environment.
        store: Entity store to wrap. Defaults to a fresh empty one.
        seed: Override settings.seed_demo_employees.

    Returns:
        (transaction_flow, payroll_flow, employee_flow, reporting_flow,
        repositories)
    """
    settings = settings or get_settings().finance
    configure_logging()

    repositories = FinanceRepositories(store, settings)
    audit_logger = AuditLogger(InMemoryAuditStorage(settings.max_audit_events))
    validator = FinanceValidator(settings)

    should_seed = settings.seed_demo_employees if seed is None else seed
    if should_seed:
        seeded = await repositories.employees.seed()
        if seeded:
            await audit_logger.log_employees_seeded([e.id for e in seeded])

    transaction_flow = TransactionFlow(repositories, validator, audit_logger)
    payroll_flow = PayrollFlow(repositories, validator, audit_logger)
    employee_flow = EmployeeFlow(repositories, validator, audit_logger)
    reporting_flow = ReportingFlow(repositories)

    return transaction_flow, payroll_flow, employee_flow, reporting_flow, repositories
