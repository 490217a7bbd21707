"""
Audit Logger

DESIGN DECISION: Every mutation of financial data is logged.
This provides:
1. Complete traceability of submissions and approvals
2. Debugging capability
3. A history the finance officer can review

The audit logger:
- Is async to match the repositories
- Gracefully handles storage failures (never breaks the main flow)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from property_finance.config import get_settings
from property_finance.models.audit import AuditEvent, AuditEventBuilder
from property_finance.services.storage import AuditStorageInterface


def configure_logging(level: Optional[str] = None) -> None:
    """Configure structlog for local JSON logging."""
    level_name = level or get_settings().app.log_level
    logging.basicConfig(format="%(message)s", level=getattr(logging, level_name))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for history), when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_transaction_submitted(
        self,
        transaction_id: str,
        transaction_type: str,
        amount: str,
        submitted_by: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.transaction_submitted(
            transaction_id=transaction_id,
            transaction_type=transaction_type,
            amount=amount,
            submitted_by=submitted_by,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_transaction_updated(
        self,
        transaction_id: str,
        fields: list[str],
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.transaction_updated(
            transaction_id=transaction_id,
            fields=fields,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_transaction_reviewed(
        self,
        transaction_id: str,
        approved: bool,
        reviewed_by: str,
        notes: Optional[str],
        correlation_id: UUID,
    ) -> None:
        """Log an approval or rejection."""
        event = AuditEventBuilder.transaction_reviewed(
            transaction_id=transaction_id,
            approved=approved,
            reviewed_by=reviewed_by,
            notes=notes,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_payroll_run_generated(
        self,
        run_id: str,
        month: int,
        year: int,
        total_amount: str,
        employee_count: int,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.payroll_run_generated(
            run_id=run_id,
            month=month,
            year=year,
            total_amount=total_amount,
            employee_count=employee_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_payroll_run_reviewed(
        self,
        run_id: str,
        approved: bool,
        reviewed_by: str,
        correlation_id: UUID,
        expense_transaction_id: Optional[str] = None,
    ) -> None:
        event = AuditEventBuilder.payroll_run_reviewed(
            run_id=run_id,
            approved=approved,
            reviewed_by=reviewed_by,
            correlation_id=correlation_id,
            expense_transaction_id=expense_transaction_id,
        )
        await self.log(event)

    async def log_payroll_run_paid(
        self,
        run_id: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.payroll_run_paid(
            run_id=run_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_employee_added(
        self,
        employee_id: str,
        name: str,
        position: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.employee_added(
            employee_id=employee_id,
            name=name,
            position=position,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_employees_seeded(self, employee_ids: list[str]) -> None:
        await self.log(AuditEventBuilder.employees_seeded(employee_ids))

    async def log_validation_failed(
        self,
        subject: str,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        """Log validation failure."""
        event = AuditEventBuilder.validation_failed(
            subject=subject,
            issues=issues,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., a payroll approval).
    Pass it through all subsequent operations.
    """
    return uuid4()
