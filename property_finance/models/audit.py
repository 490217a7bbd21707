"""
Audit Models for Property Finance

Every mutation of financial data is logged for audit purposes.
This provides:
1. Complete traceability of who submitted and approved what
2. Debugging information when things go wrong
3. Ability to reconstruct history of a transaction or payroll run

DESIGN DECISION: Audit logs are append-only. We never modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every repository mutation and workflow step has its own event type.
    """
    # Transactions
    TRANSACTION_SUBMITTED = "transaction_submitted"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_APPROVED = "transaction_approved"
    TRANSACTION_REJECTED = "transaction_rejected"

    # Payroll
    PAYROLL_RUN_GENERATED = "payroll_run_generated"
    PAYROLL_RUN_APPROVED = "payroll_run_approved"
    PAYROLL_RUN_REJECTED = "payroll_run_rejected"
    PAYROLL_RUN_PAID = "payroll_run_paid"

    # Employees
    EMPLOYEE_ADDED = "employee_added"
    EMPLOYEES_SEEDED = "employees_seeded"

    # Validation
    VALIDATION_FAILED = "validation_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'payroll_run')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Who did it. Recorded, never verified.
    actor: Optional[str] = Field(
        default=None,
        description="User the action is attributed to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., a payroll approval and its expense)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "actor": self.actor,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_submitted(txn_id, "RENT", "1200", "alice", cid)
        event = AuditEventBuilder.payroll_run_approved(run_id, "bob", cid)
    """

    @staticmethod
    def transaction_submitted(
        transaction_id: str,
        transaction_type: str,
        amount: str,
        submitted_by: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_SUBMITTED,
            entity_type="transaction",
            entity_id=transaction_id,
            actor=submitted_by,
            correlation_id=correlation_id,
            description=f"Transaction submitted for approval: {transaction_type} {amount}",
            details={
                "type": transaction_type,
                "amount": amount,
            },
        )

    @staticmethod
    def transaction_updated(
        transaction_id: str,
        fields: list[str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction updated: {', '.join(fields) or 'no fields'}",
            details={
                "fields": fields,
            },
        )

    @staticmethod
    def transaction_reviewed(
        transaction_id: str,
        approved: bool,
        reviewed_by: str,
        notes: Optional[str],
        correlation_id: UUID
    ) -> AuditEvent:
        event_type = (
            AuditEventType.TRANSACTION_APPROVED
            if approved
            else AuditEventType.TRANSACTION_REJECTED
        )
        verdict = "approved" if approved else "rejected"
        return AuditEvent(
            event_type=event_type,
            entity_type="transaction",
            entity_id=transaction_id,
            actor=reviewed_by,
            correlation_id=correlation_id,
            description=f"Transaction #{transaction_id} {verdict} by {reviewed_by}",
            details={
                "notes": notes or "None",
            },
        )

    @staticmethod
    def payroll_run_generated(
        run_id: str,
        month: int,
        year: int,
        total_amount: str,
        employee_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYROLL_RUN_GENERATED,
            entity_type="payroll_run",
            entity_id=run_id,
            correlation_id=correlation_id,
            description=f"Payroll run generated for {month:02d}/{year}: {employee_count} employees",
            details={
                "month": month,
                "year": year,
                "total_amount": total_amount,
                "employee_count": employee_count,
            },
        )

    @staticmethod
    def payroll_run_reviewed(
        run_id: str,
        approved: bool,
        reviewed_by: str,
        correlation_id: UUID,
        expense_transaction_id: Optional[str] = None
    ) -> AuditEvent:
        event_type = (
            AuditEventType.PAYROLL_RUN_APPROVED
            if approved
            else AuditEventType.PAYROLL_RUN_REJECTED
        )
        verdict = "approved" if approved else "rejected"
        details: dict[str, Any] = {}
        if expense_transaction_id:
            details["expense_transaction_id"] = expense_transaction_id
        return AuditEvent(
            event_type=event_type,
            entity_type="payroll_run",
            entity_id=run_id,
            actor=reviewed_by,
            correlation_id=correlation_id,
            description=f"Payroll run #{run_id} {verdict} by {reviewed_by}",
            details=details,
        )

    @staticmethod
    def payroll_run_paid(
        run_id: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYROLL_RUN_PAID,
            entity_type="payroll_run",
            entity_id=run_id,
            correlation_id=correlation_id,
            description=f"Payroll run #{run_id} marked as paid",
        )

    @staticmethod
    def employee_added(
        employee_id: str,
        name: str,
        position: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EMPLOYEE_ADDED,
            entity_type="employee",
            entity_id=employee_id,
            correlation_id=correlation_id,
            description=f"Employee added: {name} ({position})",
        )

    @staticmethod
    def employees_seeded(
        employee_ids: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EMPLOYEES_SEEDED,
            entity_type="employee",
            description=f"Seeded {len(employee_ids)} demo employees",
            details={
                "employee_ids": employee_ids,
            },
        )

    @staticmethod
    def validation_failed(
        subject: str,
        issues: list[dict],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type=subject,
            correlation_id=correlation_id,
            description=f"{subject.replace('_', ' ').capitalize()} validation failed with {len(issues)} issues",
            details={
                "issues": issues,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
