"""
Data Models Package

This package contains all Pydantic models used in the Property Finance system.
All data flowing through the system must conform to these schemas.
"""

from property_finance.models.finance import (
    Employee,
    EmployeeDraft,
    EmployeePatch,
    EmployeeStatus,
    FinancialMetrics,
    MetricsPeriod,
    PayrollRun,
    PayrollRunDraft,
    PayrollRunPatch,
    PayrollStatus,
    PeriodTotals,
    Transaction,
    TransactionCategory,
    TransactionDraft,
    TransactionPatch,
    TransactionStatus,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    apply_patch,
)
from property_finance.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Finance models
    "Employee",
    "EmployeeDraft",
    "EmployeePatch",
    "EmployeeStatus",
    "FinancialMetrics",
    "MetricsPeriod",
    "PayrollRun",
    "PayrollRunDraft",
    "PayrollRunPatch",
    "PayrollStatus",
    "PeriodTotals",
    "Transaction",
    "TransactionCategory",
    "TransactionDraft",
    "TransactionPatch",
    "TransactionStatus",
    "TransactionType",
    "ValidationIssue",
    "ValidationResult",
    "apply_patch",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
