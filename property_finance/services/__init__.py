"""Services package."""

from property_finance.services.storage import (
    AuditStorageInterface,
    BookingRepository,
    EmployeeRepository,
    EntityRepositoryInterface,
    EntityStore,
    FinanceRepositories,
    InMemoryAuditStorage,
    NotFoundError,
    PayrollRunRepository,
    StorageError,
    StorageUnavailableError,
    TransactionRepository,
    ValidationFailure,
)

__all__ = [
    # Storage services
    "AuditStorageInterface",
    "BookingRepository",
    "EmployeeRepository",
    "EntityRepositoryInterface",
    "EntityStore",
    "FinanceRepositories",
    "InMemoryAuditStorage",
    "NotFoundError",
    "PayrollRunRepository",
    "StorageError",
    "StorageUnavailableError",
    "TransactionRepository",
    "ValidationFailure",
]
