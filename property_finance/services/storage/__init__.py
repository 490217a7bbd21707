"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Currently implements an in-memory stand-in for the finance service,
but designed to be swappable.
"""

from property_finance.services.storage.interface import (
    AuditStorageInterface,
    EntityRepositoryInterface,
    NotFoundError,
    StorageError,
    StorageUnavailableError,
    ValidationFailure,
)
from property_finance.services.storage.memory import (
    SEED_EMPLOYEES,
    BookingRepository,
    EmployeeRepository,
    EntityStore,
    FinanceRepositories,
    InMemoryAuditStorage,
    PayrollRunRepository,
    TransactionRepository,
    generate_id,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "EntityRepositoryInterface",
    # Exceptions
    "NotFoundError",
    "StorageError",
    "StorageUnavailableError",
    "ValidationFailure",
    # In-memory implementation
    "SEED_EMPLOYEES",
    "BookingRepository",
    "EmployeeRepository",
    "EntityStore",
    "FinanceRepositories",
    "InMemoryAuditStorage",
    "PayrollRunRepository",
    "TransactionRepository",
    "generate_id",
]
