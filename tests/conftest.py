"""
Shared fixtures for the Property Finance tests.

Coroutines are driven with asyncio.run through the `run` fixture.
Settings use zero latency and zero backoff so nothing sleeps.
"""

import asyncio
from datetime import date, datetime
from decimal import Decimal

import pytest

from property_finance.audit import AuditLogger
from property_finance.config import FinanceSettings
from property_finance.models.finance import (
    PayrollRun,
    PayrollStatus,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from property_finance.services.storage import (
    EntityStore,
    FinanceRepositories,
    InMemoryAuditStorage,
)
from property_finance.validation import FinanceValidator


@pytest.fixture
def run():
    """Run a coroutine to completion and return its result."""
    def _run(coro):
        return asyncio.run(coro)
    return _run


@pytest.fixture
def settings():
    return FinanceSettings(
        simulated_latency_seconds=0,
        retry_backoff_seconds=0,
        seed_demo_employees=False,
    )


@pytest.fixture
def store():
    return EntityStore()


@pytest.fixture
def repos(store, settings):
    return FinanceRepositories(store, settings)


@pytest.fixture
def validator(settings):
    return FinanceValidator(settings)


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage(max_events=100)


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def make_transaction():
    """Build a stored Transaction with sensible defaults."""
    counter = iter(range(1, 10_000))

    def _make(amount="100", type=TransactionType.INCOME_RENT, on=None, **overrides):
        stamp = datetime(2024, 3, 1, 9, 0)
        fields = dict(
            id=f"txn_test_{next(counter)}",
            amount=Decimal(str(amount)),
            type=type,
            description="Test transaction",
            date=on or date(2024, 3, 10),
            status=TransactionStatus.APPROVED,
            submitted_by="tester",
            created_at=stamp,
            updated_at=stamp,
        )
        fields.update(overrides)
        return Transaction(**fields)

    return _make


@pytest.fixture
def make_payroll_run():
    """Build a stored PayrollRun with sensible defaults."""
    counter = iter(range(1, 10_000))

    def _make(total="500", created=None, status=PayrollStatus.APPROVED, **overrides):
        stamp = created or datetime(2024, 3, 5, 12, 0)
        fields = dict(
            id=f"pay_test_{next(counter)}",
            month=stamp.month,
            year=stamp.year,
            status=status,
            total_amount=Decimal(str(total)),
            employee_count=1,
            created_at=stamp,
            updated_at=stamp,
        )
        fields.update(overrides)
        return PayrollRun(**fields)

    return _make
