"""
In-Memory Storage Implementation

DESIGN DECISION: The finance data lives in process memory for now.
The repositories behave like a remote service would:
1. Every call is async
2. Bulk replacement pays a fixed, non-cancellable latency
3. Reads hand out copies, never references into storage

TRADEOFFS:
- Nothing survives a restart
- No locking: a single UI issues one mutation at a time
- Transient-failure retries are wired in already, so pointing the
  repositories at a real service later does not change their callers
"""

import asyncio
import secrets
import string
import time
from collections.abc import Iterable, Mapping
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterator, Optional, Union
from uuid import UUID

import structlog
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from property_finance.config import FinanceSettings, get_settings
from property_finance.models.audit import AuditEvent
from property_finance.models.finance import (
    Employee,
    EmployeeDraft,
    EmployeePatch,
    EmployeeStatus,
    PayrollRun,
    PayrollRunDraft,
    PayrollRunPatch,
    Transaction,
    TransactionDraft,
    TransactionPatch,
    TransactionStatus,
    ValidationIssue,
    apply_patch,
)
from property_finance.services.storage.interface import (
    AuditStorageInterface,
    DraftT,
    EntityRepositoryInterface,
    EntityT,
    NotFoundError,
    PatchT,
    StorageUnavailableError,
    ValidationFailure,
)


logger = structlog.get_logger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits

# Demo dataset. Seeded once at startup, never on read.
SEED_EMPLOYEES: tuple[Employee, ...] = (
    Employee(
        id="emp_1",
        name="John Doe",
        position="Property Manager",
        salary=Decimal("5000"),
        status=EmployeeStatus.ACTIVE,
        hire_date=date(2023, 1, 15),
    ),
    Employee(
        id="emp_2",
        name="Jane Smith",
        position="Maintenance Supervisor",
        salary=Decimal("4500"),
        status=EmployeeStatus.ACTIVE,
        hire_date=date(2023, 2, 20),
    ),
    Employee(
        id="emp_3",
        name="Robert Johnson",
        position="Accountant",
        salary=Decimal("4800"),
        status=EmployeeStatus.ACTIVE,
        hire_date=date(2023, 3, 10),
    ),
)


def generate_id(prefix: str) -> str:
    """
    Build a process-unique identifier.

    Format: <prefix>_<epoch millis>_<9 random base-36 chars>
    """
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


def _now() -> datetime:
    return datetime.now()


def _issues_from_pydantic(error: PydanticValidationError) -> list[ValidationIssue]:
    issues = []
    for item in error.errors():
        field = ".".join(str(part) for part in item["loc"]) or "record"
        issues.append(ValidationIssue(
            field=field,
            issue_type=item["type"],
            message=item["msg"],
            severity="error",
        ))
    return issues


@contextmanager
def validation_boundary(entity_type: str) -> Iterator[None]:
    """Translate pydantic validation errors into ValidationFailure."""
    try:
        yield
    except PydanticValidationError as e:
        issues = _issues_from_pydantic(e)
        raise ValidationFailure(
            f"Invalid {entity_type}: {len(issues)} issue(s)",
            issues,
        ) from e


class EntityStore:
    """
    Process-local owner of all finance entities.

    Constructed once per session with optional initial state.
    reset() restores that initial state (used between tests).
    """

    def __init__(
        self,
        transactions: Optional[Iterable[Transaction]] = None,
        payroll_runs: Optional[Iterable[PayrollRun]] = None,
        employees: Optional[Iterable[Employee]] = None,
    ):
        self._initial_transactions = [t.model_copy(deep=True) for t in transactions or []]
        self._initial_payroll_runs = [p.model_copy(deep=True) for p in payroll_runs or []]
        self._initial_employees = [e.model_copy(deep=True) for e in employees or []]
        self.transactions: list[Transaction] = []
        self.payroll_runs: list[PayrollRun] = []
        self.employees: list[Employee] = []
        self.reset()

    def reset(self) -> None:
        self.transactions = [t.model_copy(deep=True) for t in self._initial_transactions]
        self.payroll_runs = [p.model_copy(deep=True) for p in self._initial_payroll_runs]
        self.employees = [e.model_copy(deep=True) for e in self._initial_employees]


class RemoteStandIn:
    """
    Latency and retry behaviour of the future remote service.

    Only StorageUnavailableError is retried; everything else propagates
    on the first attempt.
    """

    def __init__(self, settings: Optional[FinanceSettings] = None):
        self._settings = settings or get_settings().finance
        self._logger = logger

    async def _transport(self, operation: str) -> None:
        await asyncio.sleep(self._settings.simulated_latency_seconds)

    def _log_retry(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        self._logger.warning(
            "storage_call_retry",
            attempt=retry_state.attempt_number,
            error=str(error),
        )

    async def _simulate_remote_call(self, operation: str) -> None:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._settings.retry_attempts),
            wait=wait_exponential(multiplier=self._settings.retry_backoff_seconds, max=10),
            retry=retry_if_exception_type(StorageUnavailableError),
            before_sleep=self._log_retry,
            reraise=True,
        ):
            with attempt:
                await self._transport(operation)


class InMemoryRepository(RemoteStandIn, EntityRepositoryInterface[EntityT, DraftT, PatchT]):
    """
    Generic repository over one EntityStore collection.

    Subclasses name the collection, the model classes and the id prefix.
    """

    collection: str
    entity_name: str
    id_prefix: str
    entity_model: type[BaseModel]
    draft_model: type[BaseModel]
    patch_model: type[BaseModel]

    def __init__(
        self,
        store: EntityStore,
        settings: Optional[FinanceSettings] = None,
    ):
        super().__init__(settings)
        self._store = store

    def _items(self) -> list:
        return getattr(self._store, self.collection)

    def _index_of(self, entity_id: str) -> int:
        for idx, item in enumerate(self._items()):
            if item.id == entity_id:
                return idx
        raise NotFoundError(self.entity_name, entity_id)

    def _coerce(self, model: type[BaseModel], value: Union[BaseModel, Mapping[str, Any]]) -> Any:
        if isinstance(value, model):
            return value
        if isinstance(value, BaseModel):
            value = value.model_dump()
        with validation_boundary(self.entity_name):
            return model.model_validate(value)

    async def list_all(self) -> list[EntityT]:
        return [item.model_copy(deep=True) for item in self._items()]

    async def get_by_id(self, entity_id: str) -> EntityT:
        return self._items()[self._index_of(entity_id)].model_copy(deep=True)

    async def create(self, draft: Union[DraftT, Mapping[str, Any]]) -> EntityT:
        payload = self._coerce(self.draft_model, draft).model_dump()
        now = _now()
        payload.update(
            id=generate_id(self.id_prefix),
            created_at=now,
            updated_at=now,
        )
        with validation_boundary(self.entity_name):
            entity = self.entity_model.model_validate(payload)

        self._items().append(entity)
        self._logger.info("entity_created", entity_type=self.entity_name, entity_id=entity.id)
        return entity.model_copy(deep=True)

    async def update(
        self,
        entity_id: str,
        patch: Union[PatchT, Mapping[str, Any]],
    ) -> EntityT:
        index = self._index_of(entity_id)
        patch_obj = self._coerce(self.patch_model, patch)
        items = self._items()

        with validation_boundary(self.entity_name):
            merged = apply_patch(items[index], patch_obj)
        merged = merged.model_copy(update={"updated_at": _now()})

        items[index] = merged
        self._logger.info(
            "entity_updated",
            entity_type=self.entity_name,
            entity_id=entity_id,
            fields=sorted(patch_obj.model_fields_set),
        )
        return merged.model_copy(deep=True)

    async def replace_all(
        self,
        entities: Iterable[Union[EntityT, Mapping[str, Any]]],
    ) -> None:
        validated = [
            self._coerce(self.entity_model, entity).model_copy(deep=True)
            for entity in entities
        ]

        seen: set[str] = set()
        duplicates = []
        for entity in validated:
            if entity.id in seen:
                duplicates.append(ValidationIssue(
                    field="id",
                    issue_type="duplicate",
                    message=f"Duplicate {self.entity_name} id: {entity.id}",
                    severity="error",
                ))
            seen.add(entity.id)
        if duplicates:
            raise ValidationFailure(
                f"Invalid {self.entity_name} collection: duplicate ids",
                duplicates,
            )

        await self._simulate_remote_call(f"replace_{self.collection}")
        setattr(self._store, self.collection, validated)
        self._logger.info(
            "collection_replaced",
            entity_type=self.entity_name,
            count=len(validated),
        )


class TransactionRepository(InMemoryRepository[Transaction, TransactionDraft, TransactionPatch]):
    """Transactions. Every new transaction is stored as PENDING."""

    collection = "transactions"
    entity_name = "transaction"
    id_prefix = "txn"
    entity_model = Transaction
    draft_model = TransactionDraft
    patch_model = TransactionPatch

    async def create(self, draft: Union[TransactionDraft, Mapping[str, Any]]) -> Transaction:
        return await self.create_transaction(draft)

    async def create_transaction(
        self,
        draft: Union[TransactionDraft, Mapping[str, Any]],
    ) -> Transaction:
        """
        Create a transaction awaiting finance approval.

        CRITICAL: The status is forced to PENDING whatever the draft says.
        No transaction may be created pre-approved.
        """
        payload = self._coerce(self.draft_model, draft)
        if payload.status is not TransactionStatus.PENDING:
            self._logger.warning(
                "transaction_status_overridden",
                requested=payload.status.value,
            )
        pending = payload.model_copy(update={"status": TransactionStatus.PENDING})
        return await super().create(pending)


class PayrollRunRepository(InMemoryRepository[PayrollRun, PayrollRunDraft, PayrollRunPatch]):
    """Payroll runs."""

    collection = "payroll_runs"
    entity_name = "payroll_run"
    id_prefix = "pay"
    entity_model = PayrollRun
    draft_model = PayrollRunDraft
    patch_model = PayrollRunPatch


class EmployeeRepository(InMemoryRepository[Employee, EmployeeDraft, EmployeePatch]):
    """Employees."""

    collection = "employees"
    entity_name = "employee"
    id_prefix = "emp"
    entity_model = Employee
    draft_model = EmployeeDraft
    patch_model = EmployeePatch

    async def seed(self) -> list[Employee]:
        """
        Populate the demo employees if the collection is empty.

        Returns the seeded employees, or an empty list when the store
        already held employees and nothing was changed.
        """
        if self._items():
            return []
        seeded = [employee.model_copy(deep=True) for employee in SEED_EMPLOYEES]
        setattr(self._store, self.collection, seeded)
        self._logger.info("employees_seeded", count=len(seeded))
        return [employee.model_copy(deep=True) for employee in seeded]


class BookingRepository(RemoteStandIn):
    """
    Placeholder for the bookings integration.

    Reserves the list/replace shape only: listing is always empty and
    replacement pays the latency, then discards its input.
    """

    async def list_all(self) -> list[dict[str, Any]]:
        return []

    async def replace_all(self, bookings: Iterable[Mapping[str, Any]]) -> None:
        count = len(list(bookings))
        await self._simulate_remote_call("replace_bookings")
        self._logger.debug("bookings_discarded", count=count)


class FinanceRepositories:
    """All repositories sharing one EntityStore."""

    def __init__(
        self,
        store: Optional[EntityStore] = None,
        settings: Optional[FinanceSettings] = None,
    ):
        self.store = store or EntityStore()
        self.transactions = TransactionRepository(self.store, settings)
        self.payroll_runs = PayrollRunRepository(self.store, settings)
        self.employees = EmployeeRepository(self.store, settings)
        self.bookings = BookingRepository(settings)


class InMemoryAuditStorage(AuditStorageInterface):
    """
    In-memory audit log.

    Append-only; once max_events is reached the oldest event is dropped.
    """

    def __init__(self, max_events: Optional[int] = None):
        self._max_events = max_events or get_settings().finance.max_audit_events
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event.model_copy(deep=True))
        if len(self._events) > self._max_events:
            del self._events[0]
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return [e.model_copy(deep=True) for e in events]

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return [e.model_copy(deep=True) for e in events]

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        # Appended in order, so newest is last
        events = self._events[::-1][:limit]
        return [e.model_copy(deep=True) for e in events]
