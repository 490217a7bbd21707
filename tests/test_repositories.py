"""
Tests for the in-memory repositories.

Every test gets a fresh EntityStore and zero-latency settings.
"""

import re
from datetime import date
from decimal import Decimal

import pytest

from property_finance.models.finance import (
    EmployeeStatus,
    PayrollRunDraft,
    PayrollStatus,
    TransactionDraft,
    TransactionPatch,
    TransactionStatus,
    TransactionType,
)
from property_finance.services.storage import (
    SEED_EMPLOYEES,
    EntityStore,
    FinanceRepositories,
    NotFoundError,
    StorageUnavailableError,
    ValidationFailure,
    generate_id,
)


def rent_draft(**overrides) -> TransactionDraft:
    fields = dict(
        amount=Decimal("1200"),
        type=TransactionType.INCOME_RENT,
        description="Unit 4B rent",
        date=date(2024, 3, 1),
        submitted_by="alice",
    )
    fields.update(overrides)
    return TransactionDraft(**fields)


class TestIdGeneration:

    def test_id_format(self):
        assert re.fullmatch(r"txn_\d+_[0-9a-z]{9}", generate_id("txn"))

    def test_ids_are_unique(self):
        ids = {generate_id("pay") for _ in range(500)}
        assert len(ids) == 500


class TestCreate:
    """create() assigns identity and timestamps."""

    def test_create_assigns_id_and_timestamps(self, run, repos):
        txn = run(repos.transactions.create(rent_draft()))

        assert re.fullmatch(r"txn_\d+_[0-9a-z]{9}", txn.id)
        assert txn.created_at == txn.updated_at
        assert txn.amount == Decimal("1200")

    def test_create_appends_to_store(self, run, repos, store):
        txn = run(repos.transactions.create(rent_draft()))
        assert [t.id for t in store.transactions] == [txn.id]

    def test_create_discards_caller_identity(self, run, repos):
        """id and timestamps on the input never reach the store."""
        payload = rent_draft().model_dump()
        payload["id"] = "txn_chosen_by_caller"
        txn = run(repos.transactions.create(payload))
        assert txn.id != "txn_chosen_by_caller"

    def test_create_returns_a_copy(self, run, repos, store):
        txn = run(repos.transactions.create(rent_draft()))
        txn.description = "changed"
        assert store.transactions[0].description == "Unit 4B rent"

    def test_create_invalid_mapping_raises_validation_failure(self, run, repos, store):
        with pytest.raises(ValidationFailure) as exc_info:
            run(repos.transactions.create({
                "amount": "-5",
                "type": "INCOME_RENT",
                "description": "x",
                "date": "2024-03-01",
                "submitted_by": "alice",
            }))

        assert any(issue.field == "amount" for issue in exc_info.value.issues)
        assert store.transactions == []

    def test_payroll_run_prefix(self, run, repos):
        payroll_run = run(repos.payroll_runs.create(PayrollRunDraft(
            month=3, year=2024, total_amount=Decimal("9500"), employee_count=2,
        )))
        assert payroll_run.id.startswith("pay_")
        assert payroll_run.status == PayrollStatus.DRAFT


class TestCreateTransaction:
    """No transaction may be created pre-approved."""

    @pytest.mark.parametrize("status", list(TransactionStatus))
    def test_status_forced_to_pending(self, run, repos, status):
        txn = run(repos.transactions.create_transaction(rent_draft(status=status)))
        assert txn.status == TransactionStatus.PENDING

    def test_plain_create_also_forces_pending(self, run, repos):
        txn = run(repos.transactions.create(rent_draft(status=TransactionStatus.APPROVED)))
        assert txn.status == TransactionStatus.PENDING


class TestListAndGet:

    def test_list_is_idempotent(self, run, repos):
        run(repos.transactions.create(rent_draft()))
        first = run(repos.transactions.list_all())
        second = run(repos.transactions.list_all())
        assert first == second

    def test_mutating_snapshot_does_not_affect_store(self, run, repos):
        """Changing the returned list or its elements leaves the store alone."""
        run(repos.transactions.create(rent_draft()))

        snapshot = run(repos.transactions.list_all())
        snapshot[0].amount = Decimal("1")
        snapshot.append(snapshot[0])

        fresh = run(repos.transactions.list_all())
        assert len(fresh) == 1
        assert fresh[0].amount == Decimal("1200")

    def test_get_by_id(self, run, repos):
        created = run(repos.transactions.create(rent_draft()))
        assert run(repos.transactions.get_by_id(created.id)) == created

    def test_get_by_id_missing(self, run, repos):
        with pytest.raises(NotFoundError) as exc_info:
            run(repos.transactions.get_by_id("txn_missing"))
        assert exc_info.value.entity_id == "txn_missing"


class TestUpdate:

    def test_update_merges_and_preserves(self, run, repos):
        created = run(repos.transactions.create(rent_draft()))

        updated = run(repos.transactions.update(
            created.id,
            TransactionPatch(description="Unit 4B rent (late)"),
        ))

        assert updated.description == "Unit 4B rent (late)"
        assert updated.amount == created.amount
        assert updated.created_at == created.created_at
        assert updated.updated_at >= created.updated_at

    def test_update_accepts_mapping(self, run, repos):
        created = run(repos.transactions.create(rent_draft()))
        updated = run(repos.transactions.update(created.id, {"property_id": "prop_9"}))
        assert updated.property_id == "prop_9"
        assert run(repos.transactions.get_by_id(created.id)).property_id == "prop_9"

    def test_update_missing_id_leaves_store_unchanged(self, run, repos, store):
        run(repos.transactions.create(rent_draft()))
        before = [t.model_copy(deep=True) for t in store.transactions]

        with pytest.raises(NotFoundError):
            run(repos.transactions.update("txn_missing", {"amount": "5"}))

        assert store.transactions == before

    def test_update_invalid_patch_raises_validation_failure(self, run, repos):
        created = run(repos.transactions.create(rent_draft()))
        with pytest.raises(ValidationFailure):
            run(repos.transactions.update(created.id, {"amount": "-10"}))
        assert run(repos.transactions.get_by_id(created.id)).amount == Decimal("1200")


class TestReplaceAll:

    def test_replace_all_swaps_collection(self, run, repos, make_transaction):
        run(repos.transactions.create(rent_draft()))
        replacement = [make_transaction(), make_transaction()]

        run(repos.transactions.replace_all(replacement))

        assert [t.id for t in run(repos.transactions.list_all())] == [t.id for t in replacement]

    def test_invalid_item_leaves_store_untouched(self, run, repos, make_transaction):
        created = run(repos.transactions.create(rent_draft()))
        bad = make_transaction().model_dump()
        bad["type"] = "INCOME_LOTTERY"

        with pytest.raises(ValidationFailure):
            run(repos.transactions.replace_all([make_transaction(), bad]))

        assert [t.id for t in run(repos.transactions.list_all())] == [created.id]

    def test_duplicate_ids_rejected(self, run, repos, make_transaction):
        txn = make_transaction()
        with pytest.raises(ValidationFailure) as exc_info:
            run(repos.transactions.replace_all([txn, txn]))
        assert exc_info.value.issues[0].issue_type == "duplicate"

    def test_caller_list_is_not_aliased(self, run, repos, make_transaction):
        replacement = [make_transaction(amount="50")]
        run(repos.transactions.replace_all(replacement))
        replacement[0].amount = Decimal("999")
        assert run(repos.transactions.list_all())[0].amount == Decimal("50")


class TestRetries:
    """Only StorageUnavailableError is retried around the remote call."""

    def test_transient_failures_are_retried(self, run, repos, make_transaction):
        calls = []

        async def flaky_transport(operation):
            calls.append(operation)
            if len(calls) < 3:
                raise StorageUnavailableError("backend unreachable")

        repos.transactions._transport = flaky_transport
        run(repos.transactions.replace_all([make_transaction()]))

        assert calls == ["replace_transactions"] * 3
        assert len(run(repos.transactions.list_all())) == 1

    def test_gives_up_after_configured_attempts(self, run, repos, make_transaction):
        calls = []

        async def down_transport(operation):
            calls.append(operation)
            raise StorageUnavailableError("backend unreachable")

        repos.transactions._transport = down_transport
        with pytest.raises(StorageUnavailableError):
            run(repos.transactions.replace_all([make_transaction()]))

        assert len(calls) == 3
        assert run(repos.transactions.list_all()) == []

    def test_other_errors_are_not_retried(self, run, repos, make_transaction):
        calls = []

        async def broken_transport(operation):
            calls.append(operation)
            raise RuntimeError("bug")

        repos.transactions._transport = broken_transport
        with pytest.raises(RuntimeError):
            run(repos.transactions.replace_all([make_transaction()]))

        assert len(calls) == 1


class TestEmployeeSeeding:

    def test_list_does_not_seed(self, run, repos):
        assert run(repos.employees.list_all()) == []

    def test_seed_populates_exact_demo_employees(self, run, repos):
        seeded = run(repos.employees.seed())
        employees = run(repos.employees.list_all())

        assert seeded == employees
        assert [
            (e.id, e.name, e.position, e.salary, e.status, e.hire_date)
            for e in employees
        ] == [
            ("emp_1", "John Doe", "Property Manager", Decimal("5000"),
             EmployeeStatus.ACTIVE, date(2023, 1, 15)),
            ("emp_2", "Jane Smith", "Maintenance Supervisor", Decimal("4500"),
             EmployeeStatus.ACTIVE, date(2023, 2, 20)),
            ("emp_3", "Robert Johnson", "Accountant", Decimal("4800"),
             EmployeeStatus.ACTIVE, date(2023, 3, 10)),
        ]
        assert all(e.termination_date is None for e in employees)

    def test_seed_is_noop_on_non_empty_store(self, run, settings):
        existing = SEED_EMPLOYEES[0].model_copy(update={"id": "emp_existing"})
        repos = FinanceRepositories(EntityStore(employees=[existing]), settings)

        assert run(repos.employees.seed()) == []
        assert [e.id for e in run(repos.employees.list_all())] == ["emp_existing"]

    def test_seed_records_are_not_shared(self, run, repos):
        run(repos.employees.seed())
        run(repos.employees.update("emp_1", {"salary": "5200"}))
        assert SEED_EMPLOYEES[0].salary == Decimal("5000")


class TestEntityStore:

    def test_reset_restores_initial_state(self, run, settings, make_transaction):
        initial = make_transaction()
        store = EntityStore(transactions=[initial])
        repos = FinanceRepositories(store, settings)

        run(repos.transactions.create(rent_draft()))
        assert len(store.transactions) == 2

        store.reset()
        assert [t.id for t in store.transactions] == [initial.id]


class TestBookings:

    def test_bookings_placeholder(self, run, repos):
        run(repos.bookings.replace_all([{"id": "bk_1"}]))
        assert run(repos.bookings.list_all()) == []
