"""
Financial Metrics Engine

DESIGN DECISION: Metrics are a PURE function of the transactions and
payroll runs handed in. No storage access, no clock reads beyond the
optional `today`, no mutation of the inputs. Every call builds a new
FinancialMetrics.

The comparison baseline is always the previous calendar month, no matter
which period was requested. Change percentages are therefore only
strictly meaningful when the requested period is the current month.
"""

from collections.abc import Iterable
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional

from property_finance.models.finance import (
    FinancialMetrics,
    MetricsPeriod,
    PayrollRun,
    PayrollStatus,
    PeriodTotals,
    Transaction,
    TransactionType,
)


ZERO = Decimal("0")
HUNDRED = Decimal("100")


def month_start(day: date) -> date:
    return day.replace(day=1)


def previous_month_bounds(today: date) -> tuple[date, date]:
    """First and last day of the calendar month before `today`."""
    last_day = month_start(today) - timedelta(days=1)
    return month_start(last_day), last_day


def as_date(value: Optional[date]) -> Optional[date]:
    """Drop the time part of a datetime bound; plain dates pass through."""
    if isinstance(value, datetime):
        return value.date()
    return value


def in_window(day: date, start: Optional[date], end: Optional[date]) -> bool:
    """Inclusive bounds; a missing bound is open on that side."""
    if start is not None and day < start:
        return False
    if end is not None and day > end:
        return False
    return True


def calculate_change(current: Decimal, previous: Decimal) -> Decimal:
    """
    Percentage change from previous to current.

    Returns 0 when previous is exactly zero. That is a defined fallback
    to avoid dividing by zero, not a claim that nothing changed.
    """
    if previous == 0:
        return ZERO
    return (current - previous) / previous * HUNDRED


def summarize_period(
    transactions: Iterable[Transaction],
    payroll_runs: Iterable[PayrollRun],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> PeriodTotals:
    """
    Aggregate income, expenses and payroll for one window.

    Payroll expense transactions are left out of total_expenses because
    approved payroll runs are already counted in total_payroll.
    """
    start, end = as_date(start), as_date(end)
    total_income = ZERO
    total_expenses = ZERO
    for txn in transactions:
        if not in_window(txn.date, start, end):
            continue
        if txn.type.is_income:
            total_income += txn.amount
        elif txn.type is not TransactionType.EXPENSE_PAYROLL:
            total_expenses += txn.amount

    total_payroll = ZERO
    for run in payroll_runs:
        if run.status is not PayrollStatus.APPROVED:
            continue
        if in_window(run.created_at.date(), start, end):
            total_payroll += run.total_amount

    return PeriodTotals(
        total_income=total_income,
        total_expenses=total_expenses,
        total_payroll=total_payroll,
    )


def calculate_financial_metrics(
    transactions: Iterable[Transaction],
    payroll_runs: Iterable[PayrollRun],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    *,
    today: Optional[date] = None,
) -> FinancialMetrics:
    """
    Compute summary metrics for a period.

    Args:
        transactions: Transactions to aggregate (any status)
        payroll_runs: Payroll runs; only approved runs count
        start_date: Inclusive lower bound, open if omitted. A datetime
            is reduced to its calendar date.
        end_date: Inclusive upper bound, open if omitted
        today: Reference date for the previous-month baseline and the
            period label. Defaults to the current date.

    Returns:
        A new FinancialMetrics. The period label falls back to
        "first of this month .. today" for omitted bounds; it is a
        display convenience, not the filter that was applied.
    """
    today = as_date(today) or date.today()
    start_date = as_date(start_date)
    end_date = as_date(end_date)
    # Materialize once so generators can be walked for both windows.
    transactions = list(transactions)
    payroll_runs = list(payroll_runs)

    current = summarize_period(transactions, payroll_runs, start_date, end_date)

    prev_start, prev_end = previous_month_bounds(today)
    previous = summarize_period(transactions, payroll_runs, prev_start, prev_end)

    return FinancialMetrics(
        total_income=current.total_income,
        total_expenses=current.total_expenses,
        net_profit=current.net_profit,
        total_payroll=current.total_payroll,
        income_change=calculate_change(current.total_income, previous.total_income),
        expenses_change=calculate_change(current.total_expenses, previous.total_expenses),
        profit_change=calculate_change(current.net_profit, previous.net_profit),
        payroll_change=calculate_change(current.total_payroll, previous.total_payroll),
        period=MetricsPeriod(
            start=start_date or month_start(today),
            end=end_date or today,
        ),
        previous_period=previous,
    )
