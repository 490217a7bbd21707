"""Financial metrics package."""

from property_finance.metrics.calculator import (
    calculate_change,
    calculate_financial_metrics,
    previous_month_bounds,
    summarize_period,
)
from property_finance.metrics.formatting import format_change, format_currency

__all__ = [
    "calculate_change",
    "calculate_financial_metrics",
    "format_change",
    "format_currency",
    "previous_month_bounds",
    "summarize_period",
]
