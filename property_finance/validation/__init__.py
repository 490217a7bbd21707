"""Validation package."""

from property_finance.validation.validator import FinanceValidator

__all__ = ["FinanceValidator"]
