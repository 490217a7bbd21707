"""Configuration package."""

from property_finance.config.settings import (
    AppSettings,
    FinanceSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "FinanceSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
