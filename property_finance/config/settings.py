"""
Configuration Management for Property Finance

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Latency, retry and validation thresholds are read from one place so
the in-memory stand-in can later be pointed at a real service without
touching business logic.
"""

from decimal import Decimal
from functools import cached_property, lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class FinanceSettings(BaseSettings):
    """Repository, validation and display configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Simulated remote call
    simulated_latency_seconds: float = Field(
        default=0.3,
        ge=0.0,
        le=10.0,
        description="Fixed delay applied to replace_all calls"
    )
    retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts made for a storage call before giving up"
    )
    retry_backoff_seconds: float = Field(
        default=1.0,
        ge=0.0,
        description="Multiplier for exponential backoff between attempts"
    )

    # Startup data
    seed_demo_employees: bool = Field(
        default=True,
        description="Populate the three demo employees at startup"
    )

    # Display
    currency_code: str = Field(
        default="GHS",
        min_length=3,
        max_length=3,
        description="ISO currency code used when formatting amounts"
    )

    # Validation thresholds
    max_transaction_amount: Decimal = Field(
        default=Decimal("1000000"),
        gt=0,
        description="Amounts above this are flagged for review"
    )
    future_date_tolerance_days: int = Field(
        default=7,
        ge=0,
        description="How many days in the future a transaction date can be"
    )

    # Audit trail
    max_audit_events: int = Field(
        default=10000,
        ge=1,
        description="Oldest audit events are dropped beyond this count"
    )

    @field_validator('currency_code')
    @classmethod
    def normalize_currency_code(cls, v: str) -> str:
        return v.upper()


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum level for local structured logs"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access. Each group is read from
    the environment once, on first access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @cached_property
    def finance(self) -> FinanceSettings:
        return FinanceSettings()

    @cached_property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.finance
        results["finance"] = True
    except Exception as e:
        results["finance"] = False
        results["finance_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
