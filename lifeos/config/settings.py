"""
Configuration Management for LifeOS

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Supabase credentials are only required when the Supabase storage backend is
actually used, so the recurrence engine and the in-memory storage work with
no environment at all.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SupabaseSettings(BaseSettings):
    """Supabase (hosted Postgres) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    url: str = Field(
        ...,
        description="Supabase project URL"
    )
    key: str = Field(
        ...,
        description="Supabase anon or service role key"
    )

    # Table names
    bills_table: str = Field(
        default="recurring_bills",
        description="Table holding recurring bills"
    )
    maintenance_table: str = Field(
        default="maintenance_items",
        description="Table holding maintenance items"
    )
    maintenance_logs_table: str = Field(
        default="maintenance_logs",
        description="Table holding service history"
    )
    ledger_table: str = Field(
        default="ledger",
        description="Table holding ledger entries"
    )
    audit_table: str = Field(
        default="audit_log",
        description="Table holding audit events"
    )

    @field_validator('url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Supabase URL must start with http:// or https://: {v}")
        return v.rstrip("/")


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

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Bill urgency thresholds (days before due)
    bill_urgent_within_days: int = Field(
        default=1,
        ge=0,
        description="Bills due within this many days are urgent"
    )
    bill_warning_within_days: int = Field(
        default=3,
        ge=0,
        description="Bills due within this many days get a warning"
    )

    # Ledger
    bill_payment_category: str = Field(
        default="Bill",
        description="Ledger category used when a recurring bill is paid"
    )
    recent_activity_limit: int = Field(
        default=5,
        ge=1,
        le=100,
        description="How many ledger entries the dashboard shows"
    )

    @field_validator('bill_warning_within_days')
    @classmethod
    def warning_not_before_urgent(cls, v: int, info) -> int:
        urgent = info.data.get('bill_urgent_within_days')
        if urgent is not None and v < urgent:
            raise ValueError("Warning threshold cannot be smaller than the urgent threshold")
        return v


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def supabase(self) -> SupabaseSettings:
        return SupabaseSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

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
        _ = settings.supabase
        results["supabase"] = True
    except Exception as e:
        results["supabase"] = False
        results["supabase_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
