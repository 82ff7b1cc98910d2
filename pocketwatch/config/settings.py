"""
Configuration Management for PocketWatch

Every tunable lives in one of three pydantic-settings sections, each read
from its own environment prefix:
- POCKETWATCH_LOCAL_*   where the device document is kept
- GOOGLE_SHEETS_*       the remote store (optional)
- (no prefix)           startup, defaults and validation thresholds

DESIGN DECISION: Remote storage is optional. A missing GOOGLE_SHEETS_
section only fails when it is first accessed, so local-only sessions start
without any remote configuration.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LocalStorageSettings(BaseSettings):
    """On-device document storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="POCKETWATCH_LOCAL_",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path.home() / ".pocketwatch",
        description="Directory holding the persisted document"
    )
    document_key: str = Field(
        default="pocketwatch_data",
        min_length=1,
        description="Key under which the document is stored"
    )


class GoogleSheetsSettings(BaseSettings):
    """Remote storage (Google Sheets) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Worksheet names mirror the remote table names
    transactions_sheet_name: str = Field(
        default="transactions",
        description="Name of the sheet for transaction rows"
    )
    settings_sheet_name: str = Field(
        default="settings",
        description="Name of the sheet for per-user settings rows"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """A missing key file is only a warning; sessions stay local until it appears."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Remote storage will be unavailable until it exists."
            )
        return v


class AppSettings(BaseSettings):
    """
    Session-wide settings: startup wait, first-run defaults, validation
    thresholds and logging. Also read from a .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Logging
    debug_mode: bool = Field(
        default=False,
        description="Log at DEBUG regardless of log_level"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum log level"
    )

    # Startup
    identity_timeout_seconds: float = Field(
        default=5.0,
        gt=0.0,
        le=60.0,
        description="How long to wait for the identity provider before loading local data"
    )

    # Defaults for a fresh device or user
    default_monthly_budget: Decimal = Field(
        default=Decimal("3000"),
        gt=0,
        description="Monthly budget used until the user sets one"
    )
    default_savings_goal: Decimal = Field(
        default=Decimal("5000"),
        gt=0,
        description="Savings goal used until the user sets one"
    )

    # Entry-point validation thresholds
    max_transaction_amount: Decimal = Field(
        default=Decimal("1000000"),
        description="Amounts above this are flagged for review"
    )
    future_date_tolerance_days: int = Field(
        default=7,
        ge=0,
        description="How many days in the future a transaction date can be without a warning"
    )

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug_mode else self.log_level


class Settings(BaseSettings):
    """
    Entry point for configuration, one property per section.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration.
    # Remote storage is optional; local storage always works.

    @property
    def local_storage(self) -> LocalStorageSettings:
        return LocalStorageSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Process-wide settings container.

    Cached; tests and long-running processes can call
    get_settings.cache_clear() to pick up a changed environment.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Try to load every section.

    Returns {section: loaded_ok}, plus "<section>_error" for the ones that
    failed. A False for google_sheets just means a local-only deployment.
    """
    results = {}

    settings = get_settings()

    sections = {
        "local_storage": lambda: settings.local_storage,
        "google_sheets": lambda: settings.google_sheets,
        "app": lambda: settings.app,
    }
    for name, load in sections.items():
        try:
            load()
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
