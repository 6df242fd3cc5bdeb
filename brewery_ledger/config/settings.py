"""
Configuration Management for Brewery Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

These are deployment settings (where the ledger lives, how it is displayed).
Business parameters such as the labor rate belong to the ledger itself and
are stored in the config document, see brewery_ledger.models.ledger_config.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageBackend(str, Enum):
    """Where the record store keeps its documents."""
    MEMORY = "memory"
    LOCAL = "local"
    SHEETS = "sheets"


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets remote storage configuration."""
    
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
    documents_sheet_name: str = Field(
        default="LedgerDocuments",
        description="Name of the worksheet holding the ledger documents"
    )
    
    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before syncing."
            )
        return v


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
    
    # Storage
    storage_backend: StorageBackend = Field(
        default=StorageBackend.LOCAL,
        description="Backend used for the working copy of the ledger"
    )
    data_dir: str = Field(
        default="data",
        description="Directory holding the local JSON documents"
    )
    sync_enabled: bool = Field(
        default=False,
        description="Reconcile the local ledger with Google Sheets"
    )
    
    # Display
    currency_label: str = Field(
        default="MXN",
        max_length=8,
        description="Currency code appended to formatted amounts"
    )
    
    @property
    def data_path(self) -> Path:
        """Get the data directory as a Path."""
        return Path(self.data_dir)


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
    
    # Sub-settings are built on access so a missing Sheets setup
    # does not stop the app from running locally
    
    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()
    
    @property
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
        _ = settings.google_sheets
        results["google_sheets"] = True
    except Exception as e:
        results["google_sheets"] = False
        results["google_sheets_error"] = str(e)
    
    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)
    
    return results
