"""
Configuration Management for Asset Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see where data lives on disk and ensures
all configuration is validated at startup.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Where and how the collections and image blobs are stored."""

    model_config = SettingsConfigDict(
        env_prefix="ASSET_LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path("data"),
        description="Directory holding the collection files and images"
    )
    items_filename: str = Field(
        default="items.json",
        description="File name of the persisted item collection"
    )
    categories_filename: str = Field(
        default="categories.json",
        description="File name of the persisted category collection"
    )
    images_dirname: str = Field(
        default="images",
        description="Sub-directory of data_dir for custom item images"
    )

    # Image encoding
    jpeg_quality: int = Field(
        default=80,
        ge=1,
        le=95,
        description="JPEG quality used when encoding picked images"
    )

    # Derived reads
    recent_items_limit: int = Field(
        default=10,
        ge=1,
        le=500,
        description="Default number of items returned by recent_items()"
    )

    @field_validator("items_filename", "categories_filename", "images_dirname")
    @classmethod
    def validate_plain_name(cls, v: str) -> str:
        """File names must not escape the data directory."""
        if not v or "/" in v or "\\" in v or v in (".", ".."):
            raise ValueError(f"Expected a plain file name, got {v!r}")
        return v

    @property
    def items_path(self) -> Path:
        return self.data_dir / self.items_filename

    @property
    def categories_path(self) -> Path:
        return self.data_dir / self.categories_filename

    @property
    def images_dir(self) -> Path:
        return self.data_dir / self.images_dirname


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
    log_level: str = Field(
        default="INFO",
        description="Minimum level for the audit log"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


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

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

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
        _ = settings.storage
        results["storage"] = True
    except Exception as e:
        results["storage"] = False
        results["storage_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
