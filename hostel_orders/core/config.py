"""
Application Configuration Module

Centralizes all configuration using environment variables with Pydantic Settings.
Supports three modes:
    - DEVELOPMENT: Local testing, default admin PIN tolerated
    - STAGING: Pre-production, configuration problems are reported loudly
    - PRODUCTION: Live hostel deployment

Every value can be overridden through the environment or a .env file,
e.g. ``ADMIN_PIN=9876`` or ``DATA_DIRECTORY=/var/lib/hostel-orders``.

Usage:
    from hostel_orders.core.config import get_settings

    settings = get_settings()
    print(settings.document_path)

Version: 1.0.0
"""

import logging
import sys
from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_ADMIN_PIN = "1234"


class EnvironmentMode(str, Enum):
    """
    Application environment modes.

    Attributes:
        DEVELOPMENT: Local testing
        PRODUCTION: Live environment
        STAGING: Pre-production testing
    """
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    STAGING = "staging"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    The admin PIN is only read when the document store is bootstrapped;
    changing it afterwards has no effect on an existing data file.

    Attributes:
        env_mode: Current environment (development/production/staging)
        debug: Enable verbose logging and error details

        # Storage
        data_directory: Directory holding the JSON document
        document_filename: Name of the JSON document file
        storage_lock_timeout: Seconds to wait for the cross-process write lock

        # Ledger
        order_number_prefix: Prefix of the display order number (HG-1001)
        starting_order_id: First id handed out by a fresh store
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # ENVIRONMENT
    # ==========================================================================

    env_mode: EnvironmentMode = Field(
        default=EnvironmentMode.DEVELOPMENT,
        description="Application environment mode"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging"
    )

    # ==========================================================================
    # APPLICATION
    # ==========================================================================

    app_name: str = Field(
        default="Hostel Grub Ordering API",
        description="Application display name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=5000,
        description="API server port"
    )
    api_prefix: str = Field(
        default="/api",
        description="Path prefix all routes are mounted under"
    )
    cors_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins"
    )

    # ==========================================================================
    # DOCUMENT STORE
    # ==========================================================================

    data_directory: str = Field(
        default="data",
        description="Directory for data files"
    )
    document_filename: str = Field(
        default="db.json",
        description="JSON document holding every collection"
    )
    storage_lock_timeout: int = Field(
        default=30,
        description="Seconds to wait for the document write lock"
    )

    # ==========================================================================
    # IDENTITY
    # ==========================================================================

    admin_pin: str = Field(
        default=DEFAULT_ADMIN_PIN,
        description="Shared admin PIN used when bootstrapping the admin account"
    )

    # ==========================================================================
    # ORDER LEDGER
    # ==========================================================================

    order_number_prefix: str = Field(
        default="HG-",
        description="Prefix of the display order number"
    )
    starting_order_id: int = Field(
        default=1001,
        description="Initial value of meta.nextOrderId"
    )
    max_item_quantity: int = Field(
        default=20,
        description="Largest quantity accepted for a single order line"
    )
    my_orders_limit: int = Field(
        default=20,
        description="How many recent orders a student can see"
    )
    admin_orders_default_limit: int = Field(
        default=100,
        description="Admin listing size when no usable limit is given"
    )
    admin_orders_max_limit: int = Field(
        default=300,
        description="Hard cap on the admin listing size"
    )

    # ==========================================================================
    # EXCEL EXPORT / CELERY
    # ==========================================================================

    excel_export_enabled: bool = Field(
        default=False,
        description="Queue every placed order for spreadsheet export"
    )
    excel_filename: str = Field(
        default="orders.xlsx",
        description="Excel export filename"
    )
    excel_lock_timeout: int = Field(
        default=30,
        description="Seconds to wait for the spreadsheet file lock"
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL"
    )

    # ==========================================================================
    # VALIDATORS
    # ==========================================================================

    @field_validator("env_mode", mode="before")
    @classmethod
    def validate_env_mode(cls, v: str) -> EnvironmentMode:
        """Convert string to EnvironmentMode enum."""
        if isinstance(v, EnvironmentMode):
            return v
        try:
            return EnvironmentMode(v.lower())
        except ValueError:
            valid = [e.value for e in EnvironmentMode]
            raise ValueError(f"Invalid env_mode. Must be one of: {valid}")

    @field_validator("api_prefix")
    @classmethod
    def validate_api_prefix(cls, v: str) -> str:
        """Normalize to '' or '/something' without a trailing slash."""
        v = v.strip().rstrip("/")
        if v and not v.startswith("/"):
            v = f"/{v}"
        return v

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.env_mode == EnvironmentMode.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.env_mode == EnvironmentMode.PRODUCTION

    @property
    def data_path(self) -> Path:
        return Path(self.data_directory)

    @property
    def document_path(self) -> Path:
        """Full path of the JSON document."""
        return self.data_path / self.document_filename

    @property
    def excel_path(self) -> Path:
        return self.data_path / self.excel_filename

    @property
    def cors_origins_list(self) -> list[str]:
        """Get allowed origins as a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    # ==========================================================================
    # VALIDATION METHODS
    # ==========================================================================

    def validate_production_config(self) -> list[str]:
        """
        Report configuration that is unsafe outside development.

        Returns:
            List of problems (empty if none)
        """
        problems = []

        if not self.is_development:
            if self.admin_pin == DEFAULT_ADMIN_PIN:
                problems.append("ADMIN_PIN is still the default")
            if self.debug:
                problems.append("DEBUG is enabled")
            if "*" in self.cors_origins_list:
                problems.append("CORS_ORIGINS allows every origin")

        return problems


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once per process. Tests that change the
    environment call ``get_settings.cache_clear()`` afterwards.

    Returns:
        Settings: Configured application settings
    """
    return Settings()


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configure application-wide logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured package logger
    """
    settings = get_settings()

    if settings.debug:
        level = logging.DEBUG

    log_format = "%(asctime)s │ %(levelname)-8s │ %(name)-32s │ %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("filelock").setLevel(logging.WARNING)

    return logging.getLogger("hostel_orders")
