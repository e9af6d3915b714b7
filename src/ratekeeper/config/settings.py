# src/ratekeeper/config/settings.py
"""
Settings - Pydantic-based Configuration Management

Provides centralized configuration management using Pydantic Settings.
Values come from environment variables (or a .env file) with validation.

Files that USE this module:
- ratekeeper.app (builds the RateService from settings)
- ratekeeper.adapters.providers.currencyapi (API key, base URL, HTTP timeout)
- ratekeeper.adapters.providers.mock (mock volatility)
- ratekeeper.application.* (expiry thresholds, cooldown, history cap)

Files that this module USES:
- ratekeeper.shared.validators (validation functions for settings)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations

from datetime import timedelta
from pathlib import Path  # Object-oriented filesystem paths
from typing import Optional  # Type hints for optional values

from pydantic import Field, field_validator, model_validator  # Data validation and field configuration
from pydantic_settings import BaseSettings, SettingsConfigDict  # Settings management with Pydantic

from ratekeeper.shared.validators import (
    validate_api_key,  # Validate API key format
    validate_currency_code,  # Validate ISO-4217-like codes
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # --- Rate provider (currencyapi.com) ---
    api_key: str = Field(default="", alias="CURRENCYAPI_KEY")
    api_base_url: str = Field(default="https://api.currencyapi.com/v3", alias="CURRENCYAPI_BASE_URL")
    base_currency: str = Field(default="USD", alias="BASE_CURRENCY")

    # --- HTTP Settings ---
    http_timeout_seconds: int = Field(default=10, alias="HTTP_TIMEOUT_SECONDS", ge=1, le=60)

    # --- Expiry policy (market hours are local time, Mon-Fri) ---
    market_open_hour: int = Field(default=8, alias="MARKET_OPEN_HOUR", ge=0, le=24)
    market_close_hour: int = Field(default=20, alias="MARKET_CLOSE_HOUR", ge=0, le=24)
    market_hours_expiry_minutes: int = Field(default=60, alias="MARKET_HOURS_EXPIRY_MINUTES", ge=1, le=1440)
    off_hours_expiry_minutes: int = Field(default=120, alias="OFF_HOURS_EXPIRY_MINUTES", ge=1, le=1440)
    stale_minutes: int = Field(default=30, alias="STALE_MINUTES", ge=1, le=1440)
    background_refresh_cooldown_minutes: int = Field(
        default=15, alias="BACKGROUND_REFRESH_COOLDOWN_MINUTES", ge=0, le=1440
    )

    # --- Historical cache ---
    historical_max_days: int = Field(default=366, alias="HISTORICAL_MAX_DAYS", ge=1, le=3660)

    # --- Mock data ---
    mock_mode: bool = Field(default=False, alias="MOCK_MODE")
    mock_fallback_enabled: bool = Field(default=True, alias="MOCK_FALLBACK_ENABLED")
    mock_volatility: float = Field(default=0.015, alias="MOCK_VOLATILITY", ge=0.0, lt=0.5)

    # --- Persistence ---
    data_dir: Path = Field(default=Path("./data"), alias="RATEKEEPER_DATA_DIR")

    # --- Logging ---
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_file: Optional[str] = Field(default=None, alias="LOG_FILE")
    log_dir: Optional[str] = Field(default=None, alias="LOG_DIR")
    log_stdout: bool = Field(default=True, alias="RATEKEEPER_LOG_STDOUT")
    log_max_bytes: int = Field(default=10 * 1024 * 1024, alias="LOG_MAX_BYTES")  # 10MB
    log_backup_count: int = Field(default=5, alias="LOG_BACKUP_COUNT")

    # Computed properties for convenience
    @property
    def market_hours_expiry(self) -> timedelta:
        return timedelta(minutes=self.market_hours_expiry_minutes)

    @property
    def off_hours_expiry(self) -> timedelta:
        return timedelta(minutes=self.off_hours_expiry_minutes)

    @property
    def stale_threshold(self) -> timedelta:
        return timedelta(minutes=self.stale_minutes)

    @property
    def background_refresh_cooldown(self) -> timedelta:
        return timedelta(minutes=self.background_refresh_cooldown_minutes)

    @field_validator("base_currency")
    @classmethod
    def validate_base_currency(cls, v: str) -> str:
        """Validate and upper-case the base currency."""
        v = v.strip().upper()
        if not validate_currency_code(v):
            raise ValueError("BASE_CURRENCY must be a three-letter currency code")
        return v

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Validate API key format."""
        v = v.strip()
        if not validate_api_key(v):
            raise ValueError("Invalid CURRENCYAPI_KEY format")
        return v

    @field_validator("api_base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Require an http(s) URL without a trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("CURRENCYAPI_BASE_URL must be an http(s) URL")
        return v.rstrip("/")

    @model_validator(mode="after")
    def validate_thresholds(self) -> "Settings":
        """Stale threshold must be shorter than both expiry thresholds."""
        if self.market_open_hour >= self.market_close_hour:
            raise ValueError("MARKET_OPEN_HOUR must be earlier than MARKET_CLOSE_HOUR")
        shortest = min(self.market_hours_expiry_minutes, self.off_hours_expiry_minutes)
        if self.stale_minutes >= shortest:
            raise ValueError("STALE_MINUTES must be shorter than both expiry thresholds")
        return self


# Global settings instance (used by the CLI entry point; services take Settings explicitly)
settings = Settings()
