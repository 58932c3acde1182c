# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for the
entitlement core. Settings are loaded from environment variables with
sensible defaults.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection.

Example:
    >>> from src.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.environment)
    'development'
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Relational store configuration.

    Attributes:
        user: PostgreSQL username.
        password: PostgreSQL password.
        host: Database host address.
        port: Database port number.
        database: Database name.
        url_override: Full connection URL; takes precedence over components.
        pool_size: Connection pool size.
        max_overflow: Maximum overflow connections.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        extra="ignore",
        populate_by_name=True,
    )

    user: str = "coursegate"
    password: SecretStr = SecretStr("coursegate_password")
    host: str = "localhost"
    port: int = 5432
    database: str = "coursegate"
    url_override: str | None = Field(default=None, validation_alias="DB_URL")
    pool_size: int = 10
    max_overflow: int = 20

    @property
    def url(self) -> str:
        """Build the async database URL from components."""
        if self.url_override:
            return self.url_override
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"

    @property
    def is_sqlite(self) -> bool:
        """Check whether the configured URL targets SQLite."""
        return self.url.startswith("sqlite")


class PaymentGatewaySettings(BaseSettings):
    """Razorpay payment gateway configuration.

    The key secret doubles as the HMAC key used to verify the
    ``order_id|payment_id`` signature returned to the client.

    Attributes:
        key_id: Public key id used for HTTP basic auth.
        key_secret: Private key secret (HTTP basic auth and HMAC key).
        base_url: Gateway REST API base URL.
        timeout: Default timeout in seconds for gateway calls.
        currency: Default ISO currency for orders.
    """

    model_config = SettingsConfigDict(
        env_prefix="RAZORPAY_",
        extra="ignore",
    )

    key_id: str = ""
    key_secret: SecretStr = SecretStr("")
    base_url: str = "https://api.razorpay.com/v1"
    timeout: float = 10.0
    currency: str = "INR"

    @property
    def is_configured(self) -> bool:
        """Check whether gateway credentials are present."""
        return bool(self.key_id and self.key_secret.get_secret_value())


class EntitlementSettings(BaseSettings):
    """Access window configuration.

    Attributes:
        paid_course_access_days: Days of access granted by a paid course payment.
        notes_access_days: Days of access granted by a notes purchase
            (None means lifetime access).
        max_watch_time_seconds: Upper bound accepted for a progress update.
    """

    model_config = SettingsConfigDict(
        env_prefix="ENTITLEMENT_",
        extra="ignore",
    )

    paid_course_access_days: int = Field(default=365, ge=1)
    notes_access_days: int | None = Field(default=None, ge=1)
    max_watch_time_seconds: int = Field(default=24 * 60 * 60, ge=1)


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        db: Database settings.
        payment: Payment gateway settings.
        entitlement: Access window settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    # Subsettings - loaded with their own env prefixes
    db: DatabaseSettings = Field(default_factory=DatabaseSettings)
    payment: PaymentGatewaySettings = Field(default_factory=PaymentGatewaySettings)
    entitlement: EntitlementSettings = Field(default_factory=EntitlementSettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production without gateway credentials.
        """
        if self.environment == "production" and not self.payment.is_configured:
            raise ValueError(
                "Payment gateway credentials must be set in production. "
                "Set RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET environment variables."
            )
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call clear_settings_cache() if you need to reload settings.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Call this if you need to reload settings from environment.
    Useful for testing or dynamic configuration updates.
    """
    get_settings.cache_clear()
