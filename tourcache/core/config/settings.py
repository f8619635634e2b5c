"""
Centralized Configuration Module using Pydantic Settings

This module provides type-safe, environment-based configuration for the
cache layer. All configuration is centralized here to ensure consistency
across modules.

Architectural Decision: Pydantic Settings for type safety and validation
- Environment variable loading with .env support
- Type validation at startup (fail fast on misconfiguration)
- Easy testing with override mechanisms

Author: System Architect
Date: 2026-02-11
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tourcache.core.config.constants import (
    COMMAND_TIMEOUT,
    CONNECT_DEADLINE,
    CONNECT_MAX_ATTEMPTS,
    DEFAULT_TTL,
)

Environment = Literal["development", "staging", "production", "test"]


class RedisSettings(BaseSettings):
    """
    Redis configuration for the shared cache backend.

    STAGE-0.1: Redis connection configuration

    When REDIS_URL is not set the cache runs in in-memory-only mode.
    """

    REDIS_URL: str | None = Field(default=None, description="Redis connection URL")
    REDIS_MAX_CONNECTIONS: int = Field(default=50, description="Maximum pooled connections")
    REDIS_SOCKET_TIMEOUT: float = Field(default=5.0, description="Socket timeout in seconds")
    REDIS_SOCKET_CONNECT_TIMEOUT: float = Field(
        default=5.0, description="Connection timeout in seconds"
    )
    REDIS_COMMAND_TIMEOUT: float = Field(
        default=COMMAND_TIMEOUT, description="Upper bound for a single command in seconds"
    )
    REDIS_CONNECT_MAX_ATTEMPTS: int = Field(
        default=CONNECT_MAX_ATTEMPTS, description="Connection attempts before giving up"
    )
    REDIS_CONNECT_DEADLINE: float = Field(
        default=CONNECT_DEADLINE, description="Upper bound for the whole retried connect in seconds"
    )
    REDIS_HEALTH_CHECK_INTERVAL: int = Field(
        default=30, description="Pool connection health check interval in seconds"
    )

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)

    @property
    def is_configured(self) -> bool:
        return bool(self.REDIS_URL)


class CacheSettings(BaseSettings):
    """
    Cache behaviour configuration.

    STAGE-2: Cache TTL configuration
    """

    CACHE_DEFAULT_TTL: int = Field(default=DEFAULT_TTL, description="Default TTL (5 minutes)")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class LoggingSettings(BaseSettings):
    """
    Logging configuration for structured logging.

    STAGE-L: Logging configuration
    """

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class ApplicationSettings(BaseSettings):
    """
    General application settings.
    """

    ENVIRONMENT: Environment = Field(default="development", description="Application environment")
    APP_NAME: str = Field(default="tourcache", description="Application name")
    API_HOST: str = Field(default="0.0.0.0", description="API server host")
    API_PORT: int = Field(default=8000, description="API server port")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    Usage:
        from tourcache.core.config.settings import get_settings

        settings = get_settings()
        redis_url = settings.redis.REDIS_URL
        default_ttl = settings.cache.CACHE_DEFAULT_TTL
    """

    # Redis settings
    REDIS_URL: str | None = Field(default=None, description="Redis connection URL")
    REDIS_MAX_CONNECTIONS: int = Field(default=50, description="Maximum pooled connections")
    REDIS_SOCKET_TIMEOUT: float = Field(default=5.0, description="Socket timeout in seconds")
    REDIS_SOCKET_CONNECT_TIMEOUT: float = Field(
        default=5.0, description="Connection timeout in seconds"
    )
    REDIS_COMMAND_TIMEOUT: float = Field(
        default=COMMAND_TIMEOUT, description="Upper bound for a single command in seconds"
    )
    REDIS_CONNECT_MAX_ATTEMPTS: int = Field(
        default=CONNECT_MAX_ATTEMPTS, description="Connection attempts before giving up"
    )
    REDIS_CONNECT_DEADLINE: float = Field(
        default=CONNECT_DEADLINE, description="Upper bound for the whole retried connect in seconds"
    )
    REDIS_HEALTH_CHECK_INTERVAL: int = Field(
        default=30, description="Pool connection health check interval in seconds"
    )

    # Cache settings
    CACHE_DEFAULT_TTL: int = Field(default=DEFAULT_TTL, description="Default TTL (5 minutes)")

    # Logging settings
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    # Application settings
    ENVIRONMENT: Environment = Field(default="development", description="Application environment")
    APP_NAME: str = Field(default="tourcache", description="Application name")
    API_HOST: str = Field(default="0.0.0.0", description="API server host")
    API_PORT: int = Field(default=8000, description="API server port")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    @field_validator("CACHE_DEFAULT_TTL")
    @classmethod
    def validate_default_ttl(cls, v):
        """TTL must be a positive number of whole seconds."""
        if v <= 0:
            raise ValueError("CACHE_DEFAULT_TTL must be a positive number of seconds")
        return v

    @field_validator("REDIS_URL", mode="before")
    @classmethod
    def blank_url_is_unset(cls, v):
        """Treat an empty REDIS_URL the same as an absent one."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    # Nested configuration objects
    @property
    def redis(self) -> "RedisSettings":
        """Get Redis settings."""
        return RedisSettings(
            REDIS_URL=self.REDIS_URL,
            REDIS_MAX_CONNECTIONS=self.REDIS_MAX_CONNECTIONS,
            REDIS_SOCKET_TIMEOUT=self.REDIS_SOCKET_TIMEOUT,
            REDIS_SOCKET_CONNECT_TIMEOUT=self.REDIS_SOCKET_CONNECT_TIMEOUT,
            REDIS_COMMAND_TIMEOUT=self.REDIS_COMMAND_TIMEOUT,
            REDIS_CONNECT_MAX_ATTEMPTS=self.REDIS_CONNECT_MAX_ATTEMPTS,
            REDIS_CONNECT_DEADLINE=self.REDIS_CONNECT_DEADLINE,
            REDIS_HEALTH_CHECK_INTERVAL=self.REDIS_HEALTH_CHECK_INTERVAL,
        )

    @property
    def cache(self) -> "CacheSettings":
        """Get cache settings."""
        return CacheSettings(CACHE_DEFAULT_TTL=self.CACHE_DEFAULT_TTL)

    @property
    def logging(self) -> "LoggingSettings":
        """Get logging settings."""
        return LoggingSettings(LOG_LEVEL=self.LOG_LEVEL, LOG_FORMAT=self.LOG_FORMAT)

    @property
    def app(self) -> "ApplicationSettings":
        """Get application settings."""
        return ApplicationSettings(
            ENVIRONMENT=self.ENVIRONMENT,
            APP_NAME=self.APP_NAME,
            API_HOST=self.API_HOST,
            API_PORT=self.API_PORT,
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra environment variables
    )


# Global settings instance (singleton pattern)
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance (singleton).

    Returns:
        Settings: Global settings instance
    """
    global _settings

    if _settings is None:
        _settings = Settings()

    return _settings


def reload_settings() -> Settings:
    """
    Reload settings (useful for testing).

    Returns:
        Settings: New settings instance
    """
    global _settings
    _settings = Settings()
    return _settings
