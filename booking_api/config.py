"""Centralized configuration management using Pydantic Settings.

This module provides typed configuration for all application settings,
loaded from environment variables with sensible defaults.

Usage:
    from booking_api.config import get_settings
    settings = get_settings()
    lock_timeout = settings.scheduling.lock_timeout_sec
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _parse_bool(v):
    if isinstance(v, str):
        return v.lower() in ("1", "true", "yes")
    return bool(v)


class RedisSettings(BaseSettings):
    """Redis connection configuration."""

    model_config = SettingsConfigDict(env_prefix="REDIS_", extra="ignore")

    host: str = Field(default="redis", description="Redis host")
    port: int = Field(default=6379, description="Redis port")
    password: str = Field(default="", description="Redis password")
    max_connections: int = Field(default=50, description="Maximum pool connections")
    pool_timeout_sec: float = Field(default=5.0, description="Pool timeout in seconds")
    health_check_interval: int = Field(default=30, description="Health check interval in seconds")
    socket_timeout: float = Field(default=5.0, description="Socket timeout in seconds")
    socket_connect_timeout: float = Field(default=5.0, description="Socket connect timeout in seconds")


class PostgresSettings(BaseSettings):
    """PostgreSQL connection configuration."""

    model_config = SettingsConfigDict(
        env_prefix="POSTGRES_",
        extra="ignore",
        populate_by_name=True,
    )

    host: str = Field(default="postgres", description="PostgreSQL host")
    port: int = Field(default=5432, description="PostgreSQL port")
    user: str = Field(default="booking", description="PostgreSQL user")
    password: str = Field(default="", description="PostgreSQL password")
    database: str = Field(
        default="bookings",
        validation_alias="POSTGRES_DB",
        description="Database name",
    )
    pool_min_size: int = Field(default=2, description="Minimum pool size")
    pool_max_size: int = Field(default=10, description="Maximum pool size")
    pool_timeout: int = Field(default=30, description="Timeout for acquiring connections")
    pool_max_lifetime: int = Field(
        default=1800, description="Maximum connection lifetime in seconds"
    )
    pool_max_idle: int = Field(
        default=300, description="Maximum idle time before closing connection"
    )

    def get_dsn(self) -> str:
        """Generate PostgreSQL DSN connection string."""
        return (
            f"host={self.host} port={self.port} user={self.user} "
            f"password={self.password} dbname={self.database} sslmode=disable"
        )


class CorsSettings(BaseSettings):
    """CORS configuration."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    origins_raw: str = Field(
        default="http://localhost:3000",
        validation_alias="CORS_ORIGINS",
    )
    origins_regex: str = Field(
        default="",
        validation_alias="CORS_ORIGINS_REGEX",
        description="Regex pattern for origins",
    )

    @property
    def origins(self) -> list[str]:
        """Parse comma-separated origins into list."""
        return [o.strip() for o in self.origins_raw.split(",") if o.strip()]

    @property
    def allow_credentials(self) -> bool:
        """Credentials not allowed with wildcard origins."""
        return self.origins != ["*"] and not self.origins_regex


class DebugSettings(BaseSettings):
    """Debug flags configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    request: bool = Field(default=False, alias="request_debug")

    @field_validator("*", mode="before")
    @classmethod
    def parse_bool(cls, v):
        return _parse_bool(v)


class FeatureSettings(BaseSettings):
    """Feature flags configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    database: bool = Field(default=True, alias="enable_db")
    redis_locks: bool = Field(default=True, alias="enable_redis_locks")
    mirror_bookings: bool = Field(default=True, alias="mirror_event_bookings")

    @field_validator("*", mode="before")
    @classmethod
    def parse_bool(cls, v):
        return _parse_bool(v)


class SchedulingSettings(BaseSettings):
    """Conflict checking and write serialization."""

    model_config = SettingsConfigDict(env_prefix="SCHEDULING_", extra="ignore")

    lock_prefix: str = Field(default="booking-api:lock:user:", description="Redis key prefix for user locks")
    lock_timeout_sec: float = Field(default=10.0, description="Lock expiry in seconds")
    lock_blocking_timeout_sec: float = Field(default=5.0, description="How long to wait for a lock")
    enforce_availability: bool = Field(
        default=False,
        description="Reject ranges outside the host's weekly availability",
    )

    @field_validator("enforce_availability", mode="before")
    @classmethod
    def parse_enforce(cls, v):
        return _parse_bool(v)


class Settings:
    """Main application settings combining all configuration sections.

    This is not a BaseSettings subclass to avoid env var conflicts.
    Each subsetting is loaded independently with its own prefix.
    """

    def __init__(self) -> None:
        self.redis = RedisSettings()
        self.postgres = PostgresSettings()
        self.cors = CorsSettings()
        self.debug = DebugSettings()
        self.features = FeatureSettings()
        self.scheduling = SchedulingSettings()


@lru_cache
def get_settings() -> Settings:
    """Get cached Settings instance (singleton pattern)."""
    return Settings()


def clear_settings_cache() -> None:
    """Clear cached settings (useful for testing)."""
    get_settings.cache_clear()
