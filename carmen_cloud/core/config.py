"""Client configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables (``CARMEN_`` prefix)."""

    model_config = SettingsConfigDict(
        env_prefix="CARMEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Authentication
    api_key: str | None = Field(
        default=None,
        description="API key sent in the X-Api-Key header",
    )

    # Service endpoints (validated as URLs, stored as strings)
    vehicle_endpoint: str = Field(
        default="https://api.carmencloud.com/vehicle",
        description="Vehicle API base URL",
        pattern=r"^https?://.*",
    )
    anpr_endpoint: str = Field(
        default="https://api.carmencloud.com/anpr",
        description="Plate recognition API base URL",
        pattern=r"^https?://.*",
    )
    transport_endpoint: str = Field(
        default="https://api.carmencloud.com/transport",
        description="Transportation & cargo code API base URL",
        pattern=r"^https?://.*",
    )

    # Timeouts
    response_timeout_ms: int | None = Field(
        default=None,
        description="Maximum time to wait for a response in milliseconds (None = unlimited)",
        ge=1,
    )
    connect_timeout: float = Field(
        default=10.0,
        description="Maximum time to establish a connection in seconds",
        gt=0.0,
        le=300.0,
    )

    # Connection pool
    max_connections: int = Field(
        default=10,
        description="Maximum number of pooled connections per client",
        ge=1,
    )
    max_keepalive_connections: int = Field(
        default=5,
        description="Maximum number of idle keep-alive connections per client",
        ge=0,
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_json: bool = Field(
        default=False,
        description="Emit structured JSON log lines instead of plain text",
    )

    @field_validator("vehicle_endpoint", "anpr_endpoint", "transport_endpoint")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Drop trailing slashes so routing subpaths join cleanly."""
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
