"""Configuration settings for the Kentaa API client."""

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RateLimitConfig(BaseModel):
    """Configuration for the local rate limit budget.

    The ceilings are the values each window counter is reset to at its
    wall-clock boundary.
    """

    requests_per_minute: int = Field(
        default=100,
        ge=1,
        description="Requests allowed per wall-clock minute",
    )
    requests_per_hour: int = Field(
        default=500,
        ge=1,
        description="Requests allowed per wall-clock hour",
    )

    # Behavior
    track_from_headers: bool = Field(
        default=True,
        description="Overwrite local counters with X-RateLimit-Remaining-* values",
    )


class SchedulerConfig(BaseModel):
    """Configuration for request scheduling and pagination."""

    per_page: int = Field(
        default=100,
        ge=1,
        le=100,
        description="Page size used when assembling paginated lists",
    )
    queue_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Default deadline for a request waiting in the queue (None = wait forever)",
    )
    shutdown_timeout_seconds: float = Field(
        default=30.0,
        ge=0,
        description="Maximum seconds to wait for in-flight requests on shutdown",
    )


class HttpConfig(BaseModel):
    """Configuration for the HTTP transport."""

    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for a single HTTP request",
    )
    user_agent: str = Field(
        default="kentaa-api-python",
        description="User-Agent header sent with every request",
    )


class LoggingConfig(BaseModel):
    """Configuration for logging behavior.

    Controls file logging, rotation, and output format.
    """

    log_file: str | None = Field(
        default=None,
        description="Optional path for file logging (enables rotation)",
    )
    rotation: str = Field(
        default="10 MB",
        description="When to rotate log file (e.g., '10 MB', '1 day')",
    )
    retention: str = Field(
        default="7 days",
        description="How long to keep rotated logs",
    )
    serialize: bool = Field(
        default=False,
        description="If True, output JSON format to file",
    )


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --------------------------------------------------------------------------
    # Kentaa API
    # --------------------------------------------------------------------------
    kentaa_api_key: str = Field(
        default="",
        description="Kentaa API key (sent as X-Api-Key)",
    )
    kentaa_base_url: str = Field(
        default="https://api.kentaa.nl/v1",
        description="Base URL of the Kentaa REST API",
    )

    # --------------------------------------------------------------------------
    # Application
    # --------------------------------------------------------------------------
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    # --------------------------------------------------------------------------
    # Rate Limiting & Scheduling
    # --------------------------------------------------------------------------
    rate_limit: RateLimitConfig = Field(
        default_factory=RateLimitConfig,
        description="Rate limit budget configuration",
    )
    scheduler: SchedulerConfig = Field(
        default_factory=SchedulerConfig,
        description="Request scheduling configuration",
    )

    # --------------------------------------------------------------------------
    # HTTP
    # --------------------------------------------------------------------------
    http: HttpConfig = Field(
        default_factory=HttpConfig,
        description="HTTP transport configuration",
    )

    # --------------------------------------------------------------------------
    # Logging Configuration
    # --------------------------------------------------------------------------
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration (file output, rotation)",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
