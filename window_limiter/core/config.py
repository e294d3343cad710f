"""Limiter configuration using Pydantic Settings.

Configuration is environment-aware:
- LIMITER_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
LIMITER_ENV = os.getenv("LIMITER_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(LIMITER_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_redis_settings() -> "RedisSettings":
    return RedisSettings()


def _build_limiter_settings() -> "LimiterSettings":
    return LimiterSettings()


def _build_log_settings() -> "LogSettings":
    return LogSettings()


class RedisSettings(BaseSettings):
    """Connection settings for the shared Redis counter store."""

    url: str = Field(
        "redis://localhost:6379/0",
        description="Redis connection URL",
    )
    namespace: str = Field(
        "ratelimit",
        description="Prefix applied to every key the limiter writes",
    )
    socket_timeout_seconds: float | None = Field(
        5.0,
        description="Socket timeout for Redis commands (None blocks forever)",
    )
    lock_lease_seconds: float = Field(
        60.0,
        description="Lease on per-subject locks so a crashed holder cannot block a subject forever",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        case_sensitive=False,
    )


class LimiterSettings(BaseSettings):
    """Defaults for limiters and the blocking execution strategies."""

    backend: str = Field(
        "redis",
        description="Counter backend: 'redis' (shared) or 'memory' (per-process)",
    )
    bucket_span: int = Field(
        600,
        description="Total tracked duration in seconds",
        ge=1,
    )
    bucket_interval: int = Field(
        5,
        description="Seconds represented by one bucket",
        ge=1,
    )
    bucket_expiry: int | None = Field(
        None,
        description="Seconds before an untouched subject record expires (defaults to bucket_span)",
    )
    default_threshold: int = Field(
        30,
        description="Threshold used by the blocking strategies when none is given",
        ge=1,
    )
    default_interval: int = Field(
        30,
        description="Window length in seconds used by the blocking strategies when none is given",
        ge=1,
    )
    acquire_timeout_seconds: float = Field(
        10.0,
        description="How long the lock-coordinated strategy waits for the subject lock",
        gt=0,
    )
    max_wait_seconds: float | None = Field(
        None,
        description="Upper bound on time spent polling for a subject to drop below threshold (None = unbounded)",
    )

    http_enabled: bool = Field(
        True,
        description="Enable the HTTP rate limit dependency",
    )
    http_threshold: int = Field(
        60,
        description="Maximum requests per subject within http_interval",
        ge=1,
    )
    http_interval: int = Field(
        60,
        description="Window in seconds for the HTTP rate limit",
        ge=1,
    )
    http_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    model_config = SettingsConfigDict(
        env_prefix="RATELIMIT_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="'json' or 'plain'")
    output: str = Field("stdout", description="'stdout' or 'file'")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int | None = Field(
        10_000_000,
        description="Rotate the log file after this many bytes (None disables rotation)",
    )
    backup_count: int = Field(5, description="Rotated log files to keep")

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Settings container composed from the domain-specific groups.

    Environments:
    - development: Local development
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    limiter_env: str = LIMITER_ENV
    redis: RedisSettings = Field(default_factory=_build_redis_settings)
    limiter: LimiterSettings = Field(default_factory=_build_limiter_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


settings = Settings()
