"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

# Select the .env file for the current environment
_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def split_csv(value: str | None) -> list[str]:
    """Split a comma-separated setting into trimmed, non-empty items.

    Examples:
        >>> split_csv("GET, POST ,PUT")
        ['GET', 'POST', 'PUT']
        >>> split_csv(None)
        []
    """
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    host: str = Field(
        "0.0.0.0",
        description="Interface the HTTP server binds to",
    )
    port: int = Field(
        8080,
        description="Port the HTTP server listens on",
        ge=1,
        le=65535,
    )
    password_hash_rounds: int = Field(
        10,
        description="bcrypt cost factor used when hashing passwords",
        ge=4,
        le=31,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class RateLimitSettings(BaseSettings):
    """Token bucket configuration for the per-client rate limiter."""

    enabled: bool = Field(
        True,
        description="Enable rate limiting on /api routes",
    )
    requests: int = Field(
        10,
        description="Bucket capacity and amount restored on every refill",
        ge=1,
    )
    duration: int = Field(
        60,
        description="Refill interval in seconds",
        ge=1,
    )
    max_keys: int = Field(
        10_000,
        description="Maximum number of tracked clients before LRU pruning",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )


class CacheSettings(BaseSettings):
    """Project read cache configuration."""

    maximum_size: int = Field(
        500,
        description="Maximum number of entries per cache",
        ge=1,
    )
    expire_after_access: int = Field(
        600,
        description="Seconds an entry survives without being read",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        case_sensitive=False,
    )


class TokenSettings(BaseSettings):
    """Bearer token signing configuration."""

    secret: str = Field(
        ...,
        description="HMAC secret used to sign bearer tokens",
        min_length=1,
    )
    ttl: int = Field(
        3600,
        description="Token lifetime in seconds",
        ge=1,
    )
    algorithm: str = Field(
        "HS256",
        description="JWT signing algorithm",
    )
    issuer: str = Field(
        "projects-api",
        description="Value of the iss claim on issued tokens",
    )

    model_config = SettingsConfigDict(
        env_prefix="TOKEN_",
        case_sensitive=False,
    )


class CorsSettings(BaseSettings):
    """CORS policy applied by the HTTP layer."""

    allowed_origins: str = Field(
        "*",
        description="Comma-separated list of allowed origins",
    )
    allowed_methods: str = Field(
        "GET,POST,PUT,DELETE,OPTIONS",
        description="Comma-separated list of allowed methods",
    )
    allowed_headers: str = Field(
        "*",
        description="Comma-separated list of allowed request headers",
    )
    exposed_headers: str = Field(
        "X-Rate-Limit-Remaining,X-Rate-Limit-Retry-After-Seconds,X-Request-ID",
        description="Comma-separated list of headers readable by browsers",
    )
    allow_credentials: bool = Field(
        True,
        description="Allow cookies/authorization headers on cross-origin requests",
    )
    max_age: int = Field(
        3600,
        description="Seconds browsers may cache preflight responses",
        ge=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="CORS_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log output: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(10_485_760, description="Rotate log file after this many bytes (0 disables)")
    backup_count: int = Field(5, description="Number of rotated log files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read and propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


def _build_token_settings() -> TokenSettings:
    """Build token settings from environment.

    Pydantic Settings (v2) can populate values from environment variables.
    However, static type checkers often treat required fields as required
    constructor arguments, which is not how BaseSettings is intended to be used.
    """

    return TokenSettings()  # type: ignore[call-arg]


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if required settings are missing.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=AppSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    token: TokenSettings = Field(default_factory=_build_token_settings)
    cors: CorsSettings = Field(default_factory=CorsSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
