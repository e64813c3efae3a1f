"""SiteCMS Configuration - environment driven settings."""

import logging
import secrets
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
_VALID_JWT_ALGORITHMS = {"HS256", "HS384", "HS512"}


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Loaded once per process. Invalid values raise at import time so a
    misconfigured deployment fails at startup instead of on first request.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    app_name: str = "SiteCMS"
    app_version: str = "0.1.0"
    debug: bool = Field(default=False, validation_alias="SITECMS_DEBUG")
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite+aiosqlite:///./sitecms.db"
    db_pool_size: int = 20
    db_max_overflow: int = 20
    db_pool_timeout: int = 30
    db_pool_recycle: int = 1800

    # JWT
    jwt_secret_key: str | None = None
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = Field(default=60 * 24, gt=0)

    # Browser clients
    client_origin: str = "http://localhost:5173"
    cookie_secure: bool = False
    cookie_samesite: Literal["lax", "strict", "none"] = "lax"

    # Login throttling
    login_max_attempts: int = Field(default=5, gt=0)
    login_window_seconds: int = Field(default=60, gt=0)

    # Revoked token pruning
    blacklist_cleanup_interval_seconds: int = Field(default=300, gt=0)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _VALID_LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {sorted(_VALID_LOG_LEVELS)}, got {v!r}")
        return level

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        if v not in _VALID_JWT_ALGORITHMS:
            raise ValueError(f"JWT_ALGORITHM must be one of {sorted(_VALID_JWT_ALGORITHMS)}")
        return v

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_jwt_secret_key(cls, v: str | None) -> str | None:
        if v is not None and len(v) < 32:
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters")
        return v

    @property
    def effective_jwt_secret_key(self) -> str:
        """The signing key, or a per-process random key when none is configured."""
        if self.jwt_secret_key:
            return self.jwt_secret_key
        return _ephemeral_jwt_secret()

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.client_origin.split(",") if o.strip()]

    def check_security_configuration(self) -> list[str]:
        """Return human-readable warnings about insecure settings."""
        warnings: list[str] = []
        if not self.jwt_secret_key:
            warnings.append(
                "JWT_SECRET_KEY is not set; using a random per-process key. "
                "Sessions will not survive restarts."
            )
        if "*" in self.cors_origins_list:
            warnings.append("CLIENT_ORIGIN contains '*' while credentials are allowed")
        if not self.debug and not self.cookie_secure:
            warnings.append("COOKIE_SECURE is disabled; the token cookie is sent over plain HTTP")
        if self.cookie_samesite == "none" and not self.cookie_secure:
            warnings.append("COOKIE_SAMESITE=none requires COOKIE_SECURE=true in browsers")
        return warnings


@lru_cache
def _ephemeral_jwt_secret() -> str:
    logger.warning("No JWT_SECRET_KEY configured, generated an ephemeral signing key")
    return secrets.token_urlsafe(48)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
