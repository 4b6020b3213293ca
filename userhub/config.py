"""
userhub - Configuration Management

Centralized configuration using Pydantic Settings.
All secrets and connection strings are loaded from environment variables.

Security: No secrets are hardcoded. JWT_SECRET has no default and the
token issuer refuses to start without it.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        DATABASE_URL: SQLAlchemy URL (PostgreSQL in production, SQLite locally)
        JWT_ISSUER: "iss" claim written into every issued token
        JWT_SECRET: HMAC signing key for session tokens
        ACCESS_TOKEN_EXPIRE_MINUTES: Lifetime of the access token
        REFRESH_TOKEN_EXPIRE_HOURS: Lifetime of the refresh token
        SMTP_*: Outbound mail server; empty SMTP_HOST logs mail instead
        EXTERNAL_URL: Public base URL used to build activation links
        FRONTEND_PASSWORD_RESET_PATH: Frontend route receiving reset tokens
        LOG_FORMAT / LOG_LEVEL: structlog output configuration
        PORT / SHUTDOWN_TIMEOUT_SECONDS: HTTP server settings
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Database
    DATABASE_URL: str = "sqlite:///./userhub.db"
    DATABASE_ECHO: bool = False

    # Security
    JWT_ISSUER: str = "userhub"
    JWT_SECRET: str = ""  # Must be set via environment
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_HOURS: int = 168

    # SMTP
    SMTP_HOST: str = ""
    SMTP_PORT: int = 25
    SMTP_USERNAME: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_SENDER: Optional[str] = None
    SMTP_STARTTLS: bool = False
    SMTP_TIMEOUT_SECONDS: float = 10.0

    # Links
    EXTERNAL_URL: str = "http://localhost:3000"
    FRONTEND_PASSWORD_RESET_PATH: str = "frontend-password-reset-path"

    # Logging
    LOG_FORMAT: Literal["console", "json"] = "console"
    LOG_LEVEL: str = "DEBUG"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    SHUTDOWN_TIMEOUT_SECONDS: int = 10

    @field_validator("EXTERNAL_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("FRONTEND_PASSWORD_RESET_PATH")
    @classmethod
    def strip_slashes(cls, v: str) -> str:
        return v.strip("/")

    @field_validator("LOG_LEVEL")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.upper()


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, loaded once."""
    return Settings()
