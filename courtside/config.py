"""Configuration management and validation using Pydantic."""

import os
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator


class Settings(BaseSettings):
    """Application configuration settings loaded from environment variables or .env files."""

    @staticmethod
    def get_env_file() -> str | None:
        """Determine which .env file to load based on environment variables.

        Returns:
            None if SKIP_ENV_FILE is set or no .env.{APP_ENV} file exists
            .env.{APP_ENV} file path otherwise (defaults to .env.dev)
        """
        if os.getenv("SKIP_ENV_FILE"):
            return None
        env_file = f".env.{os.getenv('APP_ENV', 'dev')}"
        return env_file if os.path.exists(env_file) else None

    model_config = SettingsConfigDict(
        env_file=get_env_file.__func__(),
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # ==================== Application Settings ====================
    APP_NAME: str = "Courtside"
    APP_ENV: str = "dev"
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # ==================== Database ====================
    DB_URL: str = "sqlite+aiosqlite:///./users.db"
    DB_ECHO: bool = False

    # ==================== Field Validation ====================
    USER_NAME_MAX_LENGTH: int = 100
    USER_EMAIL_MAX_LENGTH: int = 255

    # ==================== Sessions ====================
    SESSION_SECRET_KEY: str  # Required, defined in .env files
    SESSION_ALGORITHM: str = "HS256"
    SESSION_COOKIE_NAME: str = "session"
    SESSION_MAX_AGE: int = 86400 * 30  # Cookie lifetime and server-side TTL (seconds)
    SESSION_BACKEND: str = "memory"  # "memory" (single process) or "redis" (shared)
    REDIS_URL: str = "redis://localhost:6379/0"

    # ==================== Rate Limiting ====================
    RATE_LIMIT_AUTH: str = "10/minute"

    # ==================== Logging ====================
    LOG_LEVEL: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    LOG_FILE: str | None = None  # Path to enable file logging
    LOG_FORMAT: str = "console"  # "console" for dev, "json" for production

    # ==================== Monitoring ====================
    ENABLE_METRICS: bool = True  # Expose /metrics

    @field_validator('DB_URL')
    @classmethod
    def validate_db_url(cls, v: str) -> str:
        """Validate that DB_URL names an async driver the app can use."""
        if not v:
            raise ValueError("DB_URL is required but not provided in environment variables")
        if not v.startswith(("sqlite+aiosqlite://", "postgresql+asyncpg://")):
            raise ValueError(
                "DB_URL must be a sqlite+aiosqlite:// or postgresql+asyncpg:// connection string"
            )
        return v

    @field_validator('SESSION_SECRET_KEY')
    @classmethod
    def validate_session_secret(cls, v: str) -> str:
        """Validate that SESSION_SECRET_KEY is provided and sufficiently long."""
        if not v:
            raise ValueError("SESSION_SECRET_KEY is required but not provided in environment variables")
        if len(v) < 32:
            raise ValueError("SESSION_SECRET_KEY must be at least 32 characters long for security")
        return v

    @field_validator('SESSION_BACKEND')
    @classmethod
    def validate_session_backend(cls, v: str) -> str:
        """Validate that SESSION_BACKEND is a known backend."""
        v = v.lower()
        if v not in ("memory", "redis"):
            raise ValueError("SESSION_BACKEND must be 'memory' or 'redis'")
        return v

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

settings = Settings()
