"""
Configuration Management

Uses Pydantic Settings for environment-based configuration.
Loads from .env file automatically.
"""

from typing import Optional
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra fields in .env file
        case_sensitive=False,
    )

    # Application Settings
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Database (SQLite fallback when DATABASE_URL is not set)
    DATABASE_URL: Optional[str] = None
    SQLITE_PATH: str = "geopulse_dev.db"
    SQL_DEBUG: bool = False

    # Prediction collaborator (Claude)
    ANTHROPIC_API_KEY: Optional[str] = None
    PREDICTOR_MODEL: str = "claude-sonnet-4-20250514"
    PREDICTOR_MAX_TOKENS: int = 1024
    PREDICTOR_TEMPERATURE: float = 0.2

    # Visibility tracking
    SNAPSHOT_CONCURRENCY: int = 3
    REPORT_PERIOD_DAYS: int = 7

    @property
    def database_url(self) -> str:
        """Resolved SQLAlchemy URL."""
        url = self.DATABASE_URL
        if url:
            # Hosted PostgreSQL URLs use postgres:// but SQLAlchemy needs postgresql://
            if url.startswith("postgres://"):
                url = url.replace("postgres://", "postgresql://", 1)
            return url
        return f"sqlite:///{self.SQLITE_PATH}"


@lru_cache
def get_settings() -> Settings:
    """Get or create cached settings instance."""
    return Settings()
