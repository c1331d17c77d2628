"""Configuration management for taskpulse."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage Configuration
    sqlite_db_path: str = Field(default="./data/taskpulse.db", description="SQLite document store file path")
    local_cache_path: str = Field(
        default="./data/taskpulse-cache.json", description="Local cache file used when no owner is configured"
    )
    owner_id: str | None = Field(
        default=None, description="Owner identity for the remote document store (unset = offline local cache)"
    )

    # Task Defaults
    default_category: str = Field(default="Other", description="Category assigned to tasks created without one")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")
    environment: str = Field(default="development", description="Deployment environment name")

    @property
    def uses_remote_store(self) -> bool:
        """Whether a remote identity is configured."""
        return bool(self.owner_id)


# Application Constants
class Constants:
    """Application-wide constants."""

    # Document Store
    TASKS_COLLECTION: str = "tasks"
    LOCAL_OWNER_ID: str = "local"

    # Productivity Analytics
    MIN_SAMPLES: int = 5  # Completion samples required before insights are produced
    LONG_TASK_THRESHOLD_MINUTES: int = 24 * 60
    QUICK_TASK_THRESHOLD_MINUTES: int = 60

    # Task Statistics
    UPCOMING_DEADLINES_LIMIT: int = 5
    STATS_AVERAGE_WINDOW_DAYS: int = 30

    # Categories offered before the user has created any of their own
    DEFAULT_CATEGORIES: tuple[str, ...] = ("Work", "Personal", "Study", "Health", "Shopping", "Other")


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
