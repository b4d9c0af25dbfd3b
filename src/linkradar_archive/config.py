"""Archival configuration via pydantic-settings."""

from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Archival settings loaded from CONTENT_ARCHIVE_* environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_prefix="CONTENT_ARCHIVE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Feature flag
    enabled: bool = True

    # HTTP timeouts (seconds), identical on every attempt
    connect_timeout: float = 10.0
    read_timeout: float = 15.0

    # Fetch limits
    max_redirects: int = 5
    max_content_size: int = 10 * 1024 * 1024  # 10MB

    # Retry (timeouts only): total attempts including the first
    max_attempts: int = 3
    retry_backoff_base: float = 2.0

    # Contact URL embedded in the User-Agent header
    user_agent_contact_url: str = "https://github.com/linkradar/link-radar"

    # Storage: empty means in-memory, otherwise a SQLite file path
    store_path: str = ""

    # Job runtime
    worker_count: int = 2

    # App
    environment: str = "development"
    log_level: str = "INFO"

    @model_validator(mode="after")
    def _require_contact_in_production(self) -> "Settings":
        if self.environment == "production" and not self.user_agent_contact_url:
            raise ValueError("user_agent_contact_url is required in production")
        return self

    @property
    def user_agent(self) -> str:
        """User-Agent sent on every outbound request, e.g. 'LinkRadar/1.0 (+https://...)'."""
        return f"LinkRadar/1.0 (+{self.user_agent_contact_url})"


@lru_cache
def get_settings() -> Settings:
    """Return cached archival settings. Lazy initialization to avoid import-time errors."""
    return Settings()
