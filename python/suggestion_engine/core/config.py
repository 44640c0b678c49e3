"""
Engine configuration via Pydantic Settings.
Loads from environment variables with validation and defaults.
"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache

VERSION = "1.0.0"


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra env vars
        populate_by_name=True,
    )

    # === Backend ===
    api_base_url: str = Field(default="http://localhost:8000/api/v1", alias="API_BASE_URL")
    faces_prefix: str = Field(default="/faces", alias="FACES_API_PREFIX")
    request_timeout: float = Field(default=30.0, gt=0, alias="API_REQUEST_TIMEOUT")
    api_token: Optional[str] = Field(default=None, alias="API_TOKEN")

    # === Logging ===
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # === Job progress ===
    job_poll_interval: float = Field(default=2.0, ge=0, alias="JOB_POLL_INTERVAL")
    job_timeout: float = Field(default=600.0, gt=0, alias="JOB_TIMEOUT")
    max_stream_connections: int = Field(default=4, ge=0, alias="MAX_STREAM_CONNECTIONS")
    stream_reconnect_attempts: int = Field(default=2, ge=0, alias="STREAM_RECONNECT_ATTEMPTS")
    stream_reconnect_delay: float = Field(default=1.0, ge=0, alias="STREAM_RECONNECT_DELAY")
    poll_max_errors: int = Field(default=3, ge=1, alias="JOB_POLL_MAX_ERRORS")

    # === Local state ===
    local_settings_path: str = Field(default="data/local_settings.json", alias="LOCAL_SETTINGS_PATH")
    local_settings_namespace: str = Field(default="image-search", alias="LOCAL_SETTINGS_NAMESPACE")
    recent_persons_key: str = Field(default="suggestions.recentPersonIds")
    recent_persons_limit: int = Field(default=20, ge=1, alias="RECENT_PERSONS_LIMIT")

    # === Paging ===
    suggestions_page_size: int = Field(default=100, ge=1, le=100, alias="SUGGESTIONS_PAGE_SIZE")
    persons_page_size: int = Field(default=100, ge=1, le=100, alias="PERSONS_PAGE_SIZE")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
