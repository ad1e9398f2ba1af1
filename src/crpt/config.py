"""Configuration module using Pydantic Settings."""

from functools import lru_cache

import httpx
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_URL = "https://ismp.crpt.ru/api/v3/lk/documents/create"


class Settings(BaseSettings):
    """Client settings loaded from environment variables (prefix ``CRPT_``)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CRPT_",
        case_sensitive=False,
    )

    # Endpoint
    api_url: str = DEFAULT_API_URL

    # Rate limiting
    request_limit: int = 10
    window_seconds: float = 1.0  # Rolling window for request_limit

    # HTTP Client
    http_timeout_connect: float = 10.0
    http_timeout_read: float = 30.0

    # Logging
    log_level: str = "INFO"

    @property
    def http_timeout(self) -> httpx.Timeout:
        """Build the httpx timeout from the configured values."""
        return httpx.Timeout(
            connect=self.http_timeout_connect,
            read=self.http_timeout_read,
            write=10.0,
            pool=10.0,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
