"""Application configuration."""

from functools import lru_cache

from pydantic_settings import BaseSettings

from pubmed_navigator.constants import DEFAULT_TIMEOUT


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # NCBI E-utilities identification
    ncbi_tool: str = "pubmed-navigator"
    ncbi_email: str = ""
    ncbi_api_key: str = ""

    # HTTP
    request_timeout_seconds: float = DEFAULT_TIMEOUT

    # App Settings
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        frozen = True
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
