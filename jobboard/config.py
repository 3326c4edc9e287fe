from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )

    # Database
    database_url: str
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_pool_timeout: int = 30  # seconds to wait for a pooled connection

    # Auth
    secret_key: str
    refresh_secret_key: str = "change-me-refresh"
    jwt_algorithm: str = "HS256"
    access_token_ttl_minutes: int = 60
    refresh_token_ttl_days: int = 7

    # Ingestion
    ingest_owner_email: str = "admin@jobboard.dev"

    # App
    allowed_origins: str = ""
    debug: bool = False


@lru_cache
def get_settings() -> Settings:
    """Build the settings once per process and hand out the same instance."""
    return Settings()
