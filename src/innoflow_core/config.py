"""Application settings loaded from the environment."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration.

    Every field can be overridden with an ``INNOFLOW_`` prefixed environment
    variable, e.g. ``INNOFLOW_DATABASE_URL``.
    """

    database_url: str = "sqlite:///./innoflow.db"
    cors_origins: list[str] = ["*"]
    log_level: str = "INFO"

    # Single hard-coded actor; there is no authentication layer.
    mock_user_id: str = "user1"

    model_config = SettingsConfigDict(env_prefix="INNOFLOW_", extra="ignore")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
