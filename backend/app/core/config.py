from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # MongoDB
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB: str = "direct_messages"

    # Identity (tokens are issued by the auth service, we only verify them).
    # Required, no default.
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"

    # Optional collaborators
    REDIS_URL: Optional[str] = None
    MEDIA_BASE_URL: Optional[str] = None

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    LOG_LEVEL: str = "INFO"

    # Messaging rules
    RATE_LIMIT_MAX_MESSAGES: int = 5
    RATE_LIMIT_WINDOW_HOURS: int = 24
    MAX_CONTENT_LENGTH: int = 2000
    PREVIEW_LENGTH: int = 50
    DEFAULT_PAGE_SIZE: int = 50


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
