"""
AdTier settings, read from the environment and an optional .env file
"""
from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings
from sqlalchemy.engine import URL


class Settings(BaseSettings):

    # ============================================
    # Service
    # ============================================
    APP_NAME: str = "AdTier"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # ============================================
    # Store (PostgreSQL via psycopg2)
    # ============================================
    DATABASE_URL: Optional[str] = None  # wins over the DB_* parts
    DB_USER: str = "adtier"
    DB_PASSWORD: str = ""
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "adtier"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        url = URL.create(
            "postgresql+psycopg2",
            username=self.DB_USER,
            password=self.DB_PASSWORD or None,
            host=self.DB_HOST,
            port=self.DB_PORT,
            database=self.DB_NAME,
        )
        return url.render_as_string(hide_password=False)

    # ============================================
    # Graph API client
    # ============================================
    FACEBOOK_API_VERSION: str = "v21.0"
    FACEBOOK_API_BASE_URL: str = "https://graph.facebook.com"
    FACEBOOK_HTTP_TIMEOUT_SECONDS: float = 30.0
    FACEBOOK_MAX_CALLS_PER_HOUR: int = 200       # rolling window, per client
    FACEBOOK_MIN_CALL_DELAY_SECONDS: float = 0.2
    FACEBOOK_MAX_RETRIES: int = 3
    FACEBOOK_BACKOFF_BASE_SECONDS: float = 1.0   # delay = base * 2^attempt
    FACEBOOK_PAGE_SIZE: int = 25
    FACEBOOK_MAX_PAGES: int = 50

    @property
    def facebook_api_url(self) -> str:
        return f"{self.FACEBOOK_API_BASE_URL.rstrip('/')}/{self.FACEBOOK_API_VERSION}"

    # ============================================
    # Sync, classification, daily job
    # ============================================
    SYNC_DEFAULT_DATE_WINDOW: str = "last_90d"
    ENRICHMENT_BATCH_LIMIT: int = 20
    COMMENT_FETCH_CONCURRENCY: int = 3
    CLASSIFICATION_CACHE_TTL_HOURS: int = 6

    SCHEDULER_ENABLED: bool = True
    SCHEDULER_TIMEZONE: str = "America/New_York"
    DAILY_SYNC_HOUR: int = 6
    DAILY_SYNC_MINUTE: int = 0
    RECLASSIFY_INTERVAL_HOURS: int = 4

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
