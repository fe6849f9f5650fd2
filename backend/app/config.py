"""
Application Configuration — Environment & Settings
Centralizes all config from .env with Pydantic Settings for validation.
"""
from pathlib import Path
from functools import lru_cache
from pydantic_settings import BaseSettings

# Resolve paths relative to backend/ directory
BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # --- Core ---
    APP_NAME: str = "Lead Qualification API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "staging"    # staging | prod

    # --- Database ---
    DATABASE_URL: str = f"sqlite:///{BASE_DIR / 'data' / 'lead_sessions.db'}"

    # --- Security ---
    CORS_ORIGINS: list[str] = ["*"]

    # --- Form rules ---
    DEFAULT_COUNTRY_CODE: str = "+91"
    TIMEZONE: str = "Asia/Kolkata"
    SLOT_LOOKAHEAD_DAYS: int = 7
    SLOT_MIN_LEAD_HOURS: int = 2
    FUNNEL_STAGE_MONOTONIC: bool = False
    ABANDONMENT_THRESHOLD_MINUTES: int = 60

    # --- Sinks ---
    WEBHOOK_URL: str = ""
    WEBHOOK_TIMEOUT_SECONDS: float = 5.0
    META_PIXEL_ID: str = ""
    META_CAPI_ACCESS_TOKEN: str = ""
    META_API_VERSION: str = "v21.0"
    NOTIFICATION_TIMEOUT_SECONDS: float = 3.0

    # --- Logging ---
    LOG_DIR: str = str(BASE_DIR / "logs")

    class Config:
        env_file = str(BASE_DIR / ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True

    @property
    def env_suffix(self) -> str:
        """Suffix appended to analytics event names."""
        return "_prod" if self.ENVIRONMENT == "prod" else "_stg"


@lru_cache()
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
