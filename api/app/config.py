# api/app/config.py
from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application configuration.

    Loads environment variables from `.env` and provides
    typed access across API, worker, and services.
    """

    # ─────────────────────────────────────────────
    # Pydantic Settings Config
    # ─────────────────────────────────────────────
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ─────────────────────────────────────────────
    # Database
    # ─────────────────────────────────────────────
    database_url: str
    database_url_sync: str | None = None
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_echo: bool = False

    # ─────────────────────────────────────────────
    # API
    # ─────────────────────────────────────────────
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    environment: str = "development"  # development | production

    # ─────────────────────────────────────────────
    # Auth provider (staff sessions)
    # ─────────────────────────────────────────────
    supabase_url: str = "http://localhost:54321"
    supabase_anon_key: str = ""
    staff_email_domain: str = "aerialshots.media"
    auth_timeout: float = 5.0

    # ─────────────────────────────────────────────
    # HDR processing worker
    # ─────────────────────────────────────────────
    hdr_worker_url: str = ""
    hdr_worker_api_key: str = ""
    hdr_worker_timeout: float = 15.0
    hdr_webhook_secret: str = ""

    processing_max_retries: int = 3
    processing_retry_cooldown_seconds: int = 30

    # ─────────────────────────────────────────────
    # Notifications
    # ─────────────────────────────────────────────
    resend_api_key: str = ""
    notification_from_email: str = "ops@aerialshots.media"
    portal_base_url: str = "http://localhost:3000"

    # ─────────────────────────────────────────────
    # Location data (v1)
    # ─────────────────────────────────────────────
    google_places_api_key: str = ""
    places_radius_meters: int = 2500
    places_timeout: float = 10.0

    rate_limit_window_seconds: int = 60
    rate_limit_scores: int = 100
    rate_limit_default: int = 100

    cache_ttl_scores_seconds: int = 86400
    cache_ttl_dining_seconds: int = 3600

    # ─────────────────────────────────────────────
    # Worker
    # ─────────────────────────────────────────────
    worker_poll_interval: float = 1.0
    worker_max_retries: int = 3

    # ─────────────────────────────────────────────
    # Derived Properties
    # ─────────────────────────────────────────────
    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @property
    def email_configured(self) -> bool:
        return bool(self.resend_api_key)


# ─────────────────────────────────────────────
# Cached Settings Instance
# ─────────────────────────────────────────────
@lru_cache
def get_settings() -> Settings:
    """
    Returns a cached Settings instance so config
    is only loaded once per process.
    """
    return Settings()
