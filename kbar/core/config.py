"""Application configuration."""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./kbar.db"

    # Venue
    venue_name: str = "KBar"
    menu_file: Optional[str] = None

    # Payment
    payment_timeout_seconds: int = 300
    countdown_tick_seconds: float = 1.0
    settlement_latency_seconds: float = 2.0
    settlement_success_rate: float = 0.8

    # Order history
    purge_failed_on_clear: bool = False  # Also drop payment_failed orders when clearing

    # Logging
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


settings = Settings()
