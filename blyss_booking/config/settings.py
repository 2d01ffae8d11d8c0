"""
Application settings and configuration.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Blyss Booking"
    app_version: str = "1.0.0"
    debug: bool = False

    # Durable storage (cart snapshot + booking history)
    state_db_path: str = "blyss_state.db"

    # Salon platform API
    api_base_url: str = "https://api.blyss.uz"
    api_timeout: float = Field(default=10.0, gt=0)

    # Scheduling
    employee_fetch_concurrency: int = Field(default=1, ge=1)

    # Localization
    default_language: str = "uz"
    timezone: str = "Asia/Tashkent"

    # Logging
    log_level: str = "INFO"


def get_settings() -> Settings:
    """Get application settings instance."""
    return Settings()
