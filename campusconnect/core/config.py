"""Application configuration via environment variables."""
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or .env file."""
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Application
    app_name: str = "CampusConnect"
    debug: bool = False
    secret_key: str = "change-me-in-production"  # Signs the browser session cookie
    log_dir: str = str(Path.home() / ".logs" / "campusconnect")

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    allowed_origins: str = "*"  # Comma-separated origins, or "*" for all
    site_url: str = "http://localhost:8000"  # Base for OAuth callbacks and email links

    # Database
    database_url: str = "sqlite:///./campusconnect.db"

    # Event data
    event_source: str = "database"  # "database" or "memory"
    seed_demo_data: bool = True

    # Sessions
    session_ttl_minutes: int = 60
    session_refresh_interval_minutes: int = 10
    session_refresh_margin_minutes: int = 15
    client_idle_hours: int = 12

    # Notifications
    reminder_window_days: int = 3

    # Google OAuth sign-in (disabled when empty)
    google_client_id: str = ""
    google_client_secret: str = ""


settings = Settings()
