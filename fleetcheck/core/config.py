"""Application configuration via environment variables."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or .env file."""
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Application
    app_name: str = "Fleet Pre-Shift Check"
    debug: bool = False
    log_dir: Path = Path.home() / ".logs" / "fleetcheck"

    # Server
    allowed_origins: str = "*"  # Comma-separated origins, or "*" for all

    # Database
    database_url: str = "sqlite:///./fleetcheck.db"

    # Rotation fallback, used when no policy exists for a vehicle type
    default_max_questions_per_check: int = 10
    default_critical_question_minimum: int = 3
    default_standard_question_maximum: int = 7
    default_required_categories: str = ""  # Comma-separated category tags
    rotation_seed: int | None = None

    # Check history
    check_page_size: int = 10

    # Background re-sync of answer writes that failed
    pending_sync_interval_minutes: int = 5


settings = Settings()
