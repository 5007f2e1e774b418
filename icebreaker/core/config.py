"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or .env file."""
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Application
    app_name: str = "Icebreaker"
    debug: bool = False
    log_dir: str = ""  # Defaults to ~/.logs/icebreaker when empty

    # Server
    host: str = "0.0.0.0"
    port: int = 8080
    allowed_origins: str = "*"  # Comma-separated origins, or "*" for all

    # Database
    database_url: str = "sqlite:///./icebreaker.db"

    # Firebase identity provider
    firebase_project_id: str = ""

    # Answers
    max_notes_length: int = 5000

    # Review sweep (0 disables the background job)
    review_sweep_interval_minutes: int = 15


settings = Settings()
