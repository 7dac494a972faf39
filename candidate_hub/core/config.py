"""Application configuration via pydantic-settings.

Loads all settings from environment variables with sensible defaults.
A global `settings` singleton is available for import throughout the app.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # CORS
    ALLOWED_ORIGINS: str = "*"

    # Store
    SEED_DEFAULT_CANDIDATES: bool = True

    # Gateway
    GATEWAY_QUEUE_SIZE: int = 256

    # Sync client
    SYNC_BASE_URL: str = "http://localhost:8000"
    SYNC_POLL_INTERVAL_SECONDS: float = 3.0
    SYNC_HTTP_TIMEOUT_SECONDS: float = 10.0
    GENERATION_INTERVAL_SECONDS: float = 5.0

    # Logging
    LOG_LEVEL: str = "INFO"


settings = Settings()
