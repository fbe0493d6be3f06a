"""Environment settings using pydantic-settings.

Connection details for the model distribution service and local paths come
from environment variables (or a .env file); everything describing the
models themselves lives in classifier.yaml.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Attributes:
        MINIO_ENDPOINT: MinIO server endpoint (host:port)
        MINIO_ACCESS_KEY: MinIO access key
        MINIO_SECRET_KEY: MinIO secret key
        MINIO_SECURE: Use HTTPS for MinIO connection
        MODELS_DIR: Local directory for downloaded models
        NETWORK_UNMETERED: Whether the host's link counts as Wi-Fi/unmetered
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
        LOG_FORMAT: "json" or "text"
    """

    MINIO_ENDPOINT: str = "localhost:9000"
    MINIO_ACCESS_KEY: str = "minioadmin"
    MINIO_SECRET_KEY: str = "minioadmin"
    MINIO_SECURE: bool = False
    MODELS_DIR: str = "./models"
    NETWORK_UNMETERED: bool = True
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached Settings instance (singleton pattern).

    Returns:
        Settings instance loaded from environment
    """
    return Settings()
