"""Configuration management for the image relay service."""

from datetime import timezone, tzinfo
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )

    ENV: str = "local"
    SERVICE_NAME: str = "imgrelay"
    SERVICE_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"

    # Upload Constraints
    MAX_BODY_SIZE: int = 10 * 1024 * 1024  # bytes
    MAX_UPLOAD_COUNT: int = 100  # accepted uploads per client per day
    FETCH_TIMEOUT_SECONDS: float = 10.0
    RATE_LIMIT_TIMEZONE: str = "UTC"
    CLIENT_IP_HEADER: str = "CF-Connecting-IP"

    # Object Storage Configuration
    OBJECT_STORE_BACKEND: str = "local"  # "local", "gcs" or "memory"
    OBJECT_STORE_BASE_URL: str = ""
    OBJECT_STORE_KEY_PREFIX: str = ""
    LOCAL_STORAGE_PATH: str = "data/images"

    # GCP Configuration
    GCP_PROJECT_ID: str = ""
    GCS_BUCKET_NAME: str = ""

    # Metadata Database Configuration
    METADATA_BACKEND: str = "sqlite"  # "sqlite" or "postgres"
    SQLITE_PATH: str = "data/imgrelay.db"
    DATABASE_URL: str = ""

    @property
    def base_url(self) -> str:
        """Public base URL without trailing slash."""
        return self.OBJECT_STORE_BASE_URL.rstrip("/")

    @property
    def rate_limit_tz(self) -> tzinfo:
        """Reference timezone for the rate-limit calendar day."""
        if self.RATE_LIMIT_TIMEZONE.upper() == "UTC":
            return timezone.utc
        return ZoneInfo(self.RATE_LIMIT_TIMEZONE)


# Singleton settings instance
settings = Settings()
