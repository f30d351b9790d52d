"""Configuration management using Pydantic Settings."""

from enum import Enum

from pydantic_settings import BaseSettings


class ProviderKind(str, Enum):
    """Scraping API used to fetch Instagram profiles."""
    HASDATA = "hasdata"
    BRIGHTDATA = "brightdata"


class LogFormat(str, Enum):
    """Log output format."""
    JSON = "json"
    CONSOLE = "console"


class Settings(BaseSettings):
    """Configuration for the coach directory."""

    # Provider selection and credentials
    provider: ProviderKind = ProviderKind.HASDATA
    hasdata_api_key: str | None = None
    brightdata_api_key: str | None = None
    brightdata_dataset_id: str = "gd_l1vikfch901nx3by4"

    # Upstream pacing
    hasdata_delay_ms: int = 500
    brightdata_delay_ms: int = 1000
    http_timeout_seconds: float = 30.0

    # Directory database
    database_path: str = "coachdir.db"
    stale_after_hours: int = 24
    directory_page_size: int = 100

    # Object storage (Supabase)
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    storage_bucket: str = "profile-pictures"

    # Ingestion endpoints require this token when set
    admin_token: str | None = None

    # Image migration
    migration_batch_size: int = 10
    migration_batch_delay_ms: int = 5000
    migration_item_delay_ms: int = 1000
    migration_max_attempts: int = 3
    migration_retry_delay_ms: int = 2000

    # Logging
    log_level: str = "INFO"
    log_format: LogFormat = LogFormat.CONSOLE

    model_config = {
        "env_prefix": "COACHDIR_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def storage_enabled(self) -> bool:
        """Whether re-hosting images to object storage is configured."""
        return bool(self.supabase_url and self.supabase_service_key)
