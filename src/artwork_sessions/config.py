"""Application configuration."""

import os
from dataclasses import dataclass

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    storage_bucket_name: str | None = None
    storage_region: str = "us-east-1"
    storage_access_key_id: str | None = None
    storage_secret_access_key: str | None = None
    storage_endpoint: str | None = None
    max_upload_size_mb: int = 10
    allowed_content_types: str = "image/jpeg,image/png,image/webp,image/gif"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024


@dataclass(frozen=True)
class StorageConfig:
    """Validated object storage settings."""

    bucket_name: str
    region: str
    access_key_id: str
    secret_access_key: str
    endpoint: str | None = None


def storage_config_from_settings(settings: Settings) -> StorageConfig | None:
    """Return storage settings only when every required value is present."""
    required = (
        settings.storage_bucket_name,
        settings.storage_region,
        settings.storage_access_key_id,
        settings.storage_secret_access_key,
    )
    if not all(value and value.strip() for value in required):
        return None
    endpoint = (settings.storage_endpoint or "").strip() or None
    return StorageConfig(
        bucket_name=str(settings.storage_bucket_name).strip(),
        region=settings.storage_region.strip(),
        access_key_id=str(settings.storage_access_key_id).strip(),
        secret_access_key=str(settings.storage_secret_access_key).strip(),
        endpoint=endpoint,
    )


def parse_content_types(raw: str) -> frozenset[str]:
    """Parse the comma-separated MIME allow-list from env."""
    return frozenset(
        chunk.strip().lower() for chunk in raw.split(",") if chunk.strip()
    )
