"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    environment: str = _ENVIRONMENT
    log_level: str = "INFO"
    storage_backend: str = "memory"
    photo_store_backend: str = "memory"
    upload_dir: str = "uploads"
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    supabase_photo_bucket: str = "souvenir-photos"
    print_sink: str = "simulated"
    print_delay_seconds: float = 2.0
    print_timeout_seconds: float = 60.0
    printer_name: str | None = None
    cloud_print_url: str | None = None
    cloud_print_token: str | None = None
    sendgrid_api_key: str | None = None
    sendgrid_from_email: str = "noreply@souvenirapp.com"
    max_upload_bytes: int = 10 * 1024 * 1024
    allowed_image_types: str = "jpeg,jpg,png,gif,webp"
    cors_allow_origins: str | None = "*"

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def uses_supabase(self) -> bool:
        return "supabase" in {self.storage_backend, self.photo_store_backend}


def parse_csv(raw: str | None) -> list[str]:
    """Split a comma-separated setting into trimmed, non-empty values."""
    if raw is None:
        return []
    return [chunk.strip() for chunk in raw.split(",") if chunk.strip()]


def parse_allowed_image_types(raw: str | None) -> set[str]:
    """Parse allowed image extensions/subtypes, lowercased and without dots."""
    return {value.lower().lstrip(".") for value in parse_csv(raw)}
