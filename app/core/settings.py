# app/core/settings.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    APP_NAME: str = "listing-media"

    # --- Object store (Cloudflare R2, S3-compatible) ---
    CLOUDFLARE_R2_ENDPOINT: Optional[str] = None
    CLOUDFLARE_R2_ACCESS_KEY: Optional[str] = None
    CLOUDFLARE_R2_SECRET_KEY: Optional[str] = None
    CLOUDFLARE_R2_BUCKET: Optional[str] = None
    CLOUDFLARE_R2_PUBLIC_URL: Optional[str] = None
    S3_REGION: str = "auto"
    S3_CONNECT_TIMEOUT: int = 3
    S3_READ_TIMEOUT: int = 30

    # --- Ingestion ---
    TEMP_DIR: str = "temp"
    allowed_image_mimes: list[str] = ["image/jpeg", "image/png", "image/webp"]
    listing_category: str = "listings"
    raw_category: str = "listing"  # legacy literal, kept apart from listing_category

    MIN_IMAGE_BYTES: int = 5 * 1024
    MAX_IMAGE_BYTES: int = 5 * 1024 * 1024
    ENFORCE_IMAGE_SIZE_LIMITS: bool = False

    INGEST_TIMEOUT_SECONDS: Optional[float] = None

    # --- Observability ---
    LOG_LEVEL: str = "INFO"
    SENTRY_DSN: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def store_configured(self) -> bool:
        return all(
            (
                self.CLOUDFLARE_R2_ENDPOINT,
                self.CLOUDFLARE_R2_ACCESS_KEY,
                self.CLOUDFLARE_R2_SECRET_KEY,
                self.CLOUDFLARE_R2_BUCKET,
                self.CLOUDFLARE_R2_PUBLIC_URL,
            )
        )


settings = Settings()  # leest .env
