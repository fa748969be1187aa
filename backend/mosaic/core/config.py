# backend/mosaic/core/config.py
from __future__ import annotations

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Runtime settings with safe local defaults.

    - R2 settings are OPTIONAL unless STORAGE_MODE=r2
    - Query-string release overrides are honored only when ENV=dev
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Environment: dev | preview | prod
    env: str = Field(default="dev", alias="ENV")

    # Storage
    # local = read the metadata record from LOCAL_METADATA_PATH
    # r2    = Cloudflare R2 (S3 compatible) is required
    storage_mode: str = Field(default="local", alias="STORAGE_MODE")  # local | r2
    local_metadata_path: str = Field(default="build/metadata.json", alias="LOCAL_METADATA_PATH")

    # R2 / S3 (required only if STORAGE_MODE=r2)
    r2_endpoint: Optional[str] = Field(default=None, alias="R2_ENDPOINT")
    r2_bucket: Optional[str] = Field(default=None, alias="R2_BUCKET")
    r2_access_key_id: Optional[str] = Field(default=None, alias="R2_ACCESS_KEY_ID")
    r2_secret_access_key: Optional[str] = Field(default=None, alias="R2_SECRET_ACCESS_KEY")
    r2_region: str = Field(default="auto", alias="R2_REGION")

    # Metadata object keys in bucket
    metadata_key: str = Field(default="metadata.json", alias="METADATA_KEY")
    metadata_preview_key: str = Field(default="metadata-preview.json", alias="METADATA_PREVIEW_KEY")

    # How long the raw stored record is kept in process memory
    metadata_cache_ttl_sec: int = Field(default=60, alias="METADATA_CACHE_TTL_SEC")

    # Security
    admin_api_key: str = Field(default="", alias="ADMIN_API_KEY")

    # CORS
    cors_origins: str = Field(default="*", alias="CORS_ORIGINS")  # comma-separated or "*"

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @property
    def cors_origins_list(self) -> list[str]:
        if self.cors_origins.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def is_dev(self) -> bool:
        return self.env.strip().lower() == "dev"

    @property
    def active_metadata_key(self) -> str:
        if self.env.strip().lower() in ("prod", "production"):
            return self.metadata_key
        return self.metadata_preview_key

    def r2_required(self) -> bool:
        return self.storage_mode.strip().lower() == "r2"

    def validate_r2_or_raise(self) -> None:
        """
        Call this ONLY when you actually use R2.
        This avoids boot-time failures in local/dev/CI.
        """
        if not self.r2_required():
            return

        missing = []
        if not self.r2_endpoint:
            missing.append("R2_ENDPOINT")
        if not self.r2_bucket:
            missing.append("R2_BUCKET")
        if not self.r2_access_key_id:
            missing.append("R2_ACCESS_KEY_ID")
        if not self.r2_secret_access_key:
            missing.append("R2_SECRET_ACCESS_KEY")

        if missing:
            raise RuntimeError(
                "R2 is enabled (STORAGE_MODE=r2) but required env vars are missing: "
                + ", ".join(missing)
            )


settings = Settings()


def get_settings() -> Settings:
    return settings
