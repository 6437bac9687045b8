"""
Configuration and settings for the club site backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    api_prefix: str = Field(default="/api")
    host: str = Field(default="0.0.0.0", validation_alias="HOST")
    port: int = Field(default=8081, validation_alias="PORT")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    cors_origins: str = Field(default="*", validation_alias="CORS_ORIGINS")

    # Document store (MongoDB)
    mongodb_uri: Optional[str] = Field(default=None, validation_alias="MONGODB_URI")
    database_url: Optional[str] = Field(default=None, validation_alias="DATABASE_URL")
    mongodb_db: str = Field(default="rotaract", validation_alias="MONGODB_DB")

    # Admin credential (HTTP Basic)
    admin_user: Optional[str] = Field(default=None, validation_alias="ADMIN_USER")
    admin_pass: Optional[str] = Field(default=None, validation_alias="ADMIN_PASS")

    # Local JSON fallback
    data_dir: str = Field(default="data", validation_alias="DATA_DIR")
    local_store_entities: str = Field(
        default="projects", validation_alias="LOCAL_STORE_ENTITIES"
    )
    projects_file_fallback: bool = Field(
        default=True, validation_alias="PROJECTS_FILE_FALLBACK"
    )
    gallery_dir: str = Field(
        default="assets/images/gallery", validation_alias="GALLERY_DIR"
    )

    # Uploads: local disk or S3-compatible blob storage
    uploads_dir: str = Field(default="uploads", validation_alias="UPLOADS_DIR")
    local_uploads: bool = Field(default=True, validation_alias="LOCAL_UPLOADS")
    blob_bucket: Optional[str] = Field(default=None, validation_alias="BLOB_BUCKET")
    blob_endpoint: Optional[str] = Field(
        default=None, validation_alias="BLOB_ENDPOINT"
    )
    blob_region: Optional[str] = Field(default=None, validation_alias="BLOB_REGION")
    blob_access_key_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("BLOB_ACCESS_KEY_ID", "AWS_ACCESS_KEY_ID"),
    )
    blob_secret_access_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "BLOB_SECRET_ACCESS_KEY", "AWS_SECRET_ACCESS_KEY"
        ),
    )
    blob_public_base_url: Optional[str] = Field(
        default=None, validation_alias="BLOB_PUBLIC_BASE_URL"
    )

    # PDF proxy
    pdf_proxy_allowlist: str = Field(
        default="www.w3.org", validation_alias="PDF_PROXY_ALLOWLIST"
    )

    @property
    def mongo_connection_string(self) -> Optional[str]:
        """MONGODB_URI, or DATABASE_URL when it points at MongoDB."""
        if self.mongodb_uri:
            return self.mongodb_uri
        if self.database_url and self.database_url.startswith("mongodb"):
            return self.database_url
        return None

    @property
    def local_entities(self) -> set[str]:
        return _split_csv(self.local_store_entities)

    @property
    def pdf_allowed_hosts(self) -> set[str]:
        return _split_csv(self.pdf_proxy_allowlist)

    @property
    def cors_origin_list(self) -> list[str]:
        return sorted(
            origin.strip() for origin in self.cors_origins.split(",") if origin.strip()
        )


def _split_csv(value: str) -> set[str]:
    return {item.strip().lower() for item in (value or "").split(",") if item.strip()}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
