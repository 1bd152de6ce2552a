# deepzoom_ingest/shared/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from enum import Enum
from typing import Optional

from deepzoom_ingest.core.domain.decryption import DEFAULT_AES_IV_HEX, DEFAULT_AES_KEY_HEX
from deepzoom_ingest.core.domain.signing import DEFAULT_SIGNING_KEY_HEX

class AppEnv(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"

class StorageBackend(str, Enum):
    FILESYSTEM = "filesystem"
    S3 = "s3"

class MetadataBackend(str, Enum):
    FILESYSTEM = "filesystem"
    STRAPI = "strapi"

class Settings(BaseSettings):
    """
    Central Configuration Registry.
    Strictly typed and validated via Pydantic.
    """

    # --- Application Meta ---
    APP_NAME: str = "deepzoom-ingest"
    APP_ENV: AppEnv = AppEnv.DEVELOPMENT
    DEBUG: bool = False

    # --- Logging & Observability ---
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"
    OTEL_SERVICE_NAME: str = "deepzoom-ingest"
    OTEL_EXPORTER_OTLP_ENDPOINT: Optional[str] = None

    # --- Tile Job ---
    TILE_UPLOAD_BATCH_SIZE: int = 10
    HTTP_TIMEOUT_SECONDS: float = 30.0
    MAX_TILE_BYTES: int = 10 * 1024 * 1024
    TILE_EXTENSION: str = ".jpg"
    TILE_CONTENT_TYPE: str = "image/jpeg"

    # --- Tile Service Secrets ---
    # Lifted from the tile service's web client; no known rotation policy.
    URL_SIGNING_KEY_HEX: str = DEFAULT_SIGNING_KEY_HEX
    TILE_AES_KEY_HEX: str = DEFAULT_AES_KEY_HEX
    TILE_AES_IV_HEX: str = DEFAULT_AES_IV_HEX

    # --- Retry Policy ---
    RETRY_ENABLED: bool = False
    RETRY_ATTEMPTS: int = 3
    RETRY_DELAY_SECONDS: float = 2.0

    # --- Blob Storage ---
    STORAGE_BACKEND: StorageBackend = StorageBackend.FILESYSTEM

    # FILESYSTEM CONFIG
    FILESYSTEM_BLOB_ROOT: str = "data/tiles"
    FILESYSTEM_PUBLIC_BASE_URL: Optional[str] = None

    # S3 Config (any S3-compatible provider, path-style addressing)
    S3_ENDPOINT_URL: Optional[str] = None
    S3_REGION: str = "us-east-1"
    S3_ACCESS_KEY_ID: Optional[str] = None
    S3_SECRET_ACCESS_KEY: Optional[str] = None
    S3_BUCKET_NAME: str = "deepzoom-tiles"
    S3_PUBLIC_BASE_URL: Optional[str] = None

    # --- Metadata Store ---
    METADATA_BACKEND: MetadataBackend = MetadataBackend.FILESYSTEM
    METADATA_FILE_PATH: str = "data/metadata.json"
    CMS_BASE_URL: str = "http://localhost:1337"
    CMS_API_TOKEN: Optional[str] = None

    @property
    def s3_public_base_url(self) -> str:
        """Falls back to the path-style bucket URL when no CDN/base URL is configured."""
        if self.S3_PUBLIC_BASE_URL:
            return self.S3_PUBLIC_BASE_URL.rstrip("/")
        endpoint = (self.S3_ENDPOINT_URL or f"https://s3.{self.S3_REGION}.amazonaws.com").rstrip("/")
        return f"{endpoint}/{self.S3_BUCKET_NAME}"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
