"""Proof-of-delivery configuration."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PRECACHE_URLS = [
    "/",
    "/index.html",
    "/src/css/styles.css",
    "/src/js/app.js",
    "/manifest.json",
    "https://unpkg.com/quagga@0.12.1/dist/quagga.min.js",
]


class PodConfig(BaseSettings):
    """Runtime config for the capture client and metadata API."""

    model_config = SettingsConfigDict(env_prefix="POD_")

    # Local record store
    storage_key: str = "pod_deliveries"
    record_limit: int = Field(default=50, ge=1)

    # Capture session
    awb_min_length: int = Field(default=8, ge=1)
    video_max_seconds: float = Field(default=30.0, gt=0)

    # Asset cache and background sync
    cache_name: str = "pod-app-v1"
    precache_urls: list[str] = Field(
        default_factory=lambda: list(DEFAULT_PRECACHE_URLS)
    )
    offline_document: str = "/index.html"
    sync_tag: str = "background-sync"
    sync_max_attempts: int = Field(default=5, ge=1)
    sync_backoff_seconds: int = Field(default=60, ge=0)

    # Metadata API and object storage
    api_base_url: str = "http://localhost:3000/api"
    api_version: str = "1.0.0"
    bucket_name: str = "test-pod-bucket"
    region: str = "us-east-1"
    max_upload_bytes: int = 50 * 1024 * 1024
    presign_expires_seconds: int = 300
    signing_secret: str = "change-me"
