"""Configuration settings for the media synchronization layer."""

import os
from dataclasses import dataclass

from common.constants import (
    BLOB_STORE_DEFAULT_BASE_URL,
    BLOB_STORE_TIMEOUT_SECONDS,
    DEFAULT_FOLDER_PREFIX,
    DEFAULT_PAGE_SIZE,
    DEFAULT_UPLOAD_CONCURRENCY,
)


DATABASE_PATH = os.environ.get("MEDIASYNC_DATABASE_PATH", "./data/media.db")

PAGE_SIZE = int(os.environ.get("MEDIASYNC_PAGE_SIZE", str(DEFAULT_PAGE_SIZE)))

UPLOAD_CONCURRENCY = int(os.environ.get("MEDIASYNC_UPLOAD_CONCURRENCY", str(DEFAULT_UPLOAD_CONCURRENCY)))

ORPHAN_LEDGER_PATH = os.environ.get("MEDIASYNC_ORPHAN_LEDGER_PATH", "./data/orphaned_blobs.json")


@dataclass(frozen=True)
class BlobStoreConfig:
    """Credentials and endpoint of the blob/CDN store."""
    cloud_name: str = ""
    upload_preset: str = ""
    api_key: str = ""
    api_secret: str = ""
    base_url: str = BLOB_STORE_DEFAULT_BASE_URL
    folder_prefix: str = DEFAULT_FOLDER_PREFIX
    timeout: int = BLOB_STORE_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls) -> "BlobStoreConfig":
        return cls(
            cloud_name=os.environ.get("MEDIASYNC_BLOB_CLOUD_NAME", ""),
            upload_preset=os.environ.get("MEDIASYNC_BLOB_UPLOAD_PRESET", ""),
            api_key=os.environ.get("MEDIASYNC_BLOB_API_KEY", ""),
            api_secret=os.environ.get("MEDIASYNC_BLOB_API_SECRET", ""),
            base_url=os.environ.get("MEDIASYNC_BLOB_BASE_URL", BLOB_STORE_DEFAULT_BASE_URL),
            folder_prefix=os.environ.get("MEDIASYNC_BLOB_FOLDER_PREFIX", DEFAULT_FOLDER_PREFIX),
            timeout=int(os.environ.get("MEDIASYNC_BLOB_TIMEOUT", str(BLOB_STORE_TIMEOUT_SECONDS))),
        )

    @property
    def can_upload(self) -> bool:
        return bool(self.cloud_name and self.upload_preset)

    @property
    def can_delete(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)
