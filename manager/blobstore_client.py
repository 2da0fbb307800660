"""HTTP client for uploading and deleting blobs on the CDN blob store."""

import hashlib
import io
import time
from typing import Dict, Optional

import httpx

from common.logging_config import get_logger
from common.types import UploadedBlob
from manager.config import BlobStoreConfig
from manager.exceptions import BlobStoreNotConfiguredError, StoreUnavailableError
from manager.stores import ProgressCallback
from manager.utils import resource_type_for_content_type

logger = get_logger(__name__)

DELETE_OK_RESULTS = ("ok", "not found")


class ProgressReader(io.BytesIO):
    """
    In-memory file part that reports how much of it has been read.

    httpx reads the file part in chunks while streaming the multipart body,
    so each read is one progress step. Progress stays below 100 until the
    blob store has answered.
    """

    def __init__(self, data: bytes, on_progress: Optional[ProgressCallback] = None):
        super().__init__(data)
        self.total = len(data)
        self.on_progress = on_progress

    def read(self, size: Optional[int] = -1) -> bytes:
        piece = super().read(size)
        if piece and self.on_progress and self.total:
            self.on_progress(min(self.tell() * 100.0 / self.total, 99.0))
        return piece


def sign_request(params: Dict[str, str], api_secret: str) -> str:
    """
    SHA-1 signature over the alphabetically sorted parameters followed by the secret.
    """
    payload = "&".join(f"{key}={params[key]}" for key in sorted(params))
    return hashlib.sha1(f"{payload}{api_secret}".encode()).hexdigest()


class BlobStoreClient:
    """
    httpx client for blob store operations.
    Handles connection management and maps transport failures to StoreUnavailableError.
    """

    def __init__(self, config: Optional[BlobStoreConfig] = None, client: Optional[httpx.AsyncClient] = None):
        """Initialize client with lazy connection."""
        self.config = config or BlobStoreConfig.from_env()
        self._client = client

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=self.config.timeout,
            )
            logger.info(f"Opened blob store client [base_url={self.config.base_url}]")
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def upload(
        self,
        data: bytes,
        content_type: str,
        on_progress: Optional[ProgressCallback] = None,
        folder: Optional[str] = None,
        name: Optional[str] = None,
    ) -> UploadedBlob:
        """
        Upload binary content to the blob store.

        Args:
            data: Raw file content
            content_type: MIME type of the content
            on_progress: Called with a percentage as the body is sent, and with 100 on success
            folder: Blob store folder to place the content in
            name: Original file name

        Returns:
            UploadedBlob with the public URL and the blob reference

        Raises:
            BlobStoreNotConfiguredError: If cloud name or upload preset are missing
            StoreUnavailableError: If the blob store is unreachable or rejects the upload
        """
        if not self.config.can_upload:
            raise BlobStoreNotConfiguredError("Blob store not configured for uploads")

        resource_type = resource_type_for_content_type(content_type)
        fields = {"upload_preset": self.config.upload_preset}
        if folder:
            fields["folder"] = folder

        files = {
            "file": (
                name or "upload",
                ProgressReader(data, on_progress),
                content_type or "application/octet-stream",
            )
        }

        client = self._ensure_client()
        endpoint = f"/v1_1/{self.config.cloud_name}/{resource_type}/upload"

        try:
            response = await client.post(endpoint, data=fields, files=files)
        except (httpx.ConnectError, httpx.TimeoutException) as e:
            logger.error(f"Blob store unreachable during upload [name={name}]: {e}")
            raise StoreUnavailableError(f"Blob store unavailable: {e}", store="blob") from e
        except httpx.HTTPError as e:
            logger.error(f"Blob upload transport error [name={name}]: {e}")
            raise StoreUnavailableError(f"Upload failed: {e}", store="blob") from e

        if response.status_code >= 400:
            logger.error(f"Blob upload rejected [name={name}] status={response.status_code}: {response.text}")
            raise StoreUnavailableError(f"Upload failed: {response.status_code}", store="blob")

        try:
            payload = response.json()
            uploaded = UploadedBlob(
                url=payload["secure_url"],
                blob_ref=payload["public_id"],
                resource_type=payload.get("resource_type", resource_type),
            )
        except (ValueError, KeyError, TypeError) as e:
            raise StoreUnavailableError(f"Malformed upload response: {e}", store="blob") from e

        if on_progress:
            on_progress(100.0)

        logger.info(f"Uploaded blob [name={name}] [blob_ref={uploaded.blob_ref}] [size={len(data)}]")
        return uploaded

    async def delete_by_ref(self, blob_ref: str, resource_type_hint: str = "image") -> bool:
        """
        Delete a blob by its reference.

        Args:
            blob_ref: Blob reference returned by upload
            resource_type_hint: Resource class the blob was stored under (image, video, raw)

        Returns:
            True if the blob is gone (deleted now or already absent), False otherwise

        Raises:
            BlobStoreNotConfiguredError: If signing credentials are missing
            StoreUnavailableError: If the blob store is unreachable
        """
        if not self.config.can_delete:
            raise BlobStoreNotConfiguredError("Blob store not configured for deletes")

        params = {"public_id": blob_ref, "timestamp": str(int(time.time()))}
        form = dict(params)
        form["api_key"] = self.config.api_key
        form["signature"] = sign_request(params, self.config.api_secret)

        client = self._ensure_client()
        endpoint = f"/v1_1/{self.config.cloud_name}/{resource_type_hint}/destroy"

        try:
            response = await client.post(endpoint, data=form)
        except (httpx.ConnectError, httpx.TimeoutException) as e:
            logger.error(f"Blob store unreachable during delete [blob_ref={blob_ref}]: {e}")
            raise StoreUnavailableError(f"Blob store unavailable: {e}", store="blob") from e
        except httpx.HTTPError as e:
            logger.error(f"Blob delete transport error [blob_ref={blob_ref}]: {e}")
            raise StoreUnavailableError(f"Delete failed: {e}", store="blob") from e

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        result = payload.get("result") if isinstance(payload, dict) else None

        if result in DELETE_OK_RESULTS:
            logger.info(f"Deleted blob [blob_ref={blob_ref}] [result={result}]")
            return True

        logger.warning(
            f"Failed to delete blob [blob_ref={blob_ref}] status={response.status_code} result={result}"
        )
        return False
