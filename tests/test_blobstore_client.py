"""Unit tests for BlobStoreClient."""

import hashlib
from urllib.parse import parse_qs

import httpx
import pytest

from manager.blobstore_client import BlobStoreClient, ProgressReader, sign_request
from manager.config import BlobStoreConfig
from manager.exceptions import BlobStoreNotConfiguredError, StoreUnavailableError

BASE_URL = "https://cdn.test"


@pytest.fixture
def blob_config():
    return BlobStoreConfig(
        cloud_name="demo",
        upload_preset="unsigned_media",
        api_key="key123",
        api_secret="secret456",
        base_url=BASE_URL,
    )


def make_client(config, handler):
    transport = httpx.MockTransport(handler)
    return BlobStoreClient(config, client=httpx.AsyncClient(transport=transport, base_url=config.base_url))


class TestHelpers:
    """Test request encoding and signing."""

    def test_sign_request_sorts_parameters(self):
        signature = sign_request({"timestamp": "1700000000", "public_id": "songs/a"}, "s3cret")

        expected = hashlib.sha1(b"public_id=songs/a&timestamp=1700000000s3cret").hexdigest()
        assert signature == expected

    def test_progress_reader_reports_capped_percentages(self):
        progress = []
        reader = ProgressReader(b"a" * 100, progress.append)

        assert reader.read(40) == b"a" * 40
        assert reader.read(100) == b"a" * 60
        assert reader.read(100) == b""

        assert progress == [40.0, 99.0]


class TestUpload:
    """Test blob uploads."""

    @pytest.mark.asyncio
    async def test_upload_success(self, blob_config):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = request.content
            seen["headers"] = request.headers
            return httpx.Response(200, json={
                "secure_url": "https://res.cloudinary.com/demo/video/upload/v1/media-library/audio/hymn.mp3",
                "public_id": "media-library/audio/hymn",
                "resource_type": "video",
            })

        progress = []
        client = make_client(blob_config, handler)

        blob = await client.upload(
            b"a" * 1000,
            "audio/mpeg",
            on_progress=progress.append,
            folder="media-library/audio",
            name="hymn.mp3",
        )

        assert seen["path"] == "/v1_1/demo/video/upload"
        assert b"unsigned_media" in seen["body"]
        assert b"media-library/audio" in seen["body"]
        assert b'filename="hymn.mp3"' in seen["body"]
        assert b"Content-Type: audio/mpeg" in seen["body"]
        assert seen["headers"]["content-type"].startswith("multipart/form-data; boundary=")
        assert seen["headers"]["content-length"] == str(len(seen["body"]))
        assert blob.blob_ref == "media-library/audio/hymn"
        assert blob.resource_type == "video"
        assert progress[-1] == 100.0
        assert all(p <= 99.0 for p in progress[:-1])
        await client.close()

    @pytest.mark.asyncio
    async def test_document_uploads_as_raw(self, blob_config):
        def handler(request):
            assert request.url.path == "/v1_1/demo/raw/upload"
            return httpx.Response(200, json={"secure_url": "https://x/raw/upload/a.pdf", "public_id": "a"})

        client = make_client(blob_config, handler)

        blob = await client.upload(b"%PDF", "application/pdf", name="a.pdf")

        assert blob.resource_type == "raw"

    @pytest.mark.asyncio
    async def test_upload_without_preset_raises(self):
        client = BlobStoreClient(BlobStoreConfig(cloud_name="demo"))

        with pytest.raises(BlobStoreNotConfiguredError):
            await client.upload(b"x", "image/png")

    @pytest.mark.asyncio
    async def test_upload_rejected_status(self, blob_config):
        client = make_client(blob_config, lambda request: httpx.Response(400, json={"error": {"message": "bad"}}))

        with pytest.raises(StoreUnavailableError) as exc_info:
            await client.upload(b"x", "image/png", name="x.png")

        assert exc_info.value.store == "blob"

    @pytest.mark.asyncio
    async def test_upload_connection_error(self, blob_config):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        client = make_client(blob_config, handler)

        with pytest.raises(StoreUnavailableError):
            await client.upload(b"x", "image/png", name="x.png")

    @pytest.mark.asyncio
    async def test_upload_malformed_response(self, blob_config):
        client = make_client(blob_config, lambda request: httpx.Response(200, json=["unexpected"]))

        with pytest.raises(StoreUnavailableError):
            await client.upload(b"x", "image/png", name="x.png")


class TestDeleteByRef:
    """Test signed blob deletes."""

    @pytest.mark.asyncio
    async def test_delete_sends_signed_form(self, blob_config):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["form"] = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
            return httpx.Response(200, json={"result": "ok"})

        client = make_client(blob_config, handler)

        assert await client.delete_by_ref("songs/anthem", "video") is True

        form = seen["form"]
        assert seen["path"] == "/v1_1/demo/video/destroy"
        assert form["public_id"] == "songs/anthem"
        assert form["api_key"] == "key123"
        assert form["signature"] == sign_request(
            {"public_id": "songs/anthem", "timestamp": form["timestamp"]}, "secret456"
        )

    @pytest.mark.asyncio
    async def test_not_found_counts_as_deleted(self, blob_config):
        client = make_client(blob_config, lambda request: httpx.Response(200, json={"result": "not found"}))

        assert await client.delete_by_ref("songs/missing") is True

    @pytest.mark.asyncio
    async def test_other_result_is_failure(self, blob_config):
        client = make_client(blob_config, lambda request: httpx.Response(401, json={"error": "invalid signature"}))

        assert await client.delete_by_ref("songs/anthem") is False

    @pytest.mark.asyncio
    async def test_delete_without_credentials_raises(self):
        client = BlobStoreClient(BlobStoreConfig(cloud_name="demo", upload_preset="p"))

        with pytest.raises(BlobStoreNotConfiguredError):
            await client.delete_by_ref("songs/anthem")

    @pytest.mark.asyncio
    async def test_delete_timeout(self, blob_config):
        def handler(request):
            raise httpx.ReadTimeout("timed out")

        client = make_client(blob_config, handler)

        with pytest.raises(StoreUnavailableError):
            await client.delete_by_ref("songs/anthem")
