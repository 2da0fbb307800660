"""Unit tests for the upload coordinator."""

import httpx
import pytest

from common.types import AssetType, BatchOutcome, NoticeLevel, PendingUpload, UploadState
from manager.blobstore_client import BlobStoreClient
from manager.config import BlobStoreConfig
from manager.exceptions import InvalidArgumentError
from manager.orphan_ledger import OrphanLedger
from manager.services.upload_service import UploadCoordinator
from manager.view_cache import AssetViewCache


def pending(name, content_type="image/jpeg", data=b"x" * 10, folder=None):
    return PendingUpload(name=name, content_type=content_type, data=data, folder=folder)


class TestUploadBatch:
    """Test batch uploads across both stores."""

    @pytest.mark.asyncio
    async def test_empty_batch_rejected(self, metadata_store, blob_store, scope):
        coordinator = UploadCoordinator(metadata_store, blob_store)

        with pytest.raises(InvalidArgumentError):
            await coordinator.upload_batch([], scope, AssetViewCache())

        assert blob_store.calls == []

    @pytest.mark.asyncio
    async def test_single_file_creates_record_after_blob(self, metadata_store, blob_store, call_log, scope, notices):
        collected, on_notice = notices
        cache = AssetViewCache()
        coordinator = UploadCoordinator(metadata_store, blob_store)

        report = await coordinator.upload_batch(
            [pending("hymn.mp3", "audio/mpeg", b"a" * 42)], scope, cache, on_notice=on_notice
        )

        assert call_log == [("upload", "hymn.mp3"), ("insert", "hymn.mp3")]
        assert report.outcome == BatchOutcome.ALL_SUCCEEDED
        assert report.succeeded == 1

        record = report.records[0]
        assert record.type == AssetType.AUDIO
        assert record.size == 42
        assert record.folder == "audio"
        assert record.format == "mp3"
        assert record.resource_type == "video"
        assert record.blob_ref == "media-library/audio/hymn.mp3"
        assert cache.records() == [record]

        assert [n.message for n in collected] == [
            '"hymn.mp3" uploaded successfully!',
            "All 1 file(s) uploaded successfully!",
        ]

    @pytest.mark.asyncio
    async def test_blob_failure_never_creates_record(self, metadata_store, blob_store, call_log, scope):
        blob_store.fail_names.add("broken.png")
        coordinator = UploadCoordinator(metadata_store, blob_store)

        report = await coordinator.upload_batch([pending("broken.png")], scope, AssetViewCache())

        assert ("insert", "broken.png") not in call_log
        assert report.results[0].state == UploadState.UPLOAD_FAILED
        assert report.outcome == BatchOutcome.ALL_FAILED
        assert report.notice.message == "All 1 file(s) failed to upload"
        assert report.notice.level == NoticeLevel.ERROR

    @pytest.mark.asyncio
    async def test_partial_batch_appends_successes_in_input_order(
        self, metadata_store, blob_store, scope, notices, make_record
    ):
        collected, on_notice = notices
        cache = AssetViewCache([make_record(0), make_record(1)])
        blob_store.fail_names.add("two.png")
        coordinator = UploadCoordinator(metadata_store, blob_store)

        report = await coordinator.upload_batch(
            [pending("one.png"), pending("two.png"), pending("three.png")],
            scope,
            cache,
            on_notice=on_notice,
        )

        assert report.outcome == BatchOutcome.PARTIAL_FAILURE
        assert report.succeeded == 2
        assert report.failed == 1
        assert [r.name for r in cache.records()] == ["file-0.jpg", "file-1.jpg", "one.png", "three.png"]
        assert [r.state for r in report.results] == [
            UploadState.RECORDED, UploadState.UPLOAD_FAILED, UploadState.RECORDED
        ]
        assert report.notice.message == "2 succeeded, 1 failed"
        assert report.notice.level == NoticeLevel.WARNING
        assert 'Failed to upload "two.png" to storage' in [n.message for n in collected]

    @pytest.mark.asyncio
    async def test_record_failure_leaves_orphan_in_ledger(self, metadata_store, blob_store, scope, tmp_path):
        metadata_store.fail_insert_names.add("lost.pdf")
        ledger = OrphanLedger(tmp_path / "orphans.json")
        cache = AssetViewCache()
        coordinator = UploadCoordinator(metadata_store, blob_store, orphan_ledger=ledger)

        report = await coordinator.upload_batch(
            [pending("lost.pdf", "application/pdf")], scope, cache
        )

        result = report.results[0]
        assert result.state == UploadState.RECORD_FAILED
        assert result.blob.blob_ref == "media-library/documents/lost.pdf"
        assert len(cache) == 0
        assert blob_store.deleted == []

        entries = ledger.entries()
        assert len(entries) == 1
        assert entries[0]["blob_ref"] == "media-library/documents/lost.pdf"
        assert entries[0]["resource_type"] == "raw"
        assert entries[0]["reason"] == "record_creation_failed"

    @pytest.mark.asyncio
    async def test_progress_is_reported_per_file(self, metadata_store, blob_store, scope):
        progress = []
        coordinator = UploadCoordinator(metadata_store, blob_store)

        await coordinator.upload_batch(
            [pending("a.png"), pending("b.png")],
            scope,
            AssetViewCache(),
            on_progress=lambda name, percent: progress.append((name, percent)),
        )

        assert ("a.png", 100.0) in progress
        assert ("b.png", 100.0) in progress

    @pytest.mark.asyncio
    async def test_explicit_folder_and_zone(self, metadata_store, blob_store, zone_scope):
        coordinator = UploadCoordinator(metadata_store, blob_store, folder_prefix="choir")

        report = await coordinator.upload_batch(
            [pending("clip.mp4", "video/mp4", folder="concerts")], zone_scope, AssetViewCache()
        )

        record = report.records[0]
        assert record.folder == "concerts"
        assert record.zone_id == "zone-north"
        assert record.blob_ref == "choir/videos/clip.mp4"

    @pytest.mark.asyncio
    async def test_failing_notice_callback_does_not_break_batch(self, metadata_store, blob_store, scope):
        def on_notice(notice):
            raise RuntimeError("ui gone")

        coordinator = UploadCoordinator(metadata_store, blob_store)

        report = await coordinator.upload_batch([pending("a.png")], scope, AssetViewCache(), on_notice=on_notice)

        assert report.outcome == BatchOutcome.ALL_SUCCEEDED

    @pytest.mark.asyncio
    async def test_failing_progress_callback_does_not_fail_stored_blob(self, metadata_store, scope, tmp_path):
        def handler(request):
            return httpx.Response(200, json={
                "secure_url": "https://res.cloudinary.com/demo/image/upload/v1/media-library/images/a.png",
                "public_id": "media-library/images/a",
                "resource_type": "image",
            })

        blob_config = BlobStoreConfig(cloud_name="demo", upload_preset="unsigned_media", base_url="https://cdn.test")
        blob_client = BlobStoreClient(
            blob_config,
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=blob_config.base_url),
        )
        ledger = OrphanLedger(tmp_path / "orphans.json")
        coordinator = UploadCoordinator(metadata_store, blob_client, orphan_ledger=ledger)

        def on_progress(name, percent):
            raise RuntimeError("progress bar gone")

        report = await coordinator.upload_batch(
            [pending("a.png", "image/png", b"p" * 2048)], scope, AssetViewCache(), on_progress=on_progress
        )

        result = report.results[0]
        assert result.state == UploadState.RECORDED
        assert result.blob.blob_ref == "media-library/images/a"
        assert result.record.blob_ref == "media-library/images/a"
        assert report.outcome == BatchOutcome.ALL_SUCCEEDED
        assert ledger.entries() == []
        await blob_client.close()

    @pytest.mark.asyncio
    async def test_progress_callback_failing_at_completion_is_ignored(self, metadata_store, blob_store, scope):
        def on_progress(name, percent):
            if percent == 100.0:
                raise RuntimeError("progress bar gone")

        coordinator = UploadCoordinator(metadata_store, blob_store)

        report = await coordinator.upload_batch(
            [pending("a.png")], scope, AssetViewCache(), on_progress=on_progress
        )

        assert report.results[0].state == UploadState.RECORDED
        assert blob_store.calls == [("upload", "a.png"), ("insert", "a.png")]
