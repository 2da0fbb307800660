"""Upload coordination across the blob store and the metadata store."""

import asyncio
import logging
from typing import Callable, Iterable, Optional

from common.constants import DEFAULT_FOLDER_PREFIX
from common.types import (
    BatchOutcome,
    BatchReport,
    FileUploadResult,
    NewAsset,
    Notice,
    NoticeLevel,
    PendingUpload,
    Scope,
    UploadState,
)
from manager import config
from manager.exceptions import InvalidArgumentError
from manager.orphan_ledger import OrphanLedger
from manager.stores import BlobStore, MetadataStore
from manager.utils import blob_folder_for, classify_content_type, emit_notice, file_format
from manager.view_cache import AssetViewCache

logger = logging.getLogger(__name__)

FileProgressCallback = Callable[[str, float], None]
NoticeCallback = Callable[[Notice], None]


class UploadCoordinator:
    """
    Turns each user-supplied file into one blob plus one metadata record.

    Per file the blob is always stored before the record is created, so a
    record never points at a missing blob. A blob whose record could not be
    created is reported and logged as orphaned, never deleted automatically.
    """

    def __init__(
        self,
        metadata_store: MetadataStore,
        blob_store: BlobStore,
        concurrency: Optional[int] = None,
        folder_prefix: str = DEFAULT_FOLDER_PREFIX,
        orphan_ledger: Optional[OrphanLedger] = None,
    ):
        self.metadata_store = metadata_store
        self.blob_store = blob_store
        self.concurrency = max(1, concurrency or config.UPLOAD_CONCURRENCY)
        self.folder_prefix = folder_prefix
        self.orphan_ledger = orphan_ledger

    async def upload_batch(
        self,
        files: Iterable[PendingUpload],
        scope: Scope,
        view_cache: AssetViewCache,
        on_progress: Optional[FileProgressCallback] = None,
        on_notice: Optional[NoticeCallback] = None,
    ) -> BatchReport:
        """
        Upload a batch of files, each independently.

        Args:
            files: Files to upload
            scope: Scope the new records belong to
            view_cache: Cache that receives the successfully recorded files
            on_progress: Called with (file name, percent) while blobs upload
            on_notice: Receives per-file and batch notices

        Returns:
            BatchReport with per-file results and the batch outcome

        Raises:
            InvalidArgumentError: If the batch is empty
        """
        files = list(files)
        if not files:
            raise InvalidArgumentError("No files selected")

        results = [FileUploadResult(name=file.name) for file in files]
        semaphore = asyncio.Semaphore(self.concurrency)

        async def run(file: PendingUpload, result: FileUploadResult) -> None:
            async with semaphore:
                await self._upload_one(file, result, scope, on_progress, on_notice)

        logger.info(f"Uploading batch of {len(files)} file(s) [scope={scope.cache_key}]")
        await asyncio.gather(*(run(file, result) for file, result in zip(files, results)))

        recorded = [result.record for result in results if result.succeeded]
        if recorded:
            view_cache.append(recorded)

        succeeded = len(recorded)
        failed = len(results) - succeeded
        outcome, notice = self._summarize(succeeded, failed)

        logger.info(
            f"Upload batch finished [scope={scope.cache_key}] "
            f"succeeded={succeeded} failed={failed} outcome={outcome.value}"
        )
        emit_notice(on_notice, notice)

        return BatchReport(
            results=results,
            outcome=outcome,
            succeeded=succeeded,
            failed=failed,
            notice=notice,
        )

    async def _upload_one(
        self,
        file: PendingUpload,
        result: FileUploadResult,
        scope: Scope,
        on_progress: Optional[FileProgressCallback],
        on_notice: Optional[NoticeCallback],
    ) -> None:
        asset_type = classify_content_type(file.content_type)

        def report_progress(percent: float) -> None:
            if on_progress is None:
                return
            try:
                on_progress(file.name, percent)
            except Exception as e:
                logger.error(
                    f"Progress callback failed [name={file.name}] [percent={percent}]: {e}", exc_info=True
                )

        result.state = UploadState.UPLOADING
        try:
            blob = await self.blob_store.upload(
                file.data,
                file.content_type,
                on_progress=report_progress,
                folder=blob_folder_for(asset_type, self.folder_prefix),
                name=file.name,
            )
        except Exception as e:
            result.state = UploadState.UPLOAD_FAILED
            result.error = str(e)
            logger.error(f"Blob upload failed [name={file.name}]: {e}")
            emit_notice(on_notice, Notice(
                NoticeLevel.ERROR, f'Failed to upload "{file.name}" to storage', retryable=True
            ))
            return

        result.blob = blob
        result.state = UploadState.BLOB_STORED

        asset = NewAsset(
            name=file.name,
            url=blob.url,
            type=asset_type,
            size=file.size,
            folder=file.folder or asset_type.value,
            blob_ref=blob.blob_ref,
            resource_type=blob.resource_type,
            format=file_format(file.name),
        )

        result.state = UploadState.RECORD_CREATING
        try:
            record = await self.metadata_store.insert(scope, asset)
        except Exception as e:
            result.state = UploadState.RECORD_FAILED
            result.error = str(e)
            logger.error(
                f"Record creation failed after blob upload [name={file.name}] [blob_ref={blob.blob_ref}]: {e}"
            )
            if self.orphan_ledger is not None:
                self.orphan_ledger.record(
                    blob.blob_ref, blob.resource_type, reason="record_creation_failed", name=file.name
                )
            emit_notice(on_notice, Notice(
                NoticeLevel.ERROR, f'Failed to save "{file.name}" to database', retryable=True
            ))
            return

        result.record = record
        result.state = UploadState.RECORDED
        logger.info(f"Uploaded asset [id={record.id}] [name={file.name}] [type={asset_type.value}]")
        emit_notice(on_notice, Notice(NoticeLevel.SUCCESS, f'"{file.name}" uploaded successfully!'))

    @staticmethod
    def _summarize(succeeded: int, failed: int):
        if failed == 0:
            return BatchOutcome.ALL_SUCCEEDED, Notice(
                NoticeLevel.SUCCESS, f"All {succeeded} file(s) uploaded successfully!"
            )
        if succeeded > 0:
            return BatchOutcome.PARTIAL_FAILURE, Notice(
                NoticeLevel.WARNING, f"{succeeded} succeeded, {failed} failed", retryable=True
            )
        return BatchOutcome.ALL_FAILED, Notice(
            NoticeLevel.ERROR, f"All {failed} file(s) failed to upload", retryable=True
        )
