"""Delete coordination across the metadata store and the blob store."""

import logging
from typing import Optional

from common.types import AssetRecord, DeleteOutcome, DeleteReport, Notice, NoticeLevel, Scope
from manager.exceptions import AssetNotFoundError
from manager.orphan_ledger import OrphanLedger
from manager.services.upload_service import NoticeCallback
from manager.stores import BlobStore, MetadataStore
from manager.utils import emit_notice, resource_type_hint
from manager.view_cache import AssetViewCache

logger = logging.getLogger(__name__)


class DeleteCoordinator:
    """
    Removes an asset record and then its blob.

    The record goes first: once it is gone the asset disappears from every
    view, even if the blob store then fails and leaves an orphaned blob.
    """

    def __init__(
        self,
        metadata_store: MetadataStore,
        blob_store: BlobStore,
        orphan_ledger: Optional[OrphanLedger] = None,
    ):
        self.metadata_store = metadata_store
        self.blob_store = blob_store
        self.orphan_ledger = orphan_ledger

    async def delete(
        self,
        record: AssetRecord,
        scope: Scope,
        view_cache: AssetViewCache,
        on_notice: Optional[NoticeCallback] = None,
    ) -> DeleteReport:
        """
        Delete one asset from both stores and from the view cache.

        Returns:
            DeleteReport with outcome DELETED, ORPHANED_BLOB (warning) or FAILED
        """
        try:
            await self.metadata_store.delete_by_id(scope, record.id)
        except AssetNotFoundError as e:
            logger.warning(f"Metadata delete failed, record missing [id={record.id}]: {e}")
            return self._report(record, DeleteOutcome.FAILED, on_notice, error=str(e), retryable=False)
        except Exception as e:
            logger.error(f"Metadata delete failed [id={record.id}]: {e}")
            return self._report(record, DeleteOutcome.FAILED, on_notice, error=str(e), retryable=True)

        outcome = DeleteOutcome.DELETED
        error = None

        if record.blob_ref:
            hint = resource_type_hint(record)
            try:
                blob_deleted = await self.blob_store.delete_by_ref(record.blob_ref, hint)
            except Exception as e:
                blob_deleted = False
                error = str(e)

            if not blob_deleted:
                outcome = DeleteOutcome.ORPHANED_BLOB
                logger.warning(
                    f"Record deleted but blob remains [id={record.id}] [blob_ref={record.blob_ref}] "
                    f"[resource_type={hint}]: {error or 'blob store refused delete'}"
                )
                if self.orphan_ledger is not None:
                    self.orphan_ledger.record(
                        record.blob_ref, hint, reason="blob_delete_failed",
                        asset_id=record.id, name=record.name,
                    )
        else:
            logger.warning(f"Record had no blob reference, blob not deleted [id={record.id}]")

        view_cache.remove(record.id)
        return self._report(record, outcome, on_notice, error=error)

    @staticmethod
    def _report(
        record: AssetRecord,
        outcome: DeleteOutcome,
        on_notice: Optional[NoticeCallback],
        error: Optional[str] = None,
        retryable: bool = False,
    ) -> DeleteReport:
        if outcome == DeleteOutcome.DELETED:
            notice = Notice(NoticeLevel.SUCCESS, f'File "{record.name}" deleted successfully!')
        elif outcome == DeleteOutcome.ORPHANED_BLOB:
            notice = Notice(
                NoticeLevel.WARNING,
                f'File "{record.name}" removed from database but may still exist in cloud storage.',
            )
        else:
            notice = Notice(
                NoticeLevel.ERROR, f'Failed to delete "{record.name}" from database', retryable=retryable
            )

        emit_notice(on_notice, notice)
        return DeleteReport(asset_id=record.id, outcome=outcome, notice=notice, error=error)
