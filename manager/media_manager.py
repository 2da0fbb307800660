"""View-layer state for the media library: pagination, search, upload and delete."""

import asyncio
from typing import Callable, Iterable, List, Optional

from common.constants import DEFAULT_FOLDER_PREFIX
from common.logging_config import get_logger
from common.types import (
    AssetRecord,
    AssetType,
    BatchReport,
    DeepSearchResult,
    DeleteOutcome,
    DeleteReport,
    Notice,
    NoticeLevel,
    PendingUpload,
    Scope,
)
from manager import config
from manager.blobstore_client import BlobStoreClient
from manager.config import BlobStoreConfig
from manager.database import init_database
from manager.cursor_tracker import CursorTracker
from manager.deep_search import DeepSearchReconciler
from manager.exceptions import StoreUnavailableError
from manager.orphan_ledger import OrphanLedger
from manager.services import DeleteCoordinator, UploadCoordinator
from manager.stores import BlobStore, MetadataStore, SqliteMetadataStore
from manager.utils import emit_notice
from manager.view_cache import AssetFilter, AssetViewCache, MediaStats

logger = get_logger(__name__)

NoticeCallback = Callable[[Notice], None]


class MediaManager:
    """
    State behind one media library view.

    Owns the view cache, the cursor tracker and the deep search results for a
    single scope and wires them to the upload and delete coordinators. The
    scope, the stores and the notice hook are passed in explicitly.
    """

    def __init__(
        self,
        scope: Scope,
        metadata_store: MetadataStore,
        blob_store: BlobStore,
        page_size: Optional[int] = None,
        on_notice: Optional[NoticeCallback] = None,
        orphan_ledger: Optional[OrphanLedger] = None,
        upload_concurrency: Optional[int] = None,
        folder_prefix: str = DEFAULT_FOLDER_PREFIX,
    ):
        self.scope = scope
        self.page_size = page_size or config.PAGE_SIZE
        self.on_notice = on_notice

        self.view_cache = AssetViewCache()
        self.cursor = CursorTracker(metadata_store)
        self.deep_search_reconciler = DeepSearchReconciler(metadata_store)
        self.uploader = UploadCoordinator(
            metadata_store,
            blob_store,
            concurrency=upload_concurrency,
            folder_prefix=folder_prefix,
            orphan_ledger=orphan_ledger,
        )
        self.deleter = DeleteCoordinator(metadata_store, blob_store, orphan_ledger=orphan_ledger)

        self.type_filter: Optional[AssetType] = None
        self.search_term = ""
        self._loading_more = False
        self._load_lock = asyncio.Lock()

    @classmethod
    def from_config(
        cls,
        scope: Scope,
        on_notice: Optional[NoticeCallback] = None,
        blob_config: Optional[BlobStoreConfig] = None,
    ) -> "MediaManager":
        """Build a manager over the SQLite metadata store and the HTTP blob store."""
        blob_config = blob_config or BlobStoreConfig.from_env()
        init_database()
        return cls(
            scope,
            SqliteMetadataStore(),
            BlobStoreClient(blob_config),
            page_size=config.PAGE_SIZE,
            on_notice=on_notice,
            orphan_ledger=OrphanLedger(config.ORPHAN_LEDGER_PATH),
            upload_concurrency=config.UPLOAD_CONCURRENCY,
            folder_prefix=blob_config.folder_prefix,
        )

    async def load(self) -> List[AssetRecord]:
        """
        Load the newest page for the active type filter, replacing the cache.

        Returns:
            Records now in the cache

        Raises:
            StoreUnavailableError: If the metadata store fails; the cache is left as it was
        """
        async with self._load_lock:
            self.cursor.reset(self.scope, self.type_filter)
            try:
                page = await self.cursor.fetch_first_page(self.scope, self.page_size, self.type_filter)
            except StoreUnavailableError as e:
                logger.error(f"Initial load failed [scope={self.scope.cache_key}]: {e}")
                self._notify(NoticeLevel.ERROR, f"Failed to load media: {e}", retryable=True)
                raise

            self.view_cache.replace_all(page.records)
            self.deep_search_reconciler.clear(self.scope)

        logger.info(
            f"Loaded media [scope={self.scope.cache_key}] [type={self.type_filter}] "
            f"count={len(page.records)} has_more={page.has_more}"
        )
        if not page.records:
            self._notify(NoticeLevel.INFO, "No media files found. Upload some files to get started!")
        return self.view_cache.records()

    async def refresh(self) -> List[AssetRecord]:
        return await self.load()

    async def load_more(self) -> List[AssetRecord]:
        """
        Append the next page to the cache.

        Returns an empty list without touching the store while another fetch
        is outstanding or when the listing is exhausted.
        """
        if self._loading_more or not self.has_more:
            return []

        self._loading_more = True
        try:
            async with self._load_lock:
                page = await self.cursor.fetch_next_page(self.scope, self.page_size, self.type_filter)
        except StoreUnavailableError as e:
            logger.error(f"Load more failed [scope={self.scope.cache_key}]: {e}")
            self._notify(NoticeLevel.ERROR, f"Failed to load more media: {e}", retryable=True)
            raise
        finally:
            self._loading_more = False

        return self.view_cache.append(page.records)

    @property
    def has_more(self) -> bool:
        return self.cursor.has_more(self.scope, self.type_filter)

    @property
    def is_loading_more(self) -> bool:
        return self._loading_more

    async def set_type_filter(self, asset_type: Optional[AssetType]) -> List[AssetRecord]:
        """Switch the server-side type filter and reload from the first page."""
        self.cursor.reset(self.scope, self.type_filter)
        self.type_filter = asset_type
        return await self.load()

    def set_search_term(self, term: str) -> None:
        self.search_term = term or ""
        self.deep_search_reconciler.clear(self.scope)

    def visible_assets(
        self,
        folder: Optional[str] = None,
        allowed_types: Optional[Iterable[AssetType]] = None,
    ) -> List[AssetRecord]:
        """
        Records to display: the locally filtered cache, then the deep search
        results that are not already in the cache.
        """
        predicate = AssetFilter(
            search_term=self.search_term.strip(),
            asset_type=self.type_filter,
            folder=folder,
            allowed_types=frozenset(allowed_types) if allowed_types is not None else None,
        )
        listed = self.view_cache.filter_view(predicate)
        cached_ids = self.view_cache.ids()
        extra = [
            record for record in self.deep_results()
            if record.id not in cached_ids and predicate(record)
        ]
        return listed + extra

    def deep_results(self) -> List[AssetRecord]:
        """Deep search matches the paginated view has not listed yet."""
        return self.deep_search_reconciler.results(self.scope)

    async def deep_search(self) -> DeepSearchResult:
        """
        Search the whole remote corpus for the current search term.

        Raises:
            InvalidArgumentError: If the search term is shorter than the minimum length
            StoreUnavailableError: If the metadata store fails
        """
        try:
            result = await self.deep_search_reconciler.search(self.search_term, self.scope, self.view_cache)
        except StoreUnavailableError as e:
            logger.error(f"Deep search failed [scope={self.scope.cache_key}]: {e}")
            self._notify(NoticeLevel.ERROR, "Deep search failed. Please try again.", retryable=True)
            raise

        if result.superseded:
            return result

        if result.new_items:
            self._notify(NoticeLevel.SUCCESS, f"Found {len(result.new_items)} unlisted files!")
        else:
            self._notify(NoticeLevel.INFO, "No unlisted files found matching your search.")
        return result

    async def upload(
        self,
        files: Iterable[PendingUpload],
        on_progress: Optional[Callable[[str, float], None]] = None,
    ) -> BatchReport:
        return await self.uploader.upload_batch(
            files, self.scope, self.view_cache, on_progress=on_progress, on_notice=self.on_notice
        )

    async def delete(self, record: AssetRecord) -> DeleteReport:
        report = await self.deleter.delete(record, self.scope, self.view_cache, on_notice=self.on_notice)
        if report.outcome != DeleteOutcome.FAILED:
            self.deep_search_reconciler.discard(self.scope, record.id)
        return report

    def stats(self) -> MediaStats:
        return self.view_cache.summarize()

    def folders(self) -> List[str]:
        return self.view_cache.folders()

    def _notify(self, level: NoticeLevel, message: str, retryable: bool = False) -> None:
        emit_notice(self.on_notice, Notice(level, message, retryable=retryable))
