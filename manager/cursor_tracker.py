"""Seek-pagination cursor state per (scope, type filter)."""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from common.logging_config import get_logger
from common.types import AssetRecord, AssetType, Page, Scope
from manager.exceptions import InvalidStateError, StoreUnavailableError
from manager.stores import MetadataStore

logger = get_logger(__name__)

CursorKey = Tuple[str, Optional[AssetType]]


@dataclass
class CursorState:
    boundary: Optional[AssetRecord] = None
    has_more: bool = False
    started: bool = False


class CursorTracker:
    """
    Tracks how far into the remote, newest-first listing each filter scope has read.

    The cursor is the last record returned, never a page number. Ordering is
    defined per type filter, so callers must reset a key when its filter changes.
    Fetches on one key are not safe to run concurrently; callers serialize them.
    """

    def __init__(self, store: MetadataStore):
        self.store = store
        self._cursors: Dict[CursorKey, CursorState] = {}

    @staticmethod
    def _key(scope: Scope, type_filter: Optional[AssetType]) -> CursorKey:
        return scope.cache_key, type_filter

    async def fetch_first_page(
        self,
        scope: Scope,
        page_size: int,
        type_filter: Optional[AssetType] = None,
    ) -> Page:
        """
        Fetch the newest page for a scope and start its cursor.

        Raises:
            StoreUnavailableError: If the metadata store call fails; the prior cursor is kept
        """
        records = await self._list(scope, type_filter, None, page_size)

        state = CursorState(
            boundary=records[-1] if records else None,
            has_more=len(records) == page_size,
            started=True,
        )
        self._cursors[self._key(scope, type_filter)] = state

        logger.debug(
            f"First page fetched [scope={scope.cache_key}] [type={type_filter}] "
            f"count={len(records)} has_more={state.has_more}"
        )
        return Page(records=records, has_more=state.has_more)

    async def fetch_next_page(
        self,
        scope: Scope,
        page_size: int,
        type_filter: Optional[AssetType] = None,
    ) -> Page:
        """
        Fetch the page strictly after the stored boundary.

        Raises:
            InvalidStateError: If no first page was fetched for this scope and filter
            StoreUnavailableError: If the metadata store call fails; the cursor is not advanced
        """
        key = self._key(scope, type_filter)
        state = self._cursors.get(key)
        if state is None or not state.started:
            raise InvalidStateError(
                f"fetch_next_page called before fetch_first_page [scope={scope.cache_key}] [type={type_filter}]"
            )

        if state.boundary is None:
            state.has_more = False
            return Page(records=[], has_more=False)

        records = await self._list(scope, type_filter, state.boundary, page_size)

        if records:
            state.boundary = records[-1]
        state.has_more = len(records) == page_size

        logger.debug(
            f"Next page fetched [scope={scope.cache_key}] [type={type_filter}] "
            f"count={len(records)} has_more={state.has_more}"
        )
        return Page(records=records, has_more=state.has_more)

    def reset(self, scope: Scope, type_filter: Optional[AssetType] = None) -> None:
        self._cursors.pop(self._key(scope, type_filter), None)

    def has_more(self, scope: Scope, type_filter: Optional[AssetType] = None) -> bool:
        state = self._cursors.get(self._key(scope, type_filter))
        return state is not None and state.has_more

    async def _list(self, scope, type_filter, after, page_size):
        try:
            records, _ = await self.store.list_page(scope, type_filter, after, page_size)
        except StoreUnavailableError:
            raise
        except Exception as e:
            logger.error(f"Page fetch failed [scope={scope.cache_key}] [type={type_filter}]: {e}")
            raise StoreUnavailableError(f"Failed to load media: {e}", store="metadata") from e
        return list(records)
