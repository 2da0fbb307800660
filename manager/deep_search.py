"""Full-corpus keyword search merged against the paginated view."""

import asyncio
from typing import Dict, List

from common.constants import DEEP_SEARCH_MIN_LENGTH
from common.logging_config import get_logger
from common.types import AssetRecord, DeepSearchResult, Scope
from manager.exceptions import InvalidArgumentError, StoreUnavailableError
from manager.stores import MetadataStore
from manager.utils import case_variants
from manager.view_cache import AssetViewCache

logger = get_logger(__name__)


class DeepSearchReconciler:
    """
    Runs unpaginated keyword queries and keeps the records the paginated
    view does not show yet as a separate, labelled result set per scope.

    Only the latest search per scope counts: a search that completes after a
    newer one was issued for the same scope is reported as superseded and
    its result is discarded.
    """

    def __init__(self, store: MetadataStore, min_length: int = DEEP_SEARCH_MIN_LENGTH):
        self.store = store
        self.min_length = min_length
        self._generations: Dict[str, int] = {}
        self._results: Dict[str, DeepSearchResult] = {}

    async def search(self, keyword: str, scope: Scope, view_cache: AssetViewCache) -> DeepSearchResult:
        """
        Search the whole remote corpus for a keyword.

        Args:
            keyword: Search term, at least min_length characters after trimming
            scope: Scope to search in
            view_cache: Paginated view the result is de-duplicated against

        Returns:
            DeepSearchResult whose new_items are the matches absent from view_cache

        Raises:
            InvalidArgumentError: If the keyword is too short; no remote call is made
            StoreUnavailableError: If the metadata store fails
        """
        term = (keyword or "").strip()
        if len(term) < self.min_length:
            raise InvalidArgumentError(
                f"Deep search keyword must be at least {self.min_length} characters"
            )

        key = scope.cache_key
        generation = self._generations.get(key, 0) + 1
        self._generations[key] = generation

        logger.info(f"Deep search started [scope={key}] [keyword={term}] [generation={generation}]")

        matched = await self._query(term, scope)

        if self._generations.get(key) != generation:
            logger.info(f"Deep search superseded [scope={key}] [keyword={term}] [generation={generation}]")
            return DeepSearchResult(keyword=term, matched=matched, superseded=True)

        visible_ids = view_cache.ids()
        new_items = [record for record in matched if record.id not in visible_ids]

        result = DeepSearchResult(keyword=term, matched=matched, new_items=new_items)
        self._results[key] = result

        logger.info(
            f"Deep search complete [scope={key}] [keyword={term}] "
            f"matched={len(matched)} new={len(new_items)}"
        )
        return result

    def results(self, scope: Scope) -> List[AssetRecord]:
        result = self._results.get(scope.cache_key)
        return list(result.new_items) if result else []

    def discard(self, scope: Scope, asset_id: str) -> None:
        """Drop one record from the held results, e.g. after it was deleted."""
        key = scope.cache_key
        result = self._results.get(key)
        if result is None:
            return
        self._results[key] = DeepSearchResult(
            keyword=result.keyword,
            matched=[record for record in result.matched if record.id != asset_id],
            new_items=[record for record in result.new_items if record.id != asset_id],
        )

    def clear(self, scope: Scope) -> None:
        """Discard held results; any search still in flight for the scope becomes stale."""
        key = scope.cache_key
        self._results.pop(key, None)
        self._generations[key] = self._generations.get(key, 0) + 1

    async def _query(self, term: str, scope: Scope) -> List[AssetRecord]:
        variants = case_variants(term)
        try:
            batches = await asyncio.gather(
                *(self.store.search_all(scope, variant) for variant in variants)
            )
        except StoreUnavailableError:
            raise
        except Exception as e:
            logger.error(f"Deep search failed [scope={scope.cache_key}] [keyword={term}]: {e}")
            raise StoreUnavailableError(f"Deep search failed: {e}", store="metadata") from e

        unique: Dict[str, AssetRecord] = {}
        for batch in batches:
            for record in batch:
                unique.setdefault(record.id, record)
        return list(unique.values())
