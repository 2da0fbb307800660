"""Capability interfaces of the metadata and blob stores, and the SQLite metadata adapter."""

import asyncio
import sqlite3
from typing import Callable, List, Optional, Protocol, Tuple

from common.logging_config import get_logger
from common.types import AssetRecord, AssetType, NewAsset, Scope, UploadedBlob
from manager.exceptions import AssetNotFoundError, StoreUnavailableError
from manager.repositories.asset_repository import AssetRepository

logger = get_logger(__name__)

ProgressCallback = Callable[[float], None]


class MetadataStore(Protocol):
    async def list_page(
        self,
        scope: Scope,
        type_filter: Optional[AssetType],
        after: Optional[AssetRecord],
        limit: int,
    ) -> Tuple[List[AssetRecord], bool]:
        ...

    async def search_all(self, scope: Scope, keyword: str) -> List[AssetRecord]:
        ...

    async def insert(self, scope: Scope, asset: NewAsset) -> AssetRecord:
        ...

    async def delete_by_id(self, scope: Scope, asset_id: str) -> None:
        ...

    async def get_by_id(self, scope: Scope, asset_id: str) -> Optional[AssetRecord]:
        ...


class BlobStore(Protocol):
    async def upload(
        self,
        data: bytes,
        content_type: str,
        on_progress: Optional[ProgressCallback] = None,
        folder: Optional[str] = None,
        name: Optional[str] = None,
    ) -> UploadedBlob:
        ...

    async def delete_by_ref(self, blob_ref: str, resource_type_hint: str) -> bool:
        ...


class SqliteMetadataStore:
    """
    Metadata store backed by the SQLite asset repository.

    Repository calls are blocking, so each runs in a worker thread; sqlite
    errors leave this class only as StoreUnavailableError.
    """

    def __init__(self, repository: Optional[AssetRepository] = None):
        self.repository = repository or AssetRepository()

    async def _run(self, operation, *args):
        try:
            return await asyncio.to_thread(operation, *args)
        except sqlite3.Error as e:
            logger.error(f"Metadata store error in {operation.__name__}: {e}")
            raise StoreUnavailableError(f"Metadata store unavailable: {e}", store="metadata") from e

    async def list_page(
        self,
        scope: Scope,
        type_filter: Optional[AssetType],
        after: Optional[AssetRecord],
        limit: int,
    ) -> Tuple[List[AssetRecord], bool]:
        return await self._run(self.repository.list_page, scope, type_filter, after, limit)

    async def search_all(self, scope: Scope, keyword: str) -> List[AssetRecord]:
        return await self._run(self.repository.search_by_name, scope, keyword)

    async def insert(self, scope: Scope, asset: NewAsset) -> AssetRecord:
        return await self._run(self.repository.create_asset, scope, asset)

    async def delete_by_id(self, scope: Scope, asset_id: str) -> None:
        deleted = await self._run(self.repository.delete_asset, scope, asset_id)
        if not deleted:
            raise AssetNotFoundError(f"Asset {asset_id} not found")

    async def get_by_id(self, scope: Scope, asset_id: str) -> Optional[AssetRecord]:
        return await self._run(self.repository.get_by_id, scope, asset_id)
