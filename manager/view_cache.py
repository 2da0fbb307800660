"""In-memory ordered view of the asset records materialized for display."""

import threading
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Set

from common.types import AssetRecord, AssetType

Predicate = Callable[[AssetRecord], bool]


@dataclass(frozen=True)
class AssetFilter:
    """
    Local search and type/folder filter over materialized records.

    Attributes:
        search_term: Case-insensitive substring of the asset name
        asset_type: Only this type, or all types when None
        folder: Only this folder, or all folders when None
        allowed_types: Types the caller may show at all, or all when None
    """
    search_term: str = ""
    asset_type: Optional[AssetType] = None
    folder: Optional[str] = None
    allowed_types: Optional[frozenset] = None

    def __call__(self, record: AssetRecord) -> bool:
        if self.search_term and self.search_term.lower() not in record.name.lower():
            return False
        if self.asset_type is not None and record.type != self.asset_type:
            return False
        if self.folder is not None and record.folder != self.folder:
            return False
        if self.allowed_types is not None and record.type not in self.allowed_types:
            return False
        return True


@dataclass(frozen=True)
class MediaStats:
    total_files: int
    total_size: int
    by_type: Dict[str, int]
    by_folder: Dict[str, int]


class AssetViewCache:
    """
    Ordered, de-duplicated sequence of asset records read by the view layer.

    Records are only ever appended at the tail or replaced wholesale, so the
    order of pagination batches is preserved. An id is present at most once.
    Every operation holds one short lock and does no I/O.
    """

    def __init__(self, records: Optional[Iterable[AssetRecord]] = None):
        self._lock = threading.Lock()
        self._records: List[AssetRecord] = []
        self._index: Dict[str, AssetRecord] = {}
        if records:
            self.replace_all(records)

    def append(self, records: Iterable[AssetRecord]) -> List[AssetRecord]:
        """
        Add records to the tail, skipping ids already present.

        Returns:
            Records actually added, in order
        """
        added = []
        with self._lock:
            for record in records:
                if record.id in self._index:
                    continue
                self._records.append(record)
                self._index[record.id] = record
                added.append(record)
        return added

    def replace_all(self, records: Iterable[AssetRecord]) -> None:
        new_records: List[AssetRecord] = []
        new_index: Dict[str, AssetRecord] = {}
        for record in records:
            if record.id in new_index:
                continue
            new_records.append(record)
            new_index[record.id] = record

        with self._lock:
            self._records = new_records
            self._index = new_index

    def remove(self, asset_id: str) -> bool:
        with self._lock:
            if asset_id not in self._index:
                return False
            del self._index[asset_id]
            self._records = [record for record in self._records if record.id != asset_id]
            return True

    def filter_view(self, predicate: Predicate) -> List[AssetRecord]:
        with self._lock:
            snapshot = list(self._records)
        return [record for record in snapshot if predicate(record)]

    def records(self) -> List[AssetRecord]:
        with self._lock:
            return list(self._records)

    def ids(self) -> Set[str]:
        with self._lock:
            return set(self._index)

    def contains(self, asset_id: str) -> bool:
        with self._lock:
            return asset_id in self._index

    def get(self, asset_id: str) -> Optional[AssetRecord]:
        with self._lock:
            return self._index.get(asset_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def folders(self) -> List[str]:
        seen: List[str] = []
        for record in self.records():
            if record.folder and record.folder not in seen:
                seen.append(record.folder)
        return seen

    def summarize(self) -> MediaStats:
        by_type: Dict[str, int] = {}
        by_folder: Dict[str, int] = {}
        total_size = 0
        records = self.records()

        for record in records:
            total_size += record.size
            by_type[record.type.value] = by_type.get(record.type.value, 0) + 1
            by_folder[record.folder] = by_folder.get(record.folder, 0) + 1

        return MediaStats(
            total_files=len(records),
            total_size=total_size,
            by_type=by_type,
            by_folder=by_folder,
        )
