"""Shared data type definitions (AssetRecord, Scope, upload/delete outcomes, notices)."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from common.constants import GLOBAL_COLLECTION, GLOBAL_SCOPE_KEY, ZONE_COLLECTION


class AssetType(str, Enum):
    """Media class of an asset, fixed at creation from its MIME type."""
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"
    DOCUMENT = "document"


@dataclass(frozen=True)
class Scope:
    """
    Tenant/zone partition under which assets are listed and searched.

    HQ zones (and the zone-less global scope) read the shared collection
    without a zone filter; every other zone reads its own partition.
    """
    zone_id: Optional[str] = None
    is_hq: bool = False

    @property
    def is_global(self) -> bool:
        return not self.zone_id or self.is_hq

    @property
    def collection(self) -> str:
        return GLOBAL_COLLECTION if self.is_global else ZONE_COLLECTION

    @property
    def cache_key(self) -> str:
        return self.zone_id or GLOBAL_SCOPE_KEY


@dataclass(frozen=True)
class AssetRecord:
    """
    One persisted unit of asset metadata.
    """
    id: str
    name: str
    url: str
    type: AssetType
    size: int
    folder: str
    created_at: datetime
    updated_at: datetime
    blob_ref: Optional[str] = None
    resource_type: Optional[str] = None
    format: str = ""
    zone_id: str = ""


@dataclass(frozen=True)
class NewAsset:
    """
    Metadata for a record that does not exist yet; the store assigns
    id and timestamps on insert.
    """
    name: str
    url: str
    type: AssetType
    size: int
    folder: str
    blob_ref: Optional[str] = None
    resource_type: Optional[str] = None
    format: str = ""


@dataclass(frozen=True)
class Page:
    """One page of records returned by the cursor tracker."""
    records: List[AssetRecord]
    has_more: bool


@dataclass(frozen=True)
class UploadedBlob:
    """Result of a successful blob upload."""
    url: str
    blob_ref: str
    resource_type: str


@dataclass(frozen=True)
class PendingUpload:
    """A user-supplied file waiting to be uploaded."""
    name: str
    content_type: str
    data: bytes
    folder: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)


class NoticeLevel(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    """
    User-facing signal produced by the coordinators.

    Attributes:
        level: Severity shown to the user
        message: Human readable text
        retryable: True when the user can retry the action that failed
    """
    level: NoticeLevel
    message: str
    retryable: bool = False


class UploadState(str, Enum):
    PENDING = "pending"
    UPLOADING = "uploading"
    BLOB_STORED = "blob_stored"
    RECORD_CREATING = "record_creating"
    RECORDED = "recorded"
    UPLOAD_FAILED = "upload_failed"
    RECORD_FAILED = "record_failed"


@dataclass
class FileUploadResult:
    """Per-file progress through the upload state machine."""
    name: str
    state: UploadState = UploadState.PENDING
    record: Optional[AssetRecord] = None
    blob: Optional[UploadedBlob] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.state == UploadState.RECORDED


class BatchOutcome(str, Enum):
    ALL_SUCCEEDED = "all_succeeded"
    PARTIAL_FAILURE = "partial_failure"
    ALL_FAILED = "all_failed"


@dataclass(frozen=True)
class BatchReport:
    """Summary of an upload batch."""
    results: List[FileUploadResult]
    outcome: BatchOutcome
    succeeded: int
    failed: int
    notice: Notice

    @property
    def records(self) -> List[AssetRecord]:
        return [result.record for result in self.results if result.succeeded]


class DeleteOutcome(str, Enum):
    DELETED = "deleted"
    ORPHANED_BLOB = "orphaned_blob"
    FAILED = "failed"


@dataclass(frozen=True)
class DeleteReport:
    """Result of deleting one asset across both stores."""
    asset_id: str
    outcome: DeleteOutcome
    notice: Notice
    error: Optional[str] = None


@dataclass(frozen=True)
class DeepSearchResult:
    """
    Outcome of one deep search.

    Attributes:
        keyword: Keyword the search ran with
        matched: Every record the remote corpus matched, de-duplicated
        new_items: Matched records absent from the view cache
        superseded: True when a newer search for the same scope was issued
            before this one completed; such results are never displayed
    """
    keyword: str
    matched: List[AssetRecord] = field(default_factory=list)
    new_items: List[AssetRecord] = field(default_factory=list)
    superseded: bool = False
