"""Shared pytest fixtures for all tests."""

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Generator

import pytest

from common.types import AssetRecord, AssetType, Notice, Scope, UploadedBlob
from manager.database import init_database
from manager.exceptions import AssetNotFoundError, StoreUnavailableError
from manager.utils import resource_type_for_content_type

BASE_TIME = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def build_record(index: int, name=None, asset_type=AssetType.IMAGE, **overrides) -> AssetRecord:
    """
    Build an asset record; a higher index is an older record.
    """
    created_at = BASE_TIME - timedelta(minutes=index)
    fields = dict(
        id=f"asset-{index:04d}",
        name=name or f"file-{index}.jpg",
        url=f"https://res.cloudinary.com/demo/image/upload/media-library/images/file-{index}.jpg",
        type=asset_type,
        size=1000 + index,
        folder=asset_type.value,
        created_at=created_at,
        updated_at=created_at,
        blob_ref=f"media-library/images/file-{index}",
        resource_type="image",
        format="jpg",
    )
    fields.update(overrides)
    return AssetRecord(**fields)


class FakeMetadataStore:
    """
    In-memory metadata store with failure injection.

    Every call is appended to the shared call log as (operation, argument).
    """

    def __init__(self, records=None, call_log=None):
        self.records = sorted(records or [], key=lambda r: (r.created_at, r.id), reverse=True)
        self.calls = call_log if call_log is not None else []
        self.failures = {}
        self.fail_insert_names = set()
        self._clock = BASE_TIME + timedelta(hours=1)
        self._next_id = 1

    def _maybe_fail(self, operation):
        error = self.failures.get(operation)
        if error is not None:
            raise error

    async def list_page(self, scope, type_filter, after, limit):
        self.calls.append(("list_page", after.id if after else None))
        self._maybe_fail("list_page")

        records = [r for r in self.records if type_filter is None or r.type == type_filter]
        if after is not None:
            records = [r for r in records if (r.created_at, r.id) < (after.created_at, after.id)]
        return records[:limit], len(records) > limit

    async def search_all(self, scope, keyword):
        self.calls.append(("search_all", keyword))
        self._maybe_fail("search_all")
        return sorted((r for r in self.records if keyword in r.name), key=lambda r: (r.name, r.id))

    async def insert(self, scope, asset):
        self.calls.append(("insert", asset.name))
        self._maybe_fail("insert")
        if asset.name in self.fail_insert_names:
            raise StoreUnavailableError(f"insert rejected for {asset.name}")

        self._clock += timedelta(seconds=1)
        record = AssetRecord(
            id=f"new-{self._next_id:04d}",
            name=asset.name,
            url=asset.url,
            type=asset.type,
            size=asset.size,
            folder=asset.folder,
            created_at=self._clock,
            updated_at=self._clock,
            blob_ref=asset.blob_ref,
            resource_type=asset.resource_type,
            format=asset.format,
            zone_id=scope.zone_id or "",
        )
        self._next_id += 1
        self.records.insert(0, record)
        return record

    async def delete_by_id(self, scope, asset_id):
        self.calls.append(("delete_by_id", asset_id))
        self._maybe_fail("delete_by_id")
        for record in self.records:
            if record.id == asset_id:
                self.records.remove(record)
                return
        raise AssetNotFoundError(f"Asset {asset_id} not found")

    async def get_by_id(self, scope, asset_id):
        self.calls.append(("get_by_id", asset_id))
        return next((r for r in self.records if r.id == asset_id), None)


class FakeBlobStore:
    """In-memory blob store; uploads named in fail_names raise StoreUnavailableError."""

    def __init__(self, call_log=None):
        self.calls = call_log if call_log is not None else []
        self.fail_names = set()
        self.delete_result = True
        self.delete_error = None
        self.deleted = []

    async def upload(self, data, content_type, on_progress=None, folder=None, name=None):
        self.calls.append(("upload", name))
        if name in self.fail_names:
            raise StoreUnavailableError(f"upload rejected for {name}", store="blob")

        if on_progress:
            on_progress(50.0)
            on_progress(100.0)

        resource_type = resource_type_for_content_type(content_type)
        return UploadedBlob(
            url=f"https://res.cloudinary.com/demo/{resource_type}/upload/{folder}/{name}",
            blob_ref=f"{folder}/{name}",
            resource_type=resource_type,
        )

    async def delete_by_ref(self, blob_ref, resource_type_hint):
        self.calls.append(("delete_by_ref", blob_ref))
        if self.delete_error is not None:
            raise self.delete_error
        if self.delete_result:
            self.deleted.append((blob_ref, resource_type_hint))
        return self.delete_result


@pytest.fixture
def make_record():
    """Factory for asset records; a higher index is an older record."""
    return build_record


@pytest.fixture
def make_metadata_store():
    """Factory for in-memory metadata stores seeded with records."""
    return FakeMetadataStore


@pytest.fixture
def make_blob_store():
    return FakeBlobStore


@pytest.fixture
def scope():
    return Scope(is_hq=True)


@pytest.fixture
def zone_scope():
    return Scope(zone_id="zone-north")


@pytest.fixture
def call_log():
    return []


@pytest.fixture
def metadata_store(call_log):
    return FakeMetadataStore(call_log=call_log)


@pytest.fixture
def blob_store(call_log):
    return FakeBlobStore(call_log=call_log)


@pytest.fixture
def notices():
    """
    Collected notices plus the callback that collects them.

    Returns:
        Tuple of (list of Notice, callback)
    """
    collected = []

    def on_notice(notice: Notice):
        collected.append(notice)

    return collected, on_notice


@pytest.fixture
def test_db(monkeypatch) -> Generator[Path, None, None]:
    """
    Create a temporary test database for each test.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test.db"
        monkeypatch.setattr("manager.config.DATABASE_PATH", str(db_path))
        init_database()
        yield db_path
