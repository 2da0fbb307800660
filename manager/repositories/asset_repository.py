"""Asset repository for metadata database operations."""

import sqlite3
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from common.logging_config import get_logger
from common.types import AssetRecord, AssetType, NewAsset, Scope
from manager.database import get_db_connection
from manager.utils import generate_uuid, utc_now

logger = get_logger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%f%z"

ASSET_COLUMNS = (
    "id, zone_id, name, url, type, size, folder, blob_ref, resource_type, format, created_at, updated_at"
)


def format_timestamp(value: datetime) -> str:
    """Fixed-width UTC timestamp so that text ordering matches time ordering."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    return datetime.strptime(value, TIMESTAMP_FORMAT)


def row_to_asset(row: sqlite3.Row) -> AssetRecord:
    return AssetRecord(
        id=row["id"],
        name=row["name"],
        url=row["url"],
        type=AssetType(row["type"]),
        size=row["size"],
        folder=row["folder"],
        created_at=parse_timestamp(row["created_at"]),
        updated_at=parse_timestamp(row["updated_at"]),
        blob_ref=row["blob_ref"],
        resource_type=row["resource_type"],
        format=row["format"],
        zone_id=row["zone_id"],
    )


def _scope_clause(scope: Scope) -> Tuple[str, list]:
    if scope.is_global:
        return "collection = ?", [scope.collection]
    return "collection = ? AND zone_id = ?", [scope.collection, scope.zone_id]


class AssetRepository:
    @staticmethod
    def create_asset(scope: Scope, asset: NewAsset, created_at: Optional[datetime] = None) -> AssetRecord:
        asset_id = generate_uuid()
        created_at = created_at or utc_now()
        timestamp = format_timestamp(created_at)
        zone_id = scope.zone_id or ""

        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                INSERT INTO assets (collection, {ASSET_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    scope.collection,
                    asset_id,
                    zone_id,
                    asset.name,
                    asset.url,
                    asset.type.value,
                    asset.size,
                    asset.folder,
                    asset.blob_ref,
                    asset.resource_type,
                    asset.format,
                    timestamp,
                    timestamp,
                )
            )
            conn.commit()

        logger.info(f"Asset created [id={asset_id}] [collection={scope.collection}] [name={asset.name}]")

        return AssetRecord(
            id=asset_id,
            name=asset.name,
            url=asset.url,
            type=asset.type,
            size=asset.size,
            folder=asset.folder,
            created_at=parse_timestamp(timestamp),
            updated_at=parse_timestamp(timestamp),
            blob_ref=asset.blob_ref,
            resource_type=asset.resource_type,
            format=asset.format,
            zone_id=zone_id,
        )

    @staticmethod
    def get_by_id(scope: Scope, asset_id: str) -> Optional[AssetRecord]:
        clause, args = _scope_clause(scope)
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {ASSET_COLUMNS} FROM assets WHERE id = ? AND {clause}",
                [asset_id] + args
            )
            row = cursor.fetchone()

            if row is None:
                return None

            return row_to_asset(row)

    @staticmethod
    def list_page(
        scope: Scope,
        type_filter: Optional[AssetType],
        after: Optional[AssetRecord],
        limit: int,
    ) -> Tuple[List[AssetRecord], bool]:
        """
        Seek-paginated listing, newest first.

        Returns:
            Tuple of (records, has_more); one extra row is read to decide has_more
        """
        clause, args = _scope_clause(scope)
        clauses = [clause]

        if type_filter is not None:
            clauses.append("type = ?")
            args.append(type_filter.value)

        if after is not None:
            boundary = format_timestamp(after.created_at)
            clauses.append("(created_at < ? OR (created_at = ? AND id < ?))")
            args.extend([boundary, boundary, after.id])

        query = f"""
            SELECT {ASSET_COLUMNS} FROM assets
            WHERE {' AND '.join(clauses)}
            ORDER BY created_at DESC, id DESC
            LIMIT ?
        """

        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, args + [limit + 1])
            rows = cursor.fetchall()

        records = [row_to_asset(row) for row in rows[:limit]]
        return records, len(rows) > limit

    @staticmethod
    def search_by_name(scope: Scope, keyword: str) -> List[AssetRecord]:
        """
        Case-sensitive substring match on asset names across the whole scope.
        """
        clause, args = _scope_clause(scope)
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT {ASSET_COLUMNS} FROM assets
                WHERE {clause} AND instr(name, ?) > 0
                ORDER BY name, id
                """,
                args + [keyword]
            )
            return [row_to_asset(row) for row in cursor.fetchall()]

    @staticmethod
    def delete_asset(scope: Scope, asset_id: str) -> bool:
        """
        Hard delete an asset record.

        Returns:
            True if a record was deleted, False if none matched
        """
        logger.debug(f"Deleting asset [id={asset_id}]")
        clause, args = _scope_clause(scope)

        with get_db_connection() as conn:
            try:
                cursor = conn.cursor()
                cursor.execute(f"DELETE FROM assets WHERE id = ? AND {clause}", [asset_id] + args)
                conn.commit()
            except Exception as e:
                conn.rollback()
                logger.error(f"Failed to delete asset [id={asset_id}]: {e}", exc_info=True)
                raise

        deleted = cursor.rowcount > 0
        if deleted:
            logger.info(f"Asset deleted successfully [id={asset_id}]")
        return deleted
