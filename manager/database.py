"""Database schema and connection management for the SQLite metadata store."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from manager import config


def init_database() -> None:
    """
    Initialize database and create tables if they don't exist.
    """
    db_path = Path(config.DATABASE_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db_connection() as conn:
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS assets (
                id TEXT PRIMARY KEY,
                collection TEXT NOT NULL,
                zone_id TEXT NOT NULL DEFAULT '',
                name TEXT NOT NULL,
                url TEXT NOT NULL,
                type TEXT NOT NULL,
                size INTEGER NOT NULL,
                folder TEXT NOT NULL,
                blob_ref TEXT,
                resource_type TEXT,
                format TEXT NOT NULL DEFAULT '',
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_assets_listing
            ON assets(collection, zone_id, created_at DESC, id DESC)
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_assets_type_listing
            ON assets(collection, zone_id, type, created_at DESC, id DESC)
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_assets_name ON assets(collection, name)
        """)

        conn.commit()


@contextmanager
def get_db_connection() -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager for database connections.
    """
    conn = sqlite3.connect(config.DATABASE_PATH)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()
