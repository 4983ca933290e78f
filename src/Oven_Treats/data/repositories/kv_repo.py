"""
Oven_Treats.data.repositories.kv_repo

Durable key-value layer used by the BakeryStore.

Contract (shared by both implementations):
    get(key) -> Optional[str]
    set(key, value: str) -> None

The store writes its full serialized snapshot once per mutation and
reads it once at startup.
"""

from __future__ import annotations

from contextlib import closing
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

from Oven_Treats.data.connection import get_connection
from Oven_Treats.data.schema import initialize_database


class SqliteKeyValueStore:
    """
    kv_store table in the on-device SQLite DB.
    """

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self.base_dir = base_dir
        initialize_database(base_dir)

    def get(self, key: str) -> Optional[str]:
        with get_connection(self.base_dir) as conn, closing(conn.cursor()) as cur:
            cur.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
            row = cur.fetchone()
        return str(row["value"]) if row else None

    def set(self, key: str, value: str) -> None:
        now = datetime.now(timezone.utc).isoformat(timespec="seconds")
        with get_connection(self.base_dir) as conn, closing(conn.cursor()) as cur:
            cur.execute(
                """
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, value, now),
            )
            conn.commit()

    def delete(self, key: str) -> None:
        with get_connection(self.base_dir) as conn, closing(conn.cursor()) as cur:
            cur.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            conn.commit()


class MemoryKeyValueStore:
    """
    Dict-backed store for tests and throwaway sessions.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})
        self.writes = 0

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self.writes += 1

    def delete(self, key: str) -> None:
        self._data.pop(key, None)
