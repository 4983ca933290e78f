"""
Oven_Treats.data.schema

SQLite schema definition and initialization for the on-device backend.

The bakery store persists one serialized snapshot per key, so the only
table is a small key-value table.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Optional

from Oven_Treats.data.connection import get_connection


def create_tables(conn: sqlite3.Connection) -> None:
    """
    Create all tables if they do not exist.

    Run this once at startup (safe to call multiple times).
    """
    cur = conn.cursor()

    # --- kv_store ---
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS kv_store (
            key         TEXT PRIMARY KEY,
            value       TEXT NOT NULL,
            updated_at  TEXT NOT NULL DEFAULT (datetime('now'))
        );
        """
    )

    conn.commit()


def initialize_database(base_dir: Optional[Path] = None) -> None:
    conn = get_connection(base_dir)
    try:
        create_tables(conn)
    finally:
        conn.close()
