"""
Oven_Treats.data.connection

SQLite connection utilities for the on-device backend.
The database lives in the app data directory (OVENTREATS_DATA_DIR,
default ~/.oventreats).
"""

from __future__ import annotations

import os
import sqlite3
from pathlib import Path
from typing import Optional

# Name of the SQLite file
DB_FILENAME = "OvenTreats.db"

DATA_DIR_ENV = "OVENTREATS_DATA_DIR"


def get_data_dir() -> Path:
    """
    Return (and create) the directory holding the DB, config and local backups.
    """
    base = os.environ.get(DATA_DIR_ENV, "").strip()
    data_dir = Path(base) if base else Path.home() / ".oventreats"
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def get_db_path(base_dir: Optional[Path] = None) -> Path:
    """
    Return the full path to the DB file.

    If base_dir is None, we put the DB inside the app data directory.
    """
    if base_dir is None:
        base_dir = get_data_dir()
    else:
        base_dir = Path(base_dir)

    base_dir.mkdir(parents=True, exist_ok=True)
    return base_dir / DB_FILENAME


def get_connection(base_dir: Optional[Path] = None) -> sqlite3.Connection:
    """
    Open a SQLite connection to our DB.

    base_dir is optional; if not provided, we use the app data directory.
    """
    db_path = get_db_path(base_dir)
    conn = sqlite3.connect(db_path, timeout=10)
    conn.row_factory = sqlite3.Row  # nicer dict-like access
    return conn
