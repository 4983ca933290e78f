"""
Oven_Treats.config.config_store

Centralized app configuration for Oven Treats.

Responsibilities:
- Persist app config to a JSON file in the app data directory
- Provide helpers for:
    - the active database mode (local / supabase / firebase)
    - auto-backup settings and the last automatic backup time
    - a stable per-install device id (tags remote backups)
    - the local backup directory

Cloud credentials are NOT stored here; integrations read them from
environment variables or constructor arguments.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from Oven_Treats.data.connection import get_data_dir

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Paths & constants
# ---------------------------------------------------------------------------

CONFIG_FILENAME = "app_config.json"

DATABASE_MODES = ("local", "supabase", "firebase")
BACKUP_FREQUENCIES = ("daily", "weekly", "manual")


def _config_file() -> Path:
    return get_data_dir() / CONFIG_FILENAME


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class AutoBackupSettings:
    enabled: bool = False
    frequency: str = "weekly"        # "daily" | "weekly" | "manual"
    max_backups: int = 5
    last_backup: Optional[str] = None  # ISO-8601 of last automatic backup


@dataclass
class AppConfig:
    """
    Top-level config structure.

    Stored as JSON at: <data dir>/app_config.json
    """
    database_mode: str = "local"
    device_id: str = ""
    backup_dir: str = ""
    auto_backup: AutoBackupSettings = field(default_factory=AutoBackupSettings)


# ---------------------------------------------------------------------------
# Internal helpers for JSON I/O
# ---------------------------------------------------------------------------


def _read_raw_config() -> Dict[str, Any]:
    path = _config_file()
    if not path.exists():
        return {}
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, dict):
            return data
        return {}
    except (OSError, ValueError):
        # If config is corrupted, start fresh
        logger.warning("Config file %s is unreadable; using defaults", path)
        return {}


def _write_raw_config(data: Dict[str, Any]) -> None:
    path = _config_file()
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, sort_keys=True)


def _auto_backup_from_raw(raw: Dict[str, Any]) -> AutoBackupSettings:
    defaults = AutoBackupSettings()
    frequency = str(raw.get("frequency") or defaults.frequency).lower()
    if frequency not in BACKUP_FREQUENCIES:
        frequency = defaults.frequency
    try:
        max_backups = int(raw.get("max_backups", defaults.max_backups))
    except (TypeError, ValueError):
        max_backups = defaults.max_backups
    return AutoBackupSettings(
        enabled=bool(raw.get("enabled", defaults.enabled)),
        frequency=frequency,
        max_backups=max(1, max_backups),
        last_backup=raw.get("last_backup") or None,
    )


def _from_raw_config(raw: Dict[str, Any]) -> AppConfig:
    """
    Convert dict -> AppConfig, applying defaults if keys are missing.
    """
    mode = str(raw.get("database_mode") or "local")
    if mode not in DATABASE_MODES:
        mode = "local"
    return AppConfig(
        database_mode=mode,
        device_id=str(raw.get("device_id") or ""),
        backup_dir=str(raw.get("backup_dir") or ""),
        auto_backup=_auto_backup_from_raw(raw.get("auto_backup") or {}),
    )


def _to_raw_config(cfg: AppConfig) -> Dict[str, Any]:
    return asdict(cfg)


# ---------------------------------------------------------------------------
# Public config API
# ---------------------------------------------------------------------------


def load_config() -> AppConfig:
    """
    Load full config from JSON. A device id is generated (and saved) the
    first time it is needed.
    """
    cfg = _from_raw_config(_read_raw_config())
    if not cfg.device_id:
        cfg.device_id = f"device_{uuid.uuid4().hex[:12]}"
        save_config(cfg)
    return cfg


def save_config(cfg: AppConfig) -> None:
    """
    Persist the entire config to disk.
    """
    _write_raw_config(_to_raw_config(cfg))


# --- Database mode ------------------------------------------------------


def get_database_mode() -> str:
    return load_config().database_mode


def set_database_mode(mode: str) -> None:
    mode = (mode or "").strip().lower()
    if mode not in DATABASE_MODES:
        raise ValueError(f"Unknown database mode: {mode!r} (allowed: {', '.join(DATABASE_MODES)})")
    cfg = load_config()
    cfg.database_mode = mode
    save_config(cfg)


# --- Device / paths ------------------------------------------------------


def get_device_id() -> str:
    return load_config().device_id


def get_backup_dir() -> Path:
    """
    Directory for local backup files (default: <data dir>/backups).
    """
    cfg = load_config()
    path = Path(cfg.backup_dir) if cfg.backup_dir else get_data_dir() / "backups"
    path.mkdir(parents=True, exist_ok=True)
    return path


def set_backup_dir(path: str) -> None:
    cfg = load_config()
    cfg.backup_dir = str(Path(path).expanduser()) if path else ""
    save_config(cfg)


# --- Auto-backup ---------------------------------------------------------


def get_auto_backup_settings() -> AutoBackupSettings:
    return load_config().auto_backup


def update_auto_backup_settings(**updates: Any) -> AutoBackupSettings:
    """
    Merge the given keys into the stored settings and return the result.
    Unknown keys raise ValueError.
    """
    cfg = load_config()
    merged = asdict(cfg.auto_backup)
    for k, v in updates.items():
        if k not in merged:
            raise ValueError(f"Unknown auto-backup setting: {k!r}")
        merged[k] = v
    if str(merged["frequency"]).lower() not in BACKUP_FREQUENCIES:
        raise ValueError(f"Invalid backup frequency: {merged['frequency']!r}")
    cfg.auto_backup = _auto_backup_from_raw(merged)
    save_config(cfg)
    return cfg.auto_backup


def record_auto_backup(timestamp_iso: str) -> None:
    cfg = load_config()
    cfg.auto_backup.last_backup = timestamp_iso
    save_config(cfg)
