"""
Oven_Treats.services.auto_backup_service

Automatic remote backups.

- should_create_backup(): pure "is a backup due?" decision
- AutoBackupService.run(): back up when due, record the time, then
  prune this device's oldest remote backups beyond max_backups
- sync_backup(): replace this device's backup from the last 24h
- latest_backup(): newest remote backup, if any

Settings live in the JSON app config (config_store).
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from Oven_Treats.config import config_store
from Oven_Treats.config.config_store import AutoBackupSettings
from Oven_Treats.domain.errors import TransportError
from Oven_Treats.domain.models import BackupMetadata
from Oven_Treats.utils.timestamps import as_utc, now_utc, parse_iso, parse_optional_iso, to_iso

logger = logging.getLogger(__name__)

FREQUENCY_INTERVALS = {
    "daily": timedelta(hours=24),
    "weekly": timedelta(hours=24 * 7),
}

SYNC_WINDOW = timedelta(hours=24)


def should_create_backup(
    enabled: bool,
    frequency: str,
    last_backup: Optional[datetime],
    now: datetime,
) -> bool:
    """
    daily: >= 24h since the last backup; weekly: >= 168h; manual: never.
    No previous backup means one is due.
    """
    if not enabled:
        return False
    interval = FREQUENCY_INTERVALS.get(frequency)
    if interval is None:
        return False
    if last_backup is None:
        return True
    return as_utc(now) - as_utc(last_backup) >= interval


def _sort_stamp(backup: BackupMetadata) -> datetime:
    try:
        return parse_iso(backup.timestamp)
    except ValueError:
        # unreadable timestamps sort as oldest
        return datetime.min.replace(tzinfo=timezone.utc)


def select_backups_to_prune(
    backups: List[BackupMetadata],
    max_backups: int,
    device_id: Optional[str] = None,
) -> List[BackupMetadata]:
    """
    Oldest backups beyond max_backups. When device_id is given only that
    device's backups are considered, so other devices' history is kept.
    """
    mine = [b for b in backups if device_id is None or b.device_id == device_id]
    mine.sort(key=_sort_stamp, reverse=True)
    return mine[max_backups:]


class AutoBackupService:
    """
    transport: anything with create/get/list/delete (see AzureBlobBackupClient).
    """

    def __init__(
        self,
        transport,
        device_id: Optional[str] = None,
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        self.transport = transport
        self.device_id = device_id
        self.clock = clock

    # ---------- Settings ----------

    def get_settings(self) -> AutoBackupSettings:
        return config_store.get_auto_backup_settings()

    def update_settings(self, **updates: Any) -> AutoBackupSettings:
        return config_store.update_auto_backup_settings(**updates)

    def is_due(self) -> bool:
        settings = self.get_settings()
        try:
            last = parse_optional_iso(settings.last_backup)
        except ValueError:
            last = None
        return should_create_backup(settings.enabled, settings.frequency, last, self.clock())

    # ---------- Backups ----------

    def run(self, create_backup: Callable[[], Dict[str, Any]]) -> Optional[str]:
        """
        Create a remote backup if one is due. Returns the new backup id or
        None. Transport errors propagate; local data is never touched.
        """
        if not self.is_due():
            return None

        backup_id = self.transport.create(create_backup())
        config_store.record_auto_backup(to_iso(self.clock()))
        logger.info("Automatic backup created: %s", backup_id)

        self.cleanup_old_backups()
        return backup_id

    def cleanup_old_backups(self) -> List[str]:
        """
        Returns ids actually deleted. A failed delete is logged and skipped.
        """
        settings = self.get_settings()
        try:
            backups = self.transport.list()
        except TransportError as e:
            logger.warning("Could not list backups for cleanup: %s", e)
            return []

        deleted: List[str] = []
        for backup in select_backups_to_prune(backups, settings.max_backups, self.device_id):
            try:
                self.transport.delete(backup.id)
                deleted.append(backup.id)
            except TransportError as e:
                logger.warning("Failed to delete old backup %s: %s", backup.id, e)

        if deleted:
            logger.info("Pruned %d old backup(s)", len(deleted))
        return deleted

    def sync_backup(self, backup: Dict[str, Any]) -> str:
        """
        Keep one rolling backup per device per day: a backup from this
        device younger than 24h is replaced by the new one.
        """
        now = as_utc(self.clock())
        for existing in self.transport.list():
            if existing.device_id != self.device_id:
                continue
            try:
                age = now - parse_iso(existing.timestamp)
            except ValueError:
                continue
            if age < SYNC_WINDOW:
                self.transport.delete(existing.id)
                logger.info("Replacing recent backup %s", existing.id)
                break

        return self.transport.create(backup)

    def latest_backup(self) -> Optional[Dict[str, Any]]:
        backups = self.transport.list()
        if not backups:
            return None
        return self.transport.get(backups[0].id)

    def last_backup_info(self) -> Optional[BackupMetadata]:
        settings = self.get_settings()
        if not settings.last_backup:
            return None
        backups = self.transport.list()
        return backups[0] if backups else None
