"""
Oven_Treats.integrations.backup_file_transport

Local JSON file transport for backups.

Files are named oventreats-backup-YYYY-MM-DD.json; a second backup on
the same day gets a -2, -3 ... suffix. The written path is what the UI
hands to the platform share/export sheet.

Reading validates the document: malformed JSON or missing sections
raise InvalidBackupFormat.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from Oven_Treats.domain.errors import BackupNotFound, InvalidBackupFormat
from Oven_Treats.domain.models import BackupMetadata
from Oven_Treats.services.backup_codec import parse_backup, serialize_backup
from Oven_Treats.utils.timestamps import parse_iso

logger = logging.getLogger(__name__)

APP_NAME = "oventreats"
FILE_SUFFIX = ".json"


def backup_file_name(timestamp_iso: str, app_name: str = APP_NAME) -> str:
    day = parse_iso(timestamp_iso).date().isoformat()
    return f"{app_name}-backup-{day}{FILE_SUFFIX}"


class LocalBackupTransport:
    """
    Stores backups as files in one directory. Backup ids are file names.
    """

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)

    def is_configured(self) -> bool:
        return True

    def _path_for(self, backup_id: str) -> Path:
        name = Path(backup_id).name
        if name != backup_id or not name.endswith(FILE_SUFFIX):
            raise BackupNotFound(backup_id)
        return self.directory / name

    def _free_path(self, file_name: str) -> Path:
        path = self.directory / file_name
        stem = path.stem
        n = 2
        while path.exists():
            path = self.directory / f"{stem}-{n}{FILE_SUFFIX}"
            n += 1
        return path

    # ---------- Contract ----------

    def create(self, backup: Dict[str, Any]) -> str:
        try:
            file_name = backup_file_name(backup["timestamp"])
        except (KeyError, ValueError) as e:
            raise InvalidBackupFormat(f"Backup has no usable timestamp: {e}") from e

        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._free_path(file_name)
        path.write_text(serialize_backup(backup), encoding="utf-8")
        logger.info("Wrote backup file %s", path)
        return path.name

    def export_path(self, backup: Dict[str, Any]) -> Path:
        """
        Write the backup and return its full path (for share/export flows).
        """
        return self.directory / self.create(backup)

    def get(self, backup_id: str) -> Dict[str, Any]:
        path = self._path_for(backup_id)
        if not path.exists():
            raise BackupNotFound(backup_id)
        return self.read_file(path)

    def list(self) -> List[BackupMetadata]:
        """
        Backups in the directory, newest first. Unreadable files are skipped.
        """
        if not self.directory.exists():
            return []

        dated: List[Tuple[datetime, BackupMetadata]] = []
        for path in self.directory.glob(f"{APP_NAME}-backup-*{FILE_SUFFIX}"):
            try:
                backup = self.read_file(path)
                stamp = parse_iso(backup["timestamp"])
            except (InvalidBackupFormat, OSError, ValueError) as e:
                logger.warning("Skipping unreadable backup file %s: %s", path, e)
                continue
            dated.append(
                (
                    stamp,
                    BackupMetadata(
                        id=path.name,
                        timestamp=str(backup["timestamp"]),
                        version=str(backup["version"]),
                        size=path.stat().st_size,
                    ),
                )
            )

        dated.sort(key=lambda row: row[0], reverse=True)
        return [m for _, m in dated]

    def delete(self, backup_id: str) -> None:
        path = self._path_for(backup_id)
        if not path.exists():
            raise BackupNotFound(backup_id)
        path.unlink()
        logger.info("Deleted backup file %s", path)

    # ---------- Any user-selected file ----------

    @staticmethod
    def read_file(path: Path | str) -> Dict[str, Any]:
        """
        Read and validate a backup file picked by the user.
        FileNotFoundError if it does not exist; InvalidBackupFormat if it is
        not a backup.
        """
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(str(p))
        try:
            text = p.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise InvalidBackupFormat(f"Backup file is not UTF-8 text: {p.name}") from e
        return parse_backup(text)


def latest_local_backup(transport: LocalBackupTransport) -> Optional[Dict[str, Any]]:
    entries = transport.list()
    if not entries:
        return None
    return transport.get(entries[0].id)
