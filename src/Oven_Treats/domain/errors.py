"""
Oven_Treats.domain.errors

Exception types raised by the store, the backup subsystem and the
cloud backends. UI code catches these to show actionable messages.
"""

from __future__ import annotations


class BakeryError(Exception):
    """Base class for every error raised by the bakery core."""


# ---------- Input & business rules ----------

class ValidationError(BakeryError, ValueError):
    """Bad input shape or range. Raised before any state is touched."""


class DuplicateUsername(BakeryError):
    def __init__(self, username: str) -> None:
        super().__init__(f"Username already exists: {username!r}")
        self.username = username


class SelfDeletionForbidden(BakeryError):
    def __init__(self, user_id: str) -> None:
        super().__init__("You cannot delete your own account.")
        self.user_id = user_id


# ---------- Backup / restore ----------

class InvalidBackupFormat(BakeryError, ValueError):
    """The candidate document is not a structurally valid backup."""


class RestoreFailed(BakeryError):
    """Restore could not be applied; the store was left unchanged."""


# ---------- Transport (backup stores & cloud backends) ----------

class TransportError(BakeryError):
    """Generic failure talking to a remote service."""


class NotConfigured(TransportError):
    """Credentials or endpoint are missing (or still placeholders)."""


class PermissionDenied(TransportError):
    """The remote service refused access (auth or security rules)."""


class NetworkUnavailable(TransportError):
    """The remote service could not be reached."""


class TransportTimeout(TransportError):
    """The remote call did not complete within its timeout."""


class BackupNotFound(TransportError):
    def __init__(self, backup_id: str) -> None:
        super().__init__(f"Backup not found: {backup_id}")
        self.backup_id = backup_id
