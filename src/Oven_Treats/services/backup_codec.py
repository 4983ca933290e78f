"""
Oven_Treats.services.backup_codec

Versioned, portable backup documents for the bakery store.

Format:
    {
      "version": "1.0.0",
      "timestamp": "<ISO-8601>",
      "data": {
        "products": [...], "orders": [...], "customers": [...],
        "users": [...], "currentUser": {...} | null
      }
    }

Every date inside "data" is an ISO-8601 string. Restore parses them
back into datetimes, fully replaces the store collections (never
merges), and re-projects customers from the restored orders.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Optional

from Oven_Treats.domain.errors import InvalidBackupFormat, RestoreFailed
from Oven_Treats.domain.models import AuthUser, Order, Product, User
from Oven_Treats.utils.timestamps import now_utc, parse_iso, to_iso

logger = logging.getLogger(__name__)

BACKUP_VERSION = "1.0.0"


def create_backup(store, clock: Callable = now_utc) -> Dict[str, Any]:
    """
    Snapshot products, orders, customers, users and the session.
    """
    return {
        "version": BACKUP_VERSION,
        "timestamp": to_iso(clock()),
        "data": store.snapshot(),
    }


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _non_empty(value: Any) -> bool:
    return value is not None and value != "" and value != {} and value != []


def validate_backup(candidate: Any) -> bool:
    """
    Structural check only. Never raises; returns False on any mismatch.
    Call this before restore_from_backup().
    """
    if not isinstance(candidate, dict):
        return False

    for key in ("version", "timestamp", "data"):
        if not _non_empty(candidate.get(key)):
            return False

    data = candidate["data"]
    if not isinstance(data, dict):
        return False

    for key in ("products", "orders", "customers"):
        if not _is_sequence(data.get(key)):
            return False

    # older backups have no users key
    if "users" in data and not _is_sequence(data["users"]):
        return False

    products = data["products"]
    if products:
        first = products[0]
        if not isinstance(first, dict):
            return False
        if not first.get("id") or not first.get("name"):
            return False
        price = first.get("price")
        if isinstance(price, bool) or not isinstance(price, (int, float)):
            return False

    orders = data["orders"]
    if orders:
        first = orders[0]
        if not isinstance(first, dict):
            return False
        if not first.get("id") or "customerName" not in first:
            return False
        if not _is_sequence(first.get("items")):
            return False

    return True


def restore_from_backup(store, backup: Dict[str, Any]) -> None:
    """
    All-or-nothing: any conversion failure raises RestoreFailed and the
    store keeps its current state.
    """
    if not validate_backup(backup):
        raise InvalidBackupFormat("Backup document failed structural validation.")

    data = backup["data"]
    try:
        products = [Product.from_dict(p) for p in data["products"]]
        orders = [Order.from_dict(o) for o in data["orders"]]

        if "users" in data:
            users = [User.from_dict(u) for u in data["users"]]
        else:
            users = store.users

        if "currentUser" in data or "user" in data:
            session_raw = data.get("currentUser") or data.get("user")
            current_user: Optional[AuthUser] = AuthUser.from_dict(session_raw) if session_raw else None
        else:
            current_user = store.current_user
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        logger.error("Restore aborted, backup could not be converted: %s", e)
        raise RestoreFailed(f"Backup could not be converted: {e}") from e

    try:
        store.replace_all(products=products, orders=orders, users=users, current_user=current_user)
    except Exception as e:
        # replace_all has already rolled the store back
        raise RestoreFailed(f"Backup could not be applied: {e}") from e

    logger.info(
        "Restored backup v%s from %s (%d products, %d orders)",
        backup.get("version"), backup.get("timestamp"), len(products), len(orders),
    )


# ---------------------------------------------------------------------------
# Text form & summaries
# ---------------------------------------------------------------------------


def serialize_backup(backup: Dict[str, Any]) -> str:
    return json.dumps(backup, indent=2, ensure_ascii=False)


def parse_backup(text: str) -> Dict[str, Any]:
    """
    JSON text -> validated backup dict, or InvalidBackupFormat.
    """
    try:
        candidate = json.loads(text)
    except (TypeError, ValueError) as e:
        raise InvalidBackupFormat(f"Backup is not valid JSON: {e}") from e

    if not validate_backup(candidate):
        raise InvalidBackupFormat("Backup is missing required sections.")
    return candidate


def get_backup_info(backup: Dict[str, Any]) -> Dict[str, Any]:
    """
    Summary for confirmation dialogs before a restore.
    """
    data = backup.get("data") or {}
    try:
        taken_at = parse_iso(backup.get("timestamp"))
    except ValueError:
        taken_at = None
    return {
        "version": backup.get("version"),
        "timestamp": taken_at,
        "products_count": len(data.get("products") or []),
        "orders_count": len(data.get("orders") or []),
        "customers_count": len(data.get("customers") or []),
        "users_count": len(data.get("users") or []),
        "has_user": bool(data.get("currentUser") or data.get("user")),
    }
