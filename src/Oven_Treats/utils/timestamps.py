"""
Oven_Treats.utils.timestamps

Small helpers for the datetime <-> ISO-8601 boundary.

All timestamps inside the app are timezone-aware UTC datetimes.
Anything that leaves the process (key-value snapshot, backup files,
cloud rows) carries them as ISO-8601 strings.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """
    Naive datetimes are treated as UTC; aware ones are converted to UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return as_utc(value).isoformat()


def parse_iso(value: Any) -> datetime:
    """
    Accepts an ISO-8601 string (including the JavaScript 'Z' suffix)
    or an existing datetime. Raises ValueError for anything else.
    """
    if isinstance(value, datetime):
        return as_utc(value)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Not an ISO-8601 timestamp: {value!r}")

    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(text))


def parse_optional_iso(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    return parse_iso(value)


def compact_stamp(value: Optional[datetime] = None) -> str:
    """
    e.g. 20260119T081500Z; used in object names.
    """
    return as_utc(value or now_utc()).strftime("%Y%m%dT%H%M%SZ")
