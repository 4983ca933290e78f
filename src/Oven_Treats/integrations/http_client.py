"""
Oven_Treats.integrations.http_client

Thin requests wrapper shared by the cloud backends. Every call has a
timeout and every failure comes back as one of the app's transport
errors, never as a raw requests exception.
"""

from __future__ import annotations

from typing import Any, Optional

import requests

from Oven_Treats.domain.errors import (
    NetworkUnavailable,
    PermissionDenied,
    TransportError,
    TransportTimeout,
)

DEFAULT_TIMEOUT = 10


def request_json(
    session: requests.Session,
    method: str,
    url: str,
    service: str,
    timeout: int = DEFAULT_TIMEOUT,
    allow_missing: bool = False,
    **kwargs: Any,
) -> Optional[Any]:
    """
    Perform one HTTP call and return the decoded JSON body (None for an
    empty body, or for a 404 when allow_missing is set).
    """
    try:
        resp = session.request(method, url, timeout=timeout, **kwargs)
    except requests.Timeout as e:
        raise TransportTimeout(f"{service} did not respond within {timeout}s") from e
    except requests.ConnectionError as e:
        raise NetworkUnavailable(f"{service} is unreachable, check your internet connection") from e
    except requests.RequestException as e:
        raise TransportError(f"{service} request failed: {e}") from e

    if resp.status_code in (401, 403):
        raise PermissionDenied(f"{service} refused access (HTTP {resp.status_code}); check credentials and access rules")
    if resp.status_code == 404 and allow_missing:
        return None
    if resp.status_code >= 400:
        raise TransportError(f"{service} error HTTP {resp.status_code}: {resp.text[:200]}")

    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError as e:
        raise TransportError(f"{service} returned invalid JSON") from e
