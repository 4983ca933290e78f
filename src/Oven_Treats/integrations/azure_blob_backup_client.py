"""
Oven_Treats.integrations.azure_blob_backup_client

Remote backup store on Azure Blob Storage.

Each backup is one JSON blob: the backup document plus transport
metadata (createdAt, deviceId, size). The same metadata is mirrored in
blob metadata so list() never downloads bodies. get() strips the
transport fields before returning the backup.

Env vars:
  AZURE_STORAGE_CONNECTION_STRING
  OVENTREATS_BACKUP_CONTAINER   (default "app-backups")

Azure errors are mapped onto the app's transport errors:
  auth / 401 / 403      -> PermissionDenied
  404                   -> BackupNotFound
  request timeouts      -> TransportTimeout
  connection failures   -> NetworkUnavailable
"""

from __future__ import annotations

import json
import logging
import os
import uuid
from typing import Any, Dict, List, Optional

from azure.core.exceptions import (
    AzureError,
    ClientAuthenticationError,
    HttpResponseError,
    ResourceExistsError,
    ResourceNotFoundError,
    ServiceRequestError,
    ServiceRequestTimeoutError,
    ServiceResponseError,
    ServiceResponseTimeoutError,
)
from azure.storage.blob import BlobServiceClient, ContentSettings

from Oven_Treats.domain.errors import (
    BackupNotFound,
    NetworkUnavailable,
    NotConfigured,
    PermissionDenied,
    TransportError,
    TransportTimeout,
)
from Oven_Treats.domain.models import BackupMetadata
from Oven_Treats.utils.timestamps import compact_stamp, now_utc, to_iso

logger = logging.getLogger(__name__)

DEFAULT_CONTAINER = "app-backups"
DEFAULT_TIMEOUT = 10

# fields added for the transport; never part of a BackupData
TRANSPORT_FIELDS = ("createdAt", "deviceId", "size")


def map_azure_error(exc: AzureError) -> TransportError:
    if isinstance(exc, (ServiceRequestTimeoutError, ServiceResponseTimeoutError)):
        return TransportTimeout(f"Backup service timed out: {exc}")
    if isinstance(exc, ClientAuthenticationError):
        return PermissionDenied(f"Backup storage access denied: {exc}")
    if isinstance(exc, HttpResponseError) and exc.status_code in (401, 403):
        return PermissionDenied(f"Backup storage access denied: {exc}")
    if isinstance(exc, (ServiceRequestError, ServiceResponseError)):
        return NetworkUnavailable(f"Backup service unavailable, check your internet connection: {exc}")
    return TransportError(f"Backup storage error: {exc}")


class AzureBlobBackupClient:
    """
    container_client lets callers (tests, other tools) supply a ready
    ContainerClient instead of a connection string.
    """

    def __init__(
        self,
        connection_string: Optional[str] = None,
        container_name: Optional[str] = None,
        device_id: Optional[str] = None,
        timeout: int = DEFAULT_TIMEOUT,
        container_client=None,
    ) -> None:
        self.connection_string = (
            connection_string or os.environ.get("AZURE_STORAGE_CONNECTION_STRING", "")
        ).strip()
        self.container_name = (
            container_name or os.environ.get("OVENTREATS_BACKUP_CONTAINER", "") or DEFAULT_CONTAINER
        ).strip()
        self.device_id = device_id or "unknown_device"
        self.timeout = timeout
        self._container = container_client
        self._container_ready = container_client is not None

    # ---------- Configuration ----------

    def is_configured(self) -> bool:
        """
        Config-only check (no network): a real-looking connection string
        or an injected container client.
        """
        if self._container is not None:
            return True
        cs = self.connection_string
        if not cs or "YOUR_" in cs:
            return False
        return "AccountName=" in cs or "BlobEndpoint=" in cs or cs.startswith("UseDevelopmentStorage")

    def _get_container(self):
        if not self.is_configured():
            raise NotConfigured(
                "Remote backup storage is not configured.\n"
                "Set the AZURE_STORAGE_CONNECTION_STRING environment variable."
            )
        if self._container is None:
            service = BlobServiceClient.from_connection_string(
                self.connection_string,
                connection_timeout=self.timeout,
                read_timeout=self.timeout,
            )
            self._container = service.get_container_client(self.container_name)
        return self._container

    def _ensure_container(self):
        container = self._get_container()
        if not self._container_ready:
            try:
                container.create_container(timeout=self.timeout)
                logger.info("Created backup container %s", self.container_name)
            except ResourceExistsError:
                pass
            except AzureError as e:
                raise map_azure_error(e) from e
            self._container_ready = True
        return container

    # ---------- Contract ----------

    def create(self, backup: Dict[str, Any]) -> str:
        """
        Upload a backup; returns its id (the blob name).
        """
        container = self._ensure_container()

        size = len(json.dumps(backup).encode("utf-8"))
        created_at = to_iso(now_utc())
        body = dict(backup)
        body.update({"createdAt": created_at, "deviceId": self.device_id, "size": size})

        blob_name = f"backup-{compact_stamp()}-{uuid.uuid4().hex[:8]}.json"
        metadata = {
            "timestamp": str(backup.get("timestamp", "")),
            "version": str(backup.get("version", "")),
            "deviceid": self.device_id,
            "size": str(size),
            "createdat": created_at,
        }

        try:
            container.upload_blob(
                name=blob_name,
                data=json.dumps(body).encode("utf-8"),
                metadata=metadata,
                content_settings=ContentSettings(content_type="application/json"),
                overwrite=False,
                timeout=self.timeout,
            )
        except AzureError as e:
            logger.error("Failed to upload backup %s: %s", blob_name, e)
            raise map_azure_error(e) from e

        logger.info("Uploaded backup %s (%d bytes)", blob_name, size)
        return blob_name

    def get(self, backup_id: str) -> Dict[str, Any]:
        container = self._get_container()
        try:
            raw = container.download_blob(backup_id, timeout=self.timeout).readall()
        except ResourceNotFoundError as e:
            raise BackupNotFound(backup_id) from e
        except AzureError as e:
            raise map_azure_error(e) from e

        try:
            body = json.loads(raw)
        except ValueError as e:
            raise TransportError(f"Remote backup {backup_id} is not valid JSON") from e

        return {k: v for k, v in body.items() if k not in TRANSPORT_FIELDS}

    def list(self) -> List[BackupMetadata]:
        """
        Newest first. Listing is idempotent, so one retry on network errors.
        """
        try:
            return self._list_once()
        except (NetworkUnavailable, TransportTimeout) as e:
            logger.warning("Listing backups failed (%s); retrying once", e)
            return self._list_once()

    def _list_once(self) -> List[BackupMetadata]:
        container = self._get_container()
        rows = []
        try:
            for blob in container.list_blobs(include=["metadata"], timeout=self.timeout):
                meta = blob.metadata or {}
                try:
                    size = int(meta.get("size") or blob.size or 0)
                except (TypeError, ValueError):
                    size = int(blob.size or 0)
                created = meta.get("createdat") or to_iso(blob.creation_time) or ""
                rows.append(
                    (
                        created,
                        BackupMetadata(
                            id=blob.name,
                            timestamp=meta.get("timestamp") or created,
                            version=meta.get("version") or "",
                            size=size,
                            device_id=meta.get("deviceid") or None,
                        ),
                    )
                )
        except ResourceNotFoundError:
            # container not created yet: no backups
            return []
        except AzureError as e:
            raise map_azure_error(e) from e

        rows.sort(key=lambda r: r[0], reverse=True)
        return [m for _, m in rows]

    def delete(self, backup_id: str) -> None:
        container = self._get_container()
        try:
            container.delete_blob(backup_id, timeout=self.timeout)
        except ResourceNotFoundError as e:
            raise BackupNotFound(backup_id) from e
        except AzureError as e:
            raise map_azure_error(e) from e
        logger.info("Deleted remote backup %s", backup_id)
