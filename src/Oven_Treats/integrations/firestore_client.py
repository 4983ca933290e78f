"""
Oven_Treats.integrations.firestore_client

Cloud Firestore backend through the Firestore REST API.

Documents keep camelCase field names but every value is wrapped in a
Firestore typed value:

    {"fields": {"name": {"stringValue": "Baguette"},
                "price": {"doubleValue": 4.25},
                "orderDate": {"timestampValue": "2026-01-19T08:15:00Z"}}}

encode_value()/decode_value() handle the wrapping; the document <->
domain mapping is below them.

Env vars:
  FIREBASE_PROJECT_ID
  FIREBASE_API_KEY
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests

from Oven_Treats.domain.errors import NotConfigured
from Oven_Treats.domain.models import CartItem, Order, Product
from Oven_Treats.integrations.http_client import DEFAULT_TIMEOUT, request_json
from Oven_Treats.utils.timestamps import as_utc, now_utc, parse_iso

logger = logging.getLogger(__name__)

SERVICE_NAME = "Firebase"
FIRESTORE_BASE_URL = "https://firestore.googleapis.com/v1"
PAGE_SIZE = 300


# ---------------------------------------------------------------------------
# Typed values
# ---------------------------------------------------------------------------


def encode_value(value: Any) -> Dict[str, Any]:
    if value is None:
        return {"nullValue": None}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, str):
        return {"stringValue": value}
    if isinstance(value, datetime):
        return {"timestampValue": as_utc(value).isoformat().replace("+00:00", "Z")}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(v) for v in value]}}
    if isinstance(value, dict):
        return {"mapValue": {"fields": encode_fields(value)}}
    raise TypeError(f"Cannot store {type(value).__name__} in Firestore")


def decode_value(wrapped: Dict[str, Any]) -> Any:
    if "nullValue" in wrapped:
        return None
    if "booleanValue" in wrapped:
        return bool(wrapped["booleanValue"])
    if "integerValue" in wrapped:
        return int(wrapped["integerValue"])
    if "doubleValue" in wrapped:
        return float(wrapped["doubleValue"])
    if "stringValue" in wrapped:
        return wrapped["stringValue"]
    if "timestampValue" in wrapped:
        return parse_iso(wrapped["timestampValue"])
    if "arrayValue" in wrapped:
        return [decode_value(v) for v in (wrapped["arrayValue"] or {}).get("values", [])]
    if "mapValue" in wrapped:
        return decode_fields((wrapped["mapValue"] or {}).get("fields", {}))
    raise ValueError(f"Unsupported Firestore value: {sorted(wrapped)}")


def encode_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: encode_value(v) for k, v in data.items()}


def decode_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {k: decode_value(v) for k, v in (fields or {}).items()}


def document_id(doc: Dict[str, Any]) -> str:
    return str(doc["name"]).rsplit("/", 1)[-1]


# ---------------------------------------------------------------------------
# Document mapping
# ---------------------------------------------------------------------------

_PRODUCT_FIELDS = {
    "name": "name",
    "description": "description",
    "price": "price",
    "category": "category",
    "image": "image",
    "available": "available",
}

_ORDER_FIELDS = {
    "items": "items",
    "total": "total",
    "status": "status",
    "customer_name": "customerName",
    "customer_phone": "customerPhone",
    "customer_email": "customerEmail",
    "order_date": "orderDate",
    "delivery_date": "deliveryDate",
    "estimated_time": "estimatedTime",
}


def product_to_document(fields: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, value in fields.items():
        name = _PRODUCT_FIELDS.get(key)
        if name is None:
            continue
        out[name] = float(value) if key == "price" else value
    return out


def document_to_product(doc: Dict[str, Any]) -> Product:
    data = decode_fields(doc.get("fields", {}))
    return Product(
        id=document_id(doc),
        name=data["name"],
        description=data.get("description") or "",
        price=float(data["price"]),
        category=data["category"],
        image=data.get("image") or "",
        available=bool(data.get("available", True)),
    )


def order_to_document(fields: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, value in fields.items():
        name = _ORDER_FIELDS.get(key)
        if name is None:
            continue
        if key == "items":
            value = [i.to_dict() for i in value]
        elif key == "total":
            value = float(value)
        out[name] = value
    return out


def document_to_order(doc: Dict[str, Any]) -> Order:
    data = decode_fields(doc.get("fields", {}))
    items = []
    for raw in data.get("items") or []:
        raw = dict(raw)
        raw["quantity"] = int(raw["quantity"])
        items.append(CartItem.from_dict(raw))
    return Order(
        id=document_id(doc),
        items=items,
        total=float(data["total"]),
        status=data.get("status") or "pending",
        customer_name=data.get("customerName") or "",
        customer_phone=data.get("customerPhone") or "",
        customer_email=data.get("customerEmail") or "",
        order_date=parse_iso(data["orderDate"]),
        delivery_date=parse_iso(data["deliveryDate"]),
        estimated_time=data.get("estimatedTime") or None,
    )


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class FirestoreClient:
    def __init__(
        self,
        project_id: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: int = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.project_id = (project_id or os.environ.get("FIREBASE_PROJECT_ID", "")).strip()
        self.api_key = (api_key or os.environ.get("FIREBASE_API_KEY", "")).strip()
        self.timeout = timeout
        self.session = session or requests.Session()

    def is_configured(self) -> bool:
        if not self.project_id or not self.api_key:
            return False
        return "YOUR_" not in self.project_id and "YOUR_" not in self.api_key

    def _collection_url(self, collection: str) -> str:
        if not self.is_configured():
            raise NotConfigured(
                "Firebase is not configured.\n"
                "Set FIREBASE_PROJECT_ID and FIREBASE_API_KEY environment variables."
            )
        return f"{FIRESTORE_BASE_URL}/projects/{self.project_id}/databases/(default)/documents/{collection}"

    def _call(self, method: str, url: str, params: Optional[Dict[str, Any]] = None, **kwargs: Any) -> Any:
        params = dict(params or {})
        params["key"] = self.api_key
        return request_json(self.session, method, url, SERVICE_NAME, timeout=self.timeout, params=params, **kwargs)

    # ---------- Generic document ops ----------

    def list_documents(self, collection: str, order_by: str = "createdAt desc") -> List[Dict[str, Any]]:
        url = self._collection_url(collection)
        docs: List[Dict[str, Any]] = []
        page_token: Optional[str] = None
        while True:
            params: Dict[str, Any] = {"orderBy": order_by, "pageSize": PAGE_SIZE}
            if page_token:
                params["pageToken"] = page_token
            body = self._call("GET", url, params=params) or {}
            docs.extend(body.get("documents") or [])
            page_token = body.get("nextPageToken")
            if not page_token:
                logger.debug("Firestore %s: %d document(s)", collection, len(docs))
                return docs

    def create_document(self, collection: str, data: Dict[str, Any]) -> Dict[str, Any]:
        now = now_utc()
        data = dict(data, createdAt=now, updatedAt=now)
        return self._call("POST", self._collection_url(collection), json={"fields": encode_fields(data)})

    def update_document(self, collection: str, doc_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Only the given fields change. Missing documents are not created (None).
        """
        data = dict(data, updatedAt=now_utc())
        params = {
            "updateMask.fieldPaths": list(data.keys()),
            "currentDocument.exists": "true",
        }
        return self._call(
            "PATCH",
            f"{self._collection_url(collection)}/{doc_id}",
            params=params,
            json={"fields": encode_fields(data)},
            allow_missing=True,
        )

    def delete_document(self, collection: str, doc_id: str) -> None:
        self._call("DELETE", f"{self._collection_url(collection)}/{doc_id}", allow_missing=True)

    # ---------- Products ----------

    def get_products(self) -> List[Product]:
        return [document_to_product(d) for d in self.list_documents("products")]

    def add_product(self, fields: Dict[str, Any]) -> Product:
        return document_to_product(self.create_document("products", product_to_document(fields)))

    def update_product(self, product_id: str, updates: Dict[str, Any]) -> Optional[Product]:
        doc = self.update_document("products", product_id, product_to_document(updates))
        return document_to_product(doc) if doc else None

    def delete_product(self, product_id: str) -> None:
        self.delete_document("products", product_id)

    # ---------- Orders ----------

    def get_orders(self) -> List[Order]:
        return [document_to_order(d) for d in self.list_documents("orders")]

    def add_order(self, fields: Dict[str, Any]) -> Order:
        data = order_to_document(fields)
        data.setdefault("orderDate", now_utc())
        return document_to_order(self.create_document("orders", data))

    def update_order_status(self, order_id: str, status: str) -> Optional[Order]:
        doc = self.update_document("orders", order_id, {"status": status})
        return document_to_order(doc) if doc else None
