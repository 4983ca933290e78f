"""
Oven_Treats.integrations.supabase_client

Supabase (PostgREST) backend over plain HTTP.

Tables:
  products(id, name, description, price, category, image, available,
           created_at, updated_at)
  orders(id, items jsonb, total, status, customer_name, customer_phone,
         customer_email, order_date, delivery_date, estimated_time,
         created_at, updated_at)

Columns are snake_case and dates are ISO strings; the row <-> domain
mapping below is the only place that knows about it.

Env vars:
  SUPABASE_URL
  SUPABASE_ANON_KEY
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

import requests

from Oven_Treats.domain.errors import NotConfigured
from Oven_Treats.domain.models import CartItem, Order, Product
from Oven_Treats.integrations.http_client import DEFAULT_TIMEOUT, request_json
from Oven_Treats.utils.timestamps import now_utc, parse_iso, to_iso

logger = logging.getLogger(__name__)

SERVICE_NAME = "Supabase"


# ---------------------------------------------------------------------------
# Row mapping
# ---------------------------------------------------------------------------

_PRODUCT_COLUMNS = {
    "name": "name",
    "description": "description",
    "price": "price",
    "category": "category",
    "image": "image",
    "available": "available",
}

_ORDER_COLUMNS = {
    "items": "items",
    "total": "total",
    "status": "status",
    "customer_name": "customer_name",
    "customer_phone": "customer_phone",
    "customer_email": "customer_email",
    "order_date": "order_date",
    "delivery_date": "delivery_date",
    "estimated_time": "estimated_time",
}


def row_to_product(row: Dict[str, Any]) -> Product:
    return Product(
        id=str(row["id"]),
        name=row["name"],
        description=row.get("description") or "",
        price=float(row["price"]),
        category=row["category"],
        image=row.get("image") or "",
        available=bool(row.get("available", True)),
    )


def product_to_row(fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Domain field names -> columns. Accepts full or partial field sets.
    """
    return {_PRODUCT_COLUMNS[k]: v for k, v in fields.items() if k in _PRODUCT_COLUMNS}


def row_to_order(row: Dict[str, Any]) -> Order:
    return Order(
        id=str(row["id"]),
        items=[CartItem.from_dict(i) for i in row.get("items") or []],
        total=float(row["total"]),
        status=row.get("status") or "pending",
        customer_name=row.get("customer_name") or "",
        customer_phone=row.get("customer_phone") or "",
        customer_email=row.get("customer_email") or "",
        order_date=parse_iso(row["order_date"]),
        delivery_date=parse_iso(row["delivery_date"]),
        estimated_time=row.get("estimated_time") or None,
    )


def order_to_row(fields: Dict[str, Any]) -> Dict[str, Any]:
    row: Dict[str, Any] = {}
    for key, value in fields.items():
        column = _ORDER_COLUMNS.get(key)
        if column is None:
            continue
        if key == "items":
            value = [i.to_dict() for i in value]
        elif key in ("order_date", "delivery_date"):
            value = to_iso(value)
        row[column] = value
    return row


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class SupabaseClient:
    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: int = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.url = (url or os.environ.get("SUPABASE_URL", "")).strip().rstrip("/")
        self.api_key = (api_key or os.environ.get("SUPABASE_ANON_KEY", "")).strip()
        self.timeout = timeout
        self.session = session or requests.Session()

    def is_configured(self) -> bool:
        if not self.url or not self.api_key:
            return False
        return "YOUR_" not in self.url and "YOUR_" not in self.api_key

    def _table_url(self, table: str) -> str:
        if not self.is_configured():
            raise NotConfigured(
                "Supabase is not configured.\n"
                "Set SUPABASE_URL and SUPABASE_ANON_KEY environment variables."
            )
        return f"{self.url}/rest/v1/{table}"

    def _headers(self) -> Dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    def _call(self, method: str, table: str, **kwargs: Any) -> Any:
        return request_json(
            self.session,
            method,
            self._table_url(table),
            SERVICE_NAME,
            timeout=self.timeout,
            headers=self._headers(),
            **kwargs,
        )

    # ---------- Generic table ops ----------

    def select_all(self, table: str, order: str = "created_at.desc") -> List[Dict[str, Any]]:
        rows = self._call("GET", table, params={"select": "*", "order": order}) or []
        logger.debug("Supabase %s: %d row(s)", table, len(rows))
        return rows

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        rows = self._call("POST", table, json=row) or []
        return rows[0] if isinstance(rows, list) else rows

    def update(self, table: str, row_id: str, values: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        rows = self._call("PATCH", table, params={"id": f"eq.{row_id}"}, json=values) or []
        return rows[0] if rows else None

    def delete(self, table: str, row_id: str) -> None:
        self._call("DELETE", table, params={"id": f"eq.{row_id}"})

    # ---------- Products ----------

    def get_products(self) -> List[Product]:
        return [row_to_product(r) for r in self.select_all("products")]

    def add_product(self, fields: Dict[str, Any]) -> Product:
        return row_to_product(self.insert("products", product_to_row(fields)))

    def update_product(self, product_id: str, updates: Dict[str, Any]) -> Optional[Product]:
        values = product_to_row(updates)
        values["updated_at"] = to_iso(now_utc())
        row = self.update("products", product_id, values)
        return row_to_product(row) if row else None

    def delete_product(self, product_id: str) -> None:
        self.delete("products", product_id)

    # ---------- Orders ----------

    def get_orders(self) -> List[Order]:
        return [row_to_order(r) for r in self.select_all("orders")]

    def add_order(self, fields: Dict[str, Any]) -> Order:
        row = order_to_row(fields)
        row.setdefault("order_date", to_iso(now_utc()))
        return row_to_order(self.insert("orders", row))

    def update_order_status(self, order_id: str, status: str) -> Optional[Order]:
        row = self.update("orders", order_id, {"status": status, "updated_at": to_iso(now_utc())})
        return row_to_order(row) if row else None
