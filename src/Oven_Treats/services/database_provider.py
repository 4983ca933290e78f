"""
Oven_Treats.services.database_provider

One product / order / customer API over three interchangeable backends:

  local     -> BakeryStore (SQLite key-value snapshot)
  supabase  -> SupabaseClient (PostgREST)
  firebase  -> FirestoreClient (Firestore REST)

DatabaseProvider keeps an in-memory cache for rendering:
- load_*() refresh the cache; a transport failure flips is_online to
  False and keeps the previous (stale but valid) cache
- writes go to the backend, then the affected caches are re-read so they
  mirror the backend's authoritative state
- set_mode() persists the selected backend in the app config and reloads;
  no data is migrated between backends
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from Oven_Treats.config import config_store
from Oven_Treats.domain.errors import TransportError, ValidationError
from Oven_Treats.domain.models import CartItem, Customer, Order, Product
from Oven_Treats.integrations.firestore_client import FirestoreClient
from Oven_Treats.integrations.supabase_client import SupabaseClient
from Oven_Treats.services import order_status
from Oven_Treats.services.bakery_store import BakeryStore
from Oven_Treats.services.customer_projection import project_customers, search_customers
from Oven_Treats.services.validation import (
    optional_text,
    validate_new_order,
    validate_new_product,
    validate_product_update,
)
from Oven_Treats.utils.timestamps import as_utc, now_utc

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Backend adapters
# ---------------------------------------------------------------------------


class LocalBackend:
    name = "local"

    def __init__(self, store: BakeryStore) -> None:
        self.store = store

    def get_products(self) -> List[Product]:
        return self.store.products

    def add_product(self, fields: Dict[str, Any]) -> Product:
        return self.store.add_product(**fields)

    def update_product(self, product_id: str, updates: Dict[str, Any]) -> Optional[Product]:
        return self.store.update_product(product_id, **updates)

    def delete_product(self, product_id: str) -> None:
        self.store.delete_product(product_id)

    def get_orders(self) -> List[Order]:
        return self.store.orders

    def add_order(self, fields: Dict[str, Any]) -> Order:
        return self.store.add_order(**fields)

    def update_order_status(self, order_id: str, status: str) -> Optional[Order]:
        return self.store.update_order_status(order_id, status)

    def get_customers(self) -> List[Customer]:
        return self.store.customers


class CloudBackend:
    """
    Wraps a cloud client (SupabaseClient / FirestoreClient). Input is
    validated here, before any request, with the same rules the local
    store applies; customers are projected from the backend's orders.
    """

    def __init__(self, name: str, client, clock: Callable[[], datetime] = now_utc) -> None:
        self.name = name
        self.client = client
        self.clock = clock

    def get_products(self) -> List[Product]:
        return self.client.get_products()

    def add_product(self, fields: Dict[str, Any]) -> Product:
        return self.client.add_product(validate_new_product(fields))

    def update_product(self, product_id: str, updates: Dict[str, Any]) -> Optional[Product]:
        return self.client.update_product(product_id, validate_product_update(updates))

    def delete_product(self, product_id: str) -> None:
        self.client.delete_product(product_id)

    def get_orders(self) -> List[Order]:
        return self.client.get_orders()

    def add_order(self, fields: Dict[str, Any]) -> Order:
        now = self.clock()
        validate_new_order(fields, now=now)
        payload = {
            "items": list(fields["items"]),
            "total": float(fields["total"]),
            "status": order_status.INITIAL_STATUS,
            "customer_name": fields["customer_name"].strip(),
            "customer_phone": fields["customer_phone"].strip(),
            "customer_email": fields["customer_email"].strip(),
            "order_date": as_utc(now),
            "delivery_date": as_utc(fields["delivery_date"]),
            "estimated_time": optional_text(fields.get("estimated_time")),
        }
        return self.client.add_order(payload)

    def update_order_status(self, order_id: str, status: str) -> Optional[Order]:
        if not order_status.is_valid_status(status):
            raise ValidationError(f"Invalid order status: {status!r}")
        return self.client.update_order_status(order_id, status)

    def get_customers(self) -> List[Customer]:
        return project_customers(self.client.get_orders())


# ---------------------------------------------------------------------------
# Provider
# ---------------------------------------------------------------------------


class DatabaseProvider:
    def __init__(
        self,
        store: BakeryStore,
        mode: Optional[str] = None,
        supabase_client: Optional[SupabaseClient] = None,
        firestore_client: Optional[FirestoreClient] = None,
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        self.store = store
        self.clock = clock
        self._supabase_client = supabase_client
        self._firestore_client = firestore_client

        self.mode = mode or config_store.get_database_mode()
        if self.mode not in config_store.DATABASE_MODES:
            raise ValueError(f"Unknown database mode: {self.mode!r}")

        self.products: List[Product] = []
        self.orders: List[Order] = []
        self.customers: List[Customer] = []
        self.is_online = True
        self.last_error: Optional[str] = None

    # ---------- Backend selection ----------

    @property
    def is_cloud(self) -> bool:
        return self.mode != "local"

    def backend(self):
        if self.mode == "supabase":
            if self._supabase_client is None:
                self._supabase_client = SupabaseClient()
            return CloudBackend("supabase", self._supabase_client, clock=self.clock)
        if self.mode == "firebase":
            if self._firestore_client is None:
                self._firestore_client = FirestoreClient()
            return CloudBackend("firebase", self._firestore_client, clock=self.clock)
        return LocalBackend(self.store)

    def set_mode(self, mode: str) -> None:
        """
        Persist the new mode, then reload every cache from that backend.
        """
        config_store.set_database_mode(mode)
        if mode != self.mode:
            logger.info("Database mode: %s -> %s", self.mode, mode)
        self.mode = mode
        self.refresh()

    # ---------- Reads ----------

    def _load(self, what: str, fetch: Callable[[], list]) -> bool:
        try:
            value = fetch()
        except (TransportError, ValueError, KeyError, TypeError) as e:
            # unreachable backend or rows that cannot be mapped: keep the stale cache
            self.is_online = False
            self.last_error = str(e)
            logger.warning("Could not load %s from %s backend: %s", what, self.mode, e)
            return False

        setattr(self, what, value)
        self.is_online = True
        self.last_error = None
        return True

    def load_products(self) -> List[Product]:
        self._load("products", self.backend().get_products)
        return self.products

    def load_orders(self) -> List[Order]:
        self._load("orders", self.backend().get_orders)
        return self.orders

    def load_customers(self) -> List[Customer]:
        self._load("customers", self.backend().get_customers)
        return self.customers

    def refresh(self) -> bool:
        """
        Reload products, orders and customers. True if every read succeeded.
        """
        ok = all([
            self._load("products", self.backend().get_products),
            self._load("orders", self.backend().get_orders),
            self._load("customers", self.backend().get_customers),
        ])
        if not ok:
            self.is_online = False
        return ok

    # ---------- Writes (errors propagate; caches re-read on success) ----------

    def add_product(
        self,
        name: str,
        description: str,
        price: float,
        category: str,
        image: str,
        available: bool = True,
    ) -> Product:
        created = self.backend().add_product(
            {
                "name": name,
                "description": description,
                "price": price,
                "category": category,
                "image": image,
                "available": available,
            }
        )
        self.load_products()
        return created

    def update_product(self, product_id: str, **updates: Any) -> Optional[Product]:
        updated = self.backend().update_product(product_id, updates)
        self.load_products()
        return updated

    def delete_product(self, product_id: str) -> None:
        self.backend().delete_product(product_id)
        self.load_products()

    def add_order(
        self,
        items: List[CartItem],
        total: float,
        customer_name: str,
        customer_phone: str,
        customer_email: str,
        delivery_date: datetime,
        estimated_time: Optional[str] = None,
    ) -> Order:
        created = self.backend().add_order(
            {
                "items": items,
                "total": total,
                "customer_name": customer_name,
                "customer_phone": customer_phone,
                "customer_email": customer_email,
                "delivery_date": delivery_date,
                "estimated_time": estimated_time,
            }
        )
        self.load_orders()
        self.load_customers()
        return created

    def update_order_status(self, order_id: str, status: str) -> Optional[Order]:
        updated = self.backend().update_order_status(order_id, status)
        self.load_orders()
        self.load_customers()
        return updated

    # ---------- Helpers ----------

    def search_customers(self, query: str) -> List[Customer]:
        return search_customers(self.customers, query)
