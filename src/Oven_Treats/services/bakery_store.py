"""
Oven_Treats.services.bakery_store

The persisted bakery store: single in-process source of truth for
products, orders, customers, staff users and the active session.

Persistence:
- every mutation serializes the full snapshot (dates as ISO-8601) and
  writes it to the key-value layer under one fixed key
- on startup the snapshot is read back, dates are parsed, and the
  customer projection is recomputed from the orders (the persisted
  customers are never trusted)

Mutations build new lists and swap them in; if the write to the
key-value layer fails, the previous lists are put back so memory and
disk never disagree.

Build one BakeryStore at startup and hand it to whatever needs it
(DatabaseProvider, backup codec, UI).
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from Oven_Treats.domain.catalog import default_products
from Oven_Treats.domain.errors import DuplicateUsername, SelfDeletionForbidden, ValidationError
from Oven_Treats.domain.models import AuthUser, CartItem, Customer, Order, ORDER_STATUSES, Product, User
from Oven_Treats.services import order_status
from Oven_Treats.services.customer_projection import project_customers
from Oven_Treats.services.password_service import hash_password, verify_password
from Oven_Treats.services.validation import (
    optional_text,
    validate_new_order,
    validate_new_product,
    validate_new_user,
    validate_product_update,
    validate_user_update,
)
from Oven_Treats.utils.timestamps import as_utc, now_utc

logger = logging.getLogger(__name__)

STORAGE_KEY = "bakery-storage"
SNAPSHOT_VERSION = 1


class BakeryStore:
    """
    kv_store must provide get(key) -> Optional[str] and set(key, value).
    """

    def __init__(
        self,
        kv_store,
        storage_key: str = STORAGE_KEY,
        clock: Callable[[], datetime] = now_utc,
        enforce_transitions: bool = False,
    ) -> None:
        self.kv_store = kv_store
        self.storage_key = storage_key
        self.clock = clock
        self.enforce_transitions = enforce_transitions

        self._products: List[Product] = default_products()
        self._orders: List[Order] = []
        self._customers: List[Customer] = []
        self._users: List[User] = []
        self._current_user: Optional[AuthUser] = None
        self._last_id = 0

        self._rehydrate()

    # ------------------------------------------------------------------
    # Read access (copies, so callers cannot mutate store state)
    # ------------------------------------------------------------------

    @property
    def products(self) -> List[Product]:
        return copy.deepcopy(self._products)

    @property
    def orders(self) -> List[Order]:
        return copy.deepcopy(self._orders)

    @property
    def customers(self) -> List[Customer]:
        return copy.deepcopy(self._customers)

    @property
    def users(self) -> List[User]:
        return copy.deepcopy(self._users)

    @property
    def current_user(self) -> Optional[AuthUser]:
        return copy.copy(self._current_user)

    def get_product(self, product_id: str) -> Optional[Product]:
        for p in self._products:
            if p.id == product_id:
                return copy.deepcopy(p)
        return None

    def available_products(self, category: Optional[str] = None) -> List[Product]:
        """
        Products a customer can order; category None or "all" means every category.
        """
        return [
            copy.deepcopy(p) for p in self._products
            if p.available and (category in (None, "all") or p.category == category)
        ]

    def get_order(self, order_id: str) -> Optional[Order]:
        for o in self._orders:
            if o.id == order_id:
                return copy.deepcopy(o)
        return None

    def orders_for_customer(self, email: str) -> List[Order]:
        """
        A customer's orders, newest first.
        """
        found = [copy.deepcopy(o) for o in self._orders if o.customer_email == email]
        found.sort(key=lambda o: o.order_date, reverse=True)
        return found

    def order_counts_by_status(self) -> Dict[str, int]:
        counts = {s: 0 for s in ORDER_STATUSES}
        for o in self._orders:
            counts[o.status] = counts.get(o.status, 0) + 1
        return counts

    def get_user(self, user_id: str) -> Optional[User]:
        for u in self._users:
            if u.id == user_id:
                return copy.deepcopy(u)
        return None

    def is_initialized(self) -> bool:
        """
        True once at least one staff account exists (gates first-run admin setup).
        """
        return len(self._users) > 0

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def add_product(
        self,
        name: str,
        description: str,
        price: float,
        category: str,
        image: str,
        available: bool = True,
    ) -> Product:
        fields = validate_new_product(
            {
                "name": name,
                "description": description,
                "price": price,
                "category": category,
                "image": image,
                "available": available,
            }
        )
        product = Product(id=self._new_id(), **fields)
        self._commit(products=self._products + [product])
        logger.info("Added product %s (%s)", product.id, product.name)
        return copy.deepcopy(product)

    def update_product(self, product_id: str, **updates: Any) -> Optional[Product]:
        """
        Partial update. Returns the updated product, or None if the id is unknown.
        """
        cleaned = validate_product_update(updates)
        if not any(p.id == product_id for p in self._products):
            logger.debug("update_product: unknown id %s", product_id)
            return None

        new_products = [replace(p, **cleaned) if p.id == product_id else p for p in self._products]
        self._commit(products=new_products)
        return self.get_product(product_id)

    def delete_product(self, product_id: str) -> bool:
        """
        Past orders keep their embedded product snapshot, so nothing else changes.
        """
        remaining = [p for p in self._products if p.id != product_id]
        if len(remaining) == len(self._products):
            return False
        self._commit(products=remaining)
        logger.info("Deleted product %s", product_id)
        return True

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

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
        """
        New orders always start as "pending" with order_date = now.
        The customer projection is refreshed before this returns.
        """
        now = self.clock()
        validate_new_order(
            {
                "items": items,
                "total": total,
                "customer_name": customer_name,
                "customer_phone": customer_phone,
                "customer_email": customer_email,
                "delivery_date": delivery_date,
            },
            now=now,
        )

        order = Order(
            id=self._new_id(),
            items=copy.deepcopy(list(items)),
            total=float(total),
            status=order_status.INITIAL_STATUS,
            customer_name=customer_name.strip(),
            customer_phone=customer_phone.strip(),
            customer_email=customer_email.strip(),
            order_date=as_utc(now),
            delivery_date=as_utc(delivery_date),
            estimated_time=optional_text(estimated_time),
        )
        self._commit(orders=self._orders + [order])
        logger.info("Added order %s for %s (total=%.2f)", order.id, order.customer_email, order.total)
        return copy.deepcopy(order)

    def update_order_status(self, order_id: str, status: str) -> Optional[Order]:
        """
        Returns the updated order, or None if the id is unknown.
        """
        if not order_status.is_valid_status(status):
            raise ValidationError(f"Invalid order status: {status!r}")

        current = next((o for o in self._orders if o.id == order_id), None)
        if current is None:
            logger.debug("update_order_status: unknown id %s", order_id)
            return None

        if self.enforce_transitions and not order_status.can_transition(current.status, status):
            raise ValidationError(f"Cannot move order {order_id} from {current.status!r} to {status!r}")

        new_orders = [replace(o, status=status) if o.id == order_id else o for o in self._orders]
        self._commit(orders=new_orders)
        logger.info("Order %s: %s -> %s", order_id, current.status, status)
        return self.get_order(order_id)

    # ------------------------------------------------------------------
    # Users & session
    # ------------------------------------------------------------------

    def register_user(
        self,
        username: str,
        password: str,
        name: str,
        email: str,
        role: str = "staff",
        is_active: bool = True,
    ) -> User:
        """
        Creates a staff account. The first account is normally the admin
        created by the setup screen; later ones are created by an admin.
        """
        fields = validate_new_user(
            {
                "username": username,
                "password": password,
                "name": name,
                "email": email,
                "role": role,
                "is_active": is_active,
            }
        )
        if any(u.username == fields["username"] for u in self._users):
            raise DuplicateUsername(fields["username"])

        fields["password"] = hash_password(fields["password"])
        user = User(
            id=self._new_id(),
            created_at=as_utc(self.clock()),
            created_by=self._current_user.id if self._current_user else None,
            **fields,
        )
        self._commit(users=self._users + [user])
        logger.info("Registered user %s (%s)", user.username, user.role)
        return copy.deepcopy(user)

    def update_user(self, user_id: str, **updates: Any) -> Optional[User]:
        cleaned = validate_user_update(updates)
        target = next((u for u in self._users if u.id == user_id), None)
        if target is None:
            return None

        new_username = cleaned.get("username")
        if new_username and new_username != target.username:
            if any(u.username == new_username for u in self._users):
                raise DuplicateUsername(new_username)

        if "password" in cleaned:
            cleaned["password"] = hash_password(cleaned["password"])

        updated = replace(target, **cleaned)
        new_users = [updated if u.id == user_id else u for u in self._users]

        changes: Dict[str, Any] = {"users": new_users}
        if self._current_user and self._current_user.id == user_id:
            changes["current_user"] = updated.to_auth_user()

        self._commit(**changes)
        logger.info("Updated user %s", updated.username)
        return copy.deepcopy(updated)

    def delete_user(self, user_id: str) -> bool:
        if self._current_user and self._current_user.id == user_id:
            raise SelfDeletionForbidden(user_id)

        remaining = [u for u in self._users if u.id != user_id]
        if len(remaining) == len(self._users):
            return False
        self._commit(users=remaining)
        logger.info("Deleted user %s", user_id)
        return True

    def login(self, username: str, password: str) -> Optional[AuthUser]:
        """
        None for unknown user, inactive account or wrong password alike.
        """
        user = next((u for u in self._users if u.username == username and u.is_active), None)
        if user is None or not verify_password(password, user.password):
            logger.info("Failed login for %r", username)
            return None

        session = user.to_auth_user()
        self._commit(current_user=session)
        logger.info("User %s logged in", username)
        return copy.copy(session)

    def logout(self) -> None:
        if self._current_user is None:
            return
        self._commit(current_user=None)

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def reset_data(self) -> None:
        """
        Back to the built-in catalog with no orders. Users and session stay.
        """
        self._commit(products=default_products(), orders=[])
        logger.info("Store data reset to defaults")

    def snapshot(self) -> Dict[str, Any]:
        """
        Full state in wire shape (camelCase keys, ISO-8601 dates).
        """
        return {
            "products": [p.to_dict() for p in self._products],
            "orders": [o.to_dict() for o in self._orders],
            "customers": [c.to_dict() for c in self._customers],
            "users": [u.to_dict() for u in self._users],
            "currentUser": self._current_user.to_dict() if self._current_user else None,
        }

    def replace_all(
        self,
        products: List[Product],
        orders: List[Order],
        users: List[User],
        current_user: Optional[AuthUser],
    ) -> None:
        """
        Swap every collection at once (used by restore). Customers are
        re-projected from the new orders. All-or-nothing.
        """
        self._commit(
            products=copy.deepcopy(list(products)),
            orders=copy.deepcopy(list(orders)),
            users=copy.deepcopy(list(users)),
            current_user=copy.copy(current_user),
        )
        self._bump_last_id(self._products + self._orders + self._users)
        logger.info(
            "Store replaced: %d products, %d orders, %d users",
            len(self._products), len(self._orders), len(self._users),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _new_id(self) -> str:
        """
        Millisecond timestamp, bumped so ids stay unique within the store lifetime.
        """
        candidate = int(self.clock().timestamp() * 1000)
        if candidate <= self._last_id:
            candidate = self._last_id + 1
        self._last_id = candidate
        return str(candidate)

    def _bump_last_id(self, entities) -> None:
        for e in entities:
            if e.id.isdigit():
                self._last_id = max(self._last_id, int(e.id))

    def _state(self) -> Dict[str, Any]:
        return {
            "products": self._products,
            "orders": self._orders,
            "customers": self._customers,
            "users": self._users,
            "current_user": self._current_user,
        }

    def _apply(self, state: Dict[str, Any]) -> None:
        for key, value in state.items():
            setattr(self, f"_{key}", value)

    def _commit(self, **changes: Any) -> None:
        previous = self._state()
        self._apply(changes)
        if "orders" in changes:
            self._customers = project_customers(self._orders)

        try:
            self._persist()
        except Exception:
            logger.exception("Could not persist store snapshot; changes rolled back")
            self._apply(previous)
            raise

    def _persist(self) -> None:
        payload = {"version": SNAPSHOT_VERSION, "state": self.snapshot()}
        self.kv_store.set(self.storage_key, json.dumps(payload))

    def _rehydrate(self) -> None:
        raw = self.kv_store.get(self.storage_key)
        if not raw:
            logger.debug("No persisted snapshot under %r; starting fresh", self.storage_key)
            return

        try:
            payload = json.loads(raw)
            state = payload.get("state", payload)
            products = (
                [Product.from_dict(p) for p in state["products"]]
                if "products" in state else default_products()
            )
            orders = [Order.from_dict(o) for o in state.get("orders") or []]
            users = [User.from_dict(u) for u in state.get("users") or []]
            session_raw = state.get("currentUser") or state.get("user")
            current_user = AuthUser.from_dict(session_raw) if session_raw else None
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning("Persisted snapshot is unreadable (%s); starting from defaults", e)
            return

        self._products = products
        self._orders = orders
        self._users = users
        self._current_user = current_user
        self._customers = project_customers(self._orders)
        self._bump_last_id(self._products + self._orders + self._users)
        logger.info(
            "Store rehydrated: %d products, %d orders, %d users",
            len(products), len(orders), len(users),
        )
