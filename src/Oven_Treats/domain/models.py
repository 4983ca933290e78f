"""
Oven_Treats.domain.models

Dataclasses representing the core domain objects of the bakery app.
These are the types the store, the backup codec and the cloud backends
exchange.

Wire shape (backup files, key-value snapshot, cloud JSON) uses camelCase
keys and ISO-8601 strings for dates; to_dict()/from_dict() convert.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from Oven_Treats.utils.timestamps import parse_iso, parse_optional_iso, to_iso


PRODUCT_CATEGORIES = ("breads", "pastries", "cakes", "cookies")
ORDER_STATUSES = ("pending", "preparing", "ready", "completed", "cancelled")
USER_ROLES = ("admin", "staff")


# ---------- Catalog ----------

@dataclass
class Product:
    id: str
    name: str
    description: str
    price: float
    category: str                # one of PRODUCT_CATEGORIES
    image: str                   # URL
    available: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "category": self.category,
            "image": self.image,
            "available": self.available,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Product":
        return Product(
            id=str(data["id"]),
            name=str(data["name"]),
            description=str(data.get("description") or ""),
            price=float(data["price"]),
            category=str(data.get("category") or ""),
            image=str(data.get("image") or ""),
            available=bool(data.get("available", True)),
        )


# ---------- Orders ----------

@dataclass
class CartItem:
    """
    The product is an embedded snapshot taken when the order was placed,
    so later edits or deletes of the catalog never touch past orders.
    """
    product: Product
    quantity: int

    def to_dict(self) -> Dict[str, Any]:
        return {"product": self.product.to_dict(), "quantity": self.quantity}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "CartItem":
        return CartItem(
            product=Product.from_dict(data["product"]),
            quantity=int(data["quantity"]),
        )


@dataclass
class Order:
    id: str
    items: List[CartItem]
    total: float
    status: str                  # one of ORDER_STATUSES
    customer_name: str
    customer_phone: str
    customer_email: str
    order_date: datetime         # assigned at creation, immutable
    delivery_date: datetime
    estimated_time: Optional[str] = None

    @property
    def item_count(self) -> int:
        return sum(i.quantity for i in self.items)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "items": [i.to_dict() for i in self.items],
            "total": self.total,
            "status": self.status,
            "customerName": self.customer_name,
            "customerPhone": self.customer_phone,
            "customerEmail": self.customer_email,
            "orderDate": to_iso(self.order_date),
            "deliveryDate": to_iso(self.delivery_date),
        }
        if self.estimated_time is not None:
            out["estimatedTime"] = self.estimated_time
        return out

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Order":
        return Order(
            id=str(data["id"]),
            items=[CartItem.from_dict(i) for i in data.get("items") or []],
            total=float(data["total"]),
            status=str(data.get("status") or "pending"),
            customer_name=str(data.get("customerName") or ""),
            customer_phone=str(data.get("customerPhone") or ""),
            customer_email=str(data.get("customerEmail") or ""),
            order_date=parse_iso(data["orderDate"]),
            delivery_date=parse_iso(data["deliveryDate"]),
            estimated_time=data.get("estimatedTime") or None,
        )


# ---------- Customers (derived from orders) ----------

@dataclass
class Customer:
    id: str                      # == email
    name: str
    phone: str
    email: str
    total_orders: int = 0
    total_spent: float = 0.0
    last_order_date: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "totalOrders": self.total_orders,
            "totalSpent": self.total_spent,
        }
        if self.last_order_date is not None:
            out["lastOrderDate"] = to_iso(self.last_order_date)
        return out

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Customer":
        return Customer(
            id=str(data.get("id") or data.get("email") or ""),
            name=str(data.get("name") or ""),
            phone=str(data.get("phone") or ""),
            email=str(data.get("email") or ""),
            total_orders=int(data.get("totalOrders") or 0),
            total_spent=float(data.get("totalSpent") or 0.0),
            last_order_date=parse_optional_iso(data.get("lastOrderDate")),
        )


# ---------- Staff accounts ----------

@dataclass
class AuthUser:
    """
    Session-safe view of a User (no password).
    """
    id: str
    username: str
    name: str
    email: str
    role: str
    is_active: bool = True

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "isActive": self.is_active,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "AuthUser":
        return AuthUser(
            id=str(data["id"]),
            username=str(data["username"]),
            name=str(data.get("name") or ""),
            email=str(data.get("email") or ""),
            role=str(data.get("role") or "staff"),
            is_active=bool(data.get("isActive", True)),
        )


@dataclass
class User:
    id: str
    username: str
    password: str                # bcrypt hash, never plaintext
    name: str
    email: str
    role: str                    # one of USER_ROLES
    is_active: bool = True
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None

    def to_auth_user(self) -> AuthUser:
        return AuthUser(
            id=self.id,
            username=self.username,
            name=self.name,
            email=self.email,
            role=self.role,
            is_active=self.is_active,
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "username": self.username,
            "password": self.password,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "isActive": self.is_active,
            "createdAt": to_iso(self.created_at),
        }
        if self.created_by is not None:
            out["createdBy"] = self.created_by
        return out

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "User":
        return User(
            id=str(data["id"]),
            username=str(data["username"]),
            password=str(data.get("password") or ""),
            name=str(data.get("name") or ""),
            email=str(data.get("email") or ""),
            role=str(data.get("role") or "staff"),
            is_active=bool(data.get("isActive", True)),
            created_at=parse_optional_iso(data.get("createdAt")),
            created_by=data.get("createdBy") or None,
        )


# ---------- Backups ----------

@dataclass
class BackupMetadata:
    """
    Lightweight listing entry for a stored backup (local file or remote blob).
    """
    id: str
    timestamp: str               # ISO-8601 of the backup itself
    version: str
    size: int                    # bytes of the serialized JSON
    device_id: Optional[str] = None
