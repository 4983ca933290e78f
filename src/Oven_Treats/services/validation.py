"""
Oven_Treats.services.validation

Input checks shared by the store and the cloud backends.
Every function raises ValidationError before anything is mutated.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from Oven_Treats.domain.errors import ValidationError
from Oven_Treats.domain.models import CartItem, PRODUCT_CATEGORIES, USER_ROLES
from Oven_Treats.utils.timestamps import as_utc

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6
# bcrypt only hashes the first 72 bytes and newer releases refuse longer input
MAX_PASSWORD_BYTES = 72


def is_valid_email(email: str) -> bool:
    return bool(email) and EMAIL_RE.match(email.strip()) is not None


def _require_text(data: Dict[str, Any], key: str, label: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label} is required.")
    return value.strip()


# ---------- Products ----------

def _check_price(price: Any) -> float:
    if isinstance(price, bool):
        raise ValidationError("Price must be a number.")
    try:
        value = float(price)
    except (TypeError, ValueError):
        raise ValidationError("Price must be a number.")
    if not value > 0:
        raise ValidationError("Price must be greater than zero.")
    return value


def _check_category(category: Any) -> str:
    if category not in PRODUCT_CATEGORIES:
        raise ValidationError(
            f"Invalid category: {category!r} (allowed: {', '.join(PRODUCT_CATEGORIES)})"
        )
    return category


def validate_new_product(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Returns a cleaned copy of the product fields (without id).
    """
    return {
        "name": _require_text(data, "name", "Product name"),
        "description": _require_text(data, "description", "Description"),
        "price": _check_price(data.get("price")),
        "category": _check_category(data.get("category")),
        "image": _require_text(data, "image", "Image URL"),
        "available": bool(data.get("available", True)),
    }


def validate_product_update(updates: Dict[str, Any]) -> Dict[str, Any]:
    cleaned: Dict[str, Any] = {}
    for key, value in updates.items():
        if key == "id":
            continue
        if key == "price":
            cleaned[key] = _check_price(value)
        elif key == "category":
            cleaned[key] = _check_category(value)
        elif key in ("name", "description", "image"):
            cleaned[key] = _require_text(updates, key, key.capitalize())
        elif key == "available":
            cleaned[key] = bool(value)
        else:
            raise ValidationError(f"Unknown product field: {key!r}")
    return cleaned


# ---------- Orders ----------

def validate_cart_items(items: Iterable[Any]) -> None:
    items = list(items or [])
    if not items:
        raise ValidationError("Order must contain at least one item.")
    for item in items:
        if not isinstance(item, CartItem):
            raise ValidationError("Order items must be CartItem values.")
        if isinstance(item.quantity, bool) or not isinstance(item.quantity, int) or item.quantity < 1:
            raise ValidationError(f"Invalid quantity for {item.product.name!r}: {item.quantity!r}")


def validate_new_order(data: Dict[str, Any], now: datetime) -> None:
    _require_text(data, "customer_name", "Customer name")
    _require_text(data, "customer_phone", "Customer phone")
    email = _require_text(data, "customer_email", "Customer email")
    if not is_valid_email(email):
        raise ValidationError(f"Invalid email address: {email!r}")

    validate_cart_items(data.get("items"))

    total = data.get("total")
    if isinstance(total, bool) or not isinstance(total, (int, float)) or total < 0:
        raise ValidationError(f"Invalid order total: {total!r}")

    delivery = data.get("delivery_date")
    if not isinstance(delivery, datetime):
        raise ValidationError("Delivery date is required.")
    if as_utc(delivery).date() < as_utc(now).date():
        raise ValidationError("Delivery date cannot be in the past.")


# ---------- Users ----------

def validate_username(username: Any) -> str:
    if not isinstance(username, str) or len(username.strip()) < MIN_USERNAME_LENGTH:
        raise ValidationError(f"Username must be at least {MIN_USERNAME_LENGTH} characters long.")
    return username.strip()


def validate_password(password: Any) -> str:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes long.")
    return password


def validate_role(role: Any) -> str:
    if role not in USER_ROLES:
        raise ValidationError(f"Invalid role: {role!r} (allowed: {', '.join(USER_ROLES)})")
    return role


def validate_new_user(data: Dict[str, Any]) -> Dict[str, Any]:
    email = _require_text(data, "email", "Email")
    if not is_valid_email(email):
        raise ValidationError(f"Invalid email address: {email!r}")
    return {
        "username": validate_username(data.get("username")),
        "password": validate_password(data.get("password")),
        "name": _require_text(data, "name", "Name"),
        "email": email,
        "role": validate_role(data.get("role", "staff")),
        "is_active": bool(data.get("is_active", True)),
    }


def validate_user_update(updates: Dict[str, Any]) -> Dict[str, Any]:
    cleaned: Dict[str, Any] = {}
    for key, value in updates.items():
        if key in ("id", "created_at", "created_by"):
            continue
        if key == "username":
            cleaned[key] = validate_username(value)
        elif key == "password":
            cleaned[key] = validate_password(value)
        elif key == "role":
            cleaned[key] = validate_role(value)
        elif key == "email":
            if not isinstance(value, str) or not is_valid_email(value):
                raise ValidationError(f"Invalid email address: {value!r}")
            cleaned[key] = value.strip()
        elif key == "name":
            cleaned[key] = _require_text(updates, key, "Name")
        elif key == "is_active":
            cleaned[key] = bool(value)
        else:
            raise ValidationError(f"Unknown user field: {key!r}")
    return cleaned


def optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None
