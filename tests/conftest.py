"""
Shared fixtures: an isolated data dir, fast bcrypt, a controllable clock
and an in-memory bakery store.
"""

from datetime import datetime, timedelta, timezone

import pytest

from Oven_Treats.data.repositories.kv_repo import MemoryKeyValueStore
from Oven_Treats.domain.catalog import default_products
from Oven_Treats.domain.models import CartItem, Order
from Oven_Treats.services import password_service
from Oven_Treats.services.bakery_store import BakeryStore

START = datetime(2026, 1, 19, 8, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start: datetime = START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture(autouse=True)
def data_dir(tmp_path, monkeypatch):
    path = tmp_path / "data"
    monkeypatch.setenv("OVENTREATS_DATA_DIR", str(path))
    for name in (
        "SUPABASE_URL",
        "SUPABASE_ANON_KEY",
        "FIREBASE_PROJECT_ID",
        "FIREBASE_API_KEY",
        "AZURE_STORAGE_CONNECTION_STRING",
        "OVENTREATS_BACKUP_CONTAINER",
    ):
        monkeypatch.delenv(name, raising=False)
    return path


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    monkeypatch.setattr(password_service, "BCRYPT_ROUNDS", 4)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def kv():
    return MemoryKeyValueStore()


@pytest.fixture
def store(kv, clock):
    return BakeryStore(kv, clock=clock)


@pytest.fixture
def place_order(clock):
    """
    place_order(target, ...) adds an order through anything exposing
    add_order (BakeryStore or DatabaseProvider).
    """
    def _place(target, email="ana@example.com", name="Ana Silva", phone="555-0100", total=10.0, quantity=1, **extra):
        return target.add_order(
            items=[CartItem(product=default_products()[0], quantity=quantity)],
            total=total,
            customer_name=name,
            customer_phone=phone,
            customer_email=email,
            delivery_date=clock() + timedelta(days=1),
            **extra,
        )
    return _place


@pytest.fixture
def make_order():
    """
    make_order(id, email, total, order_date, ...) builds a bare Order value.
    """
    def _make(order_id, email, total, order_date, name="Customer", phone="555-0000", status="pending"):
        return Order(
            id=order_id,
            items=[CartItem(product=default_products()[0], quantity=1)],
            total=total,
            status=status,
            customer_name=name,
            customer_phone=phone,
            customer_email=email,
            order_date=order_date,
            delivery_date=order_date + timedelta(days=1),
        )
    return _make
