import json
from datetime import timedelta

import pytest

from Oven_Treats.data.repositories.kv_repo import MemoryKeyValueStore
from Oven_Treats.domain.catalog import DEFAULT_PRODUCTS
from Oven_Treats.domain.errors import DuplicateUsername, SelfDeletionForbidden, ValidationError
from Oven_Treats.domain.models import CartItem
from Oven_Treats.services.bakery_store import STORAGE_KEY, BakeryStore


class FlakyKeyValueStore(MemoryKeyValueStore):
    def __init__(self):
        super().__init__()
        self.fail = False

    def set(self, key, value):
        if self.fail:
            raise OSError("disk full")
        super().set(key, value)


def _add_croissant(store, **overrides):
    fields = dict(
        name="Almond Croissant",
        description="Croissant with almond cream",
        price=4.5,
        category="pastries",
        image="https://example.com/almond.jpg",
    )
    fields.update(overrides)
    return store.add_product(**fields)


# ---------- Startup ----------

def test_fresh_store_has_default_catalog(store):
    assert len(store.products) == len(DEFAULT_PRODUCTS)
    assert store.orders == []
    assert store.customers == []
    assert store.current_user is None
    assert not store.is_initialized()


def test_state_survives_restart(kv, clock, store, place_order):
    product = _add_croissant(store)
    order = place_order(store)

    reopened = BakeryStore(kv, clock=clock)

    assert reopened.get_product(product.id) == product
    assert reopened.get_order(order.id) == order
    assert reopened.get_order(order.id).order_date == clock()
    assert [c.email for c in reopened.customers] == ["ana@example.com"]


def test_customers_are_recomputed_on_rehydrate(kv, clock, store, place_order):
    place_order(store, total=12.0)
    place_order(store, total=8.0)

    payload = json.loads(kv.get(STORAGE_KEY))
    payload["state"]["customers"] = []
    kv.set(STORAGE_KEY, json.dumps(payload))

    (customer,) = BakeryStore(kv, clock=clock).customers
    assert customer.total_orders == 2
    assert customer.total_spent == 20.0


def test_corrupt_snapshot_falls_back_to_defaults(clock):
    kv = MemoryKeyValueStore({STORAGE_KEY: "{not json"})
    store = BakeryStore(kv, clock=clock)
    assert len(store.products) == len(DEFAULT_PRODUCTS)
    assert store.orders == []


def test_legacy_user_key_restores_session(clock):
    state = {
        "products": [],
        "orders": [],
        "user": {"id": "1", "username": "admin", "name": "Admin", "email": "a@x.com", "role": "admin"},
    }
    kv = MemoryKeyValueStore({STORAGE_KEY: json.dumps({"version": 1, "state": state})})

    store = BakeryStore(kv, clock=clock)

    assert store.products == []
    assert store.current_user.username == "admin"
    assert store.current_user.is_admin


# ---------- Products ----------

def test_add_product_persists_once(store, kv):
    before = kv.writes
    product = _add_croissant(store)

    assert product.id
    assert kv.writes == before + 1
    assert store.get_product(product.id).name == "Almond Croissant"


@pytest.mark.parametrize(
    "overrides",
    [
        {"price": 0},
        {"price": -1},
        {"price": "cheap"},
        {"name": "  "},
        {"category": "pies"},
    ],
)
def test_invalid_product_is_rejected_before_any_write(store, kv, overrides):
    before = kv.writes
    with pytest.raises(ValidationError):
        _add_croissant(store, **overrides)
    assert kv.writes == before
    assert len(store.products) == len(DEFAULT_PRODUCTS)


def test_update_product(store):
    updated = store.update_product("1", price=9.0, available=False)
    assert updated.price == 9.0
    assert not updated.available
    assert "1" not in {p.id for p in store.available_products()}


def test_update_unknown_product_is_a_no_op(store, kv):
    before = kv.writes
    assert store.update_product("nope", price=2.0) is None
    assert kv.writes == before


def test_update_product_rejects_unknown_fields(store):
    with pytest.raises(ValidationError):
        store.update_product("1", colour="red")


def test_delete_product_keeps_order_snapshots(store, place_order):
    order = place_order(store)
    product_id = order.items[0].product.id

    assert store.delete_product(product_id)
    assert store.get_product(product_id) is None
    assert store.get_order(order.id).items[0].product.id == product_id
    assert not store.delete_product(product_id)


def test_available_products_by_category(store):
    breads = store.available_products("breads")
    assert breads and all(p.category == "breads" for p in breads)
    assert len(store.available_products("all")) == len(DEFAULT_PRODUCTS)


def test_returned_values_are_copies(store):
    products = store.products
    products[0].name = "Changed"
    products.clear()
    assert store.products[0].name != "Changed"


def test_ids_are_unique_with_a_frozen_clock(store):
    ids = {_add_croissant(store, name=f"Croissant {i}").id for i in range(5)}
    assert len(ids) == 5


# ---------- Orders ----------

def test_add_order_is_pending_and_stamped_now(store, clock, place_order):
    order = place_order(store, estimated_time=" 10:30 ")

    assert order.status == "pending"
    assert order.order_date == clock()
    assert order.estimated_time == "10:30"
    assert order.item_count == 1


def test_add_order_refreshes_customers_before_returning(store, place_order):
    place_order(store, email="a@x.com", total=5.0)
    place_order(store, email="a@x.com", total=7.0, name="Ana Renamed")

    (customer,) = store.customers
    assert customer.total_orders == 2
    assert customer.total_spent == 12.0
    assert customer.name == "Ana Renamed"


def test_order_with_past_delivery_is_rejected(store, clock):
    with pytest.raises(ValidationError):
        store.add_order(
            items=[CartItem(product=store.products[0], quantity=1)],
            total=8.5,
            customer_name="Ana",
            customer_phone="555",
            customer_email="ana@example.com",
            delivery_date=clock() - timedelta(days=1),
        )
    assert store.orders == []


@pytest.mark.parametrize(
    "overrides",
    [
        {"email": "not-an-email"},
        {"name": ""},
        {"total": -1.0},
        {"quantity": 0},
    ],
)
def test_invalid_orders_are_rejected(store, place_order, overrides):
    with pytest.raises(ValidationError):
        place_order(store, **overrides)
    assert store.orders == []


def test_update_order_status(store, place_order):
    order = place_order(store)

    assert store.update_order_status(order.id, "preparing").status == "preparing"
    assert store.order_counts_by_status()["preparing"] == 1
    assert store.update_order_status("missing", "ready") is None
    with pytest.raises(ValidationError):
        store.update_order_status(order.id, "shipped")


def test_transitions_are_free_by_default(store, place_order):
    order = place_order(store)
    assert store.update_order_status(order.id, "completed").status == "completed"


def test_enforced_transitions(kv, clock, place_order):
    store = BakeryStore(kv, clock=clock, enforce_transitions=True)
    order = place_order(store)

    with pytest.raises(ValidationError):
        store.update_order_status(order.id, "completed")
    store.update_order_status(order.id, "preparing")
    assert store.update_order_status(order.id, "ready").status == "ready"


def test_orders_for_customer_newest_first(store, clock, place_order):
    first = place_order(store, email="a@x.com")
    clock.advance(hours=1)
    second = place_order(store, email="a@x.com")
    place_order(store, email="b@x.com")

    assert [o.id for o in store.orders_for_customer("a@x.com")] == [second.id, first.id]


# ---------- Users & session ----------

def _register(store, username="admin", role="admin", password="secret123"):
    return store.register_user(
        username=username,
        password=password,
        name=username.title(),
        email=f"{username}@example.com",
        role=role,
    )


def test_register_hashes_password(store):
    user = _register(store)
    assert user.password != "secret123"
    assert user.password.startswith("$2")
    assert store.is_initialized()


def test_duplicate_username_rejected(store):
    _register(store)
    with pytest.raises(DuplicateUsername):
        _register(store, role="staff")
    assert len(store.users) == 1


def test_short_password_rejected(store):
    with pytest.raises(ValidationError):
        _register(store, password="123")


def test_password_longer_than_bcrypt_limit_rejected(store, kv):
    before = kv.writes
    with pytest.raises(ValidationError):
        _register(store, username="baker", password="p" * 80)
    assert store.users == []
    assert kv.writes == before


def test_update_to_overlong_password_rejected(store):
    admin = _register(store)
    with pytest.raises(ValidationError):
        store.update_user(admin.id, password="\u00e9" * 40)
    assert store.login("admin", "secret123") is not None


def test_login_and_logout(kv, clock, store):
    _register(store)

    assert store.login("admin", "wrong") is None
    session = store.login("admin", "secret123")
    assert session.username == "admin"
    assert BakeryStore(kv, clock=clock).current_user == session

    store.logout()
    assert store.current_user is None


def test_inactive_user_cannot_log_in(store):
    user = _register(store, username="clerk", role="staff")
    store.update_user(user.id, is_active=False)
    assert store.login("clerk", "secret123") is None


def test_created_by_is_the_logged_in_admin(store):
    admin = _register(store)
    store.login("admin", "secret123")
    clerk = _register(store, username="clerk", role="staff")
    assert clerk.created_by == admin.id


def test_update_user_refreshes_session(store):
    admin = _register(store)
    store.login("admin", "secret123")

    store.update_user(admin.id, name="Head Baker", password="newpass1")

    assert store.current_user.name == "Head Baker"
    store.logout()
    assert store.login("admin", "newpass1") is not None


def test_update_user_rejects_taken_username(store):
    _register(store)
    clerk = _register(store, username="clerk", role="staff")
    with pytest.raises(DuplicateUsername):
        store.update_user(clerk.id, username="admin")


def test_cannot_delete_own_account(store):
    admin = _register(store)
    clerk = _register(store, username="clerk", role="staff")
    store.login("admin", "secret123")

    with pytest.raises(SelfDeletionForbidden):
        store.delete_user(admin.id)
    assert store.get_user(admin.id) is not None

    assert store.delete_user(clerk.id)
    assert not store.delete_user(clerk.id)


# ---------- Maintenance ----------

def test_reset_keeps_users_and_session(store, place_order):
    _register(store)
    store.login("admin", "secret123")
    _add_croissant(store)
    place_order(store)

    store.reset_data()

    assert len(store.products) == len(DEFAULT_PRODUCTS)
    assert store.orders == []
    assert store.customers == []
    assert len(store.users) == 1
    assert store.current_user is not None


def test_failed_write_rolls_back(clock, place_order):
    kv = FlakyKeyValueStore()
    store = BakeryStore(kv, clock=clock)
    place_order(store)
    kv.fail = True

    with pytest.raises(OSError):
        _add_croissant(store)
    with pytest.raises(OSError):
        place_order(store, email="b@x.com")

    assert len(store.products) == len(DEFAULT_PRODUCTS)
    assert len(store.orders) == 1
    assert [c.email for c in store.customers] == ["ana@example.com"]


def test_two_orders_for_one_customer(store, place_order):
    place_order(store, email="alice@example.com", name="Alice", total=10.00)
    place_order(store, email="alice@example.com", name="Alice", total=15.00)

    customers = [c for c in store.customers if c.email == "alice@example.com"]
    assert len(customers) == 1
    assert customers[0].total_orders == 2
    assert customers[0].total_spent == 25.00
