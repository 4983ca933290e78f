import copy
import json
from datetime import datetime

import pytest

from Oven_Treats.domain.catalog import DEFAULT_PRODUCTS
from Oven_Treats.domain.errors import InvalidBackupFormat, RestoreFailed
from Oven_Treats.services.backup_codec import (
    BACKUP_VERSION,
    create_backup,
    get_backup_info,
    parse_backup,
    restore_from_backup,
    serialize_backup,
    validate_backup,
)
from Oven_Treats.utils.timestamps import to_iso


@pytest.fixture
def populated(store, place_order):
    store.register_user("admin", "secret123", "Admin", "admin@example.com", role="admin")
    store.login("admin", "secret123")
    place_order(store, email="a@x.com", total=10.0)
    place_order(store, email="b@x.com", total=4.0)
    return store


def test_create_backup_shape(populated, clock):
    backup = create_backup(populated, clock=clock)

    assert backup["version"] == BACKUP_VERSION
    assert backup["timestamp"] == to_iso(clock())
    data = backup["data"]
    assert set(data) == {"products", "orders", "customers", "users", "currentUser"}
    assert len(data["orders"]) == 2
    assert isinstance(data["orders"][0]["orderDate"], str)
    assert data["currentUser"]["username"] == "admin"
    # serializable as-is
    json.dumps(backup)


def test_backup_survives_a_text_round_trip(populated):
    backup = create_backup(populated)
    assert parse_backup(serialize_backup(backup)) == backup


def test_restore_brings_back_the_snapshot(populated):
    backup = create_backup(populated)
    expected_orders = populated.orders
    expected_customers = populated.customers

    populated.reset_data()
    populated.add_product("Extra", "Extra item", 1.0, "cookies", "https://example.com/x.jpg")
    restore_from_backup(populated, backup)

    assert populated.orders == expected_orders
    assert populated.customers == expected_customers
    assert len(populated.products) == len(DEFAULT_PRODUCTS)
    assert populated.current_user.username == "admin"


def test_restore_without_users_keeps_current_users(populated, store):
    backup = create_backup(populated)
    del backup["data"]["users"]
    users_before = store.users

    store.register_user("clerk", "secret123", "Clerk", "clerk@example.com")
    restore_from_backup(store, backup)

    assert len(store.users) == len(users_before) + 1


def test_restore_recomputes_customers_instead_of_trusting_the_file(populated):
    backup = create_backup(populated)
    backup["data"]["customers"] = []

    restore_from_backup(populated, backup)

    assert {c.email for c in populated.customers} == {"a@x.com", "b@x.com"}


def _valid():
    return {
        "version": "1.0.0",
        "timestamp": "2026-01-19T08:00:00+00:00",
        "data": {
            "products": [{"id": "1", "name": "Bread", "price": 2.5}],
            "orders": [{"id": "9", "customerName": "Ana", "items": []}],
            "customers": [],
        },
    }


def test_valid_candidate_without_users_passes():
    assert validate_backup(_valid())


def _broken(mutate):
    candidate = copy.deepcopy(_valid())
    mutate(candidate)
    return candidate


@pytest.mark.parametrize(
    "candidate",
    [
        None,
        [],
        "backup",
        _broken(lambda b: b.pop("version")),
        _broken(lambda b: b.update(version="")),
        _broken(lambda b: b.pop("timestamp")),
        _broken(lambda b: b.update(data={})),
        _broken(lambda b: b["data"].update(products={})),
        _broken(lambda b: b["data"].pop("orders")),
        _broken(lambda b: b["data"].update(customers=None)),
        _broken(lambda b: b["data"].update(users="nobody")),
        _broken(lambda b: b["data"]["products"][0].pop("id")),
        _broken(lambda b: b["data"]["products"][0].update(price="2.50")),
        _broken(lambda b: b["data"]["products"][0].update(price=True)),
        _broken(lambda b: b["data"]["orders"][0].pop("customerName")),
        _broken(lambda b: b["data"]["orders"][0].update(items="none")),
    ],
)
def test_structurally_invalid_candidates(candidate):
    assert validate_backup(candidate) is False


def test_invalid_backup_leaves_store_untouched(populated):
    before = populated.snapshot()
    with pytest.raises(InvalidBackupFormat):
        restore_from_backup(populated, {"version": "1.0.0"})
    assert populated.snapshot() == before


def test_unconvertible_dates_raise_restore_failed(populated):
    backup = create_backup(populated)
    backup["data"]["orders"][0]["orderDate"] = "yesterday-ish"
    before = populated.snapshot()

    with pytest.raises(RestoreFailed):
        restore_from_backup(populated, backup)
    assert populated.snapshot() == before


def test_failed_write_during_restore_is_restore_failed(populated, kv):
    backup = create_backup(populated)
    populated.reset_data()
    before = populated.snapshot()

    def broken_set(key, value):
        raise OSError("read-only storage")

    kv.set = broken_set
    with pytest.raises(RestoreFailed):
        restore_from_backup(populated, backup)
    assert populated.snapshot() == before


@pytest.mark.parametrize("text", ["", "{", "[1, 2]", '{"version": "1.0.0"}'])
def test_parse_backup_rejects_bad_text(text):
    with pytest.raises(InvalidBackupFormat):
        parse_backup(text)


def test_backup_info(populated, clock):
    info = get_backup_info(create_backup(populated, clock=clock))

    assert info["version"] == BACKUP_VERSION
    assert info["timestamp"] == clock()
    assert info["orders_count"] == 2
    assert info["customers_count"] == 2
    assert info["users_count"] == 1
    assert info["has_user"] is True


@pytest.mark.parametrize(
    "candidate",
    [
        {},
        {"version": "1"},
        {"version": "1", "timestamp": "x", "data": {}},
        {"version": "1", "timestamp": "x", "data": {"products": [], "orders": "many", "customers": []}},
    ],
)
def test_minimal_malformed_documents(candidate):
    assert not validate_backup(candidate)


def test_created_backup_is_valid_and_restores_real_datetimes(populated):
    backup = create_backup(populated)
    assert validate_backup(backup)

    restore_from_backup(populated, backup)

    for order in populated.orders:
        assert isinstance(order.order_date, datetime)
        assert isinstance(order.delivery_date, datetime)
    assert all(isinstance(u.created_at, datetime) for u in populated.users)
    assert all(isinstance(c.last_order_date, datetime) for c in populated.customers)
