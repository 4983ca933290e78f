"""
Order status graph, input validation, password hashing and timestamp helpers.
"""

from datetime import datetime, timedelta, timezone

import pytest

from Oven_Treats.domain.errors import ValidationError
from Oven_Treats.services import order_status
from Oven_Treats.services.password_service import hash_password, verify_password
from Oven_Treats.services.validation import (
    is_valid_email,
    validate_new_user,
    validate_product_update,
    validate_user_update,
)
from Oven_Treats.utils.timestamps import as_utc, compact_stamp, parse_iso, parse_optional_iso, to_iso


# ---------- Order status ----------

@pytest.mark.parametrize(
    "current, target, allowed",
    [
        ("pending", "preparing", True),
        ("pending", "cancelled", True),
        ("preparing", "ready", True),
        ("preparing", "cancelled", True),
        ("ready", "completed", True),
        ("pending", "ready", False),
        ("ready", "cancelled", False),
        ("completed", "pending", False),
        ("cancelled", "preparing", False),
    ],
)
def test_transition_graph(current, target, allowed):
    assert order_status.can_transition(current, target) is allowed


def test_terminal_states_and_actions():
    assert order_status.is_terminal("completed")
    assert order_status.is_terminal("cancelled")
    assert not order_status.is_terminal("ready")
    assert order_status.next_actions("pending") == ("preparing", "cancelled")
    assert order_status.next_actions("preparing") == ("ready",)
    assert order_status.next_actions("completed") == ()
    assert not order_status.is_valid_status("shipped")


# ---------- Validation ----------

@pytest.mark.parametrize(
    "email, ok",
    [
        ("ana@example.com", True),
        ("  ana@example.com ", True),
        ("ana@example", False),
        ("ana example@x.com", False),
        ("", False),
    ],
)
def test_email(email, ok):
    assert is_valid_email(email) is ok


def test_new_user_defaults_and_rules():
    user = validate_new_user(
        {"username": " baker ", "password": "secret1", "name": "Baker", "email": "b@x.com"}
    )
    assert user["username"] == "baker"
    assert user["role"] == "staff"
    assert user["is_active"] is True

    for bad in ({"username": "ab"}, {"password": "12345"}, {"role": "owner"}, {"email": "x"}):
        data = {"username": "baker", "password": "secret1", "name": "Baker", "email": "b@x.com"}
        data.update(bad)
        with pytest.raises(ValidationError):
            validate_new_user(data)


def test_updates_skip_identity_fields():
    assert validate_product_update({"id": "9", "price": "3.5"}) == {"price": 3.5}
    assert validate_user_update({"id": "1", "created_by": "x", "is_active": 0}) == {"is_active": False}


def test_validation_error_is_a_value_error():
    with pytest.raises(ValueError):
        validate_product_update({"price": -2})


# ---------- Passwords ----------

def test_password_hash_and_verify():
    hashed = hash_password("secret123")
    assert verify_password("secret123", hashed)
    assert not verify_password("Secret123", hashed)
    assert not verify_password("secret123", "secret123")
    assert not verify_password("secret123", "")


# ---------- Timestamps ----------

def test_iso_round_trip_and_z_suffix():
    when = datetime(2026, 1, 19, 8, 15, 30, tzinfo=timezone.utc)
    assert parse_iso(to_iso(when)) == when
    assert parse_iso("2026-01-19T08:15:30Z") == when
    assert parse_iso("2026-01-19T09:15:30+01:00") == when
    assert to_iso(None) is None
    assert parse_optional_iso("") is None


def test_naive_values_are_utc():
    naive = datetime(2026, 1, 19, 8, 0)
    assert as_utc(naive).tzinfo == timezone.utc
    assert as_utc(datetime(2026, 1, 19, 10, 0, tzinfo=timezone(timedelta(hours=2)))) == as_utc(naive)


@pytest.mark.parametrize("value", [None, "", "soon", 12])
def test_parse_iso_rejects_junk(value):
    with pytest.raises(ValueError):
        parse_iso(value)


def test_compact_stamp():
    assert compact_stamp(datetime(2026, 1, 19, 8, 15, tzinfo=timezone.utc)) == "20260119T081500Z"
