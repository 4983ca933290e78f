"""
Oven_Treats.services.order_status

Order lifecycle:

    pending -> preparing -> ready -> completed
    pending -> cancelled
    preparing -> cancelled

completed and cancelled are terminal. Staff screens only offer the
actions returned by next_actions(); the store checks the graph only
when built with enforce_transitions=True.
"""

from __future__ import annotations

from typing import Dict, Tuple

from Oven_Treats.domain.models import ORDER_STATUSES

INITIAL_STATUS = "pending"
TERMINAL_STATUSES = ("completed", "cancelled")

_TRANSITIONS: Dict[str, Tuple[str, ...]] = {
    "pending": ("preparing", "cancelled"),
    "preparing": ("ready", "cancelled"),
    "ready": ("completed",),
    "completed": (),
    "cancelled": (),
}

# What the staff UI shows as buttons (cancel is only offered while pending)
_ACTIONS: Dict[str, Tuple[str, ...]] = {
    "pending": ("preparing", "cancelled"),
    "preparing": ("ready",),
    "ready": ("completed",),
    "completed": (),
    "cancelled": (),
}


def is_valid_status(status: str) -> bool:
    return status in ORDER_STATUSES


def allowed_transitions(status: str) -> Tuple[str, ...]:
    return _TRANSITIONS.get(status, ())


def can_transition(current: str, target: str) -> bool:
    return target in allowed_transitions(current)


def next_actions(status: str) -> Tuple[str, ...]:
    return _ACTIONS.get(status, ())


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATUSES
