"""
Oven_Treats.services.password_service

bcrypt password hashing for staff accounts.
"""

from __future__ import annotations

import bcrypt

# Work factor for new hashes. Tests lower it to keep the suite fast.
BCRYPT_ROUNDS = 12


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """
    False for wrong passwords and for hashes bcrypt cannot read.
    """
    if not password_hash or not password_hash.startswith("$2"):
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False
