"""
Credential helpers - Email normalization, hashing and random material.

All randomness comes from the secrets module.
"""

import secrets
from collections.abc import Callable
from datetime import UTC, datetime

import bcrypt

# 32 bytes -> 256 bits of entropy, 43 URL-safe characters
TOKEN_BYTES = 32
GENERATED_PASSWORD_BYTES = 9

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


def normalize_email(email: str) -> str:
    """
    Normalize email address for consistent storage and lookup.

    Applies: strip whitespace + lowercase
    """
    return email.strip().lower()


def generate_token_code() -> str:
    """Generate an unguessable, URL-safe token code."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def generate_password() -> str:
    """Generate a random 12-character password for accounts created without one."""
    return secrets.token_urlsafe(GENERATED_PASSWORD_BYTES)


def hash_password(password: str, cost: int = 10) -> str:
    """
    Hash password using bcrypt.

    Args:
        password: Plaintext password
        cost: bcrypt work factor (>= 10)
    """
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=cost)).decode()
