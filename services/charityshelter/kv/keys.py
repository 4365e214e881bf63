"""
Key helpers for the Redis key-value store.

Provides consistent key naming for every record the API persists.
All keys carry the configured ``kv_prefix``.
"""

from charityshelter.config import settings


def roles_prefix() -> str:
    """Prefix shared by all role records."""
    return f"{settings.kv_prefix}roles:"


def role_key(name: str) -> str:
    """Key for a role definition, keyed by its case-sensitive name."""
    return f"{roles_prefix()}{name}"


def users_prefix() -> str:
    """Prefix shared by all user records."""
    return f"{settings.kv_prefix}users:"


def user_key(user_id: str) -> str:
    """Key for a user record."""
    return f"{users_prefix()}{user_id}"


def api_key_key(key_hash: str) -> str:
    """Key for an API key record, addressed by the SHA-256 of the raw key."""
    return f"{settings.kv_prefix}api_keys:{key_hash}"
