"""Forward hashed actor and commit-author identifiers seen on the feed."""

from __future__ import annotations

from .config import IdentityConfig
from .dispatch import DispatchResult, IdentityDispatcher, release_interval
from .extract import gather_identifiers, hash_email, is_bot_login, is_public_email
from .sink import IdentitySink, SessionJars

__all__ = [
    "DispatchResult",
    "IdentityConfig",
    "IdentityDispatcher",
    "IdentitySink",
    "SessionJars",
    "gather_identifiers",
    "hash_email",
    "is_bot_login",
    "is_public_email",
    "release_interval",
]
