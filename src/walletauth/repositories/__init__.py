"""Repository layer for database operations.

Async repository implementations using SQLAlchemy 2.x.
"""

from walletauth.repositories.auth_nonce import AuthNonceRepository
from walletauth.repositories.base import BaseRepository
from walletauth.repositories.identity import IdentityRepository

__all__ = [
    "BaseRepository",
    "AuthNonceRepository",
    "IdentityRepository",
]
