"""Database models for the wallet authentication service."""

from walletauth.models.auth_nonce import AuthNonce
from walletauth.models.base import Base
from walletauth.models.identity import Identity

__all__ = [
    "Base",
    "AuthNonce",
    "Identity",
]
