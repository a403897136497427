"""Wallet address validation and normalization."""

import re

from walletauth.services.auth.errors import InvalidAddress

WALLET_ADDRESS_PATTERN = r"^0x[0-9a-fA-F]{40}$"

_ADDRESS_RE = re.compile(WALLET_ADDRESS_PATTERN)


def is_valid_address(address: str) -> bool:
    """Check if address is 0x followed by 40 hex characters (any case)."""
    return isinstance(address, str) and _ADDRESS_RE.fullmatch(address) is not None


def normalize_address(address: str) -> str:
    """Return the lower-case form of a wallet address.

    Raises:
        InvalidAddress: If the address is malformed
    """
    if not is_valid_address(address):
        raise InvalidAddress()
    return address.lower()
