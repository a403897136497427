"""Wallet authentication error taxonomy.

Each error carries a stable machine code and the HTTP status the API layer
maps it to. Messages are user-facing and never include storage or
cryptographic detail.
"""

from fastapi import status


class WalletAuthError(Exception):
    """Base class for wallet authentication failures."""

    code: str = "authentication_error"
    status_code: int = status.HTTP_401_UNAUTHORIZED
    message: str = "Authentication failed."

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)


class InvalidAddress(WalletAuthError):
    """Wallet address is not 0x followed by 40 hex characters."""

    code = "invalid_address"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid wallet address."


class ChallengeInvalidOrExpired(WalletAuthError):
    """Nonce is unknown, already used, or expired."""

    code = "challenge_invalid_or_expired"
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Challenge is invalid or expired. Request a new challenge."


class SignatureMismatch(WalletAuthError):
    """Signature does not recover to the claimed wallet address."""

    code = "signature_mismatch"
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Authentication failed."


class StorageError(WalletAuthError):
    """Backend storage fault."""

    code = "storage_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Service temporarily unavailable. Please try again."


class TokenIssuanceError(WalletAuthError):
    """Session material could not be produced."""

    code = "token_issuance_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Could not create session. Please try again."


class IdentityExistsError(Exception):
    """Uniqueness violation while creating an identity.

    Raised by identity stores only; the resolver turns it into a re-fetch.
    """
