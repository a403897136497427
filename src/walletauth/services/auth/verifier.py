"""Wallet signature verification."""

import logging

from eth_account.messages import encode_defunct
from pydantic import BaseModel
from web3 import Web3

from walletauth.services.auth.address import normalize_address
from walletauth.services.auth.clock import Clock, SystemClock
from walletauth.services.auth.errors import (
    ChallengeInvalidOrExpired,
    SignatureMismatch,
    WalletAuthError,
)
from walletauth.services.auth.messages import SignMessageBuilder
from walletauth.services.auth.nonce_store import NonceStore

logger = logging.getLogger(__name__)

_FAILURES: dict[str, type[WalletAuthError]] = {
    ChallengeInvalidOrExpired.code: ChallengeInvalidOrExpired,
    SignatureMismatch.code: SignatureMismatch,
}


class SignatureVerificationResult(BaseModel):
    """Result of signature verification."""

    valid: bool
    wallet_address: str | None = None
    error: str | None = None

    def raise_for_failure(self) -> None:
        """Raise the taxonomy error matching a failed result."""
        if not self.valid:
            raise _FAILURES.get(self.error or "", SignatureMismatch)()


class SignatureVerifier:
    """Verifies EIP-191 personal_sign signatures against issued challenges."""

    def __init__(
        self,
        nonce_store: NonceStore,
        message_builder: SignMessageBuilder,
        clock: Clock | None = None,
    ):
        """Initialize signature verifier.

        Args:
            nonce_store: Store holding issued challenges
            message_builder: Same builder the challenge issuer uses
            clock: Time source for expiry checks
        """
        self.nonce_store = nonce_store
        self.message_builder = message_builder
        self.clock = clock or SystemClock()
        self.w3 = Web3()

    async def verify(
        self,
        wallet_address: str,
        signature: str,
        nonce: str,
    ) -> SignatureVerificationResult:
        """Verify a wallet signature over a previously issued challenge.

        The challenge is consumed before the signature is checked, so a
        failed attempt still burns the nonce.

        Args:
            wallet_address: Claimed wallet address (any hex case)
            signature: Hex-encoded 65-byte signature from the wallet
            nonce: Nonce from the challenge

        Returns:
            SignatureVerificationResult indicating success or failure

        Raises:
            InvalidAddress: If the claimed address is malformed
            StorageError: If the nonce store fails
        """
        wallet_address = normalize_address(wallet_address)

        record = await self.nonce_store.consume(
            wallet_address, nonce, self.clock.now()
        )
        if record is None:
            logger.warning(
                f"Rejected unknown, used or expired challenge for {wallet_address}"
            )
            return SignatureVerificationResult(
                valid=False,
                error=ChallengeInvalidOrExpired.code,
            )

        message = self.message_builder.build(
            record.wallet_address, record.nonce, record.issued_at
        )
        recovered_address = self._recover_address(message, signature)

        if recovered_address is None or recovered_address.lower() != wallet_address:
            logger.warning(f"Signature does not match wallet {wallet_address}")
            return SignatureVerificationResult(
                valid=False,
                error=SignatureMismatch.code,
            )

        return SignatureVerificationResult(valid=True, wallet_address=wallet_address)

    def _recover_address(self, message: str, signature: str) -> str | None:
        """Recover wallet address from signed message.

        Args:
            message: Original message that was signed
            signature: Signature from wallet

        Returns:
            Recovered wallet address, or None if the signature is unusable
        """
        # Encode message for personal_sign (EIP-191)
        message_encoded = encode_defunct(text=message)

        try:
            return self.w3.eth.account.recover_message(
                message_encoded,
                signature=signature,
            )
        except Exception as e:
            logger.debug(f"Signature recovery failed: {e}")
            return None
