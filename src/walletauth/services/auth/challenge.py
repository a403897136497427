"""Sign-in challenge issuance."""

import logging
import secrets
from collections.abc import Callable

from pydantic import BaseModel

from walletauth.services.auth.address import normalize_address
from walletauth.services.auth.clock import Clock, SystemClock
from walletauth.services.auth.messages import SignMessageBuilder
from walletauth.services.auth.nonce_store import NonceStore

logger = logging.getLogger(__name__)

NONCE_BYTES = 32

# Returns hex of the requested number of random bytes
TokenSource = Callable[[int], str]


def default_token_source(nbytes: int = NONCE_BYTES) -> str:
    """Return nbytes of CSPRNG output, hex-encoded."""
    return secrets.token_hex(nbytes)


class Challenge(BaseModel):
    """Challenge returned to the client for signing."""

    wallet_address: str
    nonce: str
    message: str
    issued_at: int
    expires_at: int


class ChallengeIssuer:
    """Creates single-use challenges and records them in the nonce store."""

    def __init__(
        self,
        nonce_store: NonceStore,
        message_builder: SignMessageBuilder,
        ttl_seconds: int = 300,  # 5 minutes
        clock: Clock | None = None,
        token_source: TokenSource = default_token_source,
    ):
        """Initialize challenge issuer.

        Args:
            nonce_store: Where issued challenges are recorded
            message_builder: Renders the message to sign
            ttl_seconds: How long a challenge stays valid
            clock: Time source
            token_source: CSPRNG returning hex for a byte count
        """
        self.nonce_store = nonce_store
        self.message_builder = message_builder
        self.ttl_seconds = ttl_seconds
        self.clock = clock or SystemClock()
        self.token_source = token_source

    async def issue(self, wallet_address: str) -> Challenge:
        """Issue a challenge for a wallet.

        Args:
            wallet_address: Wallet address in any hex case

        Returns:
            Challenge with the nonce and exact message to sign

        Raises:
            InvalidAddress: If the address is malformed
            StorageError: If the challenge cannot be recorded
        """
        wallet_address = normalize_address(wallet_address)

        nonce = self.token_source(NONCE_BYTES)
        issued_at = int(self.clock.now())

        record = await self.nonce_store.put(
            wallet_address, nonce, issued_at, self.ttl_seconds
        )

        logger.info(f"Issued challenge for {wallet_address}")

        return Challenge(
            wallet_address=wallet_address,
            nonce=nonce,
            message=self.message_builder.build(wallet_address, nonce, issued_at),
            issued_at=record.issued_at,
            expires_at=record.expires_at,
        )
