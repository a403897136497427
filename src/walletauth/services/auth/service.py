"""Wallet authentication flow."""

import logging

from pydantic import BaseModel

from walletauth.core.config import Settings, get_settings
from walletauth.infrastructure.database import get_session_factory
from walletauth.services.auth.challenge import (
    Challenge,
    ChallengeIssuer,
    TokenSource,
    default_token_source,
)
from walletauth.services.auth.clock import Clock, SystemClock
from walletauth.services.auth.identity import (
    DatabaseIdentityStore,
    IdentityRecord,
    IdentityResolver,
    IdentityStore,
    InMemoryIdentityStore,
)
from walletauth.services.auth.messages import SignMessageBuilder
from walletauth.services.auth.nonce_store import (
    DatabaseNonceStore,
    InMemoryNonceStore,
    NonceStore,
)
from walletauth.services.auth.session import (
    JWTSessionIssuer,
    SessionGrant,
    SessionIssuer,
)
from walletauth.services.auth.verifier import SignatureVerifier

logger = logging.getLogger(__name__)


class AuthenticationResult(BaseModel):
    """Outcome of a successful wallet login."""

    identity: IdentityRecord
    new_identity: bool
    session: SessionGrant


class WalletStatus(BaseModel):
    """Whether a wallet already has an identity."""

    exists: bool
    onboarded: bool = False
    role: str | None = None


class WalletAuthService:
    """Challenge, verify and session bootstrap for wallet sign-in."""

    def __init__(
        self,
        challenge_issuer: ChallengeIssuer,
        verifier: SignatureVerifier,
        identity_resolver: IdentityResolver,
        session_issuer: SessionIssuer,
        nonce_store: NonceStore,
        clock: Clock | None = None,
    ):
        self.challenge_issuer = challenge_issuer
        self.verifier = verifier
        self.identity_resolver = identity_resolver
        self.session_issuer = session_issuer
        self.nonce_store = nonce_store
        self.clock = clock or SystemClock()

    @classmethod
    def from_components(
        cls,
        nonce_store: NonceStore,
        identity_store: IdentityStore,
        session_issuer: SessionIssuer,
        message_builder: SignMessageBuilder,
        nonce_ttl_seconds: int = 300,
        clock: Clock | None = None,
        token_source: TokenSource = default_token_source,
    ) -> "WalletAuthService":
        """Wire the protocol components around shared stores and clock.

        Args:
            nonce_store: Challenge storage
            identity_store: Identity storage
            session_issuer: Produces session material
            message_builder: Shared by issuance and verification
            nonce_ttl_seconds: Challenge lifetime
            clock: Time source shared by all components
            token_source: CSPRNG for nonces
        """
        clock = clock or SystemClock()
        return cls(
            challenge_issuer=ChallengeIssuer(
                nonce_store,
                message_builder,
                ttl_seconds=nonce_ttl_seconds,
                clock=clock,
                token_source=token_source,
            ),
            verifier=SignatureVerifier(nonce_store, message_builder, clock=clock),
            identity_resolver=IdentityResolver(identity_store, clock=clock),
            session_issuer=session_issuer,
            nonce_store=nonce_store,
            clock=clock,
        )

    async def request_challenge(self, wallet_address: str) -> Challenge:
        """Issue a sign-in challenge.

        Raises:
            InvalidAddress: If the address is malformed
            StorageError: If the challenge cannot be stored
        """
        return await self.challenge_issuer.issue(wallet_address)

    async def authenticate(
        self,
        wallet_address: str,
        signature: str,
        nonce: str,
    ) -> AuthenticationResult:
        """Verify a signed challenge and bootstrap a session.

        Args:
            wallet_address: Claimed wallet address
            signature: Wallet signature over the challenge message
            nonce: Nonce from the challenge

        Returns:
            AuthenticationResult with identity and session grant

        Raises:
            InvalidAddress: If the address is malformed
            ChallengeInvalidOrExpired: If the nonce is unknown, used or expired
            SignatureMismatch: If the signature does not belong to the wallet
            StorageError: If a store fails
            TokenIssuanceError: If session material cannot be produced
        """
        result = await self.verifier.verify(wallet_address, signature, nonce)
        result.raise_for_failure()

        resolved = await self.identity_resolver.resolve(result.wallet_address)
        session = self.session_issuer.issue_session(resolved.identity)

        logger.info(
            f"Authenticated {result.wallet_address} as identity {resolved.identity.id}"
            f" (new={resolved.created})"
        )

        return AuthenticationResult(
            identity=resolved.identity,
            new_identity=resolved.created,
            session=session,
        )

    async def check_wallet(self, wallet_address: str) -> WalletStatus:
        """Report whether a wallet has an identity, without side effects.

        Raises:
            InvalidAddress: If the address is malformed
            StorageError: If the identity store fails
        """
        identity = await self.identity_resolver.lookup(wallet_address)
        if identity is None:
            return WalletStatus(exists=False)
        return WalletStatus(exists=True, onboarded=identity.onboarded, role=identity.role)

    async def purge_expired_challenges(self) -> int:
        """Delete expired challenges from the nonce store.

        Housekeeping only; expiry is enforced at consume time regardless.
        """
        return await self.nonce_store.purge_expired(self.clock.now())


def build_wallet_auth_service(settings: Settings) -> WalletAuthService:
    """Create a WalletAuthService for the configured storage backend."""
    if settings.auth_store_backend == "memory":
        nonce_store: NonceStore = InMemoryNonceStore()
        identity_store: IdentityStore = InMemoryIdentityStore()
    else:
        session_factory = get_session_factory()
        nonce_store = DatabaseNonceStore(session_factory)
        identity_store = DatabaseIdentityStore(session_factory)

    return WalletAuthService.from_components(
        nonce_store=nonce_store,
        identity_store=identity_store,
        session_issuer=create_session_issuer(settings),
        message_builder=SignMessageBuilder(
            app_name=settings.app_name,
            statement=settings.sign_message_statement,
        ),
        nonce_ttl_seconds=settings.nonce_ttl_seconds,
    )


def create_session_issuer(settings: Settings) -> JWTSessionIssuer:
    """Create the JWT session issuer from settings."""
    return JWTSessionIssuer(
        secret_key=settings.secret_key,
        algorithm=settings.jwt_algorithm,
        access_token_expire_minutes=settings.access_token_expire_minutes,
    )


def get_session_issuer() -> JWTSessionIssuer:
    """Get the JWT session issuer for the current settings."""
    return create_session_issuer(get_settings())


# Singleton instance
_wallet_auth_service: WalletAuthService | None = None


def get_wallet_auth_service() -> WalletAuthService:
    """Get or create wallet auth service singleton."""
    global _wallet_auth_service
    if _wallet_auth_service is None:
        _wallet_auth_service = build_wallet_auth_service(get_settings())
    return _wallet_auth_service
