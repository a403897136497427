"""Wallet authentication services module."""

from walletauth.services.auth.challenge import Challenge, ChallengeIssuer
from walletauth.services.auth.dependencies import (
    AuthenticatedIdentity,
    CurrentIdentity,
    get_current_identity,
)
from walletauth.services.auth.errors import (
    ChallengeInvalidOrExpired,
    IdentityExistsError,
    InvalidAddress,
    SignatureMismatch,
    StorageError,
    TokenIssuanceError,
    WalletAuthError,
)
from walletauth.services.auth.identity import (
    BASELINE_ROLE,
    DatabaseIdentityStore,
    IdentityRecord,
    IdentityResolver,
    IdentityRole,
    IdentityStore,
    InMemoryIdentityStore,
    ResolvedIdentity,
)
from walletauth.services.auth.messages import SignMessageBuilder
from walletauth.services.auth.nonce_store import (
    DatabaseNonceStore,
    InMemoryNonceStore,
    NonceRecord,
    NonceStore,
)
from walletauth.services.auth.service import (
    AuthenticationResult,
    WalletAuthService,
    WalletStatus,
    build_wallet_auth_service,
    get_session_issuer,
    get_wallet_auth_service,
)
from walletauth.services.auth.session import (
    JWTSessionIssuer,
    SessionGrant,
    SessionIssuer,
    TokenPayload,
)
from walletauth.services.auth.verifier import (
    SignatureVerificationResult,
    SignatureVerifier,
)

__all__ = [
    # Errors
    "WalletAuthError",
    "InvalidAddress",
    "ChallengeInvalidOrExpired",
    "SignatureMismatch",
    "StorageError",
    "TokenIssuanceError",
    "IdentityExistsError",
    # Nonce storage
    "NonceRecord",
    "NonceStore",
    "InMemoryNonceStore",
    "DatabaseNonceStore",
    # Challenge / verification
    "SignMessageBuilder",
    "Challenge",
    "ChallengeIssuer",
    "SignatureVerifier",
    "SignatureVerificationResult",
    # Identity
    "IdentityRole",
    "BASELINE_ROLE",
    "IdentityRecord",
    "ResolvedIdentity",
    "IdentityStore",
    "InMemoryIdentityStore",
    "DatabaseIdentityStore",
    "IdentityResolver",
    # Session
    "SessionGrant",
    "SessionIssuer",
    "JWTSessionIssuer",
    "TokenPayload",
    # Orchestration
    "WalletAuthService",
    "AuthenticationResult",
    "WalletStatus",
    "build_wallet_auth_service",
    "get_session_issuer",
    "get_wallet_auth_service",
    # Dependencies
    "AuthenticatedIdentity",
    "get_current_identity",
    "CurrentIdentity",
]
