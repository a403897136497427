"""Session material for authenticated identities."""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone

from jose import JOSEError, JWTError, jwt
from pydantic import BaseModel

from walletauth.services.auth.clock import Clock, SystemClock
from walletauth.services.auth.errors import TokenIssuanceError
from walletauth.services.auth.identity import IdentityRecord

logger = logging.getLogger(__name__)


class SessionGrant(BaseModel):
    """Session material handed to the client after authentication."""

    identity_id: str
    wallet_address: str
    role: str
    access_token: str
    token_type: str = "Bearer"
    issued_at: int
    expires_in: int  # seconds


class TokenPayload(BaseModel):
    """JWT access token payload."""

    sub: str  # Identity id
    exp: datetime
    iat: datetime
    type: str
    wallet_address: str
    role: str


class SessionIssuer(ABC):
    """Turns a resolved identity into session material."""

    @abstractmethod
    def issue_session(self, identity: IdentityRecord) -> SessionGrant:
        """Issue session material.

        Raises:
            TokenIssuanceError: If the material cannot be produced
        """


class JWTSessionIssuer(SessionIssuer):
    """Issues HS256 access tokens with python-jose."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        access_token_expire_minutes: int = 30,
        clock: Clock | None = None,
    ):
        """Initialize JWT session issuer.

        Args:
            secret_key: Secret key for signing tokens
            algorithm: JWT algorithm (default: HS256)
            access_token_expire_minutes: Access token expiration in minutes
            clock: Time source for iat/exp
        """
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.access_token_expire_minutes = access_token_expire_minutes
        self.clock = clock or SystemClock()

    def issue_session(self, identity: IdentityRecord) -> SessionGrant:
        issued_at = int(self.clock.now())
        now = datetime.fromtimestamp(issued_at, tz=timezone.utc)
        expire = now + timedelta(minutes=self.access_token_expire_minutes)

        payload = {
            "sub": identity.id,
            "exp": expire,
            "iat": now,
            "type": "access",
            "wallet_address": identity.wallet_address,
            "role": identity.role,
        }

        try:
            access_token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        except JOSEError as e:
            logger.error(f"Failed to sign access token for {identity.id}: {e}")
            raise TokenIssuanceError() from e

        return SessionGrant(
            identity_id=identity.id,
            wallet_address=identity.wallet_address,
            role=identity.role,
            access_token=access_token,
            issued_at=issued_at,
            expires_in=self.access_token_expire_minutes * 60,
        )

    def verify_access_token(self, token: str) -> TokenPayload | None:
        """Verify and decode an access token.

        Args:
            token: JWT token to verify

        Returns:
            TokenPayload if valid access token, None otherwise
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
            )
        except JWTError as e:
            logger.warning(f"JWT verification failed: {e}")
            return None

        if payload.get("type") != "access":
            return None
        return TokenPayload(**payload)
