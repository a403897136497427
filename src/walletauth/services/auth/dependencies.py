"""Authentication dependencies for FastAPI."""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from walletauth.services.auth.service import get_session_issuer
from walletauth.services.auth.session import JWTSessionIssuer

logger = logging.getLogger(__name__)

# Security scheme
bearer_scheme = HTTPBearer(auto_error=False)


class AuthenticatedIdentity:
    """Identity carried by a valid access token."""

    def __init__(self, identity_id: str, wallet_address: str, role: str):
        self.identity_id = identity_id
        self.wallet_address = wallet_address
        self.role = role


async def get_current_identity(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
    session_issuer: Annotated[JWTSessionIssuer, Depends(get_session_issuer)],
) -> AuthenticatedIdentity:
    """Get current identity from the bearer access token.

    Raises:
        HTTPException: If token is missing or invalid
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = session_issuer.verify_access_token(credentials.credentials)

    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return AuthenticatedIdentity(
        identity_id=payload.sub,
        wallet_address=payload.wallet_address,
        role=payload.role,
    )


# Type alias for dependency injection
CurrentIdentity = Annotated[AuthenticatedIdentity, Depends(get_current_identity)]
