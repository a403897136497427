"""Wallet authentication API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from walletauth.services.auth import (
    CurrentIdentity,
    WalletAuthService,
    get_wallet_auth_service,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["Authentication"])

WalletAuth = Annotated[WalletAuthService, Depends(get_wallet_auth_service)]


# Request/Response Models
class WalletAddressRequest(BaseModel):
    """Request carrying a wallet address.

    Address syntax is checked by the service so malformed input maps to
    400 invalid_address rather than a validation error.
    """

    wallet_address: str = Field(
        ...,
        description="Wallet address (0x followed by 40 hex characters)",
    )


class ChallengeResponse(BaseModel):
    """Challenge for the wallet to sign."""

    wallet_address: str
    nonce: str
    message: str
    issued_at: int
    expires_at: int


class VerifyRequest(BaseModel):
    """Signed challenge submission."""

    wallet_address: str = Field(..., description="Wallet address")
    signature: str = Field(
        ...,
        max_length=256,
        description="personal_sign signature of the challenge message",
    )
    nonce: str = Field(..., max_length=128, description="Nonce that was signed")


class SessionGrantResponse(BaseModel):
    """Session material."""

    access_token: str
    token_type: str = "Bearer"
    expires_in: int


class VerifyResponse(BaseModel):
    """Successful authentication."""

    identity_id: str
    wallet_address: str
    role: str
    new_identity: bool
    session_grant: SessionGrantResponse


class WalletStatusResponse(BaseModel):
    """Wallet registration status."""

    exists: bool
    onboarded: bool
    role: str | None


class IdentityInfoResponse(BaseModel):
    """Current identity information."""

    identity_id: str
    wallet_address: str
    role: str


# Endpoints
@router.post("/challenge", response_model=ChallengeResponse)
async def request_challenge(
    request: WalletAddressRequest,
    wallet_auth: WalletAuth,
) -> ChallengeResponse:
    """Request a challenge for wallet authentication.

    The returned message must be signed with personal_sign and submitted
    to /auth/verify before it expires.
    """
    challenge = await wallet_auth.request_challenge(request.wallet_address)

    return ChallengeResponse(
        wallet_address=challenge.wallet_address,
        nonce=challenge.nonce,
        message=challenge.message,
        issued_at=challenge.issued_at,
        expires_at=challenge.expires_at,
    )


@router.post("/verify", response_model=VerifyResponse)
async def verify_signature(
    request: VerifyRequest,
    wallet_auth: WalletAuth,
) -> VerifyResponse:
    """Verify a signed challenge and start a session.

    First-time wallets are provisioned with the baseline role.
    """
    result = await wallet_auth.authenticate(
        wallet_address=request.wallet_address,
        signature=request.signature,
        nonce=request.nonce,
    )

    return VerifyResponse(
        identity_id=result.identity.id,
        wallet_address=result.identity.wallet_address,
        role=result.identity.role,
        new_identity=result.new_identity,
        session_grant=SessionGrantResponse(
            access_token=result.session.access_token,
            token_type=result.session.token_type,
            expires_in=result.session.expires_in,
        ),
    )


@router.post("/check-wallet", response_model=WalletStatusResponse)
async def check_wallet(
    request: WalletAddressRequest,
    wallet_auth: WalletAuth,
) -> WalletStatusResponse:
    """Check whether a wallet already has an identity."""
    wallet_status = await wallet_auth.check_wallet(request.wallet_address)

    return WalletStatusResponse(
        exists=wallet_status.exists,
        onboarded=wallet_status.onboarded,
        role=wallet_status.role,
    )


@router.get("/me", response_model=IdentityInfoResponse)
async def get_current_identity_info(
    identity: CurrentIdentity,
) -> IdentityInfoResponse:
    """Get current authenticated identity."""
    return IdentityInfoResponse(
        identity_id=identity.identity_id,
        wallet_address=identity.wallet_address,
        role=identity.role,
    )
