"""Wallet authentication challenge model."""

from typing import Optional

from sqlalchemy import BigInteger, Boolean, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from walletauth.models.base import Base


class AuthNonce(Base):
    """Outstanding sign-in challenge issued to a wallet.

    Timestamps are unix seconds so the sign message can be rebuilt
    byte-for-byte from the stored row on any backend.
    """

    __tablename__ = "auth_nonces"

    # Primary key
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )

    # Challenge
    wallet_address: Mapped[str] = mapped_column(String(42), nullable=False)
    nonce: Mapped[str] = mapped_column(String(64), nullable=False)

    # Lifetime
    issued_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    expires_at: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    used_at: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    __table_args__ = (
        UniqueConstraint("wallet_address", "nonce", name="uq_auth_nonce_wallet_nonce"),
        Index("ix_auth_nonces_wallet_address", "wallet_address"),
    )
