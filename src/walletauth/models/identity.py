"""Wallet identity model."""

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from walletauth.models.base import Base


class Identity(Base):
    """Durable principal keyed by wallet address."""

    __tablename__ = "identities"

    # Primary key (UUID4 string)
    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    # One identity per normalized wallet address
    wallet_address: Mapped[str] = mapped_column(
        String(42), unique=True, nullable=False
    )

    # Authorization state owned by the business layer after creation
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    onboarded: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "role IN ('pending', 'student', 'issuer', 'verifier', 'admin')",
            name="ck_identity_role",
        ),
    )
