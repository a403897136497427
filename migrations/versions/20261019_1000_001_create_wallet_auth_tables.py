"""Create wallet authentication tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 10:00:00.000000

Creates the following tables:
- auth_nonces: Outstanding sign-in challenges (single use, expiring)
- identities: One identity per wallet address
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ========================================
    # 1. auth_nonces table
    # ========================================
    op.create_table(
        "auth_nonces",
        # Primary key
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        # Challenge
        sa.Column("wallet_address", sa.String(42), nullable=False),
        sa.Column("nonce", sa.String(64), nullable=False),
        # Lifetime (unix seconds)
        sa.Column("issued_at", sa.BigInteger(), nullable=False),
        sa.Column("expires_at", sa.BigInteger(), nullable=False),
        sa.Column("used", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("used_at", sa.BigInteger(), nullable=True),
        # Constraints
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "wallet_address", "nonce", name="uq_auth_nonce_wallet_nonce"
        ),
    )
    op.create_index("ix_auth_nonces_wallet_address", "auth_nonces", ["wallet_address"])
    op.create_index("ix_auth_nonces_expires_at", "auth_nonces", ["expires_at"])

    # ========================================
    # 2. identities table
    # ========================================
    op.create_table(
        "identities",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("wallet_address", sa.String(42), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("onboarded", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        # Constraints
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("wallet_address"),
        sa.CheckConstraint(
            "role IN ('pending', 'student', 'issuer', 'verifier', 'admin')",
            name="ck_identity_role",
        ),
    )


def downgrade() -> None:
    op.drop_table("identities")
    op.drop_index("ix_auth_nonces_expires_at", table_name="auth_nonces")
    op.drop_index("ix_auth_nonces_wallet_address", table_name="auth_nonces")
    op.drop_table("auth_nonces")
