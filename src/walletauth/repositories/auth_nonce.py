"""Repository for wallet authentication challenges."""

from sqlalchemy import delete, update

from walletauth.models.auth_nonce import AuthNonce
from walletauth.repositories.base import BaseRepository


class AuthNonceRepository(BaseRepository[AuthNonce]):
    """Repository for AuthNonce database operations.

    Handles the challenge lifecycle:
    - Recording issued challenges
    - Single-use consumption with expiry check
    - Purging expired rows
    """

    model = AuthNonce

    async def get_by_wallet_and_nonce(
        self, wallet_address: str, nonce: str
    ) -> AuthNonce | None:
        """Get challenge by wallet address and nonce.

        @param wallet_address - Normalized wallet address
        @param nonce - Nonce value
        @returns AuthNonce or None
        """
        return await self.get_one_by_filter(wallet_address=wallet_address, nonce=nonce)

    async def mark_used(self, wallet_address: str, nonce: str, now: int) -> bool:
        """Mark a challenge used if it is still unused and unexpired.

        Single conditional UPDATE; the affected row count tells whether
        this caller won the consumption.

        @param wallet_address - Normalized wallet address
        @param nonce - Nonce value
        @param now - Current unix time in whole seconds
        @returns True if exactly this call consumed the challenge
        """
        stmt = (
            update(self.model)
            .where(
                self.model.wallet_address == wallet_address,
                self.model.nonce == nonce,
                self.model.used.is_(False),
                self.model.expires_at > now,
            )
            .values(used=True, used_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def delete_expired(self, now: int) -> int:
        """Delete challenges that expired at or before now.

        @param now - Current unix time in whole seconds
        @returns Number of deleted rows
        """
        stmt = (
            delete(self.model)
            .where(self.model.expires_at <= now)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount
