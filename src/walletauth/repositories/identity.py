"""Repository for wallet identities."""

from walletauth.models.identity import Identity
from walletauth.repositories.base import BaseRepository


class IdentityRepository(BaseRepository[Identity]):
    """Repository for Identity database operations."""

    model = Identity

    async def get_by_wallet_address(self, wallet_address: str) -> Identity | None:
        """Get identity by normalized wallet address.

        @param wallet_address - Normalized wallet address
        @returns Identity or None
        """
        return await self.get_one_by_filter(wallet_address=wallet_address)
