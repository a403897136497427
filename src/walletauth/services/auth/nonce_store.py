"""Storage for outstanding sign-in challenges."""

import asyncio
import logging
from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from walletauth.repositories.auth_nonce import AuthNonceRepository
from walletauth.services.auth.errors import StorageError

logger = logging.getLogger(__name__)


class NonceRecord(BaseModel):
    """Stored challenge. Times are unix seconds."""

    model_config = ConfigDict(from_attributes=True)

    wallet_address: str
    nonce: str
    issued_at: int
    expires_at: int
    used: bool = False

    def is_consumable(self, now: float) -> bool:
        """Unused and not yet expired."""
        return not self.used and now < self.expires_at


class NonceStore(ABC):
    """Challenge storage with single-use consumption.

    consume() must be atomic: for a given (wallet_address, nonce) at most
    one caller ever receives the record.
    """

    @abstractmethod
    async def put(
        self, wallet_address: str, nonce: str, issued_at: int, ttl_seconds: int
    ) -> NonceRecord:
        """Store a new unused challenge."""

    @abstractmethod
    async def consume(
        self, wallet_address: str, nonce: str, now: float
    ) -> NonceRecord | None:
        """Mark a challenge used.

        Returns:
            The record if it existed, was unused and unexpired; None otherwise
            (and nothing is modified)
        """

    @abstractmethod
    async def purge_expired(self, now: float) -> int:
        """Delete expired challenges. Returns number removed."""


class InMemoryNonceStore(NonceStore):
    """Process-local store for development and tests."""

    def __init__(self):
        self._records: dict[tuple[str, str], NonceRecord] = {}
        self._lock = asyncio.Lock()

    async def put(
        self, wallet_address: str, nonce: str, issued_at: int, ttl_seconds: int
    ) -> NonceRecord:
        record = NonceRecord(
            wallet_address=wallet_address,
            nonce=nonce,
            issued_at=issued_at,
            expires_at=issued_at + ttl_seconds,
        )
        async with self._lock:
            self._records[(wallet_address, nonce)] = record
        return record

    async def consume(
        self, wallet_address: str, nonce: str, now: float
    ) -> NonceRecord | None:
        async with self._lock:
            record = self._records.get((wallet_address, nonce))
            if record is None or not record.is_consumable(now):
                return None
            consumed = record.model_copy(update={"used": True})
            self._records[(wallet_address, nonce)] = consumed
            return consumed

    async def purge_expired(self, now: float) -> int:
        async with self._lock:
            expired = [
                key for key, record in self._records.items() if now >= record.expires_at
            ]
            for key in expired:
                del self._records[key]
        return len(expired)


class DatabaseNonceStore(NonceStore):
    """SQLAlchemy-backed store over the auth_nonces table.

    Each operation runs in its own short transaction.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """Initialize database nonce store.

        Args:
            session_factory: Async session factory
        """
        self._session_factory = session_factory

    async def put(
        self, wallet_address: str, nonce: str, issued_at: int, ttl_seconds: int
    ) -> NonceRecord:
        try:
            async with self._session_factory() as session, session.begin():
                row = await AuthNonceRepository(session).create(
                    {
                        "wallet_address": wallet_address,
                        "nonce": nonce,
                        "issued_at": issued_at,
                        "expires_at": issued_at + ttl_seconds,
                        "used": False,
                    }
                )
                return NonceRecord.model_validate(row)
        except SQLAlchemyError as e:
            logger.error(f"Failed to store challenge for {wallet_address}: {e}")
            raise StorageError() from e

    async def consume(
        self, wallet_address: str, nonce: str, now: float
    ) -> NonceRecord | None:
        try:
            async with self._session_factory() as session, session.begin():
                repo = AuthNonceRepository(session)
                if not await repo.mark_used(wallet_address, nonce, int(now)):
                    return None
                row = await repo.get_by_wallet_and_nonce(wallet_address, nonce)
                return NonceRecord.model_validate(row)
        except SQLAlchemyError as e:
            logger.error(f"Failed to consume challenge for {wallet_address}: {e}")
            raise StorageError() from e

    async def purge_expired(self, now: float) -> int:
        try:
            async with self._session_factory() as session, session.begin():
                removed = await AuthNonceRepository(session).delete_expired(int(now))
        except SQLAlchemyError as e:
            logger.error(f"Failed to purge expired challenges: {e}")
            raise StorageError() from e
        if removed:
            logger.info(f"Purged {removed} expired challenges")
        return removed
