"""Identity resolution for verified wallets."""

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from walletauth.repositories.identity import IdentityRepository
from walletauth.services.auth.address import normalize_address
from walletauth.services.auth.clock import Clock, SystemClock
from walletauth.services.auth.errors import IdentityExistsError, StorageError

logger = logging.getLogger(__name__)


class IdentityRole(str, Enum):
    """Application roles.

    New identities always start as PENDING; promotion is handled by the
    role management flows outside this service.
    """

    PENDING = "pending"
    STUDENT = "student"
    ISSUER = "issuer"
    VERIFIER = "verifier"
    ADMIN = "admin"


BASELINE_ROLE = IdentityRole.PENDING


class IdentityRecord(BaseModel):
    """Identity as seen by the authentication flow."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    wallet_address: str
    role: str
    onboarded: bool = False
    created_at: datetime


class ResolvedIdentity(BaseModel):
    """Identity plus whether this resolution created it."""

    identity: IdentityRecord
    created: bool


class IdentityStore(ABC):
    """Identity table keyed uniquely by wallet address."""

    @abstractmethod
    async def get_by_wallet_address(self, wallet_address: str) -> IdentityRecord | None:
        """Look up an identity by normalized address."""

    @abstractmethod
    async def create(self, identity: IdentityRecord) -> IdentityRecord:
        """Insert a new identity.

        Raises:
            IdentityExistsError: If the address already has an identity
            StorageError: On backend failure
        """


class InMemoryIdentityStore(IdentityStore):
    """Process-local identity table for development and tests."""

    def __init__(self):
        self._identities: dict[str, IdentityRecord] = {}
        self._lock = asyncio.Lock()

    async def get_by_wallet_address(self, wallet_address: str) -> IdentityRecord | None:
        return self._identities.get(wallet_address)

    async def create(self, identity: IdentityRecord) -> IdentityRecord:
        async with self._lock:
            if identity.wallet_address in self._identities:
                raise IdentityExistsError(identity.wallet_address)
            self._identities[identity.wallet_address] = identity
        return identity

    def count(self) -> int:
        """Number of stored identities."""
        return len(self._identities)


class DatabaseIdentityStore(IdentityStore):
    """SQLAlchemy-backed store over the identities table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """Initialize database identity store.

        Args:
            session_factory: Async session factory
        """
        self._session_factory = session_factory

    async def get_by_wallet_address(self, wallet_address: str) -> IdentityRecord | None:
        try:
            async with self._session_factory() as session:
                row = await IdentityRepository(session).get_by_wallet_address(
                    wallet_address
                )
        except SQLAlchemyError as e:
            logger.error(f"Failed to look up identity for {wallet_address}: {e}")
            raise StorageError() from e
        return IdentityRecord.model_validate(row) if row else None

    async def create(self, identity: IdentityRecord) -> IdentityRecord:
        try:
            async with self._session_factory() as session, session.begin():
                row = await IdentityRepository(session).create(identity.model_dump())
                return IdentityRecord.model_validate(row)
        except IntegrityError as e:
            raise IdentityExistsError(identity.wallet_address) from e
        except SQLAlchemyError as e:
            logger.error(f"Failed to create identity for {identity.wallet_address}: {e}")
            raise StorageError() from e


class IdentityResolver:
    """Maps a verified wallet to its identity, provisioning on first login."""

    def __init__(self, store: IdentityStore, clock: Clock | None = None):
        """Initialize identity resolver.

        Args:
            store: Identity storage
            clock: Time source for created_at
        """
        self.store = store
        self.clock = clock or SystemClock()

    async def lookup(self, wallet_address: str) -> IdentityRecord | None:
        """Read-only lookup by wallet address."""
        return await self.store.get_by_wallet_address(normalize_address(wallet_address))

    async def resolve(self, wallet_address: str) -> ResolvedIdentity:
        """Return the wallet's identity, creating it with the baseline role if absent.

        Concurrent first logins for the same wallet converge on one identity:
        the loser of the insert race re-reads the winner's row.

        Args:
            wallet_address: Verified wallet address

        Returns:
            ResolvedIdentity with created=True only for the inserting call

        Raises:
            StorageError: If the identity store fails
        """
        wallet_address = normalize_address(wallet_address)

        existing = await self.store.get_by_wallet_address(wallet_address)
        if existing is not None:
            return ResolvedIdentity(identity=existing, created=False)

        candidate = IdentityRecord(
            id=str(uuid.uuid4()),
            wallet_address=wallet_address,
            role=BASELINE_ROLE.value,
            onboarded=False,
            created_at=datetime.fromtimestamp(self.clock.now(), tz=timezone.utc),
        )

        try:
            created = await self.store.create(candidate)
        except IdentityExistsError:
            logger.info(f"Identity for {wallet_address} created concurrently, re-reading")
        else:
            logger.info(f"Provisioned identity {created.id} for {wallet_address}")
            return ResolvedIdentity(identity=created, created=True)

        existing = await self.store.get_by_wallet_address(wallet_address)
        if existing is None:
            # Unique violation but no visible row
            logger.error(f"Identity for {wallet_address} missing after duplicate insert")
            raise StorageError()
        return ResolvedIdentity(identity=existing, created=False)
