"""Base repository with common CRUD operations.

Provides a generic async repository pattern for SQLAlchemy models.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from walletauth.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Generic async repository with common CRUD operations.

    Example:
        repo = IdentityRepository(session)
        identity = await repo.get_one_by_filter(wallet_address=address)
    """

    model: type[ModelType]

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with async session.

        @param session - SQLAlchemy async session
        """
        self.session = session

    async def get_one_by_filter(self, **filters: Any) -> ModelType | None:
        """Get single record matching filter criteria.

        @param filters - Key-value pairs for filtering
        @returns Model instance or None if not found
        """
        stmt = select(self.model)
        for key, value in filters.items():
            if hasattr(self.model, key) and value is not None:
                stmt = stmt.where(getattr(self.model, key) == value)
        stmt = stmt.limit(1)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def create(self, obj_in: dict[str, Any] | ModelType) -> ModelType:
        """Create new record.

        @param obj_in - Dictionary or model instance with data
        @returns Created model instance
        """
        if isinstance(obj_in, dict):
            db_obj = self.model(**obj_in)
        else:
            db_obj = obj_in
        self.session.add(db_obj)
        await self.session.flush()
        await self.session.refresh(db_obj)
        return db_obj

    async def count(self, **filters: Any) -> int:
        """Count records matching criteria.

        @param filters - Key-value pairs for filtering
        @returns Number of matching records
        """
        stmt = select(func.count()).select_from(self.model)
        for key, value in filters.items():
            if hasattr(self.model, key) and value is not None:
                stmt = stmt.where(getattr(self.model, key) == value)
        result = await self.session.execute(stmt)
        return result.scalar() or 0
