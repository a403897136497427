"""Database session management."""

from functools import lru_cache

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from walletauth.core.config import get_settings
from walletauth.models import Base


def create_async_db_engine(url: str | None = None, echo: bool | None = None) -> AsyncEngine:
    """Create asynchronous database engine.

    Args:
        url: Database URL, defaults to the configured one
        echo: Echo SQL statements, defaults to settings.db_echo
    """
    settings = get_settings()
    url = url or settings.database_url
    echo = settings.db_echo if echo is None else echo

    if url.startswith("sqlite"):
        return create_async_engine(url, echo=echo)

    return create_async_engine(
        url,
        pool_size=10,
        max_overflow=20,
        pool_recycle=1800,
        pool_pre_ping=True,
        echo=echo,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to an engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


@lru_cache
def get_async_engine() -> AsyncEngine:
    """Get or create the application engine."""
    return create_async_db_engine()


@lru_cache
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the application session factory."""
    return create_session_factory(get_async_engine())


async def init_models(engine: AsyncEngine) -> None:
    """Create all tables. Intended for local development and tests."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
