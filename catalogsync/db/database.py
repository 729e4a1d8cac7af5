"""
Async database engine and session factories.

One engine per process is shared by the API (request-scoped sessions via
get_session) and the reconciliation job (short sessions from
async_session_factory).
"""

from collections.abc import AsyncGenerator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from catalogsync.config import settings
from catalogsync.models.db import Base


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Async engine for a database URL. SQLite URLs skip connection pre-ping."""
    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, echo=echo)
    return create_async_engine(database_url, echo=echo, pool_pre_ping=True)


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory whose objects stay readable after commit."""
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(settings.database_url, echo=settings.debug)
async_session_factory = build_session_factory(engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session for FastAPI dependencies.

    Commits when the request handler succeeds, rolls back on database errors.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError:
            await session.rollback()
            raise


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Create the card set, card and checkpoint tables if they are missing."""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
