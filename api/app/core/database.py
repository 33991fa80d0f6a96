"""Async database engine and session management.

Production runs on PostgreSQL (asyncpg). The same engine factory accepts
sqlite+aiosqlite URLs, which the test suite uses for a throwaway database.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings


def _create_engine(url: str):
    engine_kwargs: dict[str, object] = {"echo": settings.database_echo}

    # Pool sizing only makes sense for a server database
    if make_url(url).get_backend_name() != "sqlite":
        engine_kwargs.update(pool_size=20, max_overflow=10, pool_pre_ping=True)

    return create_async_engine(url, **engine_kwargs)


engine = _create_engine(settings.database_url)

async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session. Used as a FastAPI dependency."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
