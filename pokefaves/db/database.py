"""
Database engine and session management.

The favorites blob lives in a single `key_values` row, so one local SQLite
file is the default backend. Importing this module builds the engine but
touches nothing on disk until `init_db` runs.
"""

from collections.abc import AsyncGenerator
from pathlib import Path

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from pokefaves.config import settings
from pokefaves.db.store import SqlKeyValueStore
from pokefaves.models.db import Base


def _ensure_sqlite_directory(database_url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite" or not url.database or url.database == ":memory:":
        return
    Path(url.database).parent.mkdir(parents=True, exist_ok=True)


engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
)

# Loaded rows stay usable after commit
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


def favorites_backend() -> SqlKeyValueStore:
    """Durable key-value store for the favorites blob on the configured database."""
    return SqlKeyValueStore(async_session_factory)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides a database session.

    The favorites store opens its own sessions per read or write; this one
    serves request handlers that only check the database, like `/ready`:

        @router.get("/ready")
        async def ready(session: AsyncSession = Depends(get_session)):
            database_ok = await ping(session)
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError:
            await session.rollback()
            raise


async def ping(session: AsyncSession) -> bool:
    """True if the database answers a trivial query."""
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        return False
    return True


async def init_db() -> None:
    """
    Create the `key_values` table, and the SQLite file's directory if needed.

    Called once from the app lifespan and the refresh job before any
    favorites are loaded.
    """
    _ensure_sqlite_directory(settings.database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_db() -> None:
    """
    Drop all database tables.

    WARNING: Destroys every stored favorite. Use only for testing.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
