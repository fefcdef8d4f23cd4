"""
Database CRUD operations.

Provides async functions for reading, writing, and deleting key-value
entries.
"""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from pokefaves.models.db import KeyValueDB


async def get_value(session: AsyncSession, key: str) -> bytes | None:
    """
    Get the stored blob for a key.

    Returns None if no entry exists.
    """
    result = await session.execute(select(KeyValueDB.value).where(KeyValueDB.key == key))
    return result.scalar_one_or_none()


async def put_value(session: AsyncSession, key: str, value: bytes) -> KeyValueDB:
    """
    Insert or replace the blob for a key.

    If an entry exists, its value is overwritten in full.
    """
    existing = await session.get(KeyValueDB, key)

    if existing:
        existing.value = value
        await session.flush()
        return existing

    entry = KeyValueDB(key=key, value=value)
    session.add(entry)
    await session.flush()
    return entry


async def delete_value(session: AsyncSession, key: str) -> bool:
    """
    Delete the entry for a key.

    Returns True if deleted, False if not found.
    """
    result = await session.execute(delete(KeyValueDB).where(KeyValueDB.key == key))
    # rowcount is available on DELETE results; type stubs incomplete for async
    return int(result.rowcount) > 0  # type: ignore[attr-defined]
