"""
Durable key-value store boundary.

The favorites subsystem talks to persistence only through `KeyValueStore`:
read/write/delete of opaque bytes under a string key. Every failure surfaces
as StorageError.
"""

import logging
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pokefaves.db.operations import delete_value, get_value, put_value
from pokefaves.models.failure import StorageError

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Persistence boundary used by the favorites store."""

    async def read(self, key: str) -> bytes | None: ...

    async def write(self, key: str, value: bytes) -> None: ...

    async def delete(self, key: str) -> None: ...


class SqlKeyValueStore:
    """
    KeyValueStore backed by the `key_values` table.

    Each call runs in its own session and commits before returning, so a
    completed write is durable.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def read(self, key: str) -> bytes | None:
        try:
            async with self._session_factory() as session:
                return await get_value(session, key)
        except SQLAlchemyError as e:
            logger.error("Failed to read key %s: %s", key, e)
            raise StorageError(f"Failed to read {key}", detail=type(e).__name__) from e

    async def write(self, key: str, value: bytes) -> None:
        try:
            async with self._session_factory() as session, session.begin():
                await put_value(session, key, value)
        except SQLAlchemyError as e:
            logger.error("Failed to write key %s: %s", key, e)
            raise StorageError(f"Failed to write {key}", detail=type(e).__name__) from e

    async def delete(self, key: str) -> None:
        try:
            async with self._session_factory() as session, session.begin():
                await delete_value(session, key)
        except SQLAlchemyError as e:
            logger.error("Failed to delete key %s: %s", key, e)
            raise StorageError(f"Failed to delete {key}", detail=type(e).__name__) from e


class MemoryKeyValueStore:
    """
    KeyValueStore kept in process memory.

    Nothing survives a restart. Useful for tests and ephemeral sessions.
    """

    def __init__(self, initial: dict[str, bytes] | None = None):
        self.data: dict[str, bytes] = dict(initial or {})

    async def read(self, key: str) -> bytes | None:
        return self.data.get(key)

    async def write(self, key: str, value: bytes) -> None:
        self.data[key] = value

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)
