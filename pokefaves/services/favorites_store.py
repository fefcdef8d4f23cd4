"""
Durable favorites store.

Encodes the favorites set as a JSON array of integers under one fixed key.
Every save writes the complete snapshot, never a delta, so the last completed
write always reflects a whole, consistent set.
"""

import json
import logging
from collections.abc import Iterable

from pokefaves.db.store import KeyValueStore
from pokefaves.models.failure import StorageError

logger = logging.getLogger(__name__)


def validate_favorite_id(value: object) -> int:
    """
    Check that a value is a valid favorite id.

    Raises:
        ValueError: If the value is not a positive integer (bools rejected)
    """
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"Favorite id must be a positive integer, got {value!r}")
    return value


def encode_favorites(ids: Iterable[int]) -> bytes:
    """Serialize ids as a compact JSON array."""
    return json.dumps(list(ids), separators=(",", ":")).encode("utf-8")


def decode_favorites(blob: bytes) -> list[int]:
    """
    Parse a stored favorites blob.

    Duplicates collapse to their first occurrence.

    Raises:
        StorageError: If the blob is not a JSON array of positive integers
    """
    try:
        data = json.loads(blob.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise StorageError("Stored favorites are not valid JSON", detail=str(e)) from e

    if not isinstance(data, list):
        raise StorageError(
            "Stored favorites are not a JSON array",
            detail=f"got {type(data).__name__}",
        )

    ids: list[int] = []
    seen: set[int] = set()
    for item in data:
        try:
            favorite_id = validate_favorite_id(item)
        except ValueError as e:
            raise StorageError("Stored favorites contain an invalid id", detail=str(e)) from e
        if favorite_id not in seen:
            seen.add(favorite_id)
            ids.append(favorite_id)

    return ids


class FavoritesStore:
    """Reads and writes the favorites blob through a KeyValueStore."""

    def __init__(self, backend: KeyValueStore, key: str = "favorites"):
        self._backend = backend
        self.key = key

    async def load(self) -> list[int]:
        """
        Load the persisted favorites.

        Returns an empty list when nothing has been stored yet.

        Raises:
            StorageError: If the store cannot be read or the blob is corrupt
        """
        blob = await self._backend.read(self.key)
        if blob is None:
            return []
        return decode_favorites(blob)

    async def save(self, ids: Iterable[int]) -> None:
        """
        Persist the complete favorites snapshot.

        Raises:
            StorageError: If the write is rejected
        """
        snapshot = list(ids)
        await self._backend.write(self.key, encode_favorites(snapshot))
        logger.debug("Persisted %d favorites under %s", len(snapshot), self.key)

    async def clear(self) -> None:
        """
        Remove the favorites blob entirely.

        Raises:
            StorageError: If the delete is rejected
        """
        await self._backend.delete(self.key)
        logger.debug("Cleared favorites under %s", self.key)
