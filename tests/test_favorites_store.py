"""Tests for the durable favorites store and its codec."""

import pytest
from conftest import FlakyStore

from pokefaves.db.store import MemoryKeyValueStore
from pokefaves.models.failure import StorageError
from pokefaves.services.favorites_store import (
    FavoritesStore,
    decode_favorites,
    encode_favorites,
    validate_favorite_id,
)


class TestValidateFavoriteId:
    def test_accepts_positive(self) -> None:
        assert validate_favorite_id(25) == 25

    @pytest.mark.parametrize("value", [0, -1, True, False, 2.5, "25", None])
    def test_rejects(self, value: object) -> None:
        with pytest.raises(ValueError):
            validate_favorite_id(value)


class TestCodec:
    def test_encode_compact(self) -> None:
        assert encode_favorites([25, 1, 7]) == b"[25,1,7]"
        assert encode_favorites([]) == b"[]"

    def test_decode_preserves_order(self) -> None:
        assert decode_favorites(b"[25, 1, 7]") == [25, 1, 7]

    def test_decode_collapses_duplicates(self) -> None:
        """Duplicates keep their first position."""
        assert decode_favorites(b"[4,1,4,7,1]") == [4, 1, 7]

    @pytest.mark.parametrize(
        "blob",
        [
            b"not json",
            b"\xff\xfe",
            b'{"ids": [1]}',
            b"[1, -2]",
            b"[1, \"2\"]",
            b"[true]",
        ],
    )
    def test_decode_corrupt(self, blob: bytes) -> None:
        with pytest.raises(StorageError):
            decode_favorites(blob)


class TestFavoritesStore:
    async def test_load_missing_is_empty(self) -> None:
        store = FavoritesStore(MemoryKeyValueStore())

        assert await store.load() == []

    async def test_save_writes_full_snapshot(self) -> None:
        backend = MemoryKeyValueStore()
        store = FavoritesStore(backend, key="faves")

        await store.save([1, 4])
        await store.save([1, 4, 7])

        assert backend.data == {"faves": b"[1,4,7]"}
        assert await store.load() == [1, 4, 7]

    async def test_clear_removes_key(self) -> None:
        backend = MemoryKeyValueStore({"favorites": b"[1]"})
        store = FavoritesStore(backend)

        await store.clear()

        assert backend.data == {}
        assert await store.load() == []

    async def test_write_failure_propagates(self) -> None:
        backend = FlakyStore()
        backend.fail_writes = True
        store = FavoritesStore(backend)

        with pytest.raises(StorageError):
            await store.save([1])

    async def test_corrupt_blob_raises(self) -> None:
        store = FavoritesStore(MemoryKeyValueStore({"favorites": b"[0]"}))

        with pytest.raises(StorageError, match="invalid id"):
            await store.load()
