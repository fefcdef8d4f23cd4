import asyncio

import pytest

from pokefaves.db.store import MemoryKeyValueStore
from pokefaves.models.failure import FetchError, StorageError
from pokefaves.models.pokemon import DetailRecord
from pokefaves.services.connectivity import ConnectivityGate
from pokefaves.services.detail_cache import DetailCache
from pokefaves.services.favorites_manager import FavoritesManager
from pokefaves.services.favorites_store import FavoritesStore
from pokefaves.services.reconciler import BatchReconciler


def make_record(pokemon_id: int, *types: str, name: str | None = None) -> DetailRecord:
    """Build a minimal detail record for tests."""
    return DetailRecord(
        id=pokemon_id,
        name=name or f"pokemon-{pokemon_id}",
        types=types or ("normal",),
    )


class FlakyStore(MemoryKeyValueStore):
    """
    In-memory store whose writes can be made to fail or to block.

    `hold_writes()` makes every write wait until `release_writes()` is called,
    which lets tests interleave callers while a persistence write is in flight.
    """

    def __init__(self, initial: dict[str, bytes] | None = None):
        super().__init__(initial)
        self.fail_writes = False
        self.fail_reads = False
        self.writes: list[bytes] = []
        self.deletes: list[str] = []
        self._released = asyncio.Event()
        self._released.set()

    def hold_writes(self) -> None:
        self._released.clear()

    def release_writes(self) -> None:
        self._released.set()

    async def read(self, key: str) -> bytes | None:
        if self.fail_reads:
            raise StorageError(f"Failed to read {key}")
        return await super().read(key)

    async def write(self, key: str, value: bytes) -> None:
        await self._released.wait()
        if self.fail_writes:
            raise StorageError(f"Failed to write {key}")
        self.writes.append(value)
        await super().write(key, value)

    async def delete(self, key: str) -> None:
        await self._released.wait()
        if self.fail_writes:
            raise StorageError(f"Failed to delete {key}")
        self.deletes.append(key)
        await super().delete(key)


class FakeFetcher:
    """
    DetailFetcher double.

    Records every call with start/end events so tests can check batching,
    concurrency, and duplicate suppression.
    """

    def __init__(
        self,
        records: dict[int, DetailRecord] | None = None,
        *,
        failing: set[int] | None = None,
    ):
        self.records = records or {}
        self.failing = failing or set()
        self.calls: list[int] = []
        self.events: list[tuple[str, int]] = []
        self.started_at: dict[int, float] = {}
        self.in_flight = 0
        self.max_in_flight = 0
        self._gates: dict[int, asyncio.Event] = {}

    def hold(self, pokemon_id: int) -> None:
        """Make fetches for an id block until `release` is called."""
        self._gates[pokemon_id] = asyncio.Event()

    def release(self, pokemon_id: int) -> None:
        self._gates[pokemon_id].set()

    def call_count(self, pokemon_id: int) -> int:
        return self.calls.count(pokemon_id)

    async def fetch_detail(self, pokemon_id: int) -> DetailRecord:
        self.calls.append(pokemon_id)
        self.events.append(("start", pokemon_id))
        self.started_at[pokemon_id] = asyncio.get_running_loop().time()
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            gate = self._gates.get(pokemon_id)
            if gate is not None:
                await gate.wait()
            else:
                await asyncio.sleep(0)

            if pokemon_id in self.failing:
                raise FetchError(pokemon_id, f"Failed to fetch pokemon {pokemon_id}: HTTP 404")
            return self.records.get(pokemon_id) or make_record(pokemon_id)
        finally:
            self.in_flight -= 1
            self.events.append(("end", pokemon_id))


@pytest.fixture
def backend() -> FlakyStore:
    return FlakyStore()


@pytest.fixture
def gate() -> ConnectivityGate:
    return ConnectivityGate(online=True)


@pytest.fixture
def store(backend: FlakyStore) -> FavoritesStore:
    return FavoritesStore(backend, key="favorites")


@pytest.fixture
async def manager(store: FavoritesStore, gate: ConnectivityGate) -> FavoritesManager:
    manager = FavoritesManager(store, gate)
    await manager.load()
    return manager


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def cache() -> DetailCache:
    return DetailCache()


@pytest.fixture
def reconciler(
    manager: FavoritesManager,
    fetcher: FakeFetcher,
    cache: DetailCache,
    gate: ConnectivityGate,
) -> BatchReconciler:
    return BatchReconciler(manager, fetcher, cache=cache, gate=gate, batch_size=10, batch_delay=0)
