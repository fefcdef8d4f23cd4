"""
Batch reconciler.

Keeps the detail cache populated for exactly the ids in the favorites set:

1. Evict cache entries for ids that left the favorites.
2. Plan: favorites (in set order) whose entry is ABSENT or FAILED.
3. Partition the plan into batches of `batch_size`.
4. Per batch, mark each id pending and fetch all of them concurrently; wait
   for the whole batch to settle before the next one.
5. Sleep `batch_delay` seconds between batches to go easy on PokéAPI.

Passes are idempotent and re-entrant. A pass that overlaps a running one
skips ids already pending instead of fetching them again.

A per-id FetchError only marks that id FAILED. Failed ids are retried by the
next pass (a favorites change or an explicit refresh), never on a timer. Any
other fetcher exception also marks its id FAILED; the pass still settles every
batch and re-raises the first such exception at the end.

An id removed and re-added while its fetch is in flight joins that fetch
instead of starting a second one.
"""

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from pokefaves.models.cache_entry import DetailCacheEntry
from pokefaves.models.failure import FetchError, OfflineError, Outcome
from pokefaves.models.grouping import TypeGroup
from pokefaves.models.pokemon import DetailRecord
from pokefaves.services.connectivity import ConnectivityGate
from pokefaves.services.detail_cache import DetailCache
from pokefaves.services.favorites_manager import FavoritesManager, FavoritesSet
from pokefaves.services.grouping import group_by_type
from pokefaves.services.pokeapi import DetailFetcher

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10
DEFAULT_BATCH_DELAY = 0.1


@dataclass
class ReconcileReport:
    """Summary of one reconciliation pass."""

    batches: list[list[int]] = field(default_factory=list)
    """Ids actually fetched, grouped by the batch that issued them."""

    fetched: list[int] = field(default_factory=list)
    """Ids whose detail is now present."""

    failed: dict[int, str] = field(default_factory=dict)
    """Ids whose fetch failed, with the reason."""

    skipped: list[int] = field(default_factory=list)
    """Planned ids not fetched: already pending elsewhere or unfavorited meanwhile."""

    evicted: list[int] = field(default_factory=list)
    """Ids dropped from the cache because they left the favorites."""

    interrupted: bool = False
    """True if connectivity was lost before all batches ran."""

    @property
    def requested(self) -> list[int]:
        """Every id a fetch was issued for, in issue order."""
        return [favorite_id for batch in self.batches for favorite_id in batch]


def partition(ids: Sequence[int], size: int) -> list[list[int]]:
    """
    Split ids into consecutive batches of at most `size`.

    Raises:
        ValueError: If size is less than 1
    """
    if size < 1:
        raise ValueError(f"Batch size must be at least 1, got {size}")
    return [list(ids[i : i + size]) for i in range(0, len(ids), size)]


def _unexpected_reason(error: Exception) -> str:
    return f"Unexpected error: {type(error).__name__}"


class BatchReconciler:
    """Owns the detail cache and drives fetches against a DetailFetcher."""

    def __init__(
        self,
        favorites: FavoritesManager,
        fetcher: DetailFetcher,
        *,
        cache: DetailCache | None = None,
        gate: ConnectivityGate | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay: float = DEFAULT_BATCH_DELAY,
    ):
        if batch_size < 1:
            raise ValueError(f"Batch size must be at least 1, got {batch_size}")
        if batch_delay < 0:
            raise ValueError(f"Batch delay cannot be negative, got {batch_delay}")

        self._favorites = favorites
        self._fetcher = fetcher
        self._cache = cache if cache is not None else DetailCache()
        self._gate = gate
        self.batch_size = batch_size
        self.batch_delay = batch_delay

        # A pass was requested while offline and has not run yet
        self._owed = False
        self._tasks: set[asyncio.Task[Outcome[ReconcileReport]]] = set()
        # At most one fetch per id, shared by every pass waiting on it
        self._in_flight: dict[int, asyncio.Task[DetailRecord]] = {}
        self._unsubscribers: list[Callable[[], None]] = []

    # --- Reads ---

    @property
    def cache(self) -> DetailCache:
        return self._cache

    @property
    def owed(self) -> bool:
        return self._owed

    @property
    def busy(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def entry(self, favorite_id: int) -> DetailCacheEntry:
        return self._cache.get(favorite_id)

    def detail_pairs(self) -> list[tuple[int, DetailCacheEntry]]:
        """Every favorite with its cache entry, in favorites order."""
        return [(i, self._cache.get(i)) for i in self._favorites.snapshot()]

    def grouped_view(self) -> list[TypeGroup]:
        """Present details of current favorites, grouped by type."""
        return group_by_type(self._favorites.snapshot(), self._cache.get_all_present())

    def plan(self) -> list[int]:
        """Favorites needing a fetch (ABSENT or FAILED), in favorites order."""
        return [
            favorite_id
            for favorite_id in self._favorites.snapshot()
            if self._cache.get(favorite_id).needs_fetch
        ]

    # --- Passes ---

    def evict_stale(self) -> list[int]:
        """Drop cache entries for ids no longer favorited."""
        stale = sorted(i for i in self._cache.ids() if not self._favorites.contains(i))
        for favorite_id in stale:
            self._cache.evict(favorite_id)
        if stale:
            logger.debug("Evicted details for %s", stale)
        return stale

    async def reconcile(self) -> Outcome[ReconcileReport]:
        """
        Run one reconciliation pass.

        Returns:
            Outcome with the pass report, or the offline outcome if the pass
            could not start. Per-id failures never fail the pass.

        Raises:
            Exception: The first non-FetchError a fetcher raised, after every
                batch has been settled
        """
        try:
            self._require_online()
        except OfflineError as e:
            self._owed = True
            logger.warning("Skipping detail reconciliation while offline")
            return Outcome.from_error(e)

        self._owed = False
        report = ReconcileReport(evicted=self.evict_stale())
        batches = partition(self.plan(), self.batch_size)
        unexpected: list[Exception] = []

        for index, batch in enumerate(batches):
            if report.batches and self.batch_delay > 0:
                await asyncio.sleep(self.batch_delay)

            if not self._online():
                self._owed = True
                report.interrupted = True
                logger.warning(
                    "Connectivity lost, %d batches left unfetched", len(batches) - index
                )
                break

            tokens: dict[int, int] = {}
            for favorite_id in batch:
                if not self._favorites.contains(favorite_id):
                    continue
                token = self._cache.mark_pending(favorite_id)
                if token is not None:
                    tokens[favorite_id] = token

            started = list(tokens)
            report.skipped.extend(i for i in batch if i not in tokens)
            if not started:
                continue

            report.batches.append(started)
            results = await asyncio.gather(
                *(self._fetch_one(i, tokens[i]) for i in started),
                return_exceptions=True,
            )

            for favorite_id, result in zip(started, results, strict=True):
                if result is None:
                    report.fetched.append(favorite_id)
                elif isinstance(result, str):
                    report.failed[favorite_id] = result
                elif isinstance(result, Exception):
                    report.failed[favorite_id] = _unexpected_reason(result)
                    unexpected.append(result)
                else:
                    raise result

        if unexpected:
            logger.error(
                "Detail fetcher raised unexpectedly for %d ids; pass completed",
                len(unexpected),
            )
            raise unexpected[0]

        logger.info(
            "Reconciled details: %d batches, %d fetched, %d failed, %d skipped",
            len(report.batches),
            len(report.fetched),
            len(report.failed),
            len(report.skipped),
        )
        return Outcome.success(report)

    async def refresh(self) -> Outcome[ReconcileReport]:
        """
        User-initiated pass.

        Identical to `reconcile`; named separately because it is the one place
        failed entries are expected to be retried from.
        """
        logger.info("Manual refresh requested for %d favorites", len(self._favorites))
        return await self.reconcile()

    async def _fetch_one(self, favorite_id: int, token: int) -> str | None:
        """
        Fetch one id and settle the entry pending under `token`.

        Returns the failure reason, if any. Results for an entry that was
        evicted or re-marked pending meanwhile are discarded by the cache.
        """
        try:
            record = await self._request(favorite_id)
        except FetchError as e:
            if self._favorites.contains(favorite_id):
                self._cache.mark_failed(favorite_id, e.message, token)
            else:
                self._cache.evict(favorite_id)
            return e.message
        except Exception as e:
            # Never leave an entry stuck in pending
            self._cache.mark_failed(favorite_id, _unexpected_reason(e), token)
            raise

        if self._favorites.contains(favorite_id):
            self._cache.mark_present(favorite_id, record, token)
        else:
            self._cache.evict(favorite_id)
        return None

    def _request(self, favorite_id: int) -> "asyncio.Task[DetailRecord]":
        """Start a fetch for an id, or join the one already in flight."""
        fetch = self._in_flight.get(favorite_id)
        if fetch is None:
            fetch = asyncio.create_task(self._fetcher.fetch_detail(favorite_id))
            self._in_flight[favorite_id] = fetch
            fetch.add_done_callback(lambda _: self._in_flight.pop(favorite_id, None))
        return fetch

    # --- Scheduling ---

    def schedule(self) -> "asyncio.Task[Outcome[ReconcileReport]]":
        """Run a pass in the background. Must be called with a running loop."""
        task = asyncio.create_task(self.reconcile())
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    async def wait_idle(self) -> None:
        """Wait until every scheduled pass, including follow-ups, has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def attach(self) -> None:
        """Follow favorites changes and connectivity transitions."""
        if self._unsubscribers:
            return
        self._unsubscribers.append(self._favorites.subscribe(self._on_favorites_changed))
        if self._gate is not None:
            self._unsubscribers.append(self._gate.on_change(self._on_connectivity_changed))

    def detach(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    def _on_favorites_changed(self, _snapshot: FavoritesSet) -> None:
        # Removed ids must never be shown or retried, even before the next pass
        self.evict_stale()
        if self._online():
            self.schedule()
        else:
            self._owed = True

    def _on_connectivity_changed(self, online: bool) -> None:
        if online and self._owed:
            logger.info("Back online, resuming detail reconciliation")
            self.schedule()

    def _on_task_done(self, task: "asyncio.Task[Outcome[ReconcileReport]]") -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Detail reconciliation pass failed: %r", error)

    def _online(self) -> bool:
        return self._gate is None or self._gate.is_online()

    def _require_online(self) -> None:
        if self._gate is not None:
            self._gate.require_online()
