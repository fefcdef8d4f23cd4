"""
Favorites set manager.

The single in-memory authority for the favorited ids, shared by every
screen. The manager is the only writer of the durable favorites store.

INVARIANT: Mutations are serialized. Each one runs under a FIFO asyncio lock,
computes its new set from the latest committed state, persists the complete
snapshot, and only then commits in memory. A failed write leaves the in-memory
set exactly as it was.

INVARIANT: Subscribers are notified after every successful, state-changing
mutation, in mutation order, and never after a failed one.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from pokefaves.models.failure import OfflineError, Outcome, StorageError
from pokefaves.services.connectivity import ConnectivityGate
from pokefaves.services.favorites_store import FavoritesStore, validate_favorite_id

logger = logging.getLogger(__name__)

FavoritesSet = tuple[int, ...]
FavoritesListener = Callable[[FavoritesSet], None]


class FavoritesManager:
    """
    Ordered, unique set of favorited ids mirrored to durable storage.

    Membership order is insertion order, kept for display stability.
    """

    def __init__(self, store: FavoritesStore, gate: ConnectivityGate | None = None):
        self._store = store
        self._gate = gate
        self._ids: list[int] = []
        self._members: set[int] = set()
        self._lock = asyncio.Lock()
        self._listeners: list[FavoritesListener] = []
        self._loaded = False

    # --- Reads ---

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def snapshot(self) -> FavoritesSet:
        """Current favorites in insertion order."""
        return tuple(self._ids)

    def contains(self, favorite_id: int) -> bool:
        """O(1) membership test."""
        return favorite_id in self._members

    def __contains__(self, favorite_id: object) -> bool:
        return favorite_id in self._members

    def __len__(self) -> int:
        return len(self._ids)

    # --- Lifecycle ---

    async def load(self) -> FavoritesSet:
        """
        Load favorites from the durable store.

        Missing or corrupt data is not fatal: the manager starts empty and the
        problem is logged. Subscribers are not notified.
        """
        async with self._lock:
            try:
                ids = await self._store.load()
            except StorageError as e:
                logger.warning("Could not load favorites, starting empty: %s", e)
                ids = []

            self._set(ids)
            self._loaded = True
            logger.info("Loaded %d favorites", len(ids))
            return self.snapshot()

    # --- Mutations ---

    async def add(self, favorite_id: int) -> Outcome[None]:
        """
        Add an id to the favorites.

        Adding an id that is already present is a successful no-op.
        """
        validate_favorite_id(favorite_id)

        async with self._lock:
            try:
                self._require_online()
            except OfflineError as e:
                return Outcome.from_error(e)
            if favorite_id in self._members:
                return Outcome.success()

            updated = [*self._ids, favorite_id]
            return await self._commit(updated, self._store.save(updated), "add", favorite_id)

    async def remove(self, favorite_id: int) -> Outcome[None]:
        """
        Remove an id from the favorites.

        Removing an id that is not present is a successful no-op.
        """
        validate_favorite_id(favorite_id)

        async with self._lock:
            try:
                self._require_online()
            except OfflineError as e:
                return Outcome.from_error(e)
            if favorite_id not in self._members:
                return Outcome.success()

            updated = [existing for existing in self._ids if existing != favorite_id]
            return await self._commit(updated, self._store.save(updated), "remove", favorite_id)

    async def toggle(self, favorite_id: int) -> Outcome[bool]:
        """
        Flip membership of an id.

        Membership is decided against the state at the time the mutation is
        applied, not when it was requested.

        Returns:
            Outcome whose value is the new membership state
        """
        validate_favorite_id(favorite_id)

        async with self._lock:
            try:
                self._require_online()
            except OfflineError as e:
                return Outcome.from_error(e)

            if favorite_id in self._members:
                updated = [existing for existing in self._ids if existing != favorite_id]
                now_member = False
            else:
                updated = [*self._ids, favorite_id]
                now_member = True

            outcome = await self._commit(
                updated, self._store.save(updated), "toggle", favorite_id
            )
            if not outcome.ok:
                return outcome
            return Outcome.success(now_member)

    async def clear(self) -> Outcome[None]:
        """Remove every favorite and delete the persisted blob."""
        async with self._lock:
            try:
                self._require_online()
            except OfflineError as e:
                return Outcome.from_error(e)
            if not self._ids:
                return Outcome.success()

            return await self._commit([], self._store.clear(), "clear", None)

    # --- Subscriptions ---

    def subscribe(self, callback: FavoritesListener) -> Callable[[], None]:
        """
        Register a listener for committed changes.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    # --- Internals ---

    def _require_online(self) -> None:
        if self._gate is not None:
            self._gate.require_online()

    def _set(self, ids: list[int]) -> None:
        self._ids = list(ids)
        self._members = set(ids)

    async def _commit(
        self,
        updated: list[int],
        persist: Awaitable[None],
        action: str,
        favorite_id: int | None,
    ) -> Outcome[None]:
        """Persist first, then commit in memory and notify. Caller holds the lock."""
        try:
            await persist
        except StorageError as e:
            logger.warning("Favorites %s(%s) rolled back: %s", action, favorite_id, e)
            return Outcome.from_error(e)

        self._set(updated)
        logger.debug("Favorites %s(%s) committed, %d total", action, favorite_id, len(updated))
        self._notify()
        return Outcome.success()

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Favorites listener %r failed", listener)
