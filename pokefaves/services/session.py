"""
Favorites session.

One process-wide bundle of store, manager, detail cache, reconciler, and
connectivity gate. Every surface reaches the same instance through
`get_favorites_session` instead of loading favorites on its own.
"""

import logging
from functools import lru_cache

from pokefaves.config import Settings, settings
from pokefaves.db.store import KeyValueStore
from pokefaves.services.connectivity import ConnectivityGate, ConnectivityMonitor
from pokefaves.services.favorites_manager import FavoritesManager
from pokefaves.services.favorites_store import FavoritesStore
from pokefaves.services.pokeapi import DetailFetcher, PokeApiClient
from pokefaves.services.reconciler import (
    DEFAULT_BATCH_DELAY,
    DEFAULT_BATCH_SIZE,
    BatchReconciler,
)

logger = logging.getLogger(__name__)


class FavoritesSession:
    """Wires the favorites subsystem together and manages its lifecycle."""

    def __init__(
        self,
        backend: KeyValueStore,
        fetcher: DetailFetcher,
        *,
        gate: ConnectivityGate | None = None,
        monitor: ConnectivityMonitor | None = None,
        favorites_key: str = "favorites",
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay: float = DEFAULT_BATCH_DELAY,
    ):
        self.gate = gate if gate is not None else ConnectivityGate()
        self.store = FavoritesStore(backend, key=favorites_key)
        self.favorites = FavoritesManager(self.store, self.gate)
        self.reconciler = BatchReconciler(
            self.favorites,
            fetcher,
            gate=self.gate,
            batch_size=batch_size,
            batch_delay=batch_delay,
        )
        self.fetcher = fetcher
        self.monitor = monitor
        self._started = False

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "FavoritesSession":
        """Build a session backed by the configured database and PokéAPI."""
        from pokefaves.db.database import favorites_backend

        gate = ConnectivityGate()
        return cls(
            favorites_backend(),
            PokeApiClient(config.pokeapi_base_url, timeout=config.fetch_timeout_seconds),
            gate=gate,
            monitor=ConnectivityMonitor(
                gate,
                config.connectivity_probe_url,
                interval=config.connectivity_poll_seconds,
            ),
            favorites_key=config.favorites_key,
            batch_size=config.batch_size,
            batch_delay=config.batch_delay_seconds,
        )

    @property
    def started(self) -> bool:
        return self._started

    async def start(self, *, reconcile: bool = True) -> None:
        """
        Load favorites and begin following changes.

        Args:
            reconcile: Schedule an initial detail pass for loaded favorites
        """
        if self._started:
            return

        await self.favorites.load()
        self.reconciler.attach()

        if self.monitor is not None:
            await self.monitor.probe()
            self.monitor.start()

        self._started = True
        logger.info("Favorites session started with %d favorites", len(self.favorites))

        if reconcile and len(self.favorites) > 0:
            self.reconciler.schedule()

    async def close(self) -> None:
        """Stop following changes and wait for outstanding passes."""
        if not self._started:
            return

        self.reconciler.detach()
        if self.monitor is not None:
            await self.monitor.stop()
        await self.reconciler.wait_idle()

        aclose = getattr(self.fetcher, "aclose", None)
        if aclose is not None:
            await aclose()

        self._started = False
        logger.info("Favorites session closed")


@lru_cache(maxsize=1)
def get_favorites_session() -> FavoritesSession:
    """
    Get the process-wide favorites session.

    Created on first use. Callers must `start()` it before mutating favorites.
    """
    return FavoritesSession.from_settings()
