"""
Connectivity gate.

Holds the current online/offline snapshot and notifies listeners on
transitions. Manager mutations and reconciliation passes consult
`require_online()` before doing anything.

`ConnectivityMonitor` feeds the gate by probing a URL with httpx at a fixed
interval.
"""

import asyncio
import logging
from collections.abc import Callable

import httpx

from pokefaves.models.failure import OfflineError

logger = logging.getLogger(__name__)

ConnectivityListener = Callable[[bool], None]


class ConnectivityGate:
    """Online/offline predicate with change notifications."""

    def __init__(self, online: bool = True):
        self._online = online
        self._listeners: list[ConnectivityListener] = []

    def is_online(self) -> bool:
        """Current connectivity snapshot."""
        return self._online

    def require_online(self) -> None:
        """
        Guard for operations that need connectivity.

        Raises:
            OfflineError: If the gate reports offline
        """
        if not self._online:
            raise OfflineError()

    def set_online(self, online: bool) -> bool:
        """
        Record a connectivity report.

        Listeners are notified only when the state actually changes.

        Returns:
            True if this report was a transition
        """
        if online == self._online:
            return False

        self._online = online
        logger.info("Connectivity changed: %s", "online" if online else "offline")

        for listener in list(self._listeners):
            try:
                listener(online)
            except Exception:
                logger.exception("Connectivity listener %r failed", listener)

        return True

    def on_change(self, callback: ConnectivityListener) -> Callable[[], None]:
        """
        Register a transition listener.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe


class ConnectivityMonitor:
    """
    Polls a probe URL and reports the result to a ConnectivityGate.

    Any HTTP response counts as online, even an error status: the network is
    reachable. Transport failures count as offline.

    Every probe reuses one client. A client created here is closed by `stop`.
    """

    def __init__(
        self,
        gate: ConnectivityGate,
        probe_url: str,
        *,
        interval: float = 15.0,
        timeout: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.gate = gate
        self.probe_url = probe_url
        self.interval = interval
        self._timeout = timeout
        self._owns_client = client is None
        self._client = client
        self._task: asyncio.Task[None] | None = None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def probe(self) -> bool:
        """Check reachability once and update the gate."""
        try:
            await self._http().head(self.probe_url, timeout=self._timeout)
            online = True
        except httpx.RequestError as e:
            logger.debug("Connectivity probe to %s failed: %s", self.probe_url, e)
            online = False

        self.gate.set_online(online)
        return online

    async def _run(self) -> None:
        while True:
            await self.probe()
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        """Start background polling. No-op if already running."""
        if self._task is None or self._task.done():
            self._http()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop background polling and close the client if this monitor created it."""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()
