"""Tests for the favorites set manager."""

import asyncio
import json

import pytest
from conftest import FlakyStore

from pokefaves.models.failure import FailureKind, OfflineError
from pokefaves.services.connectivity import ConnectivityGate
from pokefaves.services.favorites_manager import FavoritesManager
from pokefaves.services.favorites_store import FavoritesStore


def persisted(backend: FlakyStore) -> list[int] | None:
    blob = backend.data.get("favorites")
    return None if blob is None else json.loads(blob)


async def restart(backend: FlakyStore) -> FavoritesManager:
    """Simulate a process restart against the same durable state."""
    manager = FavoritesManager(FavoritesStore(backend, key="favorites"), ConnectivityGate())
    await manager.load()
    return manager


class TestLoad:
    async def test_load_empty_store(self, manager: FavoritesManager) -> None:
        """Missing data loads as an empty set."""
        assert manager.snapshot() == ()
        assert manager.is_loaded is True

    async def test_load_existing(self, gate: ConnectivityGate) -> None:
        """Persisted ids load in stored order."""
        backend = FlakyStore({"favorites": b"[25,1,7]"})
        manager = FavoritesManager(FavoritesStore(backend), gate)

        loaded = await manager.load()

        assert loaded == (25, 1, 7)
        assert manager.contains(25)

    async def test_load_corrupt_degrades_to_empty(self, gate: ConnectivityGate) -> None:
        """Corrupt data is not fatal."""
        backend = FlakyStore({"favorites": b"{not json"})
        manager = FavoritesManager(FavoritesStore(backend), gate)

        loaded = await manager.load()

        assert loaded == ()

    async def test_load_read_failure_degrades_to_empty(self, gate: ConnectivityGate) -> None:
        """An unreadable store does not raise."""
        backend = FlakyStore({"favorites": b"[1]"})
        backend.fail_reads = True
        manager = FavoritesManager(FavoritesStore(backend), gate)

        assert await manager.load() == ()


class TestAddRemove:
    async def test_add_persists(self, manager: FavoritesManager, backend: FlakyStore) -> None:
        """Adding writes the full set."""
        outcome = await manager.add(25)

        assert outcome.ok
        assert manager.contains(25)
        assert persisted(backend) == [25]

    async def test_add_is_idempotent(self, manager: FavoritesManager, backend: FlakyStore) -> None:
        """Adding twice equals adding once, without a second write."""
        await manager.add(25)
        outcome = await manager.add(25)

        assert outcome.ok
        assert manager.snapshot() == (25,)
        assert len(backend.writes) == 1

    async def test_remove_absent_is_noop(
        self, manager: FavoritesManager, backend: FlakyStore
    ) -> None:
        """Removing an id that is not a favorite succeeds without writing."""
        outcome = await manager.remove(99)

        assert outcome.ok
        assert backend.writes == []

    async def test_remove_persists(self, manager: FavoritesManager, backend: FlakyStore) -> None:
        await manager.add(1)
        await manager.add(4)

        outcome = await manager.remove(1)

        assert outcome.ok
        assert manager.snapshot() == (4,)
        assert persisted(backend) == [4]

    async def test_insertion_order_preserved(self, manager: FavoritesManager) -> None:
        for favorite_id in (7, 1, 4):
            await manager.add(favorite_id)

        assert manager.snapshot() == (7, 1, 4)

    @pytest.mark.parametrize("bad_id", [0, -3, True])
    async def test_invalid_id_rejected(self, manager: FavoritesManager, bad_id: int) -> None:
        """Non-positive ids and bools are programming errors."""
        with pytest.raises(ValueError, match="positive integer"):
            await manager.add(bad_id)


class TestToggle:
    async def test_toggle_adds_then_removes(self, manager: FavoritesManager) -> None:
        first = await manager.toggle(5)
        second = await manager.toggle(5)

        assert first.ok and first.value is True
        assert second.ok and second.value is False
        assert manager.snapshot() == ()

    async def test_concurrent_toggles_of_different_ids_merge(
        self, manager: FavoritesManager, backend: FlakyStore
    ) -> None:
        """Two screens toggling different ids never lose each other's change."""
        backend.hold_writes()
        first = asyncio.create_task(manager.toggle(1))
        second = asyncio.create_task(manager.toggle(2))
        await asyncio.sleep(0)
        backend.release_writes()

        results = await asyncio.gather(first, second)

        assert [r.value for r in results] == [True, True]
        assert manager.snapshot() == (1, 2)
        assert persisted(backend) == [1, 2]

    async def test_mutations_apply_in_call_order(self, manager: FavoritesManager) -> None:
        """Toggle, toggle, add on one id resolves against each previous result."""
        results = await asyncio.gather(manager.toggle(3), manager.toggle(3), manager.add(3))

        assert results[0].value is True
        assert results[1].value is False
        assert results[2].ok
        assert manager.snapshot() == (3,)


class TestClear:
    async def test_clear_deletes_blob(self, manager: FavoritesManager, backend: FlakyStore) -> None:
        await manager.add(1)
        await manager.add(2)

        outcome = await manager.clear()

        assert outcome.ok
        assert manager.snapshot() == ()
        assert "favorites" not in backend.data

    async def test_clear_empty_is_noop(
        self, manager: FavoritesManager, backend: FlakyStore
    ) -> None:
        outcome = await manager.clear()

        assert outcome.ok
        assert backend.deletes == []


class TestRollback:
    async def test_failed_add_leaves_set_unchanged(
        self, manager: FavoritesManager, backend: FlakyStore
    ) -> None:
        """A rejected write is reported and rolled back."""
        await manager.add(1)
        backend.fail_writes = True

        outcome = await manager.add(2)

        assert not outcome.ok
        assert outcome.kind is FailureKind.STORAGE_ERROR
        assert manager.snapshot() == (1,)
        assert persisted(backend) == [1]

    async def test_failed_toggle_reports_storage_error(
        self, manager: FavoritesManager, backend: FlakyStore
    ) -> None:
        await manager.add(1)
        backend.fail_writes = True

        outcome = await manager.toggle(1)

        assert outcome.is_storage_error
        assert outcome.value is None
        assert manager.contains(1)

    async def test_failed_clear_keeps_favorites(
        self, manager: FavoritesManager, backend: FlakyStore
    ) -> None:
        await manager.add(1)
        backend.fail_writes = True

        outcome = await manager.clear()

        assert outcome.is_storage_error
        assert manager.snapshot() == (1,)


class TestRoundTrip:
    async def test_restart_sees_last_persisted_state(
        self, manager: FavoritesManager, backend: FlakyStore
    ) -> None:
        """A rebuilt manager loads exactly the last successful state."""
        await manager.add(1)
        await manager.add(4)
        await manager.toggle(7)
        await manager.remove(1)
        backend.fail_writes = True
        await manager.add(99)
        backend.fail_writes = False

        reloaded = await restart(backend)

        assert reloaded.snapshot() == (4, 7)
        assert reloaded.snapshot() == manager.snapshot()

    async def test_restart_after_clear(
        self, manager: FavoritesManager, backend: FlakyStore
    ) -> None:
        await manager.add(1)
        await manager.clear()

        reloaded = await restart(backend)

        assert reloaded.snapshot() == ()


class TestSubscriptions:
    async def test_subscriber_receives_snapshot(self, manager: FavoritesManager) -> None:
        seen: list[tuple[int, ...]] = []
        manager.subscribe(seen.append)

        await manager.add(1)
        await manager.add(2)
        await manager.remove(1)

        assert seen == [(1,), (1, 2), (2,)]

    async def test_no_notification_on_failure_or_noop(
        self, manager: FavoritesManager, backend: FlakyStore
    ) -> None:
        seen: list[tuple[int, ...]] = []
        manager.subscribe(seen.append)
        await manager.remove(42)
        backend.fail_writes = True

        await manager.add(1)

        assert seen == []

    async def test_unsubscribe(self, manager: FavoritesManager) -> None:
        seen: list[tuple[int, ...]] = []
        unsubscribe = manager.subscribe(seen.append)
        unsubscribe()

        await manager.add(1)

        assert seen == []

    async def test_failing_subscriber_does_not_break_mutation(
        self, manager: FavoritesManager
    ) -> None:
        seen: list[tuple[int, ...]] = []

        def broken(_snapshot: tuple[int, ...]) -> None:
            raise RuntimeError("listener bug")

        manager.subscribe(broken)
        manager.subscribe(seen.append)

        outcome = await manager.add(1)

        assert outcome.ok
        assert seen == [(1,)]


class TestOffline:
    async def test_offline_toggle_then_online(
        self, manager: FavoritesManager, gate: ConnectivityGate, backend: FlakyStore
    ) -> None:
        """Offline toggles fail with the distinguished kind and succeed after reconnect."""
        gate.set_online(False)

        offline = await manager.toggle(5)

        assert not offline.ok
        assert offline.is_offline
        assert manager.snapshot() == ()
        assert backend.writes == []

        gate.set_online(True)
        online = await manager.toggle(5)

        assert online.ok
        assert online.value is True
        assert manager.contains(5)

    async def test_offline_blocks_every_mutation(
        self, manager: FavoritesManager, gate: ConnectivityGate
    ) -> None:
        await manager.add(1)
        gate.set_online(False)

        outcomes = [await manager.add(2), await manager.remove(1), await manager.clear()]

        assert all(o.kind is FailureKind.OFFLINE for o in outcomes)
        assert manager.snapshot() == (1,)

    async def test_offline_outcome_carries_gate_error(
        self, manager: FavoritesManager, gate: ConnectivityGate
    ) -> None:
        """The gate's OfflineError is converted, never raised, by a mutation."""
        gate.set_online(False)

        outcome = await manager.add(3)

        assert outcome.failure is not None
        assert outcome.failure.detail == OfflineError().message
        assert outcome.failure.suggestion

    async def test_manager_without_gate_is_always_online(self, store: FavoritesStore) -> None:
        manager = FavoritesManager(store)
        await manager.load()

        assert (await manager.add(1)).ok


class TestConcurrentDuplicateAdd:
    async def test_double_add_while_write_in_flight(
        self, manager: FavoritesManager, backend: FlakyStore
    ) -> None:
        """A second add(9) issued before the first write lands stays a single entry."""
        backend.hold_writes()
        first = asyncio.create_task(manager.add(9))
        await asyncio.sleep(0)
        second = asyncio.create_task(manager.add(9))
        await asyncio.sleep(0)
        backend.release_writes()

        results = await asyncio.gather(first, second)

        assert all(r.ok for r in results)
        assert persisted(backend) == [9]
        assert len(backend.writes) == 1
        assert manager.snapshot() == (9,)
