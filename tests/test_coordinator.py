"""
Tests for the MemoryCoordinator facade.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from memcoord import DEFAULT_NAMESPACES, MemoryCoordinator, UnknownNamespaceError
from memcoord.types import (
    AutoSyncConfig,
    CompressionConfig,
    CoordinatorConfig,
    ExternalSyncConfig,
)

from .conftest import TEST_NAMESPACES, FakeClock


class TestFacade:
    """Test delegated cache operations."""

    @pytest.mark.asyncio
    async def test_operations_delegate(self, coordinator: MemoryCoordinator) -> None:
        """The facade exposes the full cache API."""
        await coordinator.store("session", "s1", {"msg": "hi"})
        await coordinator.store("docs", "d1", 1)

        assert await coordinator.retrieve("session", "s1") == {"msg": "hi"}
        assert await coordinator.list("docs") == ["d1"]
        assert [e.key for e in await coordinator.search("docs", "d")] == ["d1"]
        assert await coordinator.export_all() == {"session:s1": {"msg": "hi"}, "docs:d1": 1}
        assert await coordinator.delete("docs", "d1") is True
        assert await coordinator.clear_namespace("session") == 1
        assert await coordinator.cleanup() == 0
        assert await coordinator.import_all({"docs:x": 2}) == 1

    @pytest.mark.asyncio
    async def test_unknown_namespace(self, coordinator: MemoryCoordinator) -> None:
        """Unknown namespaces fail on store only."""
        with pytest.raises(UnknownNamespaceError):
            await coordinator.store("nope", "k", 1)

        assert coordinator.get_stats().total_entries == 0
        assert await coordinator.retrieve("nope", "k") is None

    def test_default_config(self, temp_dir: Path) -> None:
        """Without a config the default namespaces are used."""
        coord = MemoryCoordinator(temp_dir / "memory")

        assert coord.registry.names() == [ns.name for ns in DEFAULT_NAMESPACES]
        assert coord.base_path == (temp_dir / "memory").resolve()
        assert (coord.base_path / "coordinator" / "patterns").is_dir()
        assert coord.scheduler.interval_seconds == 30.0

    @pytest.mark.asyncio
    async def test_restart_through_facade(
        self, coordinator: MemoryCoordinator, coordinator_config: CoordinatorConfig,
        clock: FakeClock,
    ) -> None:
        """A second coordinator on the same path sees persisted values."""
        await coordinator.store("docs", "k", {"v": 1})

        second = MemoryCoordinator(coordinator.base_path, coordinator_config, clock=clock)

        assert await second.retrieve("docs", "k") == {"v": 1}

    @pytest.mark.asyncio
    async def test_compression_threshold_from_config(
        self, temp_dir: Path, clock: FakeClock
    ) -> None:
        """The global compression settings reach the store."""
        config = CoordinatorConfig(
            namespaces=TEST_NAMESPACES,
            compression=CompressionConfig(enabled=False, threshold_bytes=0),
        )
        coord = MemoryCoordinator(temp_dir / "memory", config, clock=clock)

        await coord.store("docs", "big", "a" * 5000)

        entry = await coord.entries.get_entry("docs", "big")
        assert entry is not None
        assert entry.compressed is False


class TestSync:
    """Test sync wiring and stats."""

    @pytest.mark.asyncio
    async def test_stats_include_sync_state(self, temp_dir: Path, clock: FakeClock) -> None:
        """Sync successes and failures show up in get_stats()."""
        outcomes = [None, RuntimeError("down")]

        async def hook() -> None:
            outcome = outcomes.pop(0)
            if outcome:
                raise outcome

        coord = MemoryCoordinator(
            temp_dir / "memory",
            CoordinatorConfig(namespaces=TEST_NAMESPACES),
            sync_hook=hook,
            clock=clock,
        )

        assert await coord.sync() is True
        assert await coord.sync() is False

        stats = coord.get_stats()
        assert stats.last_sync == clock.now
        assert stats.sync_errors == 1
        assert stats.to_dict()["sync_errors"] == 1

    @pytest.mark.asyncio
    async def test_auto_sync_runs_and_stops(self, temp_dir: Path) -> None:
        """start_auto_sync() ticks until close()."""
        calls: list[int] = []

        async def hook() -> None:
            calls.append(1)

        coord = MemoryCoordinator(
            temp_dir / "memory",
            CoordinatorConfig(
                namespaces=TEST_NAMESPACES,
                auto_sync=AutoSyncConfig(enabled=True, interval_ms=10),
            ),
            sync_hook=hook,
        )

        assert coord.start_auto_sync() is True
        await asyncio.wait_for(self._until(lambda: len(calls) >= 2), 2.0)
        await coord.close()
        seen = len(calls)
        await asyncio.sleep(0.05)

        assert len(calls) == seen
        assert not coord.scheduler.is_running

    @pytest.mark.asyncio
    async def test_auto_sync_disabled(self, temp_dir: Path) -> None:
        """With auto-sync off, start_auto_sync() does nothing."""
        coord = MemoryCoordinator(
            temp_dir / "memory",
            CoordinatorConfig(
                namespaces=TEST_NAMESPACES,
                auto_sync=AutoSyncConfig(enabled=False),
            ),
        )

        assert coord.start_auto_sync() is False
        assert not coord.scheduler.is_running

    @pytest.mark.asyncio
    async def test_external_sync_disabled(self, temp_dir: Path) -> None:
        """With external sync off, manual syncs skip the hook."""
        calls: list[int] = []
        coord = MemoryCoordinator(
            temp_dir / "memory",
            CoordinatorConfig(
                namespaces=TEST_NAMESPACES,
                external_sync=ExternalSyncConfig(enabled=False),
            ),
            sync_hook=lambda: calls.append(1),
        )

        assert await coord.sync() is False
        assert calls == []
        assert coord.get_stats().last_sync is None

    @staticmethod
    async def _until(predicate) -> None:
        while not predicate():
            await asyncio.sleep(0.005)
