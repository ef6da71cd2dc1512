"""
MemoryCoordinator: the public facade over the entry store and sync scheduler.

Collaborators get a coordinator instance passed in; nothing in the library
reaches for a global one (see factory.py for top-level wiring).
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from memcoord import backup as backup_ops
from memcoord.codec import PayloadCodec
from memcoord.logging import get_logger
from memcoord.registry import NamespaceRegistry
from memcoord.store import EntryStore
from memcoord.sync import SyncHook, SyncScheduler, noop_sync_hook
from memcoord.types import Clock, CoordinatorConfig, Entry, MemoryStats, utc_now

logger = get_logger(__name__)


class MemoryCoordinator:
    """Namespaced persistent memory cache with optional background sync.

    Construction creates the namespace directories and loads persisted
    entries. Auto-sync needs a running event loop, so it is started
    explicitly with start_auto_sync() and stopped with stop_auto_sync()
    or close().
    """

    def __init__(
        self,
        base_path: str | Path = "./memory",
        config: CoordinatorConfig | None = None,
        *,
        sync_hook: SyncHook | None = None,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize the coordinator.

        Args:
            base_path: Root directory for persisted entries.
            config: Coordinator configuration. Defaults to CoordinatorConfig().
            sync_hook: External synchronization hook. Defaults to a no-op.
            clock: Source of the current time.
        """
        self.config = config or CoordinatorConfig()
        self.registry = NamespaceRegistry(self.config.namespaces)
        self.codec = PayloadCodec(
            enabled=self.config.compression.enabled,
            threshold_bytes=self.config.compression.threshold_bytes,
        )
        self.entries = EntryStore(base_path, self.registry, self.codec, clock=clock)
        self.scheduler = SyncScheduler(
            interval_seconds=self.config.auto_sync.interval_ms / 1000,
            hook=sync_hook or noop_sync_hook,
            enabled=self.config.external_sync.enabled,
            target=self.config.external_sync.target,
            clock=clock,
        )

    @property
    def base_path(self) -> Path:
        """Resolved root directory."""
        return self.entries.base_path

    # Entry operations

    async def store(
        self,
        namespace: str,
        key: str,
        value: Any,
        ttl_override_seconds: int | None = None,
    ) -> None:
        """Store a value. See EntryStore.store."""
        await self.entries.store(namespace, key, value, ttl_override_seconds)

    async def retrieve(self, namespace: str, key: str) -> Any | None:
        """Retrieve a value, or None if absent or expired."""
        return await self.entries.retrieve(namespace, key)

    async def delete(self, namespace: str, key: str) -> bool:
        """Delete a value. Returns True if something was removed."""
        return await self.entries.delete(namespace, key)

    async def list(self, namespace: str) -> list[str]:
        """List non-expired keys in a namespace."""
        return await self.entries.list(namespace)

    async def search(self, namespace: str, pattern: str) -> list[Entry]:
        """Find non-expired entries whose key matches a regex."""
        return await self.entries.search(namespace, pattern)

    async def clear_namespace(self, namespace: str) -> int:
        """Remove every entry of a namespace."""
        return await self.entries.clear_namespace(namespace)

    async def cleanup(self) -> int:
        """Remove expired entries across all namespaces."""
        return await self.entries.cleanup()

    async def export_all(self) -> dict[str, Any]:
        """Export decoded values keyed ``namespace:key``."""
        return await self.entries.export_all()

    async def import_all(self, data: Mapping[str, Any]) -> int:
        """Import ``namespace:key`` values, skipping unknown namespaces."""
        return await self.entries.import_all(data)

    # Backup

    async def backup(self, path: str | Path) -> Path:
        """Write a full backup file."""
        return await backup_ops.backup(self.entries, path, stats=self.get_stats())

    async def restore(self, path: str | Path) -> int:
        """Restore from a backup file. Returns the number of entries restored."""
        return await backup_ops.restore(self.entries, path)

    # Statistics

    def get_stats(self) -> MemoryStats:
        """Aggregate statistics including sync bookkeeping."""
        return self.entries.get_stats().with_sync_state(
            last_sync=self.scheduler.last_sync,
            sync_errors=self.scheduler.sync_errors,
        )

    # Sync lifecycle

    def start_auto_sync(self) -> bool:
        """Start the background sync loop if auto-sync is enabled.

        Returns:
            True if the loop is running after the call.
        """
        if not self.config.auto_sync.enabled:
            logger.debug("Auto-sync disabled, not starting")
            return False
        self.scheduler.start()
        return True

    async def stop_auto_sync(self) -> None:
        """Stop the background sync loop. No tick runs after this returns."""
        await self.scheduler.stop()

    async def sync(self) -> bool:
        """Run one sync tick now. Returns True on success."""
        return await self.scheduler.run_once()

    async def close(self) -> None:
        """Tear down background work."""
        await self.stop_auto_sync()
