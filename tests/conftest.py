"""
Pytest configuration and fixtures for memory coordinator tests.
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Generator
from unittest.mock import patch

import pytest

from memcoord.codec import PayloadCodec
from memcoord.config import Settings, clear_settings_cache
from memcoord.coordinator import MemoryCoordinator
from memcoord.registry import NamespaceRegistry
from memcoord.store import EntryStore
from memcoord.types import AutoSyncConfig, CoordinatorConfig, Namespace

TEST_NAMESPACES: tuple[Namespace, ...] = (
    Namespace("session", key_prefix="test/session/", ttl_seconds=86_400),
    Namespace("patterns", key_prefix="test/patterns/", max_entries=2),
    Namespace("plain", key_prefix="test/plain/", compression_enabled=False),
    Namespace("docs", key_prefix="test/docs/"),
)


class FakeClock:
    """Controllable clock for TTL tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test outputs."""
    return tmp_path


@pytest.fixture
def clock() -> FakeClock:
    """Provide a fake clock starting at a fixed instant."""
    return FakeClock()


@pytest.fixture
def registry() -> NamespaceRegistry:
    """Registry over the test namespaces."""
    return NamespaceRegistry(TEST_NAMESPACES)


@pytest.fixture
def entry_store(temp_dir: Path, registry: NamespaceRegistry, clock: FakeClock) -> EntryStore:
    """Create an entry store with a 1 KiB compression threshold."""
    return EntryStore(
        temp_dir / "memory",
        registry,
        PayloadCodec(enabled=True, threshold_bytes=1024),
        clock=clock,
    )


@pytest.fixture
def coordinator_config() -> CoordinatorConfig:
    """Coordinator config over the test namespaces with a fast sync interval."""
    return CoordinatorConfig(
        namespaces=TEST_NAMESPACES,
        auto_sync=AutoSyncConfig(enabled=True, interval_ms=10),
    )


@pytest.fixture
async def coordinator(
    temp_dir: Path, coordinator_config: CoordinatorConfig, clock: FakeClock
) -> MemoryCoordinator:
    """Create a coordinator and stop its sync loop afterwards."""
    coord = MemoryCoordinator(temp_dir / "memory", coordinator_config, clock=clock)
    yield coord
    await coord.close()


@pytest.fixture
def mock_env_vars(temp_dir: Path) -> Generator[dict[str, str], None, None]:
    """Provide mock environment variables for testing."""
    env_vars = {
        "MEMORY_BASE_PATH": str(temp_dir / "env_memory"),
        "AUTO_SYNC_ENABLED": "false",
        "AUTO_SYNC_INTERVAL_MS": "5000",
        "COMPRESSION_ENABLED": "true",
        "COMPRESSION_THRESHOLD_BYTES": "256",
        "EXTERNAL_SYNC_ENABLED": "true",
        "EXTERNAL_SYNC_TARGET": "test-target",
        "LOG_LEVEL": "DEBUG",
    }

    with patch.dict(os.environ, env_vars, clear=False):
        clear_settings_cache()
        yield env_vars


@pytest.fixture
def mock_settings(mock_env_vars: dict[str, str]) -> Generator[Settings, None, None]:
    """Provide a Settings instance with mock configuration."""
    clear_settings_cache()
    from memcoord.config import get_settings

    settings = get_settings()
    yield settings
    clear_settings_cache()


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Automatically reset settings cache before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()
