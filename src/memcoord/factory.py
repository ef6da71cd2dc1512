"""
Top-level wiring for the process-wide default coordinator.

Only application entry points should use get_default_coordinator(); library
code takes a MemoryCoordinator as a parameter.
"""

from __future__ import annotations

from typing import Any

from memcoord.config import Settings, get_settings
from memcoord.coordinator import MemoryCoordinator
from memcoord.logging import setup_logging
from memcoord.types import CoordinatorConfig

_default_coordinator: MemoryCoordinator | None = None


def create_coordinator(settings: Settings | None = None, **kwargs: Any) -> MemoryCoordinator:
    """Create a new coordinator from settings.

    Args:
        settings: Settings to use. Defaults to get_settings().
        **kwargs: Passed to MemoryCoordinator (sync_hook, clock).

    Returns:
        A fresh MemoryCoordinator.
    """
    settings = settings or get_settings()
    config = CoordinatorConfig.from_settings(settings)
    return MemoryCoordinator(settings.MEMORY_BASE_PATH, config, **kwargs)


def get_default_coordinator() -> MemoryCoordinator:
    """Get or create the default coordinator.

    The first call also configures logging from settings.
    """
    global _default_coordinator
    if _default_coordinator is None:
        settings = get_settings()
        setup_logging(log_level=settings.LOG_LEVEL, log_file=settings.LOG_FILE)
        _default_coordinator = create_coordinator(settings)
    return _default_coordinator


async def reset_default_coordinator() -> None:
    """Stop and forget the default coordinator (useful for testing)."""
    global _default_coordinator
    if _default_coordinator is not None:
        await _default_coordinator.close()
        _default_coordinator = None
