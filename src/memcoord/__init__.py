"""
memcoord: namespaced persistent memory cache.

Stores small JSON-serializable records per namespace with TTL expiration,
capacity eviction, size-gated compression, file persistence across restarts,
backup/restore, and an optional background sync loop.
"""

from memcoord.coordinator import MemoryCoordinator
from memcoord.exceptions import (
    BackupFormatError,
    CodecError,
    ConfigurationError,
    CorruptEntryError,
    MemoryCoordinatorError,
    SyncHookError,
    UnknownNamespaceError,
)
from memcoord.types import (
    DEFAULT_NAMESPACES,
    AutoSyncConfig,
    CompressionConfig,
    CoordinatorConfig,
    Entry,
    ExternalSyncConfig,
    MemoryStats,
    Namespace,
    NamespaceStats,
)

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_NAMESPACES",
    "AutoSyncConfig",
    "BackupFormatError",
    "CodecError",
    "CompressionConfig",
    "ConfigurationError",
    "CoordinatorConfig",
    "CorruptEntryError",
    "Entry",
    "ExternalSyncConfig",
    "MemoryCoordinator",
    "MemoryCoordinatorError",
    "MemoryStats",
    "Namespace",
    "NamespaceStats",
    "SyncHookError",
    "UnknownNamespaceError",
    "__version__",
]
