"""
Core types for the memory coordinator.

This module defines the fundamental data structures used throughout the package:
- Namespace policy (frozen) and the default namespace set
- Entry, the unit of storage, with its on-disk dict form
- Statistics snapshots (NamespaceStats, MemoryStats)
- Coordinator configuration dataclasses
- Helper for timezone-aware timestamps
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable

from memcoord.exceptions import ConfigurationError, CorruptEntryError

if TYPE_CHECKING:
    from memcoord.config import Settings

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Get current UTC time with timezone info."""
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Any) -> datetime:
    if not isinstance(value, str):
        raise TypeError(f"expected ISO timestamp string, got {type(value).__name__}")
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class Namespace:
    """A named partition of the cache with its own retention policy.

    Namespaces are fixed when the coordinator is built and never change
    while it runs.
    """

    name: str
    key_prefix: str = ""  # Label for external systems only
    ttl_seconds: int | None = None  # None or 0 = never expires by time
    max_entries: int | None = None
    compression_enabled: bool = True  # Policy label; the global threshold decides

    def __post_init__(self) -> None:
        if not self.name:
            raise ConfigurationError("Namespace name must not be empty")
        if any(sep in self.name for sep in (":", "/", "\\")):
            raise ConfigurationError(
                "Namespace name must not contain ':' or path separators",
                context={"namespace": self.name},
            )
        if self.max_entries is not None and self.max_entries < 1:
            raise ConfigurationError(
                "max_entries must be at least 1",
                context={"namespace": self.name, "max_entries": self.max_entries},
            )
        if self.ttl_seconds is not None and self.ttl_seconds < 0:
            raise ConfigurationError(
                "ttl_seconds must not be negative",
                context={"namespace": self.name, "ttl_seconds": self.ttl_seconds},
            )


def _default_namespace(name: str, **kwargs: Any) -> Namespace:
    return Namespace(name=name, key_prefix=f"portfolio-cognitive-command/{name}/", **kwargs)


DEFAULT_NAMESPACES: tuple[Namespace, ...] = (
    _default_namespace("session", ttl_seconds=86_400),
    _default_namespace("analysis", ttl_seconds=604_800),
    _default_namespace("goap", ttl_seconds=86_400, compression_enabled=False),
    _default_namespace("swarm", ttl_seconds=3_600, compression_enabled=False),
    _default_namespace("insights", ttl_seconds=14_400),
    _default_namespace("patterns", max_entries=1_000),
)


@dataclass(frozen=True)
class Entry:
    """One stored record.

    ``value`` holds the serialized payload, base64-encoded gzip when
    ``compressed`` is set. ``size`` is the UTF-8 byte length of ``value``.
    """

    key: str
    namespace: str
    value: str
    created_at: datetime
    updated_at: datetime
    expires_at: datetime | None
    size: int
    compressed: bool

    @property
    def full_key(self) -> str:
        """Export key in ``namespace:key`` form."""
        return f"{self.namespace}:{self.key}"

    def is_expired(self, now: datetime) -> bool:
        """Check whether the entry has reached its expiry time."""
        return self.expires_at is not None and now >= self.expires_at

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the on-disk record."""
        return {
            "key": self.key,
            "namespace": self.namespace,
            "value": self.value,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "size": self.size,
            "compressed": self.compressed,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Entry:
        """Build an entry from its on-disk record.

        Raises:
            CorruptEntryError: If a field is missing or has the wrong type.
        """
        try:
            if not isinstance(data, dict):
                raise TypeError(f"expected object, got {type(data).__name__}")
            key = data["key"]
            namespace = data["namespace"]
            value = data["value"]
            size = data["size"]
            compressed = data["compressed"]
            if not isinstance(key, str) or not isinstance(namespace, str):
                raise TypeError("key and namespace must be strings")
            if not isinstance(value, str):
                raise TypeError("value must be a string")
            if not isinstance(size, int) or not isinstance(compressed, bool):
                raise TypeError("size must be an int and compressed a bool")
            expires_raw = data.get("expires_at")
            return cls(
                key=key,
                namespace=namespace,
                value=value,
                created_at=_parse_timestamp(data["created_at"]),
                updated_at=_parse_timestamp(data["updated_at"]),
                expires_at=_parse_timestamp(expires_raw) if expires_raw else None,
                size=size,
                compressed=compressed,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise CorruptEntryError(
                "Malformed entry record", context={"error": str(e)}
            ) from e


@dataclass(frozen=True)
class NamespaceStats:
    """Entry count and stored bytes for one namespace."""

    entries: int = 0
    size: int = 0


@dataclass(frozen=True)
class MemoryStats:
    """Snapshot of aggregate cache statistics."""

    total_entries: int = 0
    total_size: int = 0
    by_namespace: dict[str, NamespaceStats] = field(default_factory=dict)
    hits: int = 0
    misses: int = 0
    last_sync: datetime | None = None
    sync_errors: int = 0

    @property
    def cache_hit_rate(self) -> float:
        """Fraction of retrieve calls that returned a value."""
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0

    def with_sync_state(self, last_sync: datetime | None, sync_errors: int) -> MemoryStats:
        """Copy of these stats carrying the scheduler's sync bookkeeping."""
        return replace(self, last_sync=last_sync, sync_errors=sync_errors)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-ready dict."""
        return {
            "total_entries": self.total_entries,
            "total_size": self.total_size,
            "by_namespace": {
                name: {"entries": ns.entries, "size": ns.size}
                for name, ns in self.by_namespace.items()
            },
            "hits": self.hits,
            "misses": self.misses,
            "cache_hit_rate": self.cache_hit_rate,
            "last_sync": self.last_sync.isoformat() if self.last_sync else None,
            "sync_errors": self.sync_errors,
        }


@dataclass(frozen=True)
class AutoSyncConfig:
    """Background sync loop settings."""

    enabled: bool = True
    interval_ms: int = 30_000


@dataclass(frozen=True)
class CompressionConfig:
    """Payload compression settings."""

    enabled: bool = True
    threshold_bytes: int = 1024


@dataclass(frozen=True)
class ExternalSyncConfig:
    """Toggle and label for the external synchronization target."""

    enabled: bool = True
    target: str = "default"


@dataclass(frozen=True)
class CoordinatorConfig:
    """Process-wide coordinator configuration."""

    namespaces: tuple[Namespace, ...] = DEFAULT_NAMESPACES
    auto_sync: AutoSyncConfig = field(default_factory=AutoSyncConfig)
    compression: CompressionConfig = field(default_factory=CompressionConfig)
    external_sync: ExternalSyncConfig = field(default_factory=ExternalSyncConfig)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        namespaces: tuple[Namespace, ...] | None = None,
    ) -> CoordinatorConfig:
        """Build a config from environment-driven settings."""
        return cls(
            namespaces=namespaces if namespaces is not None else DEFAULT_NAMESPACES,
            auto_sync=AutoSyncConfig(
                enabled=settings.AUTO_SYNC_ENABLED,
                interval_ms=settings.AUTO_SYNC_INTERVAL_MS,
            ),
            compression=CompressionConfig(
                enabled=settings.COMPRESSION_ENABLED,
                threshold_bytes=settings.COMPRESSION_THRESHOLD_BYTES,
            ),
            external_sync=ExternalSyncConfig(
                enabled=settings.EXTERNAL_SYNC_ENABLED,
                target=settings.EXTERNAL_SYNC_TARGET,
            ),
        )
