"""
Entry store: the namespaced in-memory index mirrored to one JSON file per entry.

Layout on disk:
    <base_path>/coordinator/<namespace>/<sanitized-key>-<key-hash>.json

The readable part of the file name is the key with every character outside
``[A-Za-z0-9_-]`` replaced by ``_``. That mapping is lossy, so a hash of the
full key is appended to keep distinct keys in distinct files. The original key
is stored inside the record.
"""

from __future__ import annotations

import hashlib
import os
import re
from dataclasses import replace
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Iterator, Mapping

import orjson

from memcoord.codec import PayloadCodec
from memcoord.exceptions import CodecError, CorruptEntryError
from memcoord.logging import get_logger, log_context
from memcoord.registry import NamespaceRegistry
from memcoord.store.eviction import expired_keys, select_evictions
from memcoord.types import Clock, Entry, MemoryStats, NamespaceStats, utc_now

logger = get_logger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]")
_READABLE_NAME_LIMIT = 64


def sanitize_key(key: str) -> str:
    """Replace every character outside [A-Za-z0-9_-] with '_'."""
    return _UNSAFE_CHARS.sub("_", key)


def entry_filename(key: str) -> str:
    """Deterministic, collision-free file name for a key."""
    digest = hashlib.sha256(key.encode("utf-8", "surrogatepass")).hexdigest()[:16]
    return f"{sanitize_key(key)[:_READABLE_NAME_LIMIT]}-{digest}.json"


class EntryStore:
    """Namespaced key-value cache with write-through file persistence.

    Expired entries are dropped lazily on retrieve and at load time, or in
    bulk by cleanup(). Capped namespaces evict their oldest entries right
    after a store. Aggregate statistics are recomputed from the index after
    every mutation.

    Single-writer: callers must not mutate the same store concurrently from
    several threads.
    """

    def __init__(
        self,
        base_path: str | Path,
        registry: NamespaceRegistry,
        codec: PayloadCodec,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize the store and load persisted entries.

        Args:
            base_path: Root directory; entries live under ``base_path/coordinator``.
            registry: Namespace policies.
            codec: Payload codec.
            clock: Source of the current time.
        """
        self.base_path = Path(base_path).resolve()
        self.root = self.base_path / "coordinator"
        self.registry = registry
        self.codec = codec
        self._clock = clock
        self._entries: dict[str, dict[str, Entry]] = {ns.name: {} for ns in registry}
        self._stats = MemoryStats()
        self._hits = 0
        self._misses = 0

        self._ensure_directories()
        self._load_from_disk()

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    def _ensure_directories(self) -> None:
        """Create one directory per configured namespace."""
        for ns in self.registry:
            self._namespace_dir(ns.name).mkdir(parents=True, exist_ok=True)

    def _load_from_disk(self) -> None:
        """Load every entry file, dropping expired ones and skipping corrupt ones."""
        now = self._clock()
        loaded = 0
        expired = 0
        skipped = 0

        for ns in self.registry:
            for path in sorted(self._namespace_dir(ns.name).glob("*.json")):
                try:
                    entry = Entry.from_dict(orjson.loads(path.read_bytes()))
                    if entry.namespace != ns.name:
                        raise CorruptEntryError(
                            "Entry filed under the wrong namespace",
                            context={"expected": ns.name, "found": entry.namespace},
                        )
                    if entry.is_expired(now):
                        path.unlink(missing_ok=True)
                        expired += 1
                        continue
                    self._decode(entry)
                except (OSError, orjson.JSONDecodeError, CorruptEntryError) as e:
                    with log_context(namespace=ns.name, operation="load"):
                        logger.warning(
                            "Skipping unreadable entry file",
                            path=path.name,
                            error=str(e),
                        )
                    skipped += 1
                    continue

                canonical = self._entry_path(ns.name, entry.key)
                if path != canonical:
                    self._write_entry(entry)
                    path.unlink(missing_ok=True)

                self._entries[ns.name][entry.key] = entry
                loaded += 1

        self._recompute_stats()
        logger.info(
            "Entry store loaded",
            base_path=str(self.base_path),
            loaded=loaded,
            expired=expired,
            skipped=skipped,
        )

    # ------------------------------------------------------------------
    # Paths and persistence
    # ------------------------------------------------------------------

    def _namespace_dir(self, namespace: str) -> Path:
        return self.root / namespace

    def _entry_path(self, namespace: str, key: str) -> Path:
        return self._namespace_dir(namespace) / entry_filename(key)

    def _write_entry(self, entry: Entry) -> None:
        """Write an entry file atomically (temp file, then rename)."""
        path = self._entry_path(entry.namespace, entry.key)
        tmp_path = path.with_name(path.name + ".tmp")
        tmp_path.write_bytes(orjson.dumps(entry.to_dict(), option=orjson.OPT_INDENT_2))
        os.replace(tmp_path, path)

    def _remove(self, namespace: str, key: str) -> bool:
        """Drop an entry from the index and from disk without touching stats."""
        existed = self._entries[namespace].pop(key, None) is not None
        self._entry_path(namespace, key).unlink(missing_ok=True)
        return existed

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------

    def _encode(self, value: Any) -> tuple[str, bool]:
        return self.codec.compress(orjson.dumps(value).decode("utf-8"))

    def _decode(self, entry: Entry) -> Any:
        """Decode an entry's payload back to its value.

        Raises:
            CorruptEntryError: If the payload cannot be decompressed or parsed.
        """
        try:
            return orjson.loads(self.codec.decompress(entry.value, entry.compressed))
        except (CodecError, orjson.JSONDecodeError) as e:
            raise CorruptEntryError(
                "Failed to decode entry",
                context={"namespace": entry.namespace, "key": entry.key, "error": str(e)},
            ) from e

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def store(
        self,
        namespace: str,
        key: str,
        value: Any,
        ttl_override_seconds: int | None = None,
    ) -> None:
        """Store a value, replacing any existing entry under the same key.

        Args:
            namespace: Configured namespace name.
            key: Entry key.
            value: JSON-serializable value.
            ttl_override_seconds: Lifetime overriding the namespace default.
                0 means no expiry.

        Raises:
            UnknownNamespaceError: If the namespace is not configured.
            TypeError: If the value is not JSON-serializable.
            ValueError: If the TTL override is negative.
        """
        ns = self.registry.require(namespace)
        if ttl_override_seconds is not None and ttl_override_seconds < 0:
            raise ValueError("ttl_override_seconds must not be negative")

        with log_context(namespace=namespace, operation="store", key=key):
            data, compressed = self._encode(value)

            now = self._clock()
            ttl = ttl_override_seconds if ttl_override_seconds is not None else ns.ttl_seconds
            entry = Entry(
                key=key,
                namespace=namespace,
                value=data,
                created_at=now,
                updated_at=now,
                expires_at=now + timedelta(seconds=ttl) if ttl else None,
                size=len(data.encode("utf-8")),
                compressed=compressed,
            )

            self._write_entry(entry)
            self._entries[namespace][key] = entry

            if ns.max_entries is not None:
                self._enforce_capacity(namespace, ns.max_entries)

            self._recompute_stats()
            logger.debug("Stored entry", size=entry.size, compressed=compressed)

    async def retrieve(self, namespace: str, key: str) -> Any | None:
        """Retrieve a decoded value.

        Returns:
            The stored value, or None if absent or expired. Expired entries
            are deleted as a side effect. A stored JSON ``null`` also comes
            back as None; use get_entry() or list() to tell it from a miss.

        Raises:
            CorruptEntryError: If the stored payload can no longer be decoded.
        """
        entry = self._entries.get(namespace, {}).get(key)

        with log_context(namespace=namespace, operation="retrieve", key=key):
            if entry is None:
                self._misses += 1
                logger.debug("Cache lookup", hit=False)
                return None

            if entry.is_expired(self._clock()):
                await self.delete(namespace, key)
                self._misses += 1
                logger.debug("Cache lookup", hit=False, expired=True)
                return None

            value = self._decode(entry)
            self._hits += 1
            logger.debug("Cache lookup", hit=True)
            return value

    async def get_entry(self, namespace: str, key: str) -> Entry | None:
        """Return the raw entry record without decoding or expiring it."""
        return self._entries.get(namespace, {}).get(key)

    async def delete(self, namespace: str, key: str) -> bool:
        """Delete an entry.

        Returns:
            True if an entry was removed from the index.
        """
        if namespace not in self.registry:
            return False

        existed = self._remove(namespace, key)
        self._recompute_stats()
        if existed:
            with log_context(namespace=namespace, operation="delete", key=key):
                logger.debug("Deleted entry")
        return existed

    async def list(self, namespace: str) -> list[str]:
        """List keys of non-expired entries, in insertion order."""
        now = self._clock()
        return [key for key, entry in self._iter_live(namespace, now)]

    async def search(self, namespace: str, pattern: str) -> list[Entry]:
        """Find non-expired entries whose key matches a regular expression.

        Raises:
            re.error: If the pattern is not a valid regular expression.
        """
        regex = re.compile(pattern)
        now = self._clock()
        return [entry for key, entry in self._iter_live(namespace, now) if regex.search(key)]

    async def clear_namespace(self, namespace: str) -> int:
        """Remove every entry of a namespace, expired ones included.

        Returns:
            Number of entries removed from the index.
        """
        if namespace not in self.registry:
            return 0

        removed = len(self._entries[namespace])
        self._entries[namespace].clear()

        ns_dir = self._namespace_dir(namespace)
        if ns_dir.exists():
            for path in ns_dir.iterdir():
                if path.is_file():
                    path.unlink(missing_ok=True)

        self._recompute_stats()
        with log_context(namespace=namespace, operation="clear"):
            logger.info("Cleared namespace", removed=removed)
        return removed

    async def cleanup(self) -> int:
        """Remove every expired entry across all namespaces.

        Returns:
            Number of entries removed.
        """
        stale = expired_keys(self._iter_all(), self._clock())
        for namespace, key in stale:
            self._remove(namespace, key)

        self._recompute_stats()
        if stale:
            logger.info("Expired entries removed", removed=len(stale))
        return len(stale)

    async def export_all(self) -> dict[str, Any]:
        """Export decoded values of all non-expired entries keyed ``namespace:key``.

        Raises:
            CorruptEntryError: If an entry can no longer be decoded.
        """
        now = self._clock()
        return {
            entry.full_key: self._decode(entry)
            for entry in self._iter_all()
            if not entry.is_expired(now)
        }

    async def import_all(self, data: Mapping[str, Any]) -> int:
        """Store every ``namespace:key`` item whose namespace is configured.

        Items for unknown namespaces, or without a ``:`` separator, are skipped.

        Returns:
            Number of entries imported.
        """
        imported = 0
        skipped = 0
        for full_key, value in data.items():
            namespace, sep, key = full_key.partition(":")
            if not sep or namespace not in self.registry:
                skipped += 1
                continue
            await self.store(namespace, key, value)
            imported += 1

        logger.info("Imported entries", imported=imported, skipped=skipped)
        return imported

    def get_stats(self) -> MemoryStats:
        """Return a snapshot of aggregate statistics."""
        return replace(self._stats, hits=self._hits, misses=self._misses)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _iter_all(self) -> Iterator[Entry]:
        for entries in self._entries.values():
            yield from entries.values()

    def _iter_live(self, namespace: str, now: datetime) -> Iterator[tuple[str, Entry]]:
        for key, entry in self._entries.get(namespace, {}).items():
            if not entry.is_expired(now):
                yield key, entry

    def _enforce_capacity(self, namespace: str, max_entries: int) -> None:
        """Evict the oldest entries of a capped namespace."""
        evicted = select_evictions(self._entries[namespace].values(), max_entries)
        for key in evicted:
            self._remove(namespace, key)
        if evicted:
            logger.debug("Evicted entries over capacity", evicted=len(evicted))

    def _recompute_stats(self) -> None:
        """Rebuild aggregate statistics from the index."""
        by_namespace: dict[str, NamespaceStats] = {}
        total_size = 0
        total_entries = 0
        for name, entries in self._entries.items():
            if not entries:
                continue
            size = sum(e.size for e in entries.values())
            by_namespace[name] = NamespaceStats(entries=len(entries), size=size)
            total_size += size
            total_entries += len(entries)

        self._stats = MemoryStats(
            total_entries=total_entries,
            total_size=total_size,
            by_namespace=by_namespace,
        )
