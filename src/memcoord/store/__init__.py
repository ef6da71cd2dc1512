"""
Entry storage for the memory coordinator.

- entry_store.py: EntryStore, the namespaced index with file persistence
- eviction.py: TTL expiration and capacity eviction rules
"""

from memcoord.store.entry_store import EntryStore, entry_filename, sanitize_key

__all__ = ["EntryStore", "entry_filename", "sanitize_key"]
