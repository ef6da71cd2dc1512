"""
Expiration and capacity rules applied by the entry store.

Pure functions over entries so the policy can be tested without disk I/O.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from memcoord.types import Entry


def expired_keys(entries: Iterable[Entry], now: datetime) -> list[tuple[str, str]]:
    """Collect (namespace, key) pairs of every expired entry."""
    return [(e.namespace, e.key) for e in entries if e.is_expired(now)]


def select_evictions(entries: Iterable[Entry], max_entries: int) -> list[str]:
    """Pick the keys to evict so that at most max_entries remain.

    Oldest ``created_at`` goes first. The sort is stable, so entries with the
    same timestamp keep their iteration order.

    Args:
        entries: Entries of a single namespace.
        max_entries: Capacity of the namespace.

    Returns:
        Keys to remove, oldest first. Empty when under the cap.
    """
    ordered = sorted(entries, key=lambda e: e.created_at)
    excess = len(ordered) - max_entries
    if excess <= 0:
        return []
    return [e.key for e in ordered[:excess]]
