"""
Background synchronization to an external system.

- scheduler.py: SyncScheduler, the cancellable periodic loop
- hooks.py: SyncHook protocol and the default no-op hook
"""

from memcoord.sync.hooks import SyncHook, noop_sync_hook
from memcoord.sync.scheduler import SchedulerState, SyncScheduler

__all__ = ["SchedulerState", "SyncHook", "SyncScheduler", "noop_sync_hook"]
