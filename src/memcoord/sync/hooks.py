"""
Synchronization hooks called by the sync scheduler.

The real external system is wired in by the application. A hook is any
zero-argument callable: a coroutine function, or a plain function that may
return None or an awaitable. Plain functions run in a worker thread so a slow
hook never blocks the event loop.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Awaitable, Protocol


class SyncHook(Protocol):
    """Callable invoked once per sync tick."""

    def __call__(self) -> Awaitable[None] | None: ...


async def noop_sync_hook() -> None:
    """Default hook: nothing to synchronize."""
    return None


def is_async_hook(hook: SyncHook) -> bool:
    """Check whether calling the hook yields a coroutine."""
    return inspect.iscoroutinefunction(hook) or inspect.iscoroutinefunction(
        getattr(hook, "__call__", None)
    )


async def call_hook(hook: SyncHook) -> None:
    """Invoke a hook, off the event loop thread unless it is a coroutine function."""
    if is_async_hook(hook):
        await hook()
        return

    result = await asyncio.to_thread(hook)
    if inspect.isawaitable(result):
        await result
