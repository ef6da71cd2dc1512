"""
Background sync scheduler.

Runs an asyncio task that calls the sync hook every interval. Stopping
cancels the task and waits for it, so no tick can run once stop() returns.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from enum import Enum

from memcoord.exceptions import SyncHookError
from memcoord.logging import get_logger
from memcoord.sync.hooks import SyncHook, call_hook, noop_sync_hook
from memcoord.types import Clock, utc_now

logger = get_logger(__name__)


class SchedulerState(str, Enum):
    """Lifecycle states of the sync scheduler."""

    STOPPED = "stopped"
    RUNNING = "running"


class SyncScheduler:
    """Periodically invokes an external synchronization hook.

    Hook failures are counted in ``sync_errors`` and logged; they never stop
    the loop and never reach the caller.
    """

    def __init__(
        self,
        interval_seconds: float,
        hook: SyncHook = noop_sync_hook,
        enabled: bool = True,
        target: str = "default",
        clock: Clock = utc_now,
    ) -> None:
        """Initialize the scheduler in the stopped state.

        Args:
            interval_seconds: Seconds between ticks.
            hook: Callable invoked on each tick.
            enabled: When False, ticks do nothing (external sync switched off).
            target: Label of the sync target, used in logs.
            clock: Source of the current time.
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.interval_seconds = interval_seconds
        self.hook = hook
        self.enabled = enabled
        self.target = target
        self._clock = clock
        self._task: asyncio.Task[None] | None = None
        self.last_sync: datetime | None = None
        self.sync_errors = 0

    @property
    def state(self) -> SchedulerState:
        """Current lifecycle state."""
        if self._task is not None and not self._task.done():
            return SchedulerState.RUNNING
        return SchedulerState.STOPPED

    @property
    def is_running(self) -> bool:
        """Check if the background task is active."""
        return self.state is SchedulerState.RUNNING

    def start(self) -> None:
        """Start the background loop. No-op if already running.

        Raises:
            RuntimeError: If called without a running event loop.
        """
        if self.is_running:
            return
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run_loop(), name="memcoord-sync")
        logger.info(
            "Sync scheduler started",
            interval_seconds=self.interval_seconds,
            target=self.target,
        )

    async def stop(self) -> None:
        """Cancel the background loop and wait for it to finish.

        Raises:
            asyncio.CancelledError: If the task calling stop() is itself
                cancelled while waiting.
        """
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
        logger.info("Sync scheduler stopped", target=self.target)

    async def _run_loop(self) -> None:
        """Tick every interval until cancelled."""
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.run_once()

    async def run_once(self) -> bool:
        """Run a single sync tick.

        Returns:
            True if the hook ran and succeeded, False if sync is disabled
            or the hook failed.
        """
        if not self.enabled:
            return False

        try:
            await call_hook(self.hook)
        except Exception as e:
            self.sync_errors += 1
            error = SyncHookError(
                "Sync hook failed", context={"target": self.target, "error": str(e)}
            )
            logger.warning(str(error), sync_errors=self.sync_errors)
            return False

        self.last_sync = self._clock()
        logger.debug("Sync completed", target=self.target)
        return True
