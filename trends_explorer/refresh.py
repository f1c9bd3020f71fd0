"""Cancelable periodic refresh for auto-updating views."""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)

Trigger = Callable[[], Union[None, Awaitable[Any]]]


class PeriodicRefresh:
    """Call *trigger* every *interval* seconds until stopped.

    The trigger typically issues a new ``execute`` on a view's executor.
    An awaitable result is awaited before the next wait starts.  A
    trigger that raises is logged and the loop keeps running.

    Args:
        trigger: Zero-argument callable, sync or async.
        interval: Seconds between two calls.
        immediate: Call the trigger once right after :meth:`start`.
    """

    def __init__(self, trigger: Trigger, interval: float,
                 immediate: bool = True) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._trigger = trigger
        self._interval = interval
        self._immediate = immediate
        self._task: Optional[asyncio.Task] = None
        self.runs = 0

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the refresh loop on the running event loop (idempotent)."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._loop())
        logger.info("Periodic refresh started (every %.0fs).", self._interval)

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish (idempotent)."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Periodic refresh stopped after %d run(s).", self.runs)

    async def __aenter__(self) -> "PeriodicRefresh":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    async def _loop(self) -> None:
        if not self._immediate:
            await asyncio.sleep(self._interval)
        while True:
            await self._fire()
            await asyncio.sleep(self._interval)

    async def _fire(self) -> None:
        self.runs += 1
        try:
            result = self._trigger()
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Periodic refresh trigger failed (run %d).",
                             self.runs)
