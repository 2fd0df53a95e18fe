"""Single-threaded tick loop for a graph view.

One asyncio task steps the view once per turn: a simulation tick plus any
running viewport transition. Ticks are plain synchronous calls and never
await I/O, so fetches scheduled on the same loop interleave between ticks.
"""

import asyncio
import logging
from collections.abc import Callable

from mindmap.config import settings
from mindmap.view.renderer import GraphView

logger = logging.getLogger(__name__)


class TickScheduler:
    """Drives `GraphView.tick()` at a fixed interval on the running loop."""

    def __init__(self, view: GraphView, interval: float | None = None) -> None:
        self.view = view
        self.interval = interval if interval is not None else settings.tick_interval
        self.ticks = 0
        self.errors = 0
        self._task: asyncio.Task | None = None
        self._timers: set[asyncio.TimerHandle] = set()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start ticking on the current event loop (idempotent)."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug(f"Tick scheduler started ({self.interval * 1000:.1f}ms interval)")

    async def stop(self) -> None:
        for timer in self._timers:
            timer.cancel()
        self._timers.clear()

        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug(f"Tick scheduler stopped after {self.ticks} ticks")

    def run_once(self, dt: float) -> bool:
        """One scheduler turn. Returns True if anything moved.

        Errors raised by the view are logged and swallowed so the loop
        keeps running.
        """
        try:
            moved = self.view.tick()
            animating = self.view.advance(dt)
        except Exception:
            self.errors += 1
            logger.exception("View tick failed")
            return False
        self.ticks += 1
        return moved or animating

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        last = loop.time()
        while True:
            now = loop.time()
            self.run_once(now - last)
            last = now
            await asyncio.sleep(self.interval)

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        """Run `callback` on the loop after `delay` seconds, e.g. a deferred zoom-to-fit."""
        loop = asyncio.get_running_loop()
        handle: asyncio.TimerHandle

        def fire() -> None:
            self._timers.discard(handle)
            try:
                callback()
            except Exception:
                logger.exception("Deferred view callback failed")

        handle = loop.call_later(delay, fire)
        self._timers.add(handle)
        return handle

    async def wait_settled(self, timeout: float | None = None) -> bool:
        """Wait until the layout has settled and no transition is running."""

        async def poll() -> None:
            while not (self.view.settled and self.view.viewport.transition is None):
                await asyncio.sleep(self.interval)

        try:
            await asyncio.wait_for(poll(), timeout)
        except asyncio.TimeoutError:
            return False
        return True
