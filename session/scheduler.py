"""One-shot scheduler for automatic credential renewal"""

import asyncio
import logging
import threading
import time
from typing import Awaitable, Callable, Optional, Set

from .models import Credential

logger = logging.getLogger(__name__)

RefreshAction = Callable[[], Awaitable[None]]


class RefreshScheduler:
    """Keeps at most one pending refresh action armed on an event loop

    Every ``arm`` or ``cancel`` bumps a generation counter. A pending task
    only runs its action if its generation is still current when its delay
    elapses, so a superseded action never fires even if its task could not
    be cancelled in time (e.g. when ``arm`` is called from another thread).

    ``arm`` and ``cancel`` may be called from any thread once the scheduler
    is bound to a loop.
    """

    def __init__(
        self,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            loop: Event loop that runs the actions (defaults to the running
                loop at the first ``arm`` call)
            clock: Source of the current Unix time in seconds
        """
        self._loop = loop
        self._clock = clock
        self._lock = threading.Lock()
        self._generation = 0
        self._task: Optional[asyncio.Task] = None
        self._firing: Set[asyncio.Task] = set()
        self.credential: Optional[Credential] = None
        self.refresh_at: Optional[float] = None

    def bind(self, loop: asyncio.AbstractEventLoop) -> None:
        """Bind the scheduler to the loop that will run actions"""
        self._loop = loop

    @property
    def pending(self) -> bool:
        """True while an armed action is waiting to fire"""
        with self._lock:
            return self.refresh_at is not None

    def arm(self, credential: Credential, refresh_at: float, action: RefreshAction) -> None:
        """Cancel any pending action and schedule ``action`` at ``refresh_at``

        A ``refresh_at`` at or before the current time fires immediately.

        Args:
            credential: Credential the action was derived from
            refresh_at: Unix time in seconds at which to run the action
            action: Coroutine function to run
        """
        loop = self._resolve_loop()
        with self._lock:
            self._cancel_locked()
            generation = self._generation
            self.credential = credential
            self.refresh_at = refresh_at

        delay = max(0.0, refresh_at - self._clock())
        logger.debug(f"Refresh armed for {credential!r} in {delay:.0f}s")

        if self._on_loop_thread(loop):
            self._start(generation, delay, action)
        else:
            loop.call_soon_threadsafe(self._start, generation, delay, action)

    def cancel(self) -> None:
        """Cancel the pending action, if any"""
        with self._lock:
            self._cancel_locked()

    def _cancel_locked(self) -> None:
        self._generation += 1
        self.credential = None
        self.refresh_at = None
        task, self._task = self._task, None
        if task is None or task.done():
            return
        loop = task.get_loop()
        if loop.is_closed():
            return
        if self._on_loop_thread(loop):
            task.cancel()
        else:
            loop.call_soon_threadsafe(task.cancel)

    def _resolve_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            try:
                self._loop = asyncio.get_running_loop()
            except RuntimeError:
                raise RuntimeError("RefreshScheduler is not bound to an event loop") from None
        return self._loop

    @staticmethod
    def _on_loop_thread(loop: asyncio.AbstractEventLoop) -> bool:
        try:
            return asyncio.get_running_loop() is loop
        except RuntimeError:
            return False

    def _start(self, generation: int, delay: float, action: RefreshAction) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._task = self._resolve_loop().create_task(self._fire(generation, delay, action))

    async def _fire(self, generation: int, delay: float, action: RefreshAction) -> None:
        await asyncio.sleep(delay)

        with self._lock:
            if generation != self._generation:
                return
            # Detach before running so the action can re-arm without
            # cancelling itself.
            task = asyncio.current_task()
            if self._task is task:
                self._task = None
            self.credential = None
            self.refresh_at = None
            if task is not None:
                self._firing.add(task)
                task.add_done_callback(self._firing.discard)

        logger.info("Running scheduled credential refresh")
        try:
            await action()
        except Exception as e:
            logger.error(f"Scheduled refresh failed: {e}")
