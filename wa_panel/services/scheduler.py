"""Keyed, cancellable delayed actions for the chat relay's auto-close.

Entries live only in memory and are lost on restart; the auto-close is an
advisory cleanup, not a guarantee.
"""

import asyncio
import logging
import threading
from collections.abc import Awaitable, Callable
from typing import Hashable

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]
Action = Callable[[], Awaitable[object]]


class AutoCloseScheduler:
    """Schedule/cancel delayed coroutines by key.

    Scheduling an existing key replaces (and cancels) the previous entry.
    Cancelling a missing or already-fired key is a no-op.

    Args:
        sleep: Awaitable used to wait out the delay; tests inject a fake.
    """

    def __init__(self, sleep: Sleep | None = None) -> None:
        self._sleep = sleep or asyncio.sleep
        self._tasks: dict[Hashable, asyncio.Task] = {}
        self._lock = threading.Lock()

    def schedule(self, key: Hashable, delay_seconds: float, action: Action) -> asyncio.Task:
        """Run ``action`` after ``delay_seconds`` unless cancelled first.

        Must be called from within a running event loop.
        """
        task = asyncio.get_running_loop().create_task(
            self._run(key, delay_seconds, action), name=f"auto-close-{key}"
        )
        with self._lock:
            previous = self._tasks.get(key)
            self._tasks[key] = task
        if previous is not None and not previous.done():
            previous.cancel()
        logger.info(f"Auto-close scheduled for {key} in {delay_seconds:.0f}s")
        return task

    def cancel(self, key: Hashable) -> bool:
        """Cancel and forget the entry for ``key``.

        Returns:
            True if a pending entry was cancelled
        """
        with self._lock:
            task = self._tasks.pop(key, None)
        if task is None or task.done():
            return False
        task.cancel()
        logger.info(f"Auto-close cancelled for {key}")
        return True

    def is_scheduled(self, key: Hashable) -> bool:
        with self._lock:
            task = self._tasks.get(key)
        return task is not None and not task.done()

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for t in self._tasks.values() if not t.done())

    async def shutdown(self) -> None:
        """Cancel everything still pending."""
        with self._lock:
            tasks = list(self._tasks.values())
            self._tasks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _run(self, key: Hashable, delay_seconds: float, action: Action) -> None:
        await self._sleep(delay_seconds)
        current = asyncio.current_task()
        with self._lock:
            if self._tasks.get(key) is not current:
                return
            del self._tasks[key]
        logger.info(f"Auto-close firing for {key}")
        try:
            await action()
        except Exception as e:
            logger.error(f"Auto-close action for {key} failed: {e}")
