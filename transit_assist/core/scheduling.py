"""
Cancelable periodic tasks on the running asyncio event loop.
"""

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)

TaskCallback = Callable[[], Union[None, Awaitable[None]]]


class PeriodicTask:
    """
    Runs a callback every interval_seconds until canceled.

    Failures inside the callback are logged and the schedule continues.
    cancel() is idempotent.
    """

    def __init__(
        self,
        name: str,
        interval_seconds: float,
        callback: TaskCallback,
        run_immediately: bool = False,
    ):
        self.name = name
        self.interval_seconds = interval_seconds
        self.callback = callback
        self.run_immediately = run_immediately
        self.run_count = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the loop on the current event loop."""
        if self.is_running:
            logger.warning(f"Periodic task '{self.name}' already running")
            return
        self._task = asyncio.get_running_loop().create_task(self._loop(), name=self.name)
        logger.debug(f"Started periodic task '{self.name}' every {self.interval_seconds}s")

    def cancel(self) -> bool:
        """
        Cancel the loop.

        Returns:
            True if a live task was canceled, False if there was nothing to cancel
        """
        task, self._task = self._task, None
        if task is None or task.done():
            return False
        task.cancel()
        logger.debug(f"Canceled periodic task '{self.name}'")
        return True

    async def stop(self) -> None:
        """Cancel and wait for the loop to finish."""
        task = self._task
        self.cancel()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def run_once(self) -> None:
        try:
            result = self.callback()
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Periodic task '{self.name}' failed: {e}", exc_info=True)
        finally:
            self.run_count += 1

    async def _loop(self) -> None:
        if self.run_immediately:
            await self.run_once()
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.run_once()
