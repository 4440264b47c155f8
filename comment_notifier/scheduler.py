"""Fixed-interval scheduler that never lets two runs overlap."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class Scheduler:
    """Fires ``job`` every ``interval`` seconds.

    The scheduler owns a single slot holding the task of the run in progress.
    A tick that arrives while the slot is taken is dropped, not queued; the
    slot is released when the task finishes, however it finishes.
    """

    def __init__(
        self,
        job: Callable[[], Awaitable[Any]],
        interval: float,
        run_on_start: bool = True,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.job = job
        self.interval = interval
        self.run_on_start = run_on_start
        self.skipped_ticks = 0
        self._current: Optional[asyncio.Task] = None
        self._stop = asyncio.Event()

    @property
    def running(self) -> bool:
        """True while a run is in progress."""
        return self._current is not None and not self._current.done()

    def tick(self) -> Optional[asyncio.Task]:
        """Start a run unless one is already in progress.

        Returns:
            The task of the new run, or None if the tick was dropped.
        """
        if self.running:
            self.skipped_ticks += 1
            logger.warning("Previous run still in progress, skipping this tick")
            return None

        task = asyncio.create_task(self._run_job())
        self._current = task
        task.add_done_callback(self._release)
        return task

    def _release(self, task: asyncio.Task) -> None:
        if self._current is task:
            self._current = None

    async def _run_job(self) -> Any:
        logger.info("Starting task to notify new comments")
        try:
            result = await self.job()
        except Exception as e:
            logger.exception("Task for notifying new comments failed: %s", e)
            return None
        logger.info("Done task for notifying new comments")
        return result

    async def run_once(self) -> Any:
        """Run the job immediately and wait for it (ignores the schedule)."""
        task = self.tick()
        if task is None:
            return None
        return await task

    async def run_forever(self) -> None:
        """Tick every interval until ``stop`` is called, then wait for the last run."""
        logger.info("Scheduling runs every %s second(s)", self.interval)

        if self.run_on_start:
            self.tick()

        while not self._stop.is_set():
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                self.tick()

        await self.wait_idle()
        logger.info("Scheduler stopped")

    def stop(self) -> None:
        """Stop accepting ticks; a run in progress still completes."""
        self._stop.set()

    async def wait_idle(self) -> None:
        """Wait for the run in progress, if any."""
        current = self._current
        if current is not None:
            await current
