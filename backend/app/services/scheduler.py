"""
Background scheduler - fixed-interval asyncio tasks with an explicit start/stop lifecycle.
"""
import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Runs `job` every `interval_seconds` until stopped. A failing run does not end the loop."""

    def __init__(self, name: str, interval_seconds: float, job: Callable[[], Awaitable[None]]):
        self.name = name
        self.interval_seconds = interval_seconds
        self.job = job
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name=self.name)
        logger.info(f"Started background task '{self.name}' (every {self.interval_seconds}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info(f"Stopped background task '{self.name}'")

    async def _run(self) -> None:
        while True:
            try:
                await self.job()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Background task '{self.name}' failed: {str(e)}", exc_info=True)
            await asyncio.sleep(self.interval_seconds)


class Scheduler:
    def __init__(self):
        self.tasks: List[PeriodicTask] = []

    def add(self, task: PeriodicTask) -> PeriodicTask:
        self.tasks.append(task)
        return task

    def start(self) -> None:
        for task in self.tasks:
            task.start()

    async def stop(self) -> None:
        for task in self.tasks:
            await task.stop()
