"""Fixed-interval trigger for the QueueWorker."""

import asyncio

from ..logging_config import get_logger
from ..models import WorkerResult
from .worker import IQueueWorker

logger = get_logger(__name__)


class WorkerScheduler:
    """Calls ``worker.run_once()`` every ``interval`` seconds.

    Manual ``tick()`` calls may overlap with the timer; the queue's visibility
    timeout keeps two invocations from holding the same item.
    """

    def __init__(self, worker: IQueueWorker, interval: float = 60.0):
        self._worker = worker
        self._interval = interval
        self._task: asyncio.Task | None = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            return
        logger.info("Starting worker scheduler (every %ss)", self._interval)
        self._running = True
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Worker scheduler stopped")

    async def tick(self) -> WorkerResult:
        """Run one invocation now."""
        return await self._worker.run_once()

    async def _run(self) -> None:
        while self._running:
            try:
                result = await self._worker.run_once()
                logger.debug("Scheduled run finished: %s", result.status.value)
                await asyncio.sleep(self._interval)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("Worker scheduler error: %s", e, exc_info=True)
                await asyncio.sleep(self._interval)
