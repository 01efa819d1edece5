"""Bounded concurrent job queue."""

import asyncio
from typing import Awaitable, Callable, Set

from loguru import logger

Job = Callable[[], Awaitable[object]]


class Queue:
    """Run async jobs with a bounded number of them in flight.

    Jobs are expected to handle their own errors. A job that raises anyway
    is logged and counted; it never cancels sibling jobs or stops the queue
    from draining.
    """

    def __init__(self, concurrency: int = 10):
        """Initialize queue.

        Args:
            concurrency: Maximum number of jobs running at the same time
        """
        if concurrency <= 0:
            raise ValueError('Queue concurrency must be positive')

        self.concurrency = concurrency
        self.completed_jobs = 0
        self.failed_jobs = 0
        self._semaphore = asyncio.Semaphore(concurrency)
        self._tasks: Set['asyncio.Task[None]'] = set()
        self.logger = logger.bind(component='Queue')

    def add(self, job: Job) -> None:
        """Schedule a job. Must be called from a running event loop.

        Args:
            job: Zero-argument callable returning an awaitable
        """
        task = asyncio.ensure_future(self._run(job))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, job: Job) -> None:
        async with self._semaphore:
            try:
                await job()
            except Exception as e:
                self.failed_jobs += 1
                self.logger.error(f'Unhandled error in queued job: {e}')
            finally:
                self.completed_jobs += 1

    @property
    def pending(self) -> int:
        """Number of jobs that have not settled yet."""
        return len(self._tasks)

    async def wait_until_finished(self) -> None:
        """Wait until every added job has settled.

        Jobs added while waiting (for example by running jobs) are awaited
        as well.
        """
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
