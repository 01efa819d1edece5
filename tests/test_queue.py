"""Tests for the bounded job queue."""

import asyncio

import pytest

from src.account_migrate.utils.queue import Queue


class TestQueue:
    """Test bounded concurrent queue."""

    def test_invalid_concurrency(self):
        """Test that concurrency must be positive."""
        with pytest.raises(ValueError):
            Queue(concurrency=0)

    @pytest.mark.asyncio
    async def test_runs_every_job_once(self):
        """Test that all added jobs run exactly once."""
        queue = Queue(concurrency=3)
        ran = []

        for i in range(10):

            async def job(i=i):
                await asyncio.sleep(0)
                ran.append(i)

            queue.add(job)

        await queue.wait_until_finished()

        assert sorted(ran) == list(range(10))
        assert queue.completed_jobs == 10
        assert queue.pending == 0

    @pytest.mark.asyncio
    async def test_concurrency_bound(self):
        """Test that no more than the bound run at the same time."""
        queue = Queue(concurrency=2)
        running = 0
        max_running = 0

        async def job():
            nonlocal running, max_running
            running += 1
            max_running = max(max_running, running)
            await asyncio.sleep(0.01)
            running -= 1

        for _ in range(6):
            queue.add(job)

        await queue.wait_until_finished()

        assert max_running == 2

    @pytest.mark.asyncio
    async def test_failing_job_does_not_stop_siblings(self):
        """Test that one failing job does not cancel other jobs."""
        queue = Queue(concurrency=2)
        ran = []

        async def failing():
            raise RuntimeError('boom')

        async def succeeding():
            await asyncio.sleep(0.01)
            ran.append('ok')

        queue.add(failing)
        queue.add(succeeding)
        queue.add(succeeding)

        await queue.wait_until_finished()

        assert ran == ['ok', 'ok']
        assert queue.failed_jobs == 1
        assert queue.completed_jobs == 3

    @pytest.mark.asyncio
    async def test_waits_for_jobs_added_by_jobs(self):
        """Test that jobs added while draining are awaited as well."""
        queue = Queue(concurrency=1)
        ran = []

        async def child():
            await asyncio.sleep(0)
            ran.append('child')

        async def parent():
            ran.append('parent')
            queue.add(child)

        queue.add(parent)
        await queue.wait_until_finished()

        assert ran == ['parent', 'child']

    @pytest.mark.asyncio
    async def test_wait_on_empty_queue(self):
        """Test that waiting on an empty queue returns immediately."""
        queue = Queue()
        await queue.wait_until_finished()
        assert queue.completed_jobs == 0
