"""Tests for single-flight deduplication."""

import asyncio

import pytest

from src.account_migrate.utils.single_flight import SingleFlight


class TestSingleFlight:
    """Test single-flight cache."""

    @pytest.mark.asyncio
    async def test_concurrent_calls_share_one_execution(self):
        """Test that concurrent callers for a key share the same result."""
        single_flight = SingleFlight()
        calls = []

        async def operation():
            calls.append(1)
            await asyncio.sleep(0.01)
            return 'result'

        results = await asyncio.gather(
            *[single_flight.schedule('key', operation) for _ in range(5)]
        )

        assert results == ['result'] * 5
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_different_keys_run_separately(self):
        """Test that different keys do not share executions."""
        single_flight = SingleFlight()
        calls = []

        async def operation(key):
            calls.append(key)
            await asyncio.sleep(0)
            return key

        results = await asyncio.gather(
            single_flight.schedule('a', lambda: operation('a')),
            single_flight.schedule('b', lambda: operation('b')),
        )

        assert results == ['a', 'b']
        assert sorted(calls) == ['a', 'b']

    @pytest.mark.asyncio
    async def test_entry_cleared_after_settle(self):
        """Test that a sequential call runs the operation again."""
        single_flight = SingleFlight()
        calls = []

        async def operation():
            calls.append(1)
            return len(calls)

        assert await single_flight.schedule('key', operation) == 1
        assert not single_flight.is_running('key')
        assert len(single_flight) == 0
        assert await single_flight.schedule('key', operation) == 2

    @pytest.mark.asyncio
    async def test_failure_shared_and_cleared(self):
        """Test that all concurrent callers observe the same failure."""
        single_flight = SingleFlight()
        error = RuntimeError('boom')
        calls = []

        async def operation():
            calls.append(1)
            await asyncio.sleep(0.01)
            raise error

        results = await asyncio.gather(
            single_flight.schedule('key', operation),
            single_flight.schedule('key', operation),
            return_exceptions=True,
        )

        assert results == [error, error]
        assert len(calls) == 1
        assert not single_flight.is_running('key')

    @pytest.mark.asyncio
    async def test_is_running_while_in_flight(self):
        """Test that the entry exists while the operation runs."""
        single_flight = SingleFlight()
        started = asyncio.Event()
        release = asyncio.Event()

        async def operation():
            started.set()
            await release.wait()
            return 'done'

        task = asyncio.ensure_future(single_flight.schedule('key', operation))
        await started.wait()
        assert single_flight.is_running('key')

        release.set()
        assert await task == 'done'
        assert not single_flight.is_running('key')

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_cancel_others(self):
        """Test that cancelling one waiter leaves the shared work running."""
        single_flight = SingleFlight()
        release = asyncio.Event()

        async def operation():
            await release.wait()
            return 'done'

        first = asyncio.ensure_future(single_flight.schedule('key', operation))
        second = asyncio.ensure_future(single_flight.schedule('key', operation))
        await asyncio.sleep(0)

        first.cancel()
        release.set()

        assert await second == 'done'
        with pytest.raises(asyncio.CancelledError):
            await first
