"""Single-flight deduplication for keyed async operations."""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Generic, TypeVar

ResultType = TypeVar('ResultType')


class SingleFlight(Generic[ResultType]):
    """Collapse concurrent calls for the same key into one execution.

    While an operation for a key is running, later callers for that key
    await the same task and observe its result or exception. The entry is
    dropped as soon as the operation settles, so a later call runs again.
    """

    def __init__(self) -> None:
        self._running: Dict[Any, 'asyncio.Task[ResultType]'] = {}

    async def schedule(
        self, key: Any, operation: Callable[[], Awaitable[ResultType]]
    ) -> ResultType:
        """Run ``operation`` for ``key`` unless one is already in flight.

        Args:
            key: Deduplication key
            operation: Zero-argument callable returning an awaitable

        Returns:
            Outcome of the single in-flight operation for ``key``
        """
        task = self._running.get(key)
        if task is None:
            task = asyncio.ensure_future(self._run(key, operation))
            self._running[key] = task

        # Shield so one cancelled caller does not cancel the shared work
        return await asyncio.shield(task)

    async def _run(
        self, key: Any, operation: Callable[[], Awaitable[ResultType]]
    ) -> ResultType:
        try:
            return await operation()
        finally:
            self._running.pop(key, None)

    def is_running(self, key: Any) -> bool:
        return key in self._running

    def __len__(self) -> int:
        return len(self._running)
