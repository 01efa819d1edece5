"""Per object type import orchestration."""

from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Generic, Optional, Set, Union

from loguru import logger

from ..utils.queue import Queue
from ..utils.single_flight import SingleFlight
from .errors import ErrorGroup, MigrationError, MigrationWarning, is_warning
from .provider import ConfirmableImportProvider, ImportProvider, ItemType
from .stats import ImportStats


@dataclass
class ItemState:
    """What happened to one source item during this run.

    ``recreated_id`` is set once and never overwritten. ``reverted`` and
    ``confirmed`` only ever go from False to True.
    """

    recreated_id: Optional[str] = None
    reverted: bool = False
    confirmed: bool = False


class Importer(Generic[ItemType]):
    """Recreates, reverts and confirms all items of one object type.

    All single item operations are idempotent within a run and deduplicated
    across concurrent callers, so importers of other object types can call
    into this one to resolve their dependencies.
    """

    def __init__(
        self,
        object_name: str,
        provider: ImportProvider[ItemType],
        stats: ImportStats,
        concurrency: int = 10,
    ):
        """Initialize importer.

        Args:
            object_name: Object type name used in logs and messages
            provider: Provider for this object type
            stats: Shared statistics tracker
            concurrency: Maximum concurrent items in batch operations
        """
        self.object_name = object_name
        self.provider = provider
        self.stats = stats
        self.concurrency = concurrency
        self.confirmable = isinstance(provider, ConfirmableImportProvider)
        self.logger = logger.bind(importer=object_name)

        self._states: Dict[str, ItemState] = {}

        self._running_recreate_jobs: SingleFlight[str] = SingleFlight()
        self._running_revert_jobs: SingleFlight[None] = SingleFlight()
        self._running_confirm_jobs: SingleFlight[None] = SingleFlight()

    # State

    def _state(self, source_id: str) -> ItemState:
        state = self._states.get(source_id)
        if state is None:
            state = self._states[source_id] = ItemState()
        return state

    def recreated_id(self, source_id: str) -> Optional[str]:
        state = self._states.get(source_id)
        return state.recreated_id if state else None

    def is_reverted(self, source_id: str) -> bool:
        state = self._states.get(source_id)
        return bool(state and state.reverted)

    def is_confirmed(self, source_id: str) -> bool:
        state = self._states.get(source_id)
        return bool(state and state.confirmed)

    @property
    def recreated_map(self) -> Dict[str, str]:
        return {
            source_id: state.recreated_id
            for source_id, state in self._states.items()
            if state.recreated_id is not None
        }

    @property
    def reverted_ids(self) -> Set[str]:
        return {sid for sid, state in self._states.items() if state.reverted}

    @property
    def confirmed_ids(self) -> Set[str]:
        return {sid for sid, state in self._states.items() if state.confirmed}

    # Batch operations

    async def recreate_all(self) -> Optional[ErrorGroup]:
        """Recreate every item of the old account in the new account.

        Returns:
            An error group if only warnings occurred, None if nothing went wrong

        Raises:
            BatchFailure: If at least one item failed with a fatal error
        """
        return await self._run_in_queue('recreate', self.recreate)

    async def revert_all(self) -> Optional[ErrorGroup]:
        """Revert every item of the old account from the new account."""
        return await self._run_in_queue('revert', self.revert)

    async def confirm_all(self) -> Optional[ErrorGroup]:
        """Confirm every provisionally recreated item."""
        return await self._run_in_queue('confirm', self.confirm)

    async def _run_in_queue(
        self, operation: str, method: Callable[[ItemType], Awaitable[object]]
    ) -> Optional[ErrorGroup]:
        queue = Queue(self.concurrency)
        error_group = ErrorGroup()

        async def job(item: ItemType) -> None:
            try:
                await method(item)
            except Exception as e:
                if is_warning(e):
                    self.logger.warning(str(e))
                else:
                    self.logger.error(str(e))
                error_group.add(e)

        self.logger.info(f'Starting {operation} of all {self.object_name} items')

        try:
            async for item in self.provider.get_all():
                queue.add(lambda item=item: job(item))
        finally:
            # Items already queued always finish, even if listing failed
            await queue.wait_until_finished()

        self.logger.info(
            f'Finished {operation} of {queue.completed_jobs} {self.object_name} '
            f'items ({len(error_group.warnings)} warnings, '
            f'{len(error_group.fatal_errors)} errors)'
        )

        error_group.throw_if_not_empty()
        return None if error_group.is_empty else error_group

    # Dependency helpers

    async def recreate_by_object_or_id(self, id_or_item: Union[str, ItemType]) -> str:
        if isinstance(id_or_item, str):
            return await self.recreate_by_id(id_or_item)
        return await self.recreate(id_or_item)

    async def recreate_by_id(self, source_id: str) -> str:
        already_recreated_id = self.recreated_id(source_id)
        if already_recreated_id:
            self.logger.debug(
                f'Skipped {self.object_name} {source_id}, because already '
                f'recreated as {already_recreated_id} in this run'
            )
            return already_recreated_id

        item = await self.provider.get_by_id(source_id)
        return await self.recreate(item)

    async def revert_by_object_or_id(self, id_or_item: Union[str, ItemType]) -> None:
        if isinstance(id_or_item, str):
            return await self.revert_by_id(id_or_item)
        return await self.revert(id_or_item)

    async def revert_by_id(self, source_id: str) -> None:
        if self.is_reverted(source_id):
            self.logger.debug(
                f'Skipped reverting {self.object_name} {source_id}, because '
                'already reverted in this run'
            )
            return

        item = await self.provider.get_by_id(source_id)
        await self.revert(item)

    async def confirm_by_id(self, source_id: str) -> None:
        if not self.confirmable or self.is_confirmed(source_id):
            return

        item = await self.provider.get_by_id(source_id)
        await self.confirm(item)

    async def recreate_and_confirm(self, item: ItemType) -> str:
        """Recreate an item and immediately finalize it."""
        new_id = await self.recreate(item)
        await self.confirm(item)
        return new_id

    # Single item operations

    async def recreate(self, item: ItemType) -> str:
        """Recreate one item in the new account.

        Returns:
            ID of the item in the new account

        Raises:
            MigrationWarning: If the provider signalled a skippable failure
            MigrationError: If recreating failed
        """
        already_recreated_id = self.recreated_id(item.id)
        if already_recreated_id:
            return already_recreated_id

        return await self._running_recreate_jobs.schedule(
            item.id, lambda: self._recreate(item)
        )

    async def _recreate(self, item: ItemType) -> str:
        # Repeated here: another caller may have finished while we waited
        state = self._state(item.id)
        if state.recreated_id:
            self.logger.debug(
                f'Skipped {self.object_name} {item.id}, because already '
                f'recreated as {state.recreated_id} in this run'
            )
            return state.recreated_id

        reuse = await self.provider.find_existing(item)
        if reuse is not None:
            self.logger.debug(
                f'Skipped {self.object_name} {item.id} because already '
                f'recreated as {reuse.id} in a previous run'
            )
            self.stats.track_reused(self.object_name)
            state.recreated_id = reuse.id
            return reuse.id

        self.logger.debug(f'Recreating {self.object_name} {item.id}...')

        try:
            new_id = await self.provider.recreate(item)
        except Exception as e:
            raise self._wrap_error('recreate', item, e) from e

        state.recreated_id = new_id
        self.logger.success(
            f'Recreated {self.object_name} {item.id} as {new_id} in new account'
        )
        self.stats.track_imported(self.object_name)
        return new_id

    async def revert(self, item: ItemType) -> None:
        """Remove the counterpart of one item from the new account.

        Reverting an item that was never recreated is a no-op.
        """
        if self.is_reverted(item.id):
            return

        await self._running_revert_jobs.schedule(item.id, lambda: self._revert(item))

    async def _revert(self, item: ItemType) -> None:
        state = self._state(item.id)
        if state.reverted:
            self.logger.debug(
                f'Skipped reverting {self.object_name} {item.id}, because '
                'already reverted in this run'
            )
            return

        new_item = await self.provider.find_existing(item)
        if new_item is None:
            self.logger.debug(
                f'Skipped reverting {self.object_name} {item.id} because not '
                'yet recreated in new account'
            )
            state.reverted = True
            return

        self.logger.debug(f'Removing {new_item.id} ({item.id} in old account)')

        try:
            await self.provider.revert(item, new_item)
        except Exception as e:
            raise self._wrap_error('revert', item, e) from e

        state.reverted = True
        self.logger.success(f'Removed {self.object_name} {new_item.id}')
        self.stats.track_reverted(self.object_name)

    async def confirm(self, item: ItemType) -> None:
        """Finalize the counterpart of one provisionally recreated item.

        Raises:
            MigrationWarning: If the item does not exist in the new account yet
            MigrationError: If confirming failed
        """
        if not self.confirmable or self.is_confirmed(item.id):
            return

        await self._running_confirm_jobs.schedule(
            item.id, lambda: self._confirm(item)
        )

    async def _confirm(self, item: ItemType) -> None:
        state = self._state(item.id)
        if state.confirmed:
            self.logger.debug(
                f'Skipped confirming {item.id}, because already confirmed in this run'
            )
            return

        new_item = await self.provider.find_existing(item)
        if new_item is None:
            # Marked anyway so the lookup is not repeated
            state.confirmed = True
            raise MigrationWarning(
                f'Could not confirm {self.object_name} {item.id} because not yet '
                'recreated in new account: did you disable creating new items in '
                'the old account? Consider running copy again.',
                object_name=self.object_name,
                source_id=item.id,
                operation='confirm',
            )

        self.logger.debug(f'Confirming {new_item.id} ({item.id} in old account)')

        try:
            await self.provider.confirm(item, new_item)
        except Exception as e:
            raise self._wrap_error('confirm', item, e) from e

        state.confirmed = True
        self.logger.success(f'Confirmed {self.object_name} {new_item.id}')
        self.stats.track_confirmed(self.object_name)

    def _wrap_error(
        self, operation: str, item: ItemType, error: Exception
    ) -> MigrationError:
        error_class = MigrationWarning if is_warning(error) else MigrationError
        return error_class(
            f'Failed to {operation} {self.object_name} {item.id}',
            object_name=self.object_name,
            source_id=item.id,
            operation=operation,
            cause=error,
        )
