"""Provider contract consumed by importers.

A provider knows how to read items of one object type from the old account
and how to write them to the new account. Importers never talk to the
external service directly.
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator, Generic, Optional, Protocol, TypeVar


class Identifiable(Protocol):
    """Anything with a string ``id``."""

    id: str


ItemType = TypeVar('ItemType', bound=Identifiable)


class ImportProvider(ABC, Generic[ItemType]):
    """Required capabilities for one object type."""

    @abstractmethod
    async def get_by_id(self, source_id: str) -> ItemType:
        """Fetch a single item from the old account.

        Raises:
            Exception: If the item does not exist
        """
        pass

    @abstractmethod
    def get_all(self) -> AsyncIterator[ItemType]:
        """Iterate over all items of this type in the old account."""
        pass

    @abstractmethod
    async def find_existing(self, source_item: ItemType) -> Optional[ItemType]:
        """Find the counterpart of an item in the new account.

        Used to resume an interrupted run without duplicating objects, and to
        locate the item to revert or confirm.

        Returns:
            The new account item, or None if it was never recreated
        """
        pass

    @abstractmethod
    async def recreate(self, source_item: ItemType) -> str:
        """Recreate an item in the new account.

        Raise ``MigrationWarning`` for expected, skippable conditions.

        Returns:
            ID of the item in the new account
        """
        pass

    @abstractmethod
    async def revert(self, source_item: ItemType, new_item: ItemType) -> None:
        """Undo a previous recreate."""
        pass


class ConfirmableImportProvider(ImportProvider[ItemType]):
    """Provider whose items are created in a provisional state."""

    @abstractmethod
    async def confirm(self, source_item: ItemType, new_item: ItemType) -> None:
        """Finalize an item that was recreated provisionally."""
        pass
