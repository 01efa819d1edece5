"""Import statistics per object type."""

from typing import Dict, List

from pydantic import BaseModel, Field


class ObjectStats(BaseModel):
    """Outcome counters for one object type."""

    imported: int = Field(default=0, description='Items created in new account')
    reused: int = Field(default=0, description='Items found from a previous run')
    reverted: int = Field(default=0, description='Items removed from new account')
    confirmed: int = Field(default=0, description='Items finalized in new account')

    @property
    def total(self) -> int:
        return self.imported + self.reused + self.reverted + self.confirmed


class ImportStats:
    """Tracks import outcomes for all object types of a run."""

    def __init__(self) -> None:
        self._stats: Dict[str, ObjectStats] = {}
        self._warnings: List[str] = []

    def _for(self, object_name: str) -> ObjectStats:
        if object_name not in self._stats:
            self._stats[object_name] = ObjectStats()
        return self._stats[object_name]

    def track_imported(self, object_name: str) -> None:
        self._for(object_name).imported += 1

    def track_reused(self, object_name: str) -> None:
        self._for(object_name).reused += 1

    def track_reverted(self, object_name: str) -> None:
        self._for(object_name).reverted += 1

    def track_confirmed(self, object_name: str) -> None:
        self._for(object_name).confirmed += 1

    def add_warning(self, message: str) -> None:
        """Record a run-level warning for the final report."""
        self._warnings.append(message)

    @property
    def warnings(self) -> List[str]:
        return list(self._warnings)

    @property
    def object_names(self) -> List[str]:
        return list(self._stats)

    def get(self, object_name: str) -> ObjectStats:
        """Get counters for an object type.

        Args:
            object_name: Object type name

        Returns:
            Copy of the counters (zeros for unknown object types)
        """
        stats = self._stats.get(object_name)
        return stats.model_copy() if stats else ObjectStats()

    def totals(self) -> ObjectStats:
        """Sum counters over all object types."""
        total = ObjectStats()
        for stats in self._stats.values():
            total.imported += stats.imported
            total.reused += stats.reused
            total.reverted += stats.reverted
            total.confirmed += stats.confirmed
        return total

    def to_dict(self) -> Dict[str, Dict[str, int]]:
        return {name: stats.model_dump() for name, stats in self._stats.items()}

    def reset(self) -> None:
        self._stats.clear()
        self._warnings.clear()
