"""Migration engine - runs importers of all object types in dependency order."""

import importlib
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from loguru import logger
from pydantic import BaseModel, Field

from ..config.config import Config
from ..importers.errors import (
    BatchFailure,
    DependencyCycleError,
    MigrationError,
    UnknownDependencyError,
)
from ..importers.importer import Importer
from ..importers.provider import ImportProvider
from ..importers.stats import ImportStats, ObjectStats

OPERATIONS = ('recreate', 'revert', 'confirm')


class ProviderLoadError(MigrationError):
    """A provider factory could not be imported or called."""

    pass


class MigrationSummary(BaseModel):
    """Summary of one engine run."""

    operation: str = Field(..., description='Operation that was executed')
    started_at: datetime = Field(..., description='Run start time')
    completed_at: Optional[datetime] = Field(
        default=None, description='Run completion time'
    )

    execution_order: List[str] = Field(
        default_factory=list, description='Object types in the order they ran'
    )
    results_by_type: Dict[str, ObjectStats] = Field(
        default_factory=dict, description='Counters grouped by object type'
    )
    warnings: Dict[str, List[str]] = Field(
        default_factory=dict, description='Warning messages grouped by object type'
    )
    errors: Dict[str, List[str]] = Field(
        default_factory=dict, description='Error messages grouped by object type'
    )

    @property
    def success(self) -> bool:
        return not any(self.errors.values())

    @property
    def warning_count(self) -> int:
        return sum(len(messages) for messages in self.warnings.values())

    @property
    def error_count(self) -> int:
        return sum(len(messages) for messages in self.errors.values())


def topological_order(dependencies: Dict[str, Sequence[str]]) -> List[str]:
    """Order names so that every name comes after its dependencies.

    Ties keep the insertion order of ``dependencies``.

    Raises:
        UnknownDependencyError: If a dependency is not a key of the mapping
        DependencyCycleError: If the dependencies contain a cycle
    """
    for name, depends_on in dependencies.items():
        for dependency in depends_on:
            if dependency not in dependencies:
                raise UnknownDependencyError(
                    f'{name} depends on unknown object type {dependency}',
                    object_name=name,
                )

    order: List[str] = []
    visiting: List[str] = []
    done = set()

    def visit(name: str) -> None:
        if name in done:
            return
        if name in visiting:
            cycle = visiting[visiting.index(name) :] + [name]
            raise DependencyCycleError(
                f'Dependency cycle between object types: {" -> ".join(cycle)}',
                object_name=name,
            )
        visiting.append(name)
        for dependency in dependencies[name]:
            visit(dependency)
        visiting.pop()
        done.add(name)
        order.append(name)

    for name in dependencies:
        visit(name)

    return order


def load_provider_factory(path: str) -> Callable[..., ImportProvider]:
    """Import a provider factory from a ``package.module:factory`` path."""
    module_name, _, attr = path.partition(':')
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ProviderLoadError(
            f'Cannot import provider module {module_name}', cause=e
        ) from e

    try:
        factory = getattr(module, attr)
    except AttributeError as e:
        raise ProviderLoadError(
            f'{module_name} has no attribute {attr}', cause=e
        ) from e

    if not callable(factory):
        raise ProviderLoadError(f'Provider factory {path} is not callable')
    return factory


class MigrationEngine:
    """Owns one importer per object type and runs them in dependency order.

    Dependencies are declared when an importer is registered, and must form
    a directed acyclic graph. Providers are free to call the importers they
    depend on to resolve referenced objects.
    """

    def __init__(
        self, config: Optional[Config] = None, stats: Optional[ImportStats] = None
    ):
        """Initialize migration engine.

        Args:
            config: Migration configuration (defaults are used if not provided)
            stats: Statistics tracker shared by all importers
        """
        self.config = config or Config()
        self.stats = stats or ImportStats()
        self.logger = logger.bind(component='MigrationEngine')

        self._importers: Dict[str, Importer] = {}
        self._dependencies: Dict[str, List[str]] = {}

    @property
    def importers(self) -> Dict[str, Importer]:
        return dict(self._importers)

    def register(
        self,
        object_name: str,
        provider: ImportProvider,
        depends_on: Iterable[str] = (),
    ) -> Importer:
        """Create and register the importer for an object type.

        Args:
            object_name: Object type name
            provider: Provider for this object type
            depends_on: Object types that must be migrated before this one

        Returns:
            The new importer

        Raises:
            ValueError: If the object type is already registered
            UnknownDependencyError: If a dependency is not registered yet
            DependencyCycleError: If the object type depends on itself
        """
        if object_name in self._importers:
            raise ValueError(f'Object type already registered: {object_name}')

        depends_on = list(depends_on)
        if object_name in depends_on:
            raise DependencyCycleError(
                f'Object type {object_name} depends on itself',
                object_name=object_name,
            )
        # Dependencies must exist already, which keeps the graph acyclic
        for dependency in depends_on:
            if dependency not in self._importers:
                raise UnknownDependencyError(
                    f'{object_name} depends on unknown object type {dependency}',
                    object_name=object_name,
                )

        importer = Importer(
            object_name,
            provider,
            self.stats,
            concurrency=self.config.migration.concurrency,
        )
        self._importers[object_name] = importer
        self._dependencies[object_name] = depends_on
        self.logger.debug(
            f'Registered {object_name}'
            + (f' (depends on {", ".join(depends_on)})' if depends_on else '')
        )
        return importer

    def importer(self, object_name: str) -> Importer:
        """Get the importer of an object type.

        Raises:
            KeyError: If the object type is not registered
        """
        try:
            return self._importers[object_name]
        except KeyError:
            raise KeyError(f'No importer registered for {object_name}') from None

    def execution_order(self) -> List[str]:
        return topological_order(self._dependencies)

    def load_providers(self) -> None:
        """Register importers for every enabled object type in the config.

        Factories are called as ``factory(engine, **options)`` in dependency
        order, so a factory can look up the importers it depends on.
        """
        object_types = self.config.enabled_object_types()
        order = topological_order(
            {name: ot.depends_on for name, ot in object_types.items()}
        )

        for name in order:
            object_type = object_types[name]
            factory = load_provider_factory(object_type.provider)
            try:
                provider = factory(self, **object_type.options)
            except Exception as e:
                raise ProviderLoadError(
                    f'Failed to create provider for {name}', object_name=name, cause=e
                ) from e
            self.register(name, provider, depends_on=object_type.depends_on)

    async def recreate_all(self) -> MigrationSummary:
        """Recreate all object types, dependencies first."""
        return await self._execute('recreate', ['recreate'])

    async def revert_all(self) -> MigrationSummary:
        """Revert all object types, dependents first."""
        return await self._execute('revert', ['revert'])

    async def confirm_all(self) -> MigrationSummary:
        """Confirm all object types, dependencies first."""
        return await self._execute('confirm', ['confirm'])

    async def copy(self) -> MigrationSummary:
        """Recreate everything, then confirm everything."""
        return await self._execute('copy', ['recreate', 'confirm'])

    async def _execute(self, name: str, operations: List[str]) -> MigrationSummary:
        order = self.execution_order()
        summary = MigrationSummary(
            operation=name, started_at=datetime.now(), execution_order=order
        )

        self.logger.info(f'Starting {name} of {len(order)} object types')

        for operation in operations:
            type_order = list(reversed(order)) if operation == 'revert' else order
            for object_name in type_order:
                await self._run_importer(summary, operation, object_name)

        summary.completed_at = datetime.now()
        summary.results_by_type = {
            object_name: self.stats.get(object_name) for object_name in order
        }

        if summary.success:
            self.logger.info(
                f'{name.capitalize()} completed with {summary.warning_count} warnings'
            )
        else:
            self.logger.error(
                f'{name.capitalize()} completed with {summary.error_count} errors '
                f'and {summary.warning_count} warnings'
            )
        return summary

    async def _run_importer(
        self, summary: MigrationSummary, operation: str, object_name: str
    ) -> None:
        if operation not in OPERATIONS:
            raise ValueError(f'Unknown operation: {operation}')

        importer = self._importers[object_name]
        warnings = summary.warnings.setdefault(object_name, [])
        errors = summary.errors.setdefault(object_name, [])

        try:
            group = await getattr(importer, f'{operation}_all')()
        except BatchFailure as e:
            warnings.extend(str(w) for w in e.group.warnings)
            errors.extend(str(error) for error in e.errors)
            self.logger.error(
                f'{operation.capitalize()} of {object_name} failed with '
                f'{len(e.errors)} errors'
            )
            return
        except Exception as e:
            errors.append(str(e))
            self.logger.error(f'{operation.capitalize()} of {object_name} failed: {e}')
            return

        if group is not None:
            warnings.extend(str(w) for w in group.warnings)
