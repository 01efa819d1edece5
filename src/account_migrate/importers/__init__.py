"""Object type importers and their building blocks."""

from .errors import (
    BatchFailure,
    DependencyCycleError,
    ErrorGroup,
    ErrorKind,
    MigrationError,
    MigrationWarning,
    UnknownDependencyError,
    is_warning,
)
from .importer import Importer, ItemState
from .provider import ConfirmableImportProvider, Identifiable, ImportProvider
from .stats import ImportStats, ObjectStats

__all__ = [
    'BatchFailure',
    'ConfirmableImportProvider',
    'DependencyCycleError',
    'ErrorGroup',
    'ErrorKind',
    'Identifiable',
    'ImportProvider',
    'ImportStats',
    'Importer',
    'ItemState',
    'MigrationError',
    'MigrationWarning',
    'ObjectStats',
    'UnknownDependencyError',
    'is_warning',
]
