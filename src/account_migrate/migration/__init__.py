"""Migration engine."""

from .engine import (
    MigrationEngine,
    MigrationSummary,
    ProviderLoadError,
    load_provider_factory,
    topological_order,
)

__all__ = [
    'MigrationEngine',
    'MigrationSummary',
    'ProviderLoadError',
    'load_provider_factory',
    'topological_order',
]
