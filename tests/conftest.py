"""Shared test fixtures."""

import pytest
from loguru import logger

from src.account_migrate.importers.importer import Importer
from src.account_migrate.importers.stats import ImportStats

from tests.fakes import FakeConfirmableProvider, FakeProvider, Item


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop sinks added by a test so later tests do not write to closed streams."""
    yield
    logger.remove()


@pytest.fixture
def stats():
    return ImportStats()


@pytest.fixture
def items():
    return [Item(id='A'), Item(id='B'), Item(id='C')]


@pytest.fixture
def provider(items):
    return FakeProvider(items)


@pytest.fixture
def confirmable_provider(items):
    return FakeConfirmableProvider(items)


@pytest.fixture
def importer(provider, stats):
    return Importer('subscription', provider, stats)


@pytest.fixture
def confirmable_importer(confirmable_provider, stats):
    return Importer('subscription', confirmable_provider, stats)
