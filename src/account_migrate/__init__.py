"""Account Migration Tool

Migrates typed objects (customers, subscriptions, invoices, ...) from one
account of an external service to another, with support for reverting and
confirming a migration.
"""

__version__ = '0.1.0'

from .cli import main

__all__ = ['main']
