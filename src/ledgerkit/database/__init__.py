"""Database layer for ledgerkit."""

from ledgerkit.database.base import (
    AccountRepository,
    Database,
    NotificationRepository,
    TransactionRepository,
)
from ledgerkit.database.factories import create_memory_database, create_sqlite_database

__all__ = [
    "AccountRepository",
    "Database",
    "NotificationRepository",
    "TransactionRepository",
    "create_memory_database",
    "create_sqlite_database",
]
