"""Domain layer for ledgerkit.

Services live in their own modules (``ledgerkit.domain.ledger`` and friends)
and are imported from there; this package only re-exports the entities so
the database layer can import them without pulling in the services.
"""

from ledgerkit.domain.entities import Account, Notification, Transaction, TransactionType

__all__ = ["Account", "Notification", "Transaction", "TransactionType"]
