"""Abstract record store interface.

The ledger talks to storage only through these repositories, so services
can be exercised against the in-memory implementation without a database.
Implementations wrap every store-layer failure in ``StoreUnavailable``.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Optional

# Import entities directly to avoid circular import through domain/__init__.py
from ledgerkit.domain.entities import Account, Notification, Transaction, TransactionType


class AccountRepository(ABC):
    """Account storage."""

    @abstractmethod
    def create_account(
        self,
        owner_id: str,
        account_type: str,
        account_number: str,
        routing_number: str,
        balance: Decimal = Decimal("0"),
    ) -> int:
        """Create a new account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def list_accounts(self, owner_id: Optional[str] = None) -> list[Account]:
        """List accounts, optionally only those of one owner."""
        pass

    @abstractmethod
    def set_frozen(self, account_id: int, frozen: bool) -> Account:
        """Freeze or unfreeze an account.

        Raises:
            AccountNotFound: If the account does not exist
        """
        pass

    @abstractmethod
    def apply_delta(
        self,
        account_id: int,
        delta: Decimal,
        *,
        enforce_frozen: bool = True,
        allow_overdraft: bool = False,
    ) -> Decimal:
        """Atomically add ``delta`` to the account balance. Returns the new balance.

        This is the only way balances change. The frozen and funds checks are
        evaluated in the same atomic step as the write.

        Raises:
            AccountNotFound: If the account does not exist
            AccountFrozen: If ``enforce_frozen`` and the account is frozen
            InsufficientFunds: If the result would be negative and
                ``allow_overdraft`` is False
        """
        pass


class TransactionRepository(ABC):
    """Ledger entry storage."""

    @abstractmethod
    def insert_transaction(
        self,
        account_id: int,
        amount: Decimal,
        description: str,
        transaction_type: TransactionType,
        created_at: Optional[datetime] = None,
        note: Optional[str] = None,
        category: Optional[str] = None,
        reverses_id: Optional[int] = None,
    ) -> Transaction:
        """Insert a ledger entry. The store assigns the ID."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        account_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Transaction]:
        """List transactions, newest first, with optional filters."""
        pass

    @abstractmethod
    def mark_reversed(self, transaction_id: int) -> None:
        """Flag a transaction as reversed (compare-and-set false -> true).

        Raises:
            TransactionNotFound: If the transaction does not exist
            AlreadyReversed: If the flag was already set
        """
        pass

    @abstractmethod
    def clear_reversed(self, transaction_id: int) -> None:
        """Undo ``mark_reversed``. Only used to compensate a failed reversal."""
        pass

    @abstractmethod
    def ledger_sum(self, account_id: int) -> Decimal:
        """Signed sum of every entry posted against the account."""
        pass


class NotificationRepository(ABC):
    """Owner notification storage."""

    @abstractmethod
    def insert_notification(self, owner_id: str, title: str, message: str) -> int:
        """Insert a notification. Returns notification ID."""
        pass

    @abstractmethod
    def list_notifications(self, owner_id: str) -> list[Notification]:
        """List an owner's notifications, newest first."""
        pass


class Database(AccountRepository, TransactionRepository, NotificationRepository):
    """Complete record store used by the ledger services."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass
