"""In-memory database implementation.

Keeps the same contract as ``SQLAlchemyDatabase`` (including atomic
``apply_delta`` and ``mark_reversed``) so ledger services can be exercised
without a network or file dependency.
"""

import threading
from dataclasses import replace
from datetime import datetime, UTC
from decimal import Decimal
from typing import Optional

from ledgerkit.database.base import Database
from ledgerkit.domain import errors
from ledgerkit.domain.entities import Account, Notification, Transaction, TransactionType
from ledgerkit.utils.date_parser import to_utc


class InMemoryDatabase(Database):
    """Dictionary-backed implementation of Database interface."""

    def __init__(self):
        self._lock = threading.RLock()
        self._accounts: dict[int, Account] = {}
        self._transactions: dict[int, Transaction] = {}
        self._notifications: dict[int, Notification] = {}
        self._next_ids = {"accounts": 1, "transactions": 1, "notifications": 1}

    def _next_id(self, table: str) -> int:
        next_id = self._next_ids[table]
        self._next_ids[table] = next_id + 1
        return next_id

    def connect(self) -> None:
        pass

    def disconnect(self) -> None:
        pass

    def initialize_schema(self) -> None:
        pass

    # Account operations
    def create_account(
        self,
        owner_id: str,
        account_type: str,
        account_number: str,
        routing_number: str,
        balance: Decimal = Decimal("0"),
    ) -> int:
        with self._lock:
            if any(acc.account_number == account_number for acc in self._accounts.values()):
                raise errors.StoreUnavailable(f"Account number {account_number} already exists")
            account_id = self._next_id("accounts")
            self._accounts[account_id] = Account(
                id=account_id,
                owner_id=owner_id,
                account_type=account_type,
                account_number=account_number,
                routing_number=routing_number,
                balance=Decimal(balance).quantize(Decimal("0.01")),
                is_frozen=False,
                created_at=datetime.now(UTC),
            )
            return account_id

    def get_account(self, account_id: int) -> Optional[Account]:
        return self._accounts.get(account_id)

    def list_accounts(self, owner_id: Optional[str] = None) -> list[Account]:
        accounts = [
            acc for acc in self._accounts.values() if owner_id is None or acc.owner_id == owner_id
        ]
        return sorted(accounts, key=lambda acc: (acc.account_type, acc.id))

    def set_frozen(self, account_id: int, frozen: bool) -> Account:
        with self._lock:
            account = self._accounts.get(account_id)
            if account is None:
                raise errors.AccountNotFound(errors.account_not_found(account_id))
            account = replace(account, is_frozen=frozen)
            self._accounts[account_id] = account
            return account

    def apply_delta(
        self,
        account_id: int,
        delta: Decimal,
        *,
        enforce_frozen: bool = True,
        allow_overdraft: bool = False,
    ) -> Decimal:
        with self._lock:
            account = self._accounts.get(account_id)
            if account is None:
                raise errors.AccountNotFound(errors.account_not_found(account_id))
            if enforce_frozen and account.is_frozen:
                raise errors.AccountFrozen(errors.account_frozen(account_id))
            new_balance = account.balance + delta
            if new_balance < 0 and not allow_overdraft:
                raise errors.InsufficientFunds(
                    errors.insufficient_funds(account_id, account.balance, -delta)
                )
            self._accounts[account_id] = replace(account, balance=new_balance)
            return new_balance

    # Transaction operations
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
        with self._lock:
            transaction_id = self._next_id("transactions")
            transaction = Transaction(
                id=transaction_id,
                account_id=account_id,
                amount=amount,
                description=description,
                transaction_type=TransactionType(transaction_type),
                created_at=to_utc(created_at) or datetime.now(UTC),
                reversed=False,
                note=note,
                category=category,
                reverses_id=reverses_id,
            )
            self._transactions[transaction_id] = transaction
            return transaction

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        return self._transactions.get(transaction_id)

    def list_transactions(
        self,
        account_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Transaction]:
        start, end = to_utc(start), to_utc(end)
        result = []
        for txn in self._transactions.values():
            if account_id is not None and txn.account_id != account_id:
                continue
            if start is not None and txn.created_at < start:
                continue
            if end is not None and txn.created_at > end:
                continue
            result.append(txn)
        return sorted(result, key=lambda txn: (txn.created_at, txn.id), reverse=True)

    def mark_reversed(self, transaction_id: int) -> None:
        with self._lock:
            txn = self._transactions.get(transaction_id)
            if txn is None:
                raise errors.TransactionNotFound(errors.transaction_not_found(transaction_id))
            if txn.reversed:
                raise errors.AlreadyReversed(errors.already_reversed(transaction_id))
            self._transactions[transaction_id] = replace(txn, reversed=True)

    def clear_reversed(self, transaction_id: int) -> None:
        with self._lock:
            txn = self._transactions.get(transaction_id)
            if txn is not None:
                self._transactions[transaction_id] = replace(txn, reversed=False)

    def ledger_sum(self, account_id: int) -> Decimal:
        return sum(
            (txn.amount for txn in self._transactions.values() if txn.account_id == account_id),
            Decimal("0.00"),
        )

    # Notification operations
    def insert_notification(self, owner_id: str, title: str, message: str) -> int:
        with self._lock:
            notification_id = self._next_id("notifications")
            self._notifications[notification_id] = Notification(
                id=notification_id,
                owner_id=owner_id,
                title=title,
                message=message,
                created_at=datetime.now(UTC),
            )
            return notification_id

    def list_notifications(self, owner_id: str) -> list[Notification]:
        notifications = [n for n in self._notifications.values() if n.owner_id == owner_id]
        return sorted(notifications, key=lambda n: (n.created_at, n.id), reverse=True)
