"""Tests for the record store contract, run against every implementation."""

from datetime import datetime, UTC
from decimal import Decimal

import pytest
from sqlalchemy import event, update

from ledgerkit.database.memory import InMemoryDatabase
from ledgerkit.database.models import Account
from ledgerkit.database.sqlalchemy_db import MAX_BALANCE_RETRIES
from ledgerkit.domain import entities, errors
from ledgerkit.domain.entities import TransactionType


@pytest.fixture(params=["sqlite", "memory"])
def db(request, settings):
    if request.param == "memory":
        return InMemoryDatabase()
    return request.getfixturevalue("temp_db")


@pytest.fixture
def account_id(db):
    return db.create_account("user-1", "checking", "000123456789", "021000021")


class TestDatabaseInterface:
    """Tests to verify the Database interface returns domain models."""

    def test_get_account_returns_domain_model(self, db, account_id):
        account = db.get_account(account_id)

        assert isinstance(account, entities.Account)
        assert account.id == account_id
        assert account.owner_id == "user-1"
        assert account.balance == Decimal("0.00")
        assert account.is_frozen is False
        assert account.created_at.tzinfo is not None

    def test_get_missing_account(self, db):
        assert db.get_account(42) is None

    def test_list_accounts_by_owner(self, db, account_id):
        db.create_account("user-2", "savings", "000999999999", "021000021")

        assert [acc.id for acc in db.list_accounts(owner_id="user-1")] == [account_id]
        assert len(db.list_accounts()) == 2

    def test_set_frozen(self, db, account_id):
        assert db.set_frozen(account_id, True).is_frozen
        assert db.get_account(account_id).is_frozen
        assert not db.set_frozen(account_id, False).is_frozen

    def test_set_frozen_missing_account(self, db):
        with pytest.raises(errors.AccountNotFound):
            db.set_frozen(42, True)

    def test_duplicate_account_number(self, db, account_id):
        with pytest.raises(errors.StoreUnavailable):
            db.create_account("user-2", "savings", "000123456789", "021000021")


class TestApplyDelta:
    def test_credit_and_debit(self, db, account_id):
        assert db.apply_delta(account_id, Decimal("50.00")) == Decimal("50.00")
        assert db.apply_delta(account_id, Decimal("-20.25")) == Decimal("29.75")
        assert db.get_account(account_id).balance == Decimal("29.75")

    def test_overdraft_rejected(self, db, account_id):
        db.apply_delta(account_id, Decimal("10.00"))
        with pytest.raises(errors.InsufficientFunds):
            db.apply_delta(account_id, Decimal("-10.01"))
        assert db.get_account(account_id).balance == Decimal("10.00")

    def test_overdraft_allowed_when_asked(self, db, account_id):
        assert db.apply_delta(account_id, Decimal("-5.00"), allow_overdraft=True) == Decimal("-5.00")

    def test_frozen_rejected(self, db, account_id):
        db.set_frozen(account_id, True)
        with pytest.raises(errors.AccountFrozen):
            db.apply_delta(account_id, Decimal("1.00"))

    def test_frozen_ignored_for_compensation(self, db, account_id):
        db.set_frozen(account_id, True)
        assert db.apply_delta(account_id, Decimal("1.00"), enforce_frozen=False) == Decimal("1.00")

    def test_missing_account(self, db):
        with pytest.raises(errors.AccountNotFound):
            db.apply_delta(42, Decimal("1.00"))


class InterferingWriter:
    """Commits a competing balance write just before the store's UPDATE runs."""

    def __init__(self, engine, account_id: int, balance: Decimal):
        self.engine = engine
        self.account_id = account_id
        self.balance = balance
        self.remaining = 0
        self.fired = 0
        self._writing = False

    def before_cursor_execute(self, conn, cursor, statement, parameters, context, executemany):
        if self._writing or not self.remaining or not statement.startswith("UPDATE accounts"):
            return
        self.remaining -= 1
        self.fired += 1
        self._writing = True
        try:
            with self.engine.begin() as other:
                other.execute(
                    update(Account)
                    .where(Account.id == self.account_id)
                    .values(balance=self.balance, version=Account.version + 1)
                )
        finally:
            self._writing = False


class TestBalanceVersionConflicts:
    """SQLite store: a stale version must be retried, never overwritten."""

    @pytest.fixture
    def writer(self, temp_db):
        account_id = temp_db.create_account("user-1", "checking", "000123456789", "021000021")
        writer = InterferingWriter(temp_db.engine, account_id, Decimal("50.00"))
        event.listen(temp_db.engine, "before_cursor_execute", writer.before_cursor_execute)
        yield writer
        event.remove(temp_db.engine, "before_cursor_execute", writer.before_cursor_execute)

    def test_conflict_is_retried_against_fresh_balance(self, temp_db, writer):
        writer.remaining = 1

        assert temp_db.apply_delta(writer.account_id, Decimal("10.00")) == Decimal("60.00")
        assert writer.fired == 1
        assert temp_db.get_account(writer.account_id).balance == Decimal("60.00")

    def test_gives_up_after_repeated_conflicts(self, temp_db, writer):
        writer.remaining = MAX_BALANCE_RETRIES

        with pytest.raises(errors.StoreUnavailable):
            temp_db.apply_delta(writer.account_id, Decimal("10.00"))

        assert writer.fired == MAX_BALANCE_RETRIES
        assert temp_db.get_account(writer.account_id).balance == Decimal("50.00")

    def test_funds_rule_uses_the_fresh_balance(self, temp_db, writer):
        temp_db.apply_delta(writer.account_id, Decimal("80.00"))
        writer.remaining = 1

        with pytest.raises(errors.InsufficientFunds):
            temp_db.apply_delta(writer.account_id, Decimal("-70.00"))
        assert temp_db.get_account(writer.account_id).balance == Decimal("50.00")


class TestTransactions:
    def insert(self, db, account_id, amount, created_at=None, **kwargs):
        return db.insert_transaction(
            account_id=account_id,
            amount=Decimal(amount),
            description="Entry",
            transaction_type=TransactionType.DEPOSIT,
            created_at=created_at,
            **kwargs,
        )

    def test_insert_and_get(self, db, account_id):
        txn = self.insert(db, account_id, "12.00", note="n", category="c")

        fetched = db.get_transaction(txn.id)
        assert isinstance(fetched, entities.Transaction)
        assert fetched.amount == Decimal("12.00")
        assert fetched.transaction_type is TransactionType.DEPOSIT
        assert fetched.note == "n"
        assert fetched.category == "c"
        assert fetched.reversed is False

    def test_list_filters_by_range_newest_first(self, db, account_id):
        old = self.insert(db, account_id, "1", created_at=datetime(2024, 1, 1, tzinfo=UTC))
        mid = self.insert(db, account_id, "2", created_at=datetime(2024, 2, 1, tzinfo=UTC))
        new = self.insert(db, account_id, "3", created_at=datetime(2024, 3, 1, tzinfo=UTC))

        assert [t.id for t in db.list_transactions(account_id=account_id)] == [new.id, mid.id, old.id]
        ranged = db.list_transactions(
            account_id=account_id,
            start=datetime(2024, 1, 15, tzinfo=UTC),
            end=datetime(2024, 2, 15, tzinfo=UTC),
        )
        assert [t.id for t in ranged] == [mid.id]

    def test_mark_reversed_is_compare_and_set(self, db, account_id):
        txn = self.insert(db, account_id, "5")

        db.mark_reversed(txn.id)
        assert db.get_transaction(txn.id).reversed
        with pytest.raises(errors.AlreadyReversed):
            db.mark_reversed(txn.id)

        db.clear_reversed(txn.id)
        assert not db.get_transaction(txn.id).reversed

    def test_mark_reversed_missing(self, db):
        with pytest.raises(errors.TransactionNotFound):
            db.mark_reversed(999)

    def test_ledger_sum(self, db, account_id):
        assert db.ledger_sum(account_id) == Decimal("0")
        self.insert(db, account_id, "10.10")
        self.insert(db, account_id, "-2.05")
        assert db.ledger_sum(account_id) == Decimal("8.05")


class TestNotifications:
    def test_insert_and_list_newest_first(self, db):
        first = db.insert_notification("user-1", "One", "first")
        second = db.insert_notification("user-1", "Two", "second")
        db.insert_notification("user-2", "Other", "other")

        notifications = db.list_notifications("user-1")
        assert [n.id for n in notifications] == [second, first]
        assert all(isinstance(n, entities.Notification) for n in notifications)
