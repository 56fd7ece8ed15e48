"""Ledger domain service: deposits, withdrawals, transfers and undo.

Each operation runs validate -> step-up check -> atomic balance write ->
transaction insert -> best-effort notification. The balance write goes
through ``apply_delta``, which re-checks frozen status and funds in the same
atomic step as the update, so a freeze or a competing withdrawal that lands
after validation is still caught.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ledgerkit.config import Settings, get_settings
from ledgerkit.database.base import Database
from ledgerkit.domain import errors, validation
from ledgerkit.domain.entities import Account, Transaction, TransactionType
from ledgerkit.domain.errors import format_money, raise_for_errors
from ledgerkit.domain.stepup import Operation, StepUpAuthorization, enforce_step_up
from ledgerkit.utils.amount_parser import parse_positive_amount

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PostingResult:
    """Outcome of a single-account posting."""

    transaction: Transaction
    balance: Decimal


@dataclass(frozen=True)
class TransferResult:
    """Outcome of a transfer: one debit and one credit entry."""

    debit: Transaction
    credit: Transaction
    source_balance: Decimal
    destination_balance: Decimal


@dataclass(frozen=True)
class Reconciliation:
    account_id: int
    balance: Decimal
    ledger_sum: Decimal

    @property
    def consistent(self) -> bool:
        return self.balance == self.ledger_sum


class LedgerService:
    """Service for moving money between accounts."""

    def __init__(self, db: Database, settings: Optional[Settings] = None):
        """Initialize ledger service.

        Args:
            db: Database instance
            settings: Thresholds to enforce; defaults to the global settings
        """
        self.db = db
        self.settings = settings or get_settings()

    def deposit(
        self,
        account_id: int,
        amount,
        note: Optional[str] = None,
        category: Optional[str] = None,
        authorization: Optional[StepUpAuthorization] = None,
    ) -> PostingResult:
        """Credit an account.

        Returns:
            The posted entry and the new balance

        Raises:
            InvalidAmount, AccountNotFound, AccountFrozen: On validation failure
            StepUpRequired: If the amount needs confirmation first
            StoreUnavailable: If the store fails (balance is left unchanged)
        """
        return self.post(
            account_id,
            TransactionType.DEPOSIT,
            amount,
            "Deposit",
            note=note,
            category=category,
            authorization=authorization,
        )

    def withdraw(
        self,
        account_id: int,
        amount,
        note: Optional[str] = None,
        category: Optional[str] = None,
        authorization: Optional[StepUpAuthorization] = None,
    ) -> PostingResult:
        """Debit an account.

        Raises:
            InsufficientFunds: If the amount exceeds the balance
            StepUpRequired: If the amount needs confirmation or re-authentication
        """
        return self.post(
            account_id,
            TransactionType.WITHDRAWAL,
            amount,
            "Withdrawal",
            note=note,
            category=category,
            authorization=authorization,
        )

    def post(
        self,
        account_id: int,
        transaction_type: TransactionType,
        amount,
        description: str,
        *,
        note: Optional[str] = None,
        category: Optional[str] = None,
        created_at: Optional[datetime] = None,
        authorization: Optional[StepUpAuthorization] = None,
    ) -> PostingResult:
        """Post a single-account entry.

        Withdrawals debit the account; deposits and inbound transfers credit
        it. ``amount`` is always given as a positive value.
        """
        transaction_type = TransactionType(transaction_type)
        account = self.db.get_account(account_id)
        if transaction_type == TransactionType.WITHDRAWAL:
            raise_for_errors(validation.validate_withdrawal(account, account_id, amount))
        else:
            raise_for_errors(validation.validate_deposit(account, account_id, amount))

        value = parse_positive_amount(amount)
        enforce_step_up(Operation(transaction_type.value), value, authorization, self.settings)

        delta = -value if transaction_type == TransactionType.WITHDRAWAL else value
        transaction, balance = self._write_entry(
            account_id,
            delta,
            transaction_type,
            description,
            note=note,
            category=category,
            created_at=created_at,
        )
        logger.info(
            "Posted %s of %s to account %s (transaction %s)",
            transaction_type.value,
            value,
            account_id,
            transaction.id,
        )
        self._notify(
            account,
            f"New {transaction_type.value} Transaction",
            f"A {transaction_type.value} of {format_money(value)} has been applied "
            f"to your account: {description}",
        )
        return PostingResult(transaction=transaction, balance=balance)

    def transfer(
        self,
        source_id: int,
        destination_id: int,
        amount,
        note: Optional[str] = None,
        category: Optional[str] = None,
        authorization: Optional[StepUpAuthorization] = None,
    ) -> TransferResult:
        """Move money from one account to another.

        Produces two entries: ``-amount`` on the source, ``+amount`` on the
        destination. The legs are separate writes; if the credit leg fails
        after the debit leg committed, the debit is reversed automatically
        and ``PartialTransferFailure`` is raised.

        Raises:
            InvalidDestination: If source and destination are the same account
            AccountNotFound, AccountFrozen, InsufficientFunds, InvalidAmount
            StepUpRequired: If the amount needs confirmation first
            PartialTransferFailure: If the debit committed but the credit did not
        """
        source = self.db.get_account(source_id)
        destination = source if destination_id == source_id else self.db.get_account(destination_id)
        raise_for_errors(
            validation.validate_transfer(source, source_id, destination, destination_id, amount)
        )

        value = parse_positive_amount(amount)
        enforce_step_up(Operation.TRANSFER, value, authorization, self.settings)

        debit, source_balance = self._write_entry(
            source_id,
            -value,
            TransactionType.TRANSFER,
            f"Transfer to {destination.masked_number}",
            note=note,
            category=category,
        )
        try:
            credit, destination_balance = self._write_entry(
                destination_id,
                value,
                TransactionType.TRANSFER,
                f"Transfer from {source.masked_number}",
                note=note,
                category=category,
            )
        except errors.DomainError as e:
            compensated = self._compensate_transfer(debit)
            if compensated:
                message = (
                    f"Transfer could not be credited to account {destination_id}: {e}. "
                    f"The debit from account {source_id} was reversed."
                )
            else:
                message = (
                    f"Transfer could not be credited to account {destination_id}: {e}. "
                    f"The debit of {format_money(value)} from account {source_id} could not be "
                    f"reversed automatically (transaction {debit.id}); manual correction required."
                )
            logger.error(message)
            raise errors.PartialTransferFailure(
                message, debit_transaction_id=debit.id, compensated=compensated
            ) from e

        logger.info(
            "Transferred %s from account %s to account %s (transactions %s, %s)",
            value,
            source_id,
            destination_id,
            debit.id,
            credit.id,
        )
        self._notify(
            source,
            "New transfer Transaction",
            f"A transfer of {format_money(value)} was sent to account {destination.masked_number}",
        )
        self._notify(
            destination,
            "New transfer Transaction",
            f"A transfer of {format_money(value)} was received from account {source.masked_number}",
        )
        return TransferResult(
            debit=debit,
            credit=credit,
            source_balance=source_balance,
            destination_balance=destination_balance,
        )

    def undo(
        self,
        transaction_id: int,
        authorization: Optional[StepUpAuthorization] = None,
    ) -> PostingResult:
        """Reverse a transaction by posting an inverse entry.

        History is never edited: a new entry with the negated amount is
        inserted and the original is flagged ``reversed``. A reversing entry
        cannot itself be undone; correct it with a fresh operation instead.

        Raises:
            TransactionNotFound: If the transaction does not exist
            AlreadyReversed: If it was already reversed, or is itself a reversal
            AccountFrozen: If the account is frozen
            InsufficientFunds: If reversing a credit would overdraw the account
        """
        original = self.db.get_transaction(transaction_id)
        if original is None:
            raise errors.TransactionNotFound(errors.transaction_not_found(transaction_id))
        if original.reversed:
            raise errors.AlreadyReversed(errors.already_reversed(transaction_id))
        if original.reverses_id is not None:
            raise errors.AlreadyReversed(
                f"Transaction {transaction_id} is a reversal of transaction "
                f"{original.reverses_id} and cannot be undone"
            )

        account = self.db.get_account(original.account_id)
        raise_for_errors(validation.validate_account(account, original.account_id))
        if original.amount > 0:
            raise_for_errors(validation.validate_sufficient_funds(account, original.amount))
        enforce_step_up(Operation.UNDO, abs(original.amount), authorization, self.settings)

        reversal, balance = self._reverse(
            original, prefix="Undo", note=f"Undo of transaction {original.id}"
        )
        logger.info("Reversed transaction %s with transaction %s", original.id, reversal.id)
        self._notify(
            account,
            "Transaction Reversed",
            f"Your {original.transaction_type.value} of {format_money(abs(original.amount))} "
            f"({original.description}) has been reversed",
        )
        return PostingResult(transaction=reversal, balance=balance)

    def reconcile(self, account_id: int) -> Reconciliation:
        """Compare an account balance with the signed sum of its entries."""
        account = self.db.get_account(account_id)
        if account is None:
            raise errors.AccountNotFound(errors.account_not_found(account_id))
        return Reconciliation(
            account_id=account_id,
            balance=account.balance,
            ledger_sum=self.db.ledger_sum(account_id),
        )

    def list_transactions(
        self,
        account_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Transaction]:
        """List an account's entries, newest first."""
        if self.db.get_account(account_id) is None:
            raise errors.AccountNotFound(errors.account_not_found(account_id))
        return self.db.list_transactions(account_id=account_id, start=start, end=end)

    def _write_entry(
        self,
        account_id: int,
        delta: Decimal,
        transaction_type: TransactionType,
        description: str,
        *,
        note: Optional[str] = None,
        category: Optional[str] = None,
        created_at: Optional[datetime] = None,
        reverses_id: Optional[int] = None,
        enforce_frozen: bool = True,
    ) -> tuple[Transaction, Decimal]:
        """Apply ``delta`` to the balance, then record the matching entry.

        If the entry cannot be recorded the balance change is undone before
        the error propagates, so the balance always matches the entries.
        """
        balance = self.db.apply_delta(
            account_id,
            delta,
            enforce_frozen=enforce_frozen,
            allow_overdraft=delta >= 0,
        )
        try:
            transaction = self.db.insert_transaction(
                account_id=account_id,
                amount=delta,
                description=description,
                transaction_type=transaction_type,
                created_at=created_at,
                note=note,
                category=category,
                reverses_id=reverses_id,
            )
        except Exception:
            logger.warning("Recording entry for account %s failed; restoring balance", account_id)
            self._restore_balance(account_id, delta)
            raise
        return transaction, balance

    def _restore_balance(self, account_id: int, delta: Decimal) -> None:
        try:
            self.db.apply_delta(account_id, -delta, enforce_frozen=False, allow_overdraft=True)
        except Exception:
            logger.error(
                "Could not restore balance of account %s after a failed write (delta %s); "
                "balance and ledger now disagree",
                account_id,
                delta,
                exc_info=True,
            )

    def _reverse(
        self,
        original: Transaction,
        prefix: str,
        note: str,
        enforce_frozen: bool = True,
    ) -> tuple[Transaction, Decimal]:
        """Flag ``original`` reversed and post its inverse entry."""
        # Claim the reversal first; a concurrent undo fails here with AlreadyReversed
        self.db.mark_reversed(original.id)
        try:
            return self._write_entry(
                original.account_id,
                -original.amount,
                original.transaction_type,
                f"{prefix}: {original.description}",
                note=note,
                category=original.category,
                reverses_id=original.id,
                enforce_frozen=enforce_frozen,
            )
        except Exception:
            try:
                self.db.clear_reversed(original.id)
            except Exception:
                logger.error(
                    "Could not clear reversed flag on transaction %s", original.id, exc_info=True
                )
            raise

    def _compensate_transfer(self, debit: Transaction) -> bool:
        """Reverse the committed debit leg of a failed transfer."""
        try:
            self._reverse(
                debit,
                prefix="Reversal",
                note=f"Automatic reversal of failed transfer leg {debit.id}",
                enforce_frozen=False,
            )
        except Exception:
            logger.error("Compensating reversal of transaction %s failed", debit.id, exc_info=True)
            return False
        return True

    def _notify(self, account: Account, title: str, message: str) -> None:
        """Best-effort owner notification; never fails the parent operation."""
        try:
            self.db.insert_notification(account.owner_id, title, message)
        except Exception as e:
            logger.warning("Failed to create notification for account %s: %s", account.id, e)
