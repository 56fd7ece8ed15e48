"""Account domain service."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from ledgerkit.database.base import Database
from ledgerkit.domain import errors
from ledgerkit.domain.entities import Account as AccountEntity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountSummary:
    """Totals across a set of accounts."""

    total_balance: Decimal
    active_count: int
    frozen_count: int


class AccountService:
    """Service for managing accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def open_account(
        self,
        owner_id: str,
        account_type: str,
        account_number: str,
        routing_number: str,
    ) -> int:
        """Open a new, empty account.

        Provisioning belongs to an external flow; this exists for admin
        tooling and demos. Balances start at zero and only change through
        the ledger.

        Returns:
            Account ID

        Raises:
            ValidationError: If a field is blank or the number is already in use
        """
        for field, value in (
            ("owner_id", owner_id),
            ("account_type", account_type),
            ("account_number", account_number),
            ("routing_number", routing_number),
        ):
            if not value or not str(value).strip():
                raise errors.ValidationError(f"{field} is required", field=field)

        for acc in self.db.list_accounts():
            if acc.account_number == account_number:
                raise errors.ValidationError(
                    f"Account number ending in {account_number[-4:]} already exists",
                    field="account_number",
                )

        account_id = self.db.create_account(
            owner_id=owner_id,
            account_type=account_type.lower(),
            account_number=account_number,
            routing_number=routing_number,
        )
        logger.info("Opened %s account %s for owner %s", account_type, account_id, owner_id)
        return account_id

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID.

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(account_id)

    def require_account(self, account_id: int) -> AccountEntity:
        """Get account by ID, raising ``AccountNotFound`` when missing."""
        account = self.db.get_account(account_id)
        if account is None:
            raise errors.AccountNotFound(errors.account_not_found(account_id))
        return account

    def list_accounts(self, owner_id: Optional[str] = None) -> list[AccountEntity]:
        """List accounts, optionally only one owner's."""
        return self.db.list_accounts(owner_id=owner_id)

    def summarize(self, owner_id: Optional[str] = None) -> AccountSummary:
        """Total balance plus active and frozen counts."""
        accounts = self.list_accounts(owner_id)
        return AccountSummary(
            total_balance=sum((acc.balance for acc in accounts), Decimal("0.00")),
            active_count=sum(1 for acc in accounts if not acc.is_frozen),
            frozen_count=sum(1 for acc in accounts if acc.is_frozen),
        )

    def freeze(self, account_id: int) -> AccountEntity:
        """Administratively block all postings to an account."""
        return self._set_frozen(account_id, True)

    def unfreeze(self, account_id: int) -> AccountEntity:
        """Lift an administrative freeze."""
        return self._set_frozen(account_id, False)

    def _set_frozen(self, account_id: int, frozen: bool) -> AccountEntity:
        self.require_account(account_id)
        account = self.db.set_frozen(account_id, frozen)
        logger.info("Account %s %s", account_id, "frozen" if frozen else "unfrozen")

        if frozen:
            title = "Account Frozen"
            message = (
                f"Your {account.account_type} account ending in {account.account_number[-4:]} "
                "has been frozen. Please contact customer support for assistance."
            )
        else:
            title = "Account Unfrozen"
            message = (
                f"Your {account.account_type} account ending in {account.account_number[-4:]} "
                "has been unfrozen and is now active."
            )
        try:
            self.db.insert_notification(account.owner_id, title, message)
        except Exception as e:
            logger.warning("Failed to create notification for account %s: %s", account_id, e)
        return account
