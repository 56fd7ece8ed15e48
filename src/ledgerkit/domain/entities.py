"""Domain model entities for ledgerkit.

These are pure data classes representing business concepts, independent of
the record store. Ledger code only ever sees these, never ORM rows, so the
store behind the repositories can change without touching business logic.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class TransactionType(str, Enum):
    """Kinds of ledger entry."""

    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    TRANSFER = "transfer"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


@dataclass(frozen=True)
class Account:
    """Bank account domain entity.

    The owner is opaque to the ledger; it is only used to address
    notifications.
    """

    id: int
    owner_id: str
    account_type: str
    account_number: str
    routing_number: str
    balance: Decimal
    is_frozen: bool
    created_at: datetime

    @property
    def masked_number(self) -> str:
        """Account number with everything but the last 4 digits hidden."""
        return f"****{self.account_number[-4:]}"


@dataclass(frozen=True)
class Transaction:
    """Ledger entry posted against a single account.

    Positive amounts are credits, negative amounts are debits.
    """

    id: int
    account_id: int
    amount: Decimal
    description: str
    transaction_type: TransactionType
    created_at: datetime
    reversed: bool = False
    note: Optional[str] = None
    category: Optional[str] = None
    reverses_id: Optional[int] = None

    @property
    def is_credit(self) -> bool:
        return self.amount > 0


@dataclass(frozen=True)
class Notification:
    """Owner-facing notification written best-effort by ledger operations."""

    id: int
    owner_id: str
    title: str
    message: str
    created_at: datetime
