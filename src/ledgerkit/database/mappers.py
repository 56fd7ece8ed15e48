"""Mapper functions to convert SQLAlchemy models into domain entities.

SQLite hands back naive datetimes even for timezone-aware columns; every
timestamp leaving this layer is UTC-aware.
"""

from datetime import datetime, UTC
from decimal import Decimal

from ledgerkit.domain import entities as domain
from ledgerkit.database.models import (
    Account as ORMAccount,
    Notification as ORMNotification,
    Transaction as ORMTransaction,
)

CENT = Decimal("0.01")


def _aware(value: datetime) -> datetime:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _money(value) -> Decimal:
    return Decimal(value if value is not None else 0).quantize(CENT)


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        owner_id=orm_account.owner_id,
        account_type=orm_account.account_type,
        account_number=orm_account.account_number,
        routing_number=orm_account.routing_number,
        balance=_money(orm_account.balance),
        is_frozen=bool(orm_account.is_frozen),
        created_at=_aware(orm_account.created_at),
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        account_id=orm_transaction.account_id,
        amount=_money(orm_transaction.amount),
        description=orm_transaction.description,
        transaction_type=domain.TransactionType(orm_transaction.transaction_type),
        created_at=_aware(orm_transaction.created_at),
        reversed=bool(orm_transaction.reversed),
        note=orm_transaction.note,
        category=orm_transaction.category,
        reverses_id=orm_transaction.reverses_id,
    )


def notification_to_domain(orm_notification: ORMNotification) -> domain.Notification:
    """Convert SQLAlchemy Notification model to domain Notification entity."""
    return domain.Notification(
        id=orm_notification.id,
        owner_id=orm_notification.owner_id,
        title=orm_notification.title,
        message=orm_notification.message,
        created_at=_aware(orm_notification.created_at),
    )
