"""Validation rules applied before any ledger write.

Every function here is pure: accounts are passed in already loaded and
nothing is written. Rules return a list of ``FieldError`` (empty means
accepted) instead of raising, so a bulk import can report every problem at
once. Interactive callers turn the list into an exception with
``errors.raise_for_errors``.
"""

from decimal import Decimal
from typing import Any, Mapping, Optional

from ledgerkit.domain import errors
from ledgerkit.domain.entities import Account, TransactionType
from ledgerkit.domain.errors import ErrorCode, FieldError
from ledgerkit.utils.amount_parser import parse_positive_amount
from ledgerkit.utils.date_parser import parse_datetime


def coerce_amount(value) -> Optional[Decimal]:
    """Return the amount as a positive Decimal, or None if it is not one."""
    try:
        return parse_positive_amount(value)
    except ValueError:
        return None


def validate_amount(value, field: str = "amount") -> list[FieldError]:
    """Amount must parse to a finite number greater than zero."""
    if coerce_amount(value) is None:
        return [FieldError(field, errors.invalid_amount(), ErrorCode.INVALID_AMOUNT)]
    return []


def validate_account(account: Optional[Account], account_id, field: str = "account_id") -> list[FieldError]:
    """The account must exist and must not be frozen."""
    if account is None:
        return [FieldError(field, errors.account_not_found(account_id), ErrorCode.ACCOUNT_NOT_FOUND)]
    if account.is_frozen:
        return [FieldError(field, errors.account_frozen(account.id), ErrorCode.ACCOUNT_FROZEN)]
    return []


def validate_sufficient_funds(
    account: Optional[Account],
    amount,
    field: str = "amount",
    available: Optional[Decimal] = None,
) -> list[FieldError]:
    """A debit must not exceed the balance.

    ``available`` overrides the account balance, e.g. with a balance
    projected over earlier rows of the same import.
    """
    parsed = coerce_amount(amount)
    if account is None or parsed is None:
        return []
    balance = account.balance if available is None else available
    if parsed > balance:
        return [
            FieldError(
                field,
                errors.insufficient_funds(account.id, balance, parsed),
                ErrorCode.INSUFFICIENT_FUNDS,
            )
        ]
    return []


def validate_destination(source_id, destination_id, field: str = "destination_account_id") -> list[FieldError]:
    """A transfer must move money between two different accounts."""
    if source_id == destination_id:
        return [FieldError(field, errors.same_account_transfer(), ErrorCode.INVALID_DESTINATION)]
    return []


def validate_transaction_type(value, field: str = "transaction_type") -> list[FieldError]:
    normalized = str(value).strip().lower() if value is not None else ""
    if normalized not in TransactionType.values():
        return [
            FieldError(field, errors.invalid_transaction_type(value), ErrorCode.INVALID_TRANSACTION_TYPE)
        ]
    return []


def validate_date(value, field: str = "created_at") -> list[FieldError]:
    """A supplied timestamp must parse. Absent timestamps are allowed."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return []
    try:
        parse_datetime(value)
    except ValueError:
        return [FieldError(field, errors.invalid_date(value), ErrorCode.INVALID_DATE)]
    return []


def validate_description(value, field: str = "description") -> list[FieldError]:
    if value is None or not str(value).strip():
        return [FieldError(field, errors.description_required(), ErrorCode.DESCRIPTION_REQUIRED)]
    return []


def validate_deposit(account: Optional[Account], account_id, amount) -> list[FieldError]:
    return validate_account(account, account_id) + validate_amount(amount)


def validate_withdrawal(account: Optional[Account], account_id, amount) -> list[FieldError]:
    result = validate_account(account, account_id) + validate_amount(amount)
    if not result:
        result += validate_sufficient_funds(account, amount)
    return result


def validate_transfer(
    source: Optional[Account],
    source_id,
    destination: Optional[Account],
    destination_id,
    amount,
) -> list[FieldError]:
    """Validate both legs of a transfer.

    Both accounts must exist and be active, they must differ, and the source
    must cover the amount.
    """
    result = validate_destination(source_id, destination_id)
    result += validate_account(source, source_id, field="source_account_id")
    if not result:
        result += validate_account(destination, destination_id, field="destination_account_id")
    result += validate_amount(amount)
    if not result:
        result += validate_sufficient_funds(source, amount)
    return result


def validate_import_row(
    values: Mapping[str, Any],
    account: Optional[Account],
    available: Optional[Decimal] = None,
) -> list[FieldError]:
    """Validate one bulk import row given in canonical field names.

    ``values["account_id"]`` must already have the default account applied;
    None there means neither the row nor the caller named an account.
    """
    result: list[FieldError] = []
    account_id = values.get("account_id")
    if account_id is None:
        result.append(
            FieldError("account_id", errors.account_id_required(), ErrorCode.ACCOUNT_ID_REQUIRED)
        )
    else:
        result += validate_account(account, account_id)

    result += validate_amount(values.get("amount"))
    result += validate_description(values.get("description"))
    result += validate_transaction_type(values.get("transaction_type"))
    result += validate_date(values.get("created_at"))

    if not result and str(values.get("transaction_type")).strip().lower() == TransactionType.WITHDRAWAL.value:
        result += validate_sufficient_funds(account, values.get("amount"), available=available)
    return result
