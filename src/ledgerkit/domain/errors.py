"""Shared domain error codes, messages and error types."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    """Every business-reachable failure, each attributable to one field."""

    INVALID_INPUT = "InvalidInput"
    INVALID_AMOUNT = "InvalidAmount"
    ACCOUNT_NOT_FOUND = "AccountNotFound"
    ACCOUNT_FROZEN = "AccountFrozen"
    INSUFFICIENT_FUNDS = "InsufficientFunds"
    INVALID_DESTINATION = "InvalidDestination"
    INVALID_TRANSACTION_TYPE = "InvalidTransactionType"
    INVALID_DATE = "InvalidDate"
    ACCOUNT_ID_REQUIRED = "AccountIdRequired"
    DESCRIPTION_REQUIRED = "DescriptionRequired"
    TRANSACTION_NOT_FOUND = "TransactionNotFound"
    ALREADY_REVERSED = "AlreadyReversed"
    STEP_UP_REQUIRED = "StepUpRequired"
    PARTIAL_TRANSFER_FAILURE = "PartialTransferFailure"
    PROCESSING_TIMED_OUT = "ProcessingTimedOut"
    STORE_UNAVAILABLE = "StoreUnavailable"


@dataclass(frozen=True)
class FieldError:
    """A single validation failure tied to the input field that caused it."""

    field: str
    message: str
    code: ErrorCode

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message, "code": self.code.value}


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling. Every instance carries the
    list of field errors that produced it.
    """

    code: ErrorCode = ErrorCode.STORE_UNAVAILABLE
    default_field = "general"

    def __init__(self, message: str, errors: Optional[list[FieldError]] = None, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field or (errors[0].field if errors else self.default_field)
        self.errors = errors if errors else [FieldError(self.field, message, self.code)]


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""

    code = ErrorCode.INVALID_INPUT


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Operation conflicts with the current state of an entity."""


class InvalidAmount(ValidationError):
    code = ErrorCode.INVALID_AMOUNT
    default_field = "amount"


class InvalidDestination(ValidationError):
    code = ErrorCode.INVALID_DESTINATION
    default_field = "destination_account_id"


class InvalidTransactionType(ValidationError):
    code = ErrorCode.INVALID_TRANSACTION_TYPE
    default_field = "transaction_type"


class InvalidDate(ValidationError):
    code = ErrorCode.INVALID_DATE
    default_field = "created_at"


class AccountIdRequired(ValidationError):
    code = ErrorCode.ACCOUNT_ID_REQUIRED
    default_field = "account_id"


class DescriptionRequired(ValidationError):
    code = ErrorCode.DESCRIPTION_REQUIRED
    default_field = "description"


class AccountNotFound(NotFoundError):
    code = ErrorCode.ACCOUNT_NOT_FOUND
    default_field = "account_id"


class TransactionNotFound(NotFoundError):
    code = ErrorCode.TRANSACTION_NOT_FOUND
    default_field = "transaction_id"


class AccountFrozen(ConflictError):
    code = ErrorCode.ACCOUNT_FROZEN
    default_field = "account_id"


class InsufficientFunds(ConflictError):
    code = ErrorCode.INSUFFICIENT_FUNDS
    default_field = "amount"


class AlreadyReversed(ConflictError):
    code = ErrorCode.ALREADY_REVERSED
    default_field = "transaction_id"


class StepUpRequired(DomainError):
    """The operation needs confirmation and/or re-authentication first.

    Callers resolve it (prompt the user) and retry with a sufficient
    ``StepUpAuthorization``.
    """

    code = ErrorCode.STEP_UP_REQUIRED
    default_field = "amount"

    def __init__(self, message: str, level, operation: str, amount: Decimal):
        super().__init__(message)
        self.level = level
        self.operation = operation
        self.amount = amount


class PartialTransferFailure(DomainError):
    """The debit leg of a transfer committed but the credit leg did not."""

    code = ErrorCode.PARTIAL_TRANSFER_FAILURE
    default_field = "destination_account_id"

    def __init__(self, message: str, debit_transaction_id: int, compensated: bool):
        super().__init__(message)
        self.debit_transaction_id = debit_transaction_id
        self.compensated = compensated


class ProcessingTimedOut(DomainError):
    code = ErrorCode.PROCESSING_TIMED_OUT


class StoreUnavailable(DomainError):
    """Wraps any failure raised by the record store."""

    code = ErrorCode.STORE_UNAVAILABLE


ERROR_TYPES: dict[ErrorCode, type[DomainError]] = {
    cls.code: cls
    for cls in (
        InvalidAmount,
        InvalidDestination,
        InvalidTransactionType,
        InvalidDate,
        AccountIdRequired,
        DescriptionRequired,
        AccountNotFound,
        TransactionNotFound,
        AccountFrozen,
        InsufficientFunds,
        AlreadyReversed,
        ProcessingTimedOut,
        StoreUnavailable,
    )
}


def raise_for_errors(errors: list[FieldError]) -> None:
    """Raise the exception registered for the first error, carrying all of them."""
    if not errors:
        return
    first = errors[0]
    error_type = ERROR_TYPES.get(first.code, ValidationError)
    raise error_type(first.message, errors=errors)


def format_money(amount: Decimal) -> str:
    """Render an amount the way user-facing messages show it."""
    return f"${amount:,.2f}"


def invalid_amount() -> str:
    return "Amount is required and must be a positive number"


def account_not_found(account_id) -> str:
    """Return message for missing account."""
    return f"Account ID {account_id} does not exist"


def account_frozen(account_id: int) -> str:
    return f"Account {account_id} is frozen. Please contact customer support for assistance."


def insufficient_funds(account_id: int, balance: Decimal, amount: Decimal) -> str:
    return (
        f"Insufficient funds in account {account_id}: "
        f"balance {format_money(balance)}, requested {format_money(amount)}"
    )


def same_account_transfer() -> str:
    return "Cannot transfer to the same account"


def invalid_transaction_type(value) -> str:
    from ledgerkit.domain.entities import TransactionType

    return f"Transaction type '{value}' must be one of: {', '.join(TransactionType.values())}"


def invalid_date(value) -> str:
    return f"Invalid date format: '{value}'"


def account_id_required() -> str:
    return (
        "Account ID is required. Either specify it in the file "
        "or select a default account."
    )


def description_required() -> str:
    return "Description is required"


def transaction_not_found(transaction_id: int) -> str:
    return f"Transaction {transaction_id} not found"


def already_reversed(transaction_id: int) -> str:
    return f"Transaction {transaction_id} has already been reversed"
