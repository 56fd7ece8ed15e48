"""Tests for the validation rules."""

from datetime import datetime, UTC
from decimal import Decimal

import pytest

from ledgerkit.domain import errors, validation
from ledgerkit.domain.entities import Account
from ledgerkit.domain.errors import ErrorCode


def make_account(account_id=1, balance="100.00", is_frozen=False):
    return Account(
        id=account_id,
        owner_id="user-1",
        account_type="checking",
        account_number=f"00000000{account_id:04d}",
        routing_number="021000021",
        balance=Decimal(balance),
        is_frozen=is_frozen,
        created_at=datetime(2024, 1, 1, tzinfo=UTC),
    )


def codes(result):
    return [error.code for error in result]


class TestAmountRule:
    @pytest.mark.parametrize("value", ["10", "0.01", 5, Decimal("12.34"), "$1,000.00"])
    def test_accepts_positive_amounts(self, value):
        assert validation.validate_amount(value) == []

    @pytest.mark.parametrize("value", [None, "", "   ", "abc", "0", 0, "-5", "NaN", "Infinity", "-inf"])
    def test_rejects_missing_zero_negative_and_non_finite(self, value):
        result = validation.validate_amount(value)
        assert codes(result) == [ErrorCode.INVALID_AMOUNT]
        assert result[0].field == "amount"
        assert result[0].message == "Amount is required and must be a positive number"

    def test_rejects_booleans(self):
        assert codes(validation.validate_amount(True)) == [ErrorCode.INVALID_AMOUNT]


class TestAccountRule:
    def test_missing_account(self):
        result = validation.validate_account(None, 99)
        assert codes(result) == [ErrorCode.ACCOUNT_NOT_FOUND]
        assert result[0].message == "Account ID 99 does not exist"

    def test_frozen_account(self):
        result = validation.validate_account(make_account(is_frozen=True), 1)
        assert codes(result) == [ErrorCode.ACCOUNT_FROZEN]
        assert "contact customer support" in result[0].message

    def test_active_account(self):
        assert validation.validate_account(make_account(), 1) == []


class TestFundsRule:
    def test_exact_balance_is_allowed(self):
        assert validation.validate_sufficient_funds(make_account(balance="100.00"), "100.00") == []

    def test_one_cent_over_is_rejected(self):
        result = validation.validate_sufficient_funds(make_account(balance="100.00"), "100.01")
        assert codes(result) == [ErrorCode.INSUFFICIENT_FUNDS]
        assert "$100.00" in result[0].message

    def test_available_overrides_balance(self):
        account = make_account(balance="100.00")
        assert codes(
            validation.validate_sufficient_funds(account, "60", available=Decimal("50"))
        ) == [ErrorCode.INSUFFICIENT_FUNDS]


class TestComposites:
    def test_deposit_to_frozen_account(self):
        assert codes(
            validation.validate_deposit(make_account(is_frozen=True), 1, "10")
        ) == [ErrorCode.ACCOUNT_FROZEN]

    def test_deposit_collects_all_errors(self):
        assert codes(validation.validate_deposit(None, 7, "-1")) == [
            ErrorCode.ACCOUNT_NOT_FOUND,
            ErrorCode.INVALID_AMOUNT,
        ]

    def test_withdrawal_checks_funds(self):
        assert codes(
            validation.validate_withdrawal(make_account(balance="20"), 1, "20.01")
        ) == [ErrorCode.INSUFFICIENT_FUNDS]

    def test_withdrawal_skips_funds_check_for_bad_amount(self):
        assert codes(validation.validate_withdrawal(make_account(), 1, "abc")) == [ErrorCode.INVALID_AMOUNT]

    def test_transfer_to_same_account(self):
        account = make_account()
        result = validation.validate_transfer(account, 1, account, 1, "10")
        assert ErrorCode.INVALID_DESTINATION in codes(result)
        assert result[0].message == "Cannot transfer to the same account"

    def test_transfer_to_missing_destination(self):
        result = validation.validate_transfer(make_account(), 1, None, 2, "10")
        assert codes(result) == [ErrorCode.ACCOUNT_NOT_FOUND]
        assert result[0].field == "destination_account_id"

    def test_transfer_from_frozen_source(self):
        result = validation.validate_transfer(
            make_account(is_frozen=True), 1, make_account(account_id=2), 2, "10"
        )
        assert codes(result) == [ErrorCode.ACCOUNT_FROZEN]
        assert result[0].field == "source_account_id"

    def test_transfer_insufficient_funds(self):
        result = validation.validate_transfer(
            make_account(balance="5"), 1, make_account(account_id=2), 2, "10"
        )
        assert codes(result) == [ErrorCode.INSUFFICIENT_FUNDS]


class TestImportRow:
    def row(self, **overrides):
        values = {
            "account_id": 1,
            "amount": "25.00",
            "description": "Coffee",
            "transaction_type": "withdrawal",
            "created_at": "2024-01-15",
        }
        values.update(overrides)
        return values

    def test_valid_row(self):
        assert validation.validate_import_row(self.row(), make_account()) == []

    def test_missing_account_id(self):
        result = validation.validate_import_row(self.row(account_id=None), None)
        assert codes(result) == [ErrorCode.ACCOUNT_ID_REQUIRED]
        assert result[0].message.startswith("Account ID is required")

    def test_reports_every_bad_field(self):
        result = validation.validate_import_row(
            self.row(amount="x", description=" ", transaction_type="refund", created_at="not a date"),
            make_account(),
        )
        assert codes(result) == [
            ErrorCode.INVALID_AMOUNT,
            ErrorCode.DESCRIPTION_REQUIRED,
            ErrorCode.INVALID_TRANSACTION_TYPE,
            ErrorCode.INVALID_DATE,
        ]
        assert [error.field for error in result] == ["amount", "description", "transaction_type", "created_at"]

    def test_blank_date_is_allowed(self):
        assert validation.validate_import_row(self.row(created_at=None), make_account()) == []

    def test_withdrawal_checked_against_projected_balance(self):
        result = validation.validate_import_row(self.row(), make_account(balance="100"), available=Decimal("10"))
        assert codes(result) == [ErrorCode.INSUFFICIENT_FUNDS]

    def test_deposit_ignores_funds(self):
        assert validation.validate_import_row(
            self.row(transaction_type="deposit"), make_account(balance="0")
        ) == []


class TestRaiseForErrors:
    def test_no_errors_is_a_no_op(self):
        errors.raise_for_errors([])

    def test_raises_type_of_first_error_with_all_errors(self):
        result = validation.validate_deposit(None, 7, "-1")
        with pytest.raises(errors.AccountNotFound) as exc_info:
            errors.raise_for_errors(result)
        assert exc_info.value.errors == result
        assert exc_info.value.field == "account_id"
        assert isinstance(exc_info.value, ValueError)
