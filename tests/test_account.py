"""Tests for AccountService."""

from decimal import Decimal

import pytest

from ledgerkit.domain import errors


class TestAccountService:
    def test_open_account(self, account_service):
        account_id = account_service.open_account("user-1", "Checking", "000123456789", "021000021")

        account = account_service.get_account(account_id)
        assert account.account_type == "checking"
        assert account.balance == Decimal("0.00")
        assert not account.is_frozen

    @pytest.mark.parametrize("field", ["owner_id", "account_type", "account_number", "routing_number"])
    def test_open_account_requires_every_field(self, account_service, field):
        values = {
            "owner_id": "user-1",
            "account_type": "checking",
            "account_number": "000123456789",
            "routing_number": "021000021",
        }
        values[field] = "  "

        with pytest.raises(errors.ValidationError) as exc_info:
            account_service.open_account(**values)
        assert exc_info.value.field == field

    def test_open_account_duplicate_number(self, account_service, sample_account):
        with pytest.raises(errors.ValidationError) as exc_info:
            account_service.open_account("user-2", "savings", sample_account.account_number, "021000021")
        assert "already exists" in str(exc_info.value)

    def test_require_account_missing(self, account_service):
        with pytest.raises(errors.AccountNotFound):
            account_service.require_account(404)

    def test_get_account_missing(self, account_service):
        assert account_service.get_account(404) is None

    def test_list_accounts_by_owner(self, account_service, sample_account):
        account_service.open_account("user-2", "savings", "000555566667", "021000021")

        assert [acc.id for acc in account_service.list_accounts(owner_id="user-1")] == [sample_account.id]
        assert len(account_service.list_accounts()) == 2

    def test_summarize(self, account_service, ledger_service, sample_account, second_account):
        ledger_service.deposit(sample_account.id, "100.50")
        ledger_service.deposit(second_account.id, "20")
        account_service.freeze(second_account.id)

        summary = account_service.summarize(owner_id="user-1")

        assert summary.total_balance == Decimal("120.50")
        assert summary.active_count == 1
        assert summary.frozen_count == 1

    def test_freeze_and_unfreeze_notify_owner(self, account_service, temp_db, sample_account):
        frozen = account_service.freeze(sample_account.id)
        assert frozen.is_frozen

        unfrozen = account_service.unfreeze(sample_account.id)
        assert not unfrozen.is_frozen

        notifications = temp_db.list_notifications("user-1")
        assert [n.title for n in notifications] == ["Account Unfrozen", "Account Frozen"]
        assert notifications[1].message == (
            "Your checking account ending in 6789 has been frozen. "
            "Please contact customer support for assistance."
        )

    def test_freeze_missing_account(self, account_service):
        with pytest.raises(errors.AccountNotFound):
            account_service.freeze(404)
