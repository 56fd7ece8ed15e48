"""Account statement export."""

import csv
import io
from datetime import datetime
from typing import Optional

from ledgerkit.database.base import Database
from ledgerkit.domain import errors

STATEMENT_HEADER = ("Date", "Description", "Type", "Amount")


class StatementService:
    """Service for exporting account statements."""

    def __init__(self, db: Database):
        self.db = db

    def export_csv(
        self,
        account_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> str:
        """Render an account's entries in a date range as CSV, newest first.

        Raises:
            AccountNotFound: If the account doesn't exist
            ValidationError: If the range is inverted or holds no transactions
        """
        if self.db.get_account(account_id) is None:
            raise errors.AccountNotFound(errors.account_not_found(account_id))
        if start is not None and end is not None and start > end:
            raise errors.ValidationError("Start date must be on or before end date", field="start_date")

        transactions = self.db.list_transactions(account_id=account_id, start=start, end=end)
        if not transactions:
            raise errors.ValidationError("No transactions found for the selected date range", field="general")

        output = io.StringIO()
        writer = csv.writer(output, lineterminator="\n")
        writer.writerow(STATEMENT_HEADER)
        for txn in transactions:
            writer.writerow(
                (
                    txn.created_at.strftime("%Y-%m-%d"),
                    txn.description,
                    txn.transaction_type.value,
                    f"{txn.amount:.2f}",
                )
            )
        return output.getvalue()
