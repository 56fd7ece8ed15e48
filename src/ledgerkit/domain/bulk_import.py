"""Bulk transaction import from CSV or JSON files.

The pipeline has two stages with deliberately different failure policies:

1. ``validate`` checks every row before anything is written. A single bad
   row rejects the whole batch and nothing is committed.
2. ``commit`` posts the validated rows one by one, in file order, through
   the ledger. A row that fails at this point (say its account was frozen
   after validation) is recorded and the next row is still processed.

Both stages report ``{row, field, message}`` errors so every problem can be
shown to the user at once.
"""

import csv
import io
import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

from ledgerkit.config import Settings, get_settings
from ledgerkit.database.base import Database
from ledgerkit.domain import errors, validation
from ledgerkit.domain.entities import Account, TransactionType
from ledgerkit.domain.errors import ErrorCode
from ledgerkit.domain.ledger import LedgerService
from ledgerkit.domain.stepup import (
    Operation,
    StepUpAuthorization,
    StepUpLevel,
    enforce_step_up,
    requires_step_up,
)
from ledgerkit.utils.amount_parser import parse_positive_amount
from ledgerkit.utils.date_parser import parse_datetime

logger = logging.getLogger(__name__)

# Canonical field name -> accepted column names (matched case-insensitively)
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "account_id": ("account_id", "accountid"),
    "amount": ("amount",),
    "description": ("description", "desc"),
    "transaction_type": ("transaction_type", "type"),
    "created_at": ("created_at", "date"),
    "note": ("note", "notes"),
    "category": ("category",),
}

# File extension -> parser
SUPPORTED_FORMATS = {"csv": "csv", "txt": "csv", "json": "json"}

TEMPLATE_HEADER = "account_id,amount,description,transaction_type,created_at"
TEMPLATE_ROWS = (
    "1,100.00,Initial deposit,deposit,2024-01-15",
    ",50.00,ATM withdrawal,withdrawal,2024-01-16",
    ",250.00,Transfer from savings,transfer,2024-01-17",
)

ProgressCallback = Callable[[int, int], None]


def template_csv() -> str:
    """Downloadable CSV template with example rows."""
    return "\n".join((TEMPLATE_HEADER,) + TEMPLATE_ROWS) + "\n"


@dataclass(frozen=True)
class RowError:
    """A failure attributed to one row (``row`` 0 means the batch as a whole)."""

    row: int
    field: str
    message: str
    code: ErrorCode

    def to_dict(self) -> dict[str, Any]:
        return {"row": self.row, "field": self.field, "message": self.message}

    def __str__(self) -> str:
        return f"Row {self.row}: {self.field} - {self.message}"


@dataclass(frozen=True)
class CandidateRow:
    """A parsed but unvalidated row, keyed by canonical field name."""

    row: int
    values: dict[str, Any]


@dataclass(frozen=True)
class ImportRow:
    """A validated row, ready to post."""

    row: int
    account_id: int
    amount: Decimal
    description: str
    transaction_type: TransactionType
    created_at: Optional[datetime] = None
    note: Optional[str] = None
    category: Optional[str] = None


@dataclass(frozen=True)
class ImportResult:
    """Caller-facing outcome of an import, whichever stage it ended in."""

    success: bool
    processed: int
    errors: list[RowError]
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "processed": self.processed,
            "errors": [error.to_dict() for error in self.errors],
            "message": self.message,
        }


@dataclass
class ValidationReport:
    """Outcome of the all-or-nothing validation stage."""

    total: int
    rows: list[ImportRow] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def result(self) -> ImportResult:
        if self.is_valid:
            return ImportResult(True, 0, [], f"Validated {len(self.rows)} transactions")
        return ImportResult(False, 0, list(self.errors), f"Found {len(self.errors)} validation errors")


@dataclass
class CommitReport:
    """Outcome of the best-effort commit stage."""

    total: int
    processed: int = 0
    errors: list[RowError] = field(default_factory=list)
    timed_out: bool = False

    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def message(self) -> str:
        if self.timed_out:
            return f"Processing timed out after {self.processed} of {self.total} transactions"
        message = f"Processed {self.processed} transactions successfully"
        failed = len(self.errors)
        if failed:
            message += f", {failed} failed"
        return message

    def result(self) -> ImportResult:
        return ImportResult(self.success, self.processed, list(self.errors), self.message)


def map_fields(record: Mapping[str, Any]) -> dict[str, Any]:
    """Translate a raw record to canonical field names.

    Keys are compared case-insensitively after trimming; the first alias
    with a non-blank value wins. Unknown keys are dropped.
    """
    normalized = {str(key).strip().lower(): value for key, value in record.items() if key is not None}
    values: dict[str, Any] = {}
    for canonical, aliases in FIELD_ALIASES.items():
        values[canonical] = None
        for alias in aliases:
            value = normalized.get(alias)
            if isinstance(value, str):
                value = value.strip()
            if value is not None and value != "":
                values[canonical] = value
                break
    return values


def parse_csv(text: str) -> list[CandidateRow]:
    """Parse CSV text. The first line must be the header."""
    text = text.lstrip("﻿")
    if not text.strip():
        raise errors.ValidationError("File is empty", field="file")

    sample = text[:1024]
    try:
        delimiter = csv.Sniffer().sniff(sample, delimiters=",;\t").delimiter
    except csv.Error:
        delimiter = ","

    reader = csv.DictReader(io.StringIO(text), delimiter=delimiter)
    if not reader.fieldnames:
        raise errors.ValidationError("CSV file has no header row", field="file")

    rows = []
    for record in reader:
        if not any((value or "").strip() for value in record.values() if isinstance(value, str)):
            continue
        rows.append(CandidateRow(row=len(rows) + 1, values=map_fields(record)))
    return rows


def parse_json(text: str) -> list[CandidateRow]:
    """Parse JSON text: an array of objects, or a single object."""
    try:
        data = json.loads(text.lstrip("﻿"))
    except json.JSONDecodeError as e:
        raise errors.ValidationError(f"Invalid JSON format: {e.msg}", field="file") from e

    records = data if isinstance(data, list) else [data]
    rows = []
    for index, record in enumerate(records, start=1):
        if not isinstance(record, dict):
            raise errors.ValidationError(f"Row {index}: expected a JSON object", field="file")
        rows.append(CandidateRow(row=index, values=map_fields(record)))
    return rows


def detect_format(path: str) -> str:
    """Return "csv" or "json" from the file extension."""
    extension = Path(path).suffix.lstrip(".").lower()
    if extension not in SUPPORTED_FORMATS:
        raise errors.ValidationError(
            "Please upload a CSV, JSON, or TXT file", field="file"
        )
    return SUPPORTED_FORMATS[extension]


class BulkImportService:
    """Service for importing transaction files."""

    def __init__(
        self,
        db: Database,
        ledger: Optional[LedgerService] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize bulk import service.

        Args:
            db: Database instance
            ledger: Ledger used to post rows; built from ``db`` if omitted
            settings: Timeout and throttle settings; defaults to the global settings
            clock: Monotonic clock used for the commit timeout
            sleep: Used for the delay between rows
        """
        self.db = db
        self.settings = settings or get_settings()
        self.ledger = ledger or LedgerService(db, self.settings)
        self.clock = clock
        self.sleep = sleep

    def parse_file(self, file_path: str) -> list[CandidateRow]:
        """Read and parse a CSV/TXT/JSON file.

        Raises:
            ValidationError: If the extension is unsupported or the content unparseable
            FileNotFoundError: If the file doesn't exist
        """
        fmt = detect_format(file_path)
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")
        text = path.read_text(encoding="utf-8-sig")
        return self.parse_text(text, fmt)

    def parse_text(self, text: str, fmt: str) -> list[CandidateRow]:
        if fmt == "json":
            return parse_json(text)
        return parse_csv(text)

    def validate(
        self,
        candidates: list[CandidateRow],
        default_account_id: Optional[int] = None,
    ) -> ValidationReport:
        """Validate every row; nothing is written.

        Withdrawals are checked against a balance projected over the earlier
        rows of the same file, so a batch that would overdraw an account is
        rejected up front.
        """
        report = ValidationReport(total=len(candidates))
        accounts: dict[int, Optional[Account]] = {}
        projected: dict[int, Decimal] = {}

        for candidate in candidates:
            values = dict(candidate.values)
            values["account_id"] = self._resolve_account_id(values.get("account_id"), default_account_id)
            if values.get("transaction_type") is None:
                values["transaction_type"] = TransactionType.DEPOSIT.value

            account_id = values["account_id"]
            account = None
            if isinstance(account_id, int) and not isinstance(account_id, bool):
                if account_id not in accounts:
                    accounts[account_id] = self.db.get_account(account_id)
                account = accounts[account_id]

            available = None
            if account is not None:
                available = projected.get(account.id, account.balance)

            row_errors = validation.validate_import_row(values, account, available)
            if row_errors:
                report.errors.extend(
                    RowError(candidate.row, error.field, error.message, error.code) for error in row_errors
                )
                continue

            row = self._build_row(candidate.row, values)
            delta = -row.amount if row.transaction_type == TransactionType.WITHDRAWAL else row.amount
            projected[row.account_id] = available + delta
            report.rows.append(row)

        if report.errors:
            logger.info("Import rejected: %d validation errors in %d rows", len(report.errors), report.total)
        return report

    def required_step_up(self, report: ValidationReport) -> StepUpLevel:
        """Strongest step-up any row of the batch needs."""
        levels = [
            requires_step_up(Operation(row.transaction_type.value), row.amount, self.settings)
            for row in report.rows
        ]
        return max(levels, default=StepUpLevel.NONE)

    def commit(
        self,
        report: ValidationReport,
        on_progress: Optional[ProgressCallback] = None,
        authorization: Optional[StepUpAuthorization] = None,
    ) -> CommitReport:
        """Post validated rows in file order, continuing past row failures.

        ``on_progress(current, total)`` is called after every row. Once the
        configured timeout elapses no further rows are started; rows already
        committed stay committed.

        Raises:
            ValidationError: If the report did not pass validation
            StepUpRequired: If the batch needs an authorization the caller lacks
        """
        if not report.is_valid:
            raise errors.ValidationError(
                "Cannot commit a batch that failed validation", field="general"
            )

        rows = report.rows
        for row in rows:
            enforce_step_up(Operation(row.transaction_type.value), row.amount, authorization, self.settings)

        result = CommitReport(total=len(rows))
        timeout = self.settings.import_timeout_seconds
        delay = self.settings.import_row_delay_seconds
        deadline = self.clock() + timeout
        logger.info("Starting to process %d transactions", len(rows))

        for index, row in enumerate(rows):
            if self.clock() >= deadline:
                result.timed_out = True
                result.errors.append(
                    RowError(
                        0,
                        "general",
                        f"Processing timed out after {timeout:g} seconds; "
                        f"{result.processed} transactions were committed and remain posted. "
                        "Please try again with a smaller batch.",
                        ErrorCode.PROCESSING_TIMED_OUT,
                    )
                )
                logger.error("Import timed out at row %d of %d", row.row, len(rows))
                break

            try:
                self.ledger.post(
                    row.account_id,
                    row.transaction_type,
                    row.amount,
                    row.description,
                    note=row.note,
                    category=row.category,
                    created_at=row.created_at,
                    authorization=authorization,
                )
                result.processed += 1
            except errors.DomainError as e:
                result.errors.append(RowError(row.row, e.field, e.message, e.code))
                logger.warning("Import row %d failed: %s", row.row, e.message)

            if on_progress is not None:
                on_progress(index + 1, len(rows))

            if index < len(rows) - 1 and delay > 0:
                self.sleep(delay)

        logger.info("Processing completed. Success: %d, Errors: %d", result.processed, len(result.errors))
        return result

    def import_file(
        self,
        file_path: str,
        default_account_id: Optional[int] = None,
        on_progress: Optional[ProgressCallback] = None,
        authorization: Optional[StepUpAuthorization] = None,
    ) -> ImportResult:
        """Parse, validate and, if every row is valid, commit a file."""
        report = self.validate(self.parse_file(file_path), default_account_id)
        if not report.is_valid:
            return report.result()
        return self.commit(report, on_progress=on_progress, authorization=authorization).result()

    @staticmethod
    def _resolve_account_id(value, default_account_id: Optional[int]) -> Optional[int]:
        """Row account ID, falling back to the default when blank or zero.

        A value that is not an integer (including JSON booleans and
        fractional numbers) is kept as-is so validation reports it as an
        unknown account.
        """
        if value is None or (isinstance(value, str) and not value.strip()):
            return default_account_id
        if isinstance(value, bool):
            return value
        if isinstance(value, float):
            if not value.is_integer():
                return value
            account_id = int(value)
        else:
            try:
                account_id = int(str(value).strip())
            except ValueError:
                return value
        if account_id == 0:
            return default_account_id
        return account_id

    @staticmethod
    def _build_row(row_number: int, values: dict[str, Any]) -> ImportRow:
        created_at = values.get("created_at")
        return ImportRow(
            row=row_number,
            account_id=values["account_id"],
            amount=parse_positive_amount(values["amount"]),
            description=str(values["description"]).strip(),
            transaction_type=TransactionType(str(values["transaction_type"]).strip().lower()),
            created_at=parse_datetime(created_at) if created_at is not None else None,
            note=values.get("note"),
            category=values.get("category"),
        )
