"""Shared pytest fixtures for ledgerkit tests."""

import logging
import tempfile
import os
from pathlib import Path
import pytest

from ledgerkit import config
from ledgerkit.config import Settings
from ledgerkit.database.factories import create_memory_database, create_sqlite_database
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.bulk_import import BulkImportService
from ledgerkit.domain.ledger import LedgerService
from ledgerkit.domain.stepup import StepUpAuthorization, hash_password

# Hashed once per test session
REAUTH_PASSWORD = "s3cret"
REAUTH_PASSWORD_HASH = hash_password(REAUTH_PASSWORD)


@pytest.fixture
def settings(monkeypatch):
    """Test settings: no import throttle and a known re-auth password hash.

    Installed as the global settings so the CLI picks them up too.
    """
    test_settings = Settings(
        reauth_password_hash=REAUTH_PASSWORD_HASH,
        import_row_delay_seconds=0,
        import_timeout_seconds=60,
    )
    monkeypatch.setattr(config, "settings", test_settings)
    return test_settings


@pytest.fixture
def temp_db(settings):
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def memory_db(settings):
    """Create an empty in-memory database."""
    return create_memory_database()


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def ledger_service(temp_db, settings):
    """Create a LedgerService with a temporary database."""
    return LedgerService(temp_db, settings)


@pytest.fixture
def import_service(temp_db, ledger_service, settings):
    """Create a BulkImportService with a temporary database."""
    return BulkImportService(temp_db, ledger=ledger_service, settings=settings)


@pytest.fixture
def sample_account(account_service):
    """Create an empty checking account."""
    account_id = account_service.open_account(
        owner_id="user-1",
        account_type="checking",
        account_number="000123456789",
        routing_number="021000021",
    )
    return account_service.get_account(account_id)


@pytest.fixture
def funded_account(sample_account, ledger_service):
    """Checking account holding $500.00."""
    ledger_service.deposit(sample_account.id, "500.00")
    return ledger_service.db.get_account(sample_account.id)


@pytest.fixture
def second_account(account_service):
    """Create an empty savings account for the same owner."""
    account_id = account_service.open_account(
        owner_id="user-1",
        account_type="savings",
        account_number="000987654321",
        routing_number="021000021",
    )
    return account_service.get_account(account_id)


@pytest.fixture
def confirmed():
    """Authorization carrying user confirmation only."""
    return StepUpAuthorization(confirmed=True)


@pytest.fixture
def fully_authorized():
    """Authorization carrying confirmation and re-authentication."""
    return StepUpAuthorization(confirmed=True, reauthenticated=True)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers installed by setup_logging (the CLI installs one per run)."""
    yield
    logger = logging.getLogger("ledgerkit")
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
