"""Main CLI entry point."""

import click
from ledgerkit.config import get_settings
from ledgerkit.database.factories import create_sqlite_database
from ledgerkit.logging_config import setup_logging

# Import and register all commands at module level
from ledgerkit.cli.commands import (
    account,
    import_cmd,
    ledger,
    statement,
    transaction,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides LEDGERKIT_DATABASE_PATH)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Log level (defaults to LEDGERKIT_LOG_LEVEL or WARNING)",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str | None):
    """Ledgerkit - Account ledger and transaction processing.

    Post deposits, withdrawals and transfers, undo mistakes, and bulk
    import transactions from CSV or JSON files.
    """
    ctx.ensure_object(dict)
    settings = get_settings()
    setup_logging(level=log_level or settings.log_level, fmt=settings.log_format)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db


# Register all commands
account.register_commands(cli)
ledger.register_commands(cli)
transaction.register_commands(cli)
import_cmd.register_commands(cli)
statement.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
