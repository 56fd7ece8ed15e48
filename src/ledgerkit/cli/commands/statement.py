"""Statement export command."""

from pathlib import Path

import click
from ledgerkit.cli.date_filters import resolve_cli_date_range
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.errors import DomainError
from ledgerkit.domain.statement import StatementService


@click.command("statement")
@click.argument("account_id", type=int)
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write the statement to this file")
@click.pass_context
def statement(ctx, account_id: int, start_date: str | None, end_date: str | None, output: str | None):
    """Export an account statement as CSV.

    Examples:
        ledgerkit statement 1 --start-date "last month" -o statement.csv
    """
    service = StatementService(ctx.obj["db"])
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date)

    try:
        content = service.export_csv(account_id, start=start, end=end)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if output is None:
        click.echo(content, nl=False)
        return
    Path(output).write_text(content, encoding="utf-8")
    click.echo(f"Statement written to {output}")


def register_commands(cli):
    """Register statement command with main CLI."""
    cli.add_command(statement)
