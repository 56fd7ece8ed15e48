"""Transaction history commands."""

import click
from ledgerkit.cli.date_filters import resolve_cli_date_range
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.errors import DomainError, format_money
from ledgerkit.domain.ledger import LedgerService


@click.group()
def transaction_group():
    """View transactions."""
    pass


@transaction_group.command("list")
@click.argument("account_id", type=int)
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month', 'this year')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@click.pass_context
def list_transactions(ctx, account_id: int, start_date: str | None, end_date: str | None):
    """List an account's transactions, newest first.

    Examples:
        ledgerkit transaction list 1
        ledgerkit transaction list 1 --start-date "this month"
    """
    service = LedgerService(ctx.obj["db"])
    start, end = resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date)

    try:
        transactions = service.list_transactions(account_id, start=start, end=end)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not transactions:
        click.echo("No transactions found.")
        return

    click.echo(f"\n{'ID':>5s} | {'Date':10s} | {'Type':10s} | {'Amount':>12s} | Description")
    click.echo("-" * 80)
    for txn in transactions:
        flag = " (reversed)" if txn.reversed else ""
        click.echo(
            f"{txn.id:5d} | {txn.created_at:%Y-%m-%d} | {txn.transaction_type.value:10s} | "
            f"{txn.amount:>12,.2f} | {txn.description}{flag}"
        )


@transaction_group.command("show")
@click.argument("transaction_id", type=int)
@click.pass_context
def show_transaction(ctx, transaction_id: int):
    """Show a single transaction."""
    txn = ctx.obj["db"].get_transaction(transaction_id)
    if txn is None:
        click.echo(f"Error: Transaction {transaction_id} not found", err=True)
        ctx.exit(1)
        return

    click.echo(f"Transaction {txn.id}")
    click.echo(f"  Account:     {txn.account_id}")
    click.echo(f"  Date:        {txn.created_at:%Y-%m-%d %H:%M:%S}")
    click.echo(f"  Type:        {txn.transaction_type.value}")
    click.echo(f"  Amount:      {txn.amount:,.2f}")
    click.echo(f"  Description: {txn.description}")
    if txn.note:
        click.echo(f"  Note:        {txn.note}")
    if txn.category:
        click.echo(f"  Category:    {txn.category}")
    if txn.reverses_id is not None:
        click.echo(f"  Reverses:    {txn.reverses_id}")
    if txn.reversed:
        click.echo("  Status:      reversed")


@transaction_group.command("reconcile")
@click.argument("account_id", type=int)
@click.pass_context
def reconcile(ctx, account_id: int):
    """Check that an account's balance equals the sum of its entries."""
    service = LedgerService(ctx.obj["db"])
    try:
        result = service.reconcile(account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Balance:    {format_money(result.balance)}")
    click.echo(f"Ledger sum: {format_money(result.ledger_sum)}")
    if result.consistent:
        click.echo("Account is consistent")
    else:
        click.echo("Error: Balance does not match ledger entries", err=True)
        ctx.exit(1)


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
