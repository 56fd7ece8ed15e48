"""Deposit, withdrawal, transfer and undo commands."""

import click
from ledgerkit.cli.step_up import run_with_step_up
from ledgerkit.domain.errors import format_money
from ledgerkit.domain.ledger import LedgerService
from ledgerkit.domain.stepup import hash_password


def step_up_options(func):
    """Add --yes and --password to a command that moves money."""
    func = click.option(
        "--password",
        help="Password for re-authentication (prompted for if needed and omitted)",
    )(func)
    func = click.option(
        "--yes", "-y", is_flag=True, help="Confirm large transactions without prompting"
    )(func)
    return func


@click.command("deposit")
@click.argument("account_id", type=int)
@click.argument("amount")
@click.option("--note", help="Free-text note stored with the transaction")
@click.option("--category", help="Category label")
@step_up_options
@click.pass_context
def deposit(ctx, account_id: int, amount: str, note: str | None, category: str | None, yes: bool, password: str | None):
    """Deposit AMOUNT into an account.

    Examples:
        ledgerkit deposit 1 100.00
        ledgerkit deposit 1 1500 --yes --note "Bonus"
    """
    service = LedgerService(ctx.obj["db"])
    result = run_with_step_up(
        ctx,
        lambda auth: service.deposit(account_id, amount, note=note, category=category, authorization=auth),
        yes=yes,
        password=password,
    )
    if result is None:
        return
    click.echo(
        f"Deposited {format_money(result.transaction.amount)} to account {account_id} "
        f"(transaction {result.transaction.id})"
    )
    click.echo(f"New balance: {format_money(result.balance)}")


@click.command("withdraw")
@click.argument("account_id", type=int)
@click.argument("amount")
@click.option("--note", help="Free-text note stored with the transaction")
@click.option("--category", help="Category label")
@step_up_options
@click.pass_context
def withdraw(ctx, account_id: int, amount: str, note: str | None, category: str | None, yes: bool, password: str | None):
    """Withdraw AMOUNT from an account.

    Withdrawals over the re-authentication threshold ask for the password
    configured in LEDGERKIT_REAUTH_PASSWORD.

    Examples:
        ledgerkit withdraw 1 50
        ledgerkit withdraw 1 2500 --yes --password secret
    """
    service = LedgerService(ctx.obj["db"])
    result = run_with_step_up(
        ctx,
        lambda auth: service.withdraw(account_id, amount, note=note, category=category, authorization=auth),
        yes=yes,
        password=password,
    )
    if result is None:
        return
    click.echo(
        f"Withdrew {format_money(abs(result.transaction.amount))} from account {account_id} "
        f"(transaction {result.transaction.id})"
    )
    click.echo(f"New balance: {format_money(result.balance)}")


@click.command("transfer")
@click.argument("source_id", type=int)
@click.argument("destination_id", type=int)
@click.argument("amount")
@click.option("--note", help="Free-text note stored with both entries")
@click.option("--category", help="Category label")
@step_up_options
@click.pass_context
def transfer(
    ctx,
    source_id: int,
    destination_id: int,
    amount: str,
    note: str | None,
    category: str | None,
    yes: bool,
    password: str | None,
):
    """Transfer AMOUNT from SOURCE_ID to DESTINATION_ID.

    Examples:
        ledgerkit transfer 1 2 250.00
    """
    service = LedgerService(ctx.obj["db"])
    result = run_with_step_up(
        ctx,
        lambda auth: service.transfer(
            source_id, destination_id, amount, note=note, category=category, authorization=auth
        ),
        yes=yes,
        password=password,
    )
    if result is None:
        return
    click.echo(
        f"Transferred {format_money(result.credit.amount)} from account {source_id} "
        f"to account {destination_id} (transactions {result.debit.id}, {result.credit.id})"
    )
    click.echo(f"Source balance: {format_money(result.source_balance)}")
    click.echo(f"Destination balance: {format_money(result.destination_balance)}")


@click.command("undo")
@click.argument("transaction_id", type=int)
@step_up_options
@click.pass_context
def undo(ctx, transaction_id: int, yes: bool, password: str | None):
    """Reverse a transaction by posting an inverse entry.

    The original stays in the history, flagged as reversed.

    Examples:
        ledgerkit undo 42
    """
    service = LedgerService(ctx.obj["db"])
    result = run_with_step_up(
        ctx,
        lambda auth: service.undo(transaction_id, authorization=auth),
        yes=yes,
        password=password,
    )
    if result is None:
        return
    click.echo(f"Reversed transaction {transaction_id} (new transaction {result.transaction.id})")
    click.echo(f"New balance: {format_money(result.balance)}")


@click.command("hash-password")
@click.password_option("--password", prompt="New password")
def hash_password_cmd(password: str):
    """Print a hash of a re-authentication password.

    Put the output in LEDGERKIT_REAUTH_PASSWORD_HASH to enable
    re-authentication for large withdrawals.
    """
    click.echo(hash_password(password))


def register_commands(cli):
    """Register ledger commands with main CLI."""
    cli.add_command(deposit)
    cli.add_command(withdraw)
    cli.add_command(transfer)
    cli.add_command(undo)
    cli.add_command(hash_password_cmd)
